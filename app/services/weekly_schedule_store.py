from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from app.core.config import Settings


class WeeklyScheduleStore(ABC):
    @abstractmethod
    def find_schedule_by_doctor(self, doctor_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def save_schedule(self, schedule: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError


class InMemoryWeeklyScheduleStore(WeeklyScheduleStore):
    def __init__(self) -> None:
        self._next_id = 1
        self._schedules_by_doctor_id: dict[str, dict[str, Any]] = {}

    def find_schedule_by_doctor(self, doctor_id: str) -> dict[str, Any] | None:
        schedule = self._schedules_by_doctor_id.get(doctor_id.strip())
        if not schedule:
            return None
        return copy.deepcopy(schedule)

    def save_schedule(self, schedule: dict[str, Any]) -> dict[str, Any]:
        doctor_id = str(schedule.get("doctor_id", "")).strip()
        if not doctor_id:
            raise ValueError("doctor_id_required")

        now = datetime.now(UTC)
        existing = self._schedules_by_doctor_id.get(doctor_id)
        if existing:
            schedule_id = existing["_id"]
            created_at = existing["created_at"]
        else:
            schedule_id = str(self._next_id)
            self._next_id += 1
            created_at = now

        record = {
            "_id": schedule_id,
            "doctor_id": doctor_id,
            "appointment_duration": schedule.get("appointment_duration"),
            "days": copy.deepcopy(schedule.get("days") or []),
            "created_at": created_at,
            "updated_at": now,
        }
        self._schedules_by_doctor_id[doctor_id] = record
        return copy.deepcopy(record)


class MongoWeeklyScheduleStore(WeeklyScheduleStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        self._collection = self._client[db_name][collection_name]
        self._collection.create_index("doctor_id", unique=True)

    def find_schedule_by_doctor(self, doctor_id: str) -> dict[str, Any] | None:
        record = self._collection.find_one({"doctor_id": doctor_id.strip()})
        return _serialize_record(record)

    def save_schedule(self, schedule: dict[str, Any]) -> dict[str, Any]:
        doctor_id = str(schedule.get("doctor_id", "")).strip()
        if not doctor_id:
            raise ValueError("doctor_id_required")

        # The whole document is written in one update; concurrent writers are last-write-wins.
        now = datetime.now(UTC)
        self._collection.update_one(
            {"doctor_id": doctor_id},
            {
                "$set": {
                    "appointment_duration": schedule.get("appointment_duration"),
                    "days": schedule.get("days") or [],
                    "updated_at": now,
                },
                "$setOnInsert": {
                    "created_at": now,
                },
            },
            upsert=True,
        )
        saved = self.find_schedule_by_doctor(doctor_id)
        if not saved:
            raise RuntimeError("Unable to read saved weekly schedule.")
        return saved


def _serialize_record(record: Any) -> dict[str, Any] | None:
    if not record:
        return None
    payload = dict(record)
    payload["_id"] = str(record.get("_id", ""))
    return payload


def create_weekly_schedule_store(settings: Settings) -> WeeklyScheduleStore:
    return _create_weekly_schedule_store_cached(
        data_store=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_weekly_schedules_collection=settings.mongodb_weekly_schedules_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_weekly_schedule_store_cached(
    *,
    data_store: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_weekly_schedules_collection: str,
    mongodb_connect_timeout_ms: int,
) -> WeeklyScheduleStore:
    if data_store == "mongodb":
        return MongoWeeklyScheduleStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_weekly_schedules_collection,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryWeeklyScheduleStore()


def clear_weekly_schedule_store_cache() -> None:
    _create_weekly_schedule_store_cached.cache_clear()
