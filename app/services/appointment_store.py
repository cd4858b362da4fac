from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from app.core.config import Settings


class AppointmentStore(ABC):
    @abstractmethod
    def find_appointments(
        self,
        *,
        doctor_id: str,
        starts_at: datetime,
        ends_at: datetime,
        statuses: Iterable[str],
    ) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryAppointmentStore(AppointmentStore):
    def __init__(self) -> None:
        self._next_id = 1
        self._appointments_by_id: dict[str, dict[str, Any]] = {}

    def find_appointments(
        self,
        *,
        doctor_id: str,
        starts_at: datetime,
        ends_at: datetime,
        statuses: Iterable[str],
    ) -> list[dict[str, Any]]:
        normalized_doctor_id = doctor_id.strip()
        normalized_statuses = _normalize_statuses(statuses)
        return [
            dict(appointment)
            for appointment in self._appointments_by_id.values()
            if appointment.get("doctor_id") == normalized_doctor_id
            and starts_at <= appointment["appointment_date"] <= ends_at
            and appointment.get("status") in normalized_statuses
        ]

    def create_appointment(
        self,
        *,
        doctor_id: str,
        patient_id: str,
        appointment_date: datetime,
        appointment_time: str,
        status: str,
    ) -> dict[str, Any]:
        """Seed a booking. Appointments are written by the booking flow, not this API."""
        appointment_id = str(self._next_id)
        self._next_id += 1
        now = datetime.now(UTC)
        appointment = {
            "_id": appointment_id,
            "doctor_id": doctor_id.strip(),
            "patient_id": patient_id.strip(),
            "appointment_date": appointment_date,
            "appointment_time": appointment_time.strip(),
            "status": status.strip().upper(),
            "created_at": now,
            "updated_at": now,
        }
        self._appointments_by_id[appointment_id] = appointment
        return dict(appointment)


class MongoAppointmentStore(AppointmentStore):
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
        self._appointments = self._client[db_name][collection_name]
        self._appointments.create_index([("doctor_id", 1), ("appointment_date", 1), ("status", 1)])

    def find_appointments(
        self,
        *,
        doctor_id: str,
        starts_at: datetime,
        ends_at: datetime,
        statuses: Iterable[str],
    ) -> list[dict[str, Any]]:
        query = {
            "doctor_id": doctor_id.strip(),
            "appointment_date": {"$gte": starts_at, "$lte": ends_at},
            "status": {"$in": sorted(_normalize_statuses(statuses))},
        }
        return [_serialize_record(record) for record in self._appointments.find(query)]


def _normalize_statuses(statuses: Iterable[str]) -> set[str]:
    return {status.strip().upper() for status in statuses if status and status.strip()}


def _serialize_record(record: Any) -> dict[str, Any] | None:
    if not record:
        return None
    payload = dict(record)
    payload["_id"] = str(record.get("_id", ""))
    return payload


def create_appointment_store(settings: Settings) -> AppointmentStore:
    return _create_appointment_store_cached(
        data_store=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_appointments_collection=settings.mongodb_appointments_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_appointment_store_cached(
    *,
    data_store: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_appointments_collection: str,
    mongodb_connect_timeout_ms: int,
) -> AppointmentStore:
    if data_store == "mongodb":
        return MongoAppointmentStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_appointments_collection,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryAppointmentStore()


def clear_appointment_store_cache() -> None:
    _create_appointment_store_cached.cache_clear()
