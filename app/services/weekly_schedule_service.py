from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, NoReturn
from uuid import uuid4

from fastapi import HTTPException, status

from app.core.config import Settings, get_settings
from app.schemas.weekly_schedule import (
    AppointmentDuration,
    AvailableSlotsResponse,
    DayOfWeek,
    DaySchedule,
    TimeSlot,
    TimeSlotCreateRequest,
    TimeSlotUpdateRequest,
    WeeklySchedule,
)
from app.services.appointment_store import AppointmentStore, create_appointment_store
from app.services.availability_resolver import SLOT_OCCUPYING_STATUSES, resolve_available_slots
from app.services.weekly_schedule_store import WeeklyScheduleStore, create_weekly_schedule_store

logger = logging.getLogger(__name__)


class WeeklyScheduleService:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        schedule_store: WeeklyScheduleStore | None = None,
        appointment_store: AppointmentStore | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.schedule_store = schedule_store or create_weekly_schedule_store(self.settings)
        self.appointment_store = appointment_store or create_appointment_store(self.settings)

    def get_schedule(self, doctor_id: str) -> WeeklySchedule:
        schedule = self._load_schedule(doctor_id)
        if schedule is None:
            return WeeklySchedule(doctor_id=doctor_id)
        return schedule

    def upsert_day_slots(
        self,
        doctor_id: str,
        day_of_week: DayOfWeek,
        slots: list[TimeSlotCreateRequest],
    ) -> WeeklySchedule:
        schedule = self._load_schedule(doctor_id) or WeeklySchedule(doctor_id=doctor_id)
        time_slots = [_new_time_slot(slot) for slot in slots]

        day_schedule = schedule.get_day(day_of_week)
        if day_schedule is None:
            schedule.days.append(DaySchedule(day_of_week=day_of_week, time_slots=time_slots))
        else:
            day_schedule.time_slots = time_slots

        saved = self._save_schedule(schedule)
        logger.info(
            "Day schedule replaced doctor_id=%s day_of_week=%s slots=%s",
            doctor_id,
            day_of_week.value,
            len(time_slots),
        )
        return saved

    def set_appointment_duration(self, doctor_id: str, duration: AppointmentDuration) -> WeeklySchedule:
        schedule = self._load_schedule(doctor_id) or WeeklySchedule(doctor_id=doctor_id)
        schedule.appointment_duration = duration
        saved = self._save_schedule(schedule)
        logger.info("Appointment duration updated doctor_id=%s duration=%s", doctor_id, int(duration))
        return saved

    def add_slot(
        self,
        doctor_id: str,
        day_of_week: DayOfWeek,
        slot: TimeSlotCreateRequest,
    ) -> WeeklySchedule:
        schedule = self._load_schedule(doctor_id) or WeeklySchedule(doctor_id=doctor_id)
        time_slot = _new_time_slot(slot)

        day_schedule = schedule.get_day(day_of_week)
        if day_schedule is None:
            schedule.days.append(DaySchedule(day_of_week=day_of_week, time_slots=[time_slot]))
        else:
            day_schedule.time_slots.append(time_slot)

        saved = self._save_schedule(schedule)
        logger.info(
            "Time slot added doctor_id=%s day_of_week=%s slot_id=%s",
            doctor_id,
            day_of_week.value,
            time_slot.id,
        )
        return saved

    def update_slot(
        self,
        doctor_id: str,
        day_of_week: DayOfWeek,
        slot_id: str,
        updates: TimeSlotUpdateRequest,
    ) -> WeeklySchedule:
        schedule, day_schedule = self._require_day(doctor_id, day_of_week)
        slot_index = _find_slot_index(day_schedule, slot_id)
        if slot_index is None:
            self._raise_not_found("Time slot not found.", doctor_id, day_of_week, slot_id)

        # Partial merge: start/end ordering is not re-checked here.
        current_slot = day_schedule.time_slots[slot_index]
        day_schedule.time_slots[slot_index] = current_slot.model_copy(
            update=updates.model_dump(exclude_unset=True, exclude_none=True),
        )

        saved = self._save_schedule(schedule)
        logger.info(
            "Time slot updated doctor_id=%s day_of_week=%s slot_id=%s",
            doctor_id,
            day_of_week.value,
            slot_id,
        )
        return saved

    def delete_slot(self, doctor_id: str, day_of_week: DayOfWeek, slot_id: str) -> WeeklySchedule:
        schedule, day_schedule = self._require_day(doctor_id, day_of_week)
        slot_index = _find_slot_index(day_schedule, slot_id)
        if slot_index is None:
            self._raise_not_found("Time slot not found.", doctor_id, day_of_week, slot_id)

        del day_schedule.time_slots[slot_index]

        saved = self._save_schedule(schedule)
        logger.info(
            "Time slot deleted doctor_id=%s day_of_week=%s slot_id=%s",
            doctor_id,
            day_of_week.value,
            slot_id,
        )
        return saved

    def get_available_slots(self, doctor_id: str, target_date: date) -> AvailableSlotsResponse:
        day_of_week = DayOfWeek.from_date(target_date)
        response = AvailableSlotsResponse(doctor_id=doctor_id, date=target_date, day_of_week=day_of_week)

        schedule = self._load_schedule(doctor_id)
        if schedule is None:
            return response

        appointments = self.appointment_store.find_appointments(
            doctor_id=doctor_id,
            starts_at=datetime.combine(target_date, time.min),
            ends_at=datetime.combine(target_date, time.max),
            statuses=SLOT_OCCUPYING_STATUSES,
        )
        response.slots = resolve_available_slots(schedule, target_date, appointments)
        return response

    def _load_schedule(self, doctor_id: str) -> WeeklySchedule | None:
        record = self.schedule_store.find_schedule_by_doctor(doctor_id)
        if not record:
            return None
        return _to_weekly_schedule(record)

    def _save_schedule(self, schedule: WeeklySchedule) -> WeeklySchedule:
        record = self.schedule_store.save_schedule(schedule.model_dump(mode="json"))
        return _to_weekly_schedule(record)

    def _require_day(self, doctor_id: str, day_of_week: DayOfWeek) -> tuple[WeeklySchedule, DaySchedule]:
        schedule = self._load_schedule(doctor_id)
        if schedule is None:
            self._raise_not_found("Weekly schedule not found.", doctor_id, day_of_week)

        day_schedule = schedule.get_day(day_of_week)
        if day_schedule is None:
            self._raise_not_found("Day schedule not found.", doctor_id, day_of_week)
        return schedule, day_schedule

    def _raise_not_found(
        self,
        detail: str,
        doctor_id: str,
        day_of_week: DayOfWeek,
        slot_id: str | None = None,
    ) -> NoReturn:
        logger.warning(
            "Weekly schedule lookup failed doctor_id=%s day_of_week=%s slot_id=%s detail=%s",
            doctor_id,
            day_of_week.value,
            slot_id,
            detail,
        )
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _new_time_slot(slot: TimeSlotCreateRequest) -> TimeSlot:
    return TimeSlot(
        id=uuid4().hex,
        start_time=slot.start_time,
        end_time=slot.end_time,
        is_available=slot.is_available,
    )


def _find_slot_index(day_schedule: DaySchedule, slot_id: str) -> int | None:
    normalized_slot_id = slot_id.strip()
    for index, slot in enumerate(day_schedule.time_slots):
        if slot.id == normalized_slot_id:
            return index
    return None


def _to_weekly_schedule(record: dict[str, Any]) -> WeeklySchedule:
    return WeeklySchedule(
        doctor_id=str(record.get("doctor_id", "")),
        appointment_duration=record.get("appointment_duration") or AppointmentDuration.half_hour,
        days=record.get("days") or [],
    )
