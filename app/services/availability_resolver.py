from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from app.schemas.weekly_schedule import AvailableSlot, DayOfWeek, WeeklySchedule

SLOT_OCCUPYING_STATUSES = frozenset({"PENDING", "CONFIRMED"})


def resolve_available_slots(
    schedule: WeeklySchedule | None,
    target_date: date,
    appointments: Iterable[Mapping[str, Any]],
) -> list[AvailableSlot]:
    """Compute the bookable windows of one calendar date.

    Slots keep their configured order. A slot is dropped when it is flagged
    unavailable or when a pending/confirmed appointment starts at exactly the
    same time. Appointments that overlap a slot without sharing its start
    time are not detected.
    """
    if schedule is None:
        return []

    day_schedule = schedule.get_day(DayOfWeek.from_date(target_date))
    if day_schedule is None or not day_schedule.time_slots:
        return []

    booked_start_times = collect_booked_start_times(appointments)
    duration_minutes = int(schedule.appointment_duration)

    return [
        AvailableSlot(
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration_minutes=duration_minutes,
        )
        for slot in day_schedule.time_slots
        if slot.is_available and slot.start_time not in booked_start_times
    ]


def collect_booked_start_times(appointments: Iterable[Mapping[str, Any]]) -> set[str]:
    booked: set[str] = set()
    for appointment in appointments:
        status = str(appointment.get("status", "")).strip().upper()
        if status not in SLOT_OCCUPYING_STATUSES:
            continue
        appointment_time = str(appointment.get("appointment_time", "")).strip()
        if appointment_time:
            booked.add(appointment_time)
    return booked
