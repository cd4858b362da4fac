from datetime import date, datetime

import pytest
from fastapi import HTTPException

from app.core.config import Settings
from app.schemas.weekly_schedule import (
    AppointmentDuration,
    DayOfWeek,
    TimeSlotCreateRequest,
    TimeSlotUpdateRequest,
)
from app.services.appointment_store import InMemoryAppointmentStore
from app.services.weekly_schedule_service import WeeklyScheduleService
from app.services.weekly_schedule_store import InMemoryWeeklyScheduleStore

MONDAY = date(2026, 1, 5)


@pytest.fixture
def appointment_store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def service(appointment_store: InMemoryAppointmentStore) -> WeeklyScheduleService:
    return WeeklyScheduleService(
        Settings(data_store="memory"),
        schedule_store=InMemoryWeeklyScheduleStore(),
        appointment_store=appointment_store,
    )


def _slot(start_time: str, end_time: str, *, is_available: bool = True) -> TimeSlotCreateRequest:
    return TimeSlotCreateRequest(start_time=start_time, end_time=end_time, is_available=is_available)


def test_get_schedule_returns_default_when_missing(service: WeeklyScheduleService) -> None:
    schedule = service.get_schedule("doctor-1")

    assert schedule.doctor_id == "doctor-1"
    assert schedule.appointment_duration == AppointmentDuration.half_hour
    assert schedule.days == []


def test_upsert_day_slots_creates_then_replaces_day(service: WeeklyScheduleService) -> None:
    created = service.upsert_day_slots("doctor-1", DayOfWeek.monday, [_slot("09:00", "09:30")])
    replaced = service.upsert_day_slots(
        "doctor-1",
        DayOfWeek.monday,
        [_slot("10:00", "10:30"), _slot("10:30", "11:00")],
    )

    assert len(created.days) == 1
    assert len(replaced.days) == 1
    monday = replaced.get_day(DayOfWeek.monday)
    assert monday is not None
    assert [slot.start_time for slot in monday.time_slots] == ["10:00", "10:30"]
    assert all(slot.id for slot in monday.time_slots)


def test_upsert_day_slots_adds_new_day_alongside_existing(service: WeeklyScheduleService) -> None:
    service.upsert_day_slots("doctor-1", DayOfWeek.monday, [_slot("09:00", "09:30")])
    schedule = service.upsert_day_slots("doctor-1", DayOfWeek.friday, [])

    assert [day.day_of_week for day in schedule.days] == [DayOfWeek.monday, DayOfWeek.friday]


def test_set_appointment_duration_creates_and_updates(service: WeeklyScheduleService) -> None:
    created = service.set_appointment_duration("doctor-1", AppointmentDuration.quarter_hour)
    service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:15"))
    updated = service.set_appointment_duration("doctor-1", AppointmentDuration.hour)

    assert created.appointment_duration == 15
    assert updated.appointment_duration == 60
    assert len(updated.days) == 1

    availability = service.get_available_slots("doctor-1", MONDAY)
    assert [slot.duration_minutes for slot in availability.slots] == [60]


def test_add_update_delete_round_trip_leaves_day_empty(service: WeeklyScheduleService) -> None:
    added = service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:30"))
    monday = added.get_day(DayOfWeek.monday)
    assert monday is not None
    slot_id = monday.time_slots[0].id

    updated = service.update_slot(
        "doctor-1",
        DayOfWeek.monday,
        slot_id,
        TimeSlotUpdateRequest(is_available=False),
    )
    updated_slot = updated.get_day(DayOfWeek.monday).time_slots[0]
    assert updated_slot.id == slot_id
    assert updated_slot.start_time == "09:00"
    assert updated_slot.end_time == "09:30"
    assert updated_slot.is_available is False

    deleted = service.delete_slot("doctor-1", DayOfWeek.monday, slot_id)
    assert deleted.get_day(DayOfWeek.monday).time_slots == []


def test_update_slot_merges_only_provided_fields(service: WeeklyScheduleService) -> None:
    added = service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:30"))
    slot_id = added.get_day(DayOfWeek.monday).time_slots[0].id

    updated = service.update_slot(
        "doctor-1",
        DayOfWeek.monday,
        slot_id,
        TimeSlotUpdateRequest(end_time="08:00"),
    )

    slot = updated.get_day(DayOfWeek.monday).time_slots[0]
    assert slot.start_time == "09:00"
    assert slot.end_time == "08:00"
    assert slot.is_available is True


def test_duplicate_slots_are_kept(service: WeeklyScheduleService) -> None:
    service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:30"))
    schedule = service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:30"))

    slots = schedule.get_day(DayOfWeek.monday).time_slots
    assert len(slots) == 2
    assert slots[0].id != slots[1].id


@pytest.mark.parametrize(
    ("setup", "day_of_week", "slot_id", "detail"),
    [
        (False, DayOfWeek.monday, "missing", "Weekly schedule not found."),
        (True, DayOfWeek.tuesday, "missing", "Day schedule not found."),
        (True, DayOfWeek.monday, "missing", "Time slot not found."),
    ],
)
def test_update_and_delete_raise_not_found(
    service: WeeklyScheduleService,
    setup: bool,
    day_of_week: DayOfWeek,
    slot_id: str,
    detail: str,
) -> None:
    if setup:
        service.add_slot("doctor-1", DayOfWeek.monday, _slot("09:00", "09:30"))

    with pytest.raises(HTTPException) as update_error:
        service.update_slot("doctor-1", day_of_week, slot_id, TimeSlotUpdateRequest(is_available=False))
    with pytest.raises(HTTPException) as delete_error:
        service.delete_slot("doctor-1", day_of_week, slot_id)

    assert update_error.value.status_code == 404
    assert update_error.value.detail == detail
    assert delete_error.value.status_code == 404
    assert delete_error.value.detail == detail


def test_get_available_slots_excludes_booked_slots_for_the_date(
    service: WeeklyScheduleService,
    appointment_store: InMemoryAppointmentStore,
) -> None:
    service.upsert_day_slots(
        "doctor-1",
        DayOfWeek.monday,
        [_slot("09:00", "09:30"), _slot("09:30", "10:00")],
    )
    appointment_store.create_appointment(
        doctor_id="doctor-1",
        patient_id="patient-1",
        appointment_date=datetime(2026, 1, 5),
        appointment_time="09:30",
        status="PENDING",
    )
    # Same time, other doctor and other Monday: neither affects the result.
    appointment_store.create_appointment(
        doctor_id="doctor-2",
        patient_id="patient-1",
        appointment_date=datetime(2026, 1, 5),
        appointment_time="09:00",
        status="CONFIRMED",
    )
    appointment_store.create_appointment(
        doctor_id="doctor-1",
        patient_id="patient-1",
        appointment_date=datetime(2026, 1, 12),
        appointment_time="09:00",
        status="CONFIRMED",
    )

    availability = service.get_available_slots("doctor-1", MONDAY)

    assert availability.day_of_week == DayOfWeek.monday
    assert [(slot.start_time, slot.end_time, slot.duration_minutes) for slot in availability.slots] == [
        ("09:00", "09:30", 30),
    ]


def test_get_available_slots_without_schedule_is_empty(service: WeeklyScheduleService) -> None:
    availability = service.get_available_slots("unknown-doctor", MONDAY)

    assert availability.slots == []
