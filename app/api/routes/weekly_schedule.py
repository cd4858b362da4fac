from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas.auth import CurrentUserResponse, UserRole
from app.schemas.weekly_schedule import (
    AppointmentDurationUpdateRequest,
    AvailableSlotsResponse,
    DayOfWeek,
    DayScheduleUpsertRequest,
    TimeSlotCreateRequest,
    TimeSlotUpdateRequest,
    WeeklySchedule,
)
from app.services.auth_service import require_roles
from app.services.weekly_schedule_service import WeeklyScheduleService

router = APIRouter(prefix="/weekly-schedule", tags=["weekly-schedule"])

require_doctor = require_roles(UserRole.doctor)


@router.post("", response_model=WeeklySchedule)
def upsert_day_schedule(
    payload: DayScheduleUpsertRequest,
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.upsert_day_slots(current_user.id, payload.day_of_week, payload.time_slots)


@router.get("", response_model=WeeklySchedule)
def get_weekly_schedule(
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.get_schedule(current_user.id)


@router.put("/duration", response_model=WeeklySchedule)
def update_appointment_duration(
    payload: AppointmentDurationUpdateRequest,
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.set_appointment_duration(current_user.id, payload.duration)


@router.post("/day/{day_of_week}/slot", response_model=WeeklySchedule)
def add_time_slot(
    day_of_week: DayOfWeek,
    payload: TimeSlotCreateRequest,
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.add_slot(current_user.id, day_of_week, payload)


@router.put("/day/{day_of_week}/slot/{slot_id}", response_model=WeeklySchedule)
def update_time_slot(
    day_of_week: DayOfWeek,
    slot_id: str,
    payload: TimeSlotUpdateRequest,
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.update_slot(current_user.id, day_of_week, slot_id, payload)


@router.delete("/day/{day_of_week}/slot/{slot_id}", response_model=WeeklySchedule)
def delete_time_slot(
    day_of_week: DayOfWeek,
    slot_id: str,
    current_user: CurrentUserResponse = Depends(require_doctor),
) -> WeeklySchedule:
    service = WeeklyScheduleService()
    return service.delete_slot(current_user.id, day_of_week, slot_id)


@router.get("/slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    doctor_id: str = Query(..., min_length=1),
    target_date: str = Query(..., alias="date", pattern=r"^\d{4}-\d{2}-\d{2}$"),
) -> AvailableSlotsResponse:
    try:
        parsed_date = date.fromisoformat(target_date)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid date. Use YYYY-MM-DD.",
        ) from exc

    service = WeeklyScheduleService()
    return service.get_available_slots(doctor_id.strip(), parsed_date)
