import re
from datetime import date
from enum import IntEnum, StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_OF_DAY_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


class DayOfWeek(StrEnum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        # date.weekday() counts from Monday == 0, matching declaration order.
        return list(cls)[value.weekday()]


class AppointmentDuration(IntEnum):
    quarter_hour = 15
    half_hour = 30
    three_quarters = 45
    hour = 60


DEFAULT_APPOINTMENT_DURATION = AppointmentDuration.half_hour


def _validate_time_of_day(value: str) -> str:
    normalized = value.strip()
    if not TIME_OF_DAY_PATTERN.match(normalized):
        raise ValueError("Time must be in HH:MM format.")
    return normalized


def _to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class TimeSlot(BaseModel):
    id: str
    start_time: str
    end_time: str
    is_available: bool = True


class DaySchedule(BaseModel):
    day_of_week: DayOfWeek
    time_slots: list[TimeSlot] = Field(default_factory=list)


class WeeklySchedule(BaseModel):
    doctor_id: str
    appointment_duration: AppointmentDuration = DEFAULT_APPOINTMENT_DURATION
    days: list[DaySchedule] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def reject_duplicate_days(cls, value: list[DaySchedule]) -> list[DaySchedule]:
        seen: set[DayOfWeek] = set()
        for day in value:
            if day.day_of_week in seen:
                raise ValueError(f"Duplicate schedule for {day.day_of_week.value}.")
            seen.add(day.day_of_week)
        return value

    def days_by_weekday(self) -> dict[DayOfWeek, DaySchedule]:
        return {day.day_of_week: day for day in self.days}

    def get_day(self, day_of_week: DayOfWeek) -> DaySchedule | None:
        return self.days_by_weekday().get(day_of_week)


class TimeSlotCreateRequest(BaseModel):
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time_of_day(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlotCreateRequest":
        if _to_minutes(self.start_time) >= _to_minutes(self.end_time):
            raise ValueError("Start time must be before end time.")
        return self


class TimeSlotUpdateRequest(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    is_available: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_time_of_day(value)


class DayScheduleUpsertRequest(BaseModel):
    day_of_week: DayOfWeek
    time_slots: list[TimeSlotCreateRequest] = Field(default_factory=list)


class AppointmentDurationUpdateRequest(BaseModel):
    duration: AppointmentDuration


class AvailableSlot(BaseModel):
    start_time: str
    end_time: str
    duration_minutes: int


class AvailableSlotsResponse(BaseModel):
    doctor_id: str
    date: date
    day_of_week: DayOfWeek
    slots: list[AvailableSlot] = Field(default_factory=list)
