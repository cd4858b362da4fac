from enum import StrEnum

from pydantic import BaseModel, field_validator


class UserRole(StrEnum):
    patient = "PATIENT"
    doctor = "DOCTOR"
    admin = "ADMIN"


class UserStatus(StrEnum):
    active = "ACTIVE"
    blocked = "BLOCKED"
    rejected = "REJECTED"


class CurrentUserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: UserRole
    status: UserStatus = UserStatus.active


class RegisterRequest(BaseModel):
    full_name: str
    email: str
    password: str
    role: UserRole = UserRole.patient

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in_seconds: int
    user: CurrentUserResponse


class UserStatusUpdateRequest(BaseModel):
    status: UserStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().upper()
        return value
