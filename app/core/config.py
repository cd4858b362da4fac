from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

PLACEHOLDER_SECRET_KEY = "change-me-in-production"
PLACEHOLDER_ADMIN_PASSWORD = "admin"
DEFAULT_TOKEN_TTL_MINUTES = 60 * 12


class Settings(BaseSettings):
    app_name: str = "Medical Appointments API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    data_store: str = "mongodb"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "medical_appointments"
    mongodb_users_collection: str = "users"
    mongodb_weekly_schedules_collection: str = "weekly_schedules"
    mongodb_appointments_collection: str = "appointments"
    mongodb_connect_timeout_ms: int = 2000
    auth_secret_key: str = PLACEHOLDER_SECRET_KEY
    auth_token_algorithm: str = "HS256"
    auth_token_ttl_minutes: int = DEFAULT_TOKEN_TTL_MINUTES
    default_admin_email: str = "admin"
    default_admin_password: str = PLACEHOLDER_ADMIN_PASSWORD
    default_admin_full_name: str = "Administrator"
    default_language: str = "en"
    supported_languages: Annotated[list[str], NoDecode] = [
        "en",
        "it",
        "es",
        "fr",
        "de",
        "pt",
        "ru",
        "tr",
        "ar",
        "hi",
        "id",
        "ja",
        "ko",
        "th",
        "vi",
        "zh-CN",
        "zh-TW",
    ]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("allowed_origins", "supported_languages", mode="before")
    @classmethod
    def parse_comma_separated(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("data_store", mode="before")
    @classmethod
    def normalize_data_store(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("default_language", mode="before")
    @classmethod
    def normalize_default_language(cls, value: str) -> str:
        return value.strip() or "en"

    @field_validator("auth_token_ttl_minutes", mode="before")
    @classmethod
    def normalize_auth_token_ttl(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return DEFAULT_TOKEN_TTL_MINUTES
        return parsed_value


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.strip().lower() != "production":
        return
    if settings.auth_secret_key == PLACEHOLDER_SECRET_KEY:
        raise RuntimeError("AUTH_SECRET_KEY must be set in production.")
    # An empty email or password disables the default admin entirely.
    admin_enabled = bool(settings.default_admin_email.strip())
    if admin_enabled and settings.default_admin_password.strip() == PLACEHOLDER_ADMIN_PASSWORD:
        raise RuntimeError("DEFAULT_ADMIN_PASSWORD must be changed in production.")


@lru_cache
def get_settings() -> Settings:
    return Settings()
