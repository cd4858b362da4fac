import pytest

from app.core.config import get_settings
from app.services.appointment_store import clear_appointment_store_cache
from app.services.user_store import clear_user_store_cache
from app.services.weekly_schedule_store import clear_weekly_schedule_store_cache


def _clear_caches() -> None:
    clear_user_store_cache()
    clear_weekly_schedule_store_cache()
    clear_appointment_store_cache()
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_data_stores(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_STORE", "memory")
    _clear_caches()
    yield
    _clear_caches()
