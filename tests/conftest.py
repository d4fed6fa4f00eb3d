# tests/conftest.py
import pytest

from smsparser.config import get_settings
from smsparser.sentry import init_sentry


@pytest.fixture(autouse=True)
def clear_cache(monkeypatch):
    """Изолируем тесты от окружения: без Sentry, свежие Settings."""
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.delenv("FALLBACK_CURRENCY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    init_sentry.cache_clear()
