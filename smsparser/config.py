"""
Единая конфигурация парсера и импортёра.

* Использует Pydantic-BaseSettings – значения берутся из переменных окружения
  (или файла .env, если он есть).
* Функция `get_settings()` отдаёт *кешированный* объект – удобно импортировать
  где угодно, не опасаясь создать дубль.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --------------------------------------------------------------------------- #
# Основные настройки
# --------------------------------------------------------------------------- #


class Settings(BaseSettings):
    # ── Парсер ───────────────────────────────────────────────────────────────
    fallback_currency: str = Field("SAR", min_length=3, max_length=3)
    rtl_threshold: float = Field(0.3, ge=0.0, le=1.0)
    max_message_length: int = Field(2_000, gt=0)
    max_rule_pattern_length: int = Field(200, gt=0)

    # ── Хранилище правил (JSON-снимок localStorage) ──────────────────────────
    storage_path: Optional[Path] = None

    # ── Импорт XML-бэкапов ───────────────────────────────────────────────────
    backup_dir: Path = Path("./backups")
    cache_dir: Path = Path("./.sms_cache")

    # ── Sentry ───────────────────────────────────────────────────────────────
    sentry_dsn: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Валидация ────────────────────────────────────────────────────────────
    @field_validator("fallback_currency")
    def _upper_currency(cls, v: str) -> str:  # noqa: N805
        return v.upper()


# --------------------------------------------------------------------------- #
# Public helper
# --------------------------------------------------------------------------- #


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # noqa: D401
    """Возвращает **singleton** объект Settings."""
    return Settings()


# --------------------------------------------------------------------------- #
# CLI-debug
# --------------------------------------------------------------------------- #

if __name__ == "__main__":
    import json

    print(json.dumps(get_settings().model_dump(), indent=2, default=str))
