# smsparser/sentry.py
"""Sentry helpers for the batch importer.

Парсер сам по себе ничего не отправляет: ошибки репортит только импортёр,
через :func:`sentry_capture`.  Без DSN всё превращается в no-op.

Каждое событие дополнительно складывается в локальный DiskCache
(``settings.cache_dir / "sentry_events"``), чтобы при оффлайн-импорте
бэкапа ничего не потерялось.

```python
from smsparser.sentry import init_sentry, sentry_capture

init_sentry(release="xml_importer@0.1.0")
try:
    import_backup(path, cache=cache)
except Exception as e:
    sentry_capture(e, extras={"file": str(path)})
```
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import sentry_sdk
from diskcache import Cache

from smsparser.config import get_settings

logger = logging.getLogger(__name__)

EXTRA_VALUE_LIMIT = 500  # тела SMS короткие, дампы правил – нет


def _event_store(cache_dir: Path):
    """``before_send`` hook: persist a copy of the event, then pass it on."""

    def _before_send(event: dict, _hint: dict) -> dict:
        try:
            with Cache(str(cache_dir)) as cache:
                cache.set(event.get("event_id"), event)
        except OSError as exc:
            logger.error("Failed to store Sentry event locally: %s", exc)
        return event

    return _before_send


@lru_cache(maxsize=1)
def init_sentry(*, release: str | None = None, env: str | None = None) -> bool:
    """Initialise the SDK once per process; ``False`` when no DSN is configured."""
    settings = get_settings()
    dsn = os.getenv("SENTRY_DSN") or settings.sentry_dsn
    if not dsn:
        logger.info("Sentry disabled – DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        release=release,
        environment=env or "local",
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        before_send=_event_store(Path(settings.cache_dir) / "sentry_events"),
    )
    return True


def sentry_capture(exc: BaseException, *, extras: Optional[dict[str, Any]] = None) -> None:
    """Record *exc* with *extras* (long string values are cut) if Sentry is up."""
    if not sentry_sdk.is_initialized():
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in (extras or {}).items():
            if isinstance(value, str) and len(value) > EXTRA_VALUE_LIMIT:
                value = value[:EXTRA_VALUE_LIMIT] + "..."
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exc)
