# smsparser/storage.py
"""Read-only snapshot of the rule tables the parser consults.

Хост-приложение хранит всё в key/value хранилище (localStorage-подобном),
значения – JSON-строки.  Здесь мы один раз читаем такую мапу и строим
иммутабельный :class:`ParsingContext`; сам парсер хранилище не трогает.

Keys
----
* ``xpensia_custom_parsing_rules`` – list[CustomParsingRule]
* ``xpensia_category_rules``       – list[CategoryRule]
* ``xpensia_category_hierarchy``   – list[{name, type, subcategories: [{name}]}]
* ``user_currency`` / ``user_settings.currency`` – preferred currency
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from smsparser.config import get_settings
from smsparser.currency import resolve_currency
from smsparser.models import CategoryRule, CustomParsingRule

logger = logging.getLogger(__name__)

CUSTOM_RULES_KEY = "xpensia_custom_parsing_rules"
CATEGORY_RULES_KEY = "xpensia_category_rules"
HIERARCHY_KEY = "xpensia_category_hierarchy"
USER_CURRENCY_KEY = "user_currency"
USER_SETTINGS_KEY = "user_settings"

M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _decode(value: Any) -> Any:
    """Storage values are usually JSON strings; already-decoded values pass."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        # user_currency хранится как "SAR" без кавычек
        return value


def _load_models(raw: Any, model: Type[M], key: str) -> tuple[M, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        logger.warning("Storage key %s: expected a list, got %s", key, type(raw).__name__)
        return ()
    items: list[M] = []
    for i, entry in enumerate(raw):
        try:
            items.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Storage key %s: skipping entry #%d: %s", key, i, exc.errors()[:1])
    return tuple(items)


def _load_hierarchy(raw: Any) -> dict[str, tuple[str, ...]]:
    if not isinstance(raw, list):
        return {}
    hierarchy: dict[str, tuple[str, ...]] = {}
    for node in raw:
        if not isinstance(node, dict) or not node.get("name"):
            continue
        subs = tuple(
            s["name"]
            for s in node.get("subcategories") or ()
            if isinstance(s, dict) and s.get("name")
        )
        hierarchy[str(node["name"])] = subs
    return hierarchy


def preferred_currency(storage: Mapping[str, Any], fallback: Optional[str] = None) -> str:
    """``user_currency`` → ``user_settings.currency`` → *fallback* (settings)."""
    direct = _decode(storage.get(USER_CURRENCY_KEY))
    if isinstance(direct, str):
        code = resolve_currency(direct)
        if code:
            return code

    user_settings = _decode(storage.get(USER_SETTINGS_KEY))
    if isinstance(user_settings, dict) and isinstance(user_settings.get("currency"), str):
        code = resolve_currency(user_settings["currency"])
        if code:
            return code

    return (fallback or get_settings().fallback_currency).upper()


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ParsingContext:
    custom_rules: tuple[CustomParsingRule, ...] = ()
    category_rules: tuple[CategoryRule, ...] = ()
    hierarchy: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    preferred_currency: str = "SAR"

    def subcategories_for(self, category: str) -> list[str]:
        return list(self.hierarchy.get(category, ()))

    @classmethod
    def empty(cls) -> "ParsingContext":
        return cls(preferred_currency=get_settings().fallback_currency)

    @classmethod
    def from_storage(cls, storage: Mapping[str, Any], fallback_currency: Optional[str] = None) -> "ParsingContext":
        """Build a snapshot from a localStorage-like mapping.

        Malformed entries are logged and skipped; a missing key means an
        empty table.
        """
        return cls(
            custom_rules=_load_models(
                _decode(storage.get(CUSTOM_RULES_KEY)), CustomParsingRule, CUSTOM_RULES_KEY
            ),
            category_rules=_load_models(
                _decode(storage.get(CATEGORY_RULES_KEY)), CategoryRule, CATEGORY_RULES_KEY
            ),
            hierarchy=_load_hierarchy(_decode(storage.get(HIERARCHY_KEY))),
            preferred_currency=preferred_currency(storage, fallback_currency),
        )


def load_storage(path: str | Path) -> dict[str, Any]:
    """Read a storage dump (a JSON object) from *path*."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: storage dump must be a JSON object")
    logger.info("Loaded storage dump %s (%d keys)", path, len(data))
    return data
