# smsparser/models.py
"""Domain models shared by the parser, the classifier and the importer.

Levels
------
1. **RawSMS** – exactly what пришло из источника (XML-бэкап, устройство):
   минимальная нормализация, никаких выводов о типе операции.
2. **ParsedTransaction** – результат детерминированного разбора регулярками и
   классификации. Это то, что уходит в сервис создания транзакций.
3. **CategoryRule** / **CustomParsingRule** – таблицы правил, которые парсер
   только читает.

Дизайн-оговорка: используем Pydantic v2 (BaseModel) для полной валидации и
удобного JSON-dump (`model_dump_json()`).
"""
from __future__ import annotations

import datetime as _dt
import hashlib
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "RawSMS",
    "ParsedTransaction",
    "TxnType",
    "CategoryRule",
    "CustomParsingRule",
    "get_md5_hash",
]


class TxnType(str, Enum):
    """Итоговая классификация транзакции."""

    EXPENSE = "expense"  # списание
    INCOME = "income"  # пополнение
    TRANSFER = "transfer"  # перевод между счетами


class RawSMS(BaseModel):
    """Что отдает *любой* источник сообщений."""

    msg_id: str = Field(..., description="Уникальный ID сообщения")
    sender: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    date: str = Field(..., description="Дата/время на телефоне, ISO-8601")
    device_id: Optional[str] = Field(None, description="IMEI или кастомный ID")
    source: Literal["device", "xml", "paste"] = Field(
        "device", description="Откуда пришло сообщение"
    )


class ParsedTransaction(BaseModel):
    """Нормализованный результат парсинга одного SMS."""

    # --- сумма и дата ---------------------------------------------------------
    amount: Decimal = Field(..., description="Со знаком: расход < 0, доход > 0")
    date: _dt.datetime
    currency: Optional[str] = None  # ISO 4217 (SAR, EGP, USD)

    # --- кто и что ------------------------------------------------------------
    sender: str
    category: str = Field(..., min_length=1)
    subcategory: Optional[str] = None
    description: str
    raw_message: str = Field(..., description="Нормализованный текст СМС")

    # --- выводы парсера -------------------------------------------------------
    country: Optional[str] = None
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    rtl: bool = False
    type: TxnType

    model_config = ConfigDict(frozen=True)

    @field_validator("currency")
    def _upper_currency(cls, v: str | None) -> str | None:  # noqa: N805
        return v.upper() if v else v


class CategoryRule(BaseModel):
    """Хранимое правило «шаблон → категория» с приоритетом."""

    pattern: str = Field(..., min_length=1)
    is_regex: bool = Field(False, alias="isRegex")
    category_id: str = Field(..., min_length=1, alias="categoryId")
    priority: int = 0

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CustomParsingRule(BaseModel):
    """Пользовательское правило: ключевые слова → {type, category, subcategory}."""

    id: str
    keywords: tuple[str, ...] = ()
    type: TxnType
    category: str = Field(..., min_length=1)
    subcategory: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("id", mode="before")
    def _id_to_str(cls, v):  # noqa: N805
        # UI генерирует id как Date.now() – число
        return str(v) if isinstance(v, int) else v

    @field_validator("keywords")
    def _drop_blank_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:  # noqa: N805
        return tuple(k.strip() for k in v if k and k.strip())


def get_md5_hash(input_string: str) -> str:
    """
    Вычисляет MD5-хеш для входной строки.

    Args:
      input_string: Строка для хеширования.

    Returns:
      MD5-хеш в виде шестнадцатеричной строки.
    """
    return hashlib.md5(input_string.encode("utf-8")).hexdigest()
