# smsparser/amounts.py
"""Captured amount string → positive :class:`~decimal.Decimal`.

Какой разделитель десятичный:

* есть и ``.``, и ``,`` – тот, что правее (``1.234,56`` / ``1,234.56``);
* один и тот же разделитель несколько раз с группами по 3 цифры – тысячные
  (``1,234,567``, ``1.234.567``);
* одна запятая и ровно 3 цифры после неё – тысячные (``1,000``), иначе
  десятичная (``1,23``);
* одна точка – всегда десятичная (``12.500`` в KWD/BHD это 12.5).

Знак сюда не приходит: его ставит пайплайн по типу операции.
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_SPACES_RE = re.compile(r"\s+")


def _canonical(s: str) -> str:
    """Привести к виду ``1234.56``: без тысячных, точка – десятичный."""
    dot, comma = s.rfind("."), s.rfind(",")
    if dot != -1 and comma != -1:
        decimal_sep, thousands_sep = (",", ".") if comma > dot else (".", ",")
        return s.replace(thousands_sep, "").replace(decimal_sep, ".")

    sep = "," if comma != -1 else "." if dot != -1 else None
    if sep is None:
        return s

    groups = s.split(sep)
    if len(groups) > 2:
        if all(len(g) == 3 for g in groups[1:]):
            return "".join(groups)
        return "".join(groups[:-1]) + "." + groups[-1]
    if sep == "," and len(groups[1]) == 3:
        return "".join(groups)
    return groups[0] + "." + groups[1]


def parse_amount(value) -> Decimal:
    """Parse *value* (usually the ``amount`` regex group) into a positive Decimal.

    Raises ``ValueError`` when no number is left after cleaning.
    """
    if not isinstance(value, str):
        return abs(Decimal(value))

    cleaned = _SPACES_RE.sub("", value)
    if not cleaned:
        raise ValueError("Input string cannot be empty")

    digits = re.sub(r"[^0-9.]", "", _canonical(cleaned))
    if not digits.strip("."):
        raise ValueError(f"No digits left in amount {value!r}")
    try:
        return Decimal(digits)
    except InvalidOperation as exc:
        raise ValueError(f"Не удалось преобразовать {value!r} в число (после очистки {digits!r})") from exc
