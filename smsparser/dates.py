"""Date extraction from SMS text.

Шаблоны проверяются по порядку; первый, давший валидную календарную дату,
побеждает.  Если ничего не нашли – ``None``, вызывающий подставит время
получения сообщения.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

ENGLISH_MONTH_RE = (
    r"(?P<month>jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?"
    r"|july?|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?"
    r"|dec(?:ember)?)\.?"
)

ARABIC_MONTHS: dict[str, int] = {
    "يناير": 1,
    "فبراير": 2,
    "مارس": 3,
    "أبريل": 4,
    "ابريل": 4,
    "إبريل": 4,
    "مايو": 5,
    "يونيو": 6,
    "يوليو": 7,
    "أغسطس": 8,
    "اغسطس": 8,
    "سبتمبر": 9,
    "أكتوبر": 10,
    "اكتوبر": 10,
    "نوفمبر": 11,
    "ديسمبر": 12,
}
ARABIC_MONTH_RE = "(?P<month>" + "|".join(sorted(ARABIC_MONTHS, key=len, reverse=True)) + ")"

MDY_SLASH_RE = re.compile(r"(?<![\d/.\-])(?P<month>\d{1,2})/(?P<day>\d{1,2})(?:/(?P<year>\d{4}|\d{2}))?(?![\d/])")
DMY_RE = re.compile(r"(?<![\d/.\-])(?P<day>\d{1,2})[-./](?P<month>\d{1,2})[-./](?P<year>\d{4}|\d{2})(?![\d/\-])")
YMD_RE = re.compile(r"(?<!\d)(?P<year>\d{4})[-./](?P<month>\d{1,2})[-./](?P<day>\d{1,2})(?!\d)")
EN_DMY_RE = re.compile(
    rf"(?<!\d)(?P<day>\d{{1,2}})(?:st|nd|rd|th)?[\s\-]+{ENGLISH_MONTH_RE}[\s\-,]+(?P<year>\d{{4}}|\d{{2}})(?!\d)",
    re.IGNORECASE,
)
EN_MDY_RE = re.compile(
    rf"(?<![a-z]){ENGLISH_MONTH_RE}\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)?,?\s+(?P<year>\d{{4}})(?!\d)",
    re.IGNORECASE,
)
AR_DMY_RE = re.compile(rf"(?<!\d)(?P<day>\d{{1,2}})\s+{ARABIC_MONTH_RE}\s+(?P<year>\d{{4}}|\d{{2}})(?!\d)")


def expand_year(year: str | int | None, default: int) -> int:
    """Two-digit years: < 50 → 20xx, >= 50 → 19xx."""
    if year is None or year == "":
        return default
    value = int(year)
    if value < 100:
        return 2000 + value if value < 50 else 1900 + value
    return value


def _numeric(m: re.Match[str], ref: datetime) -> datetime:
    return datetime(
        expand_year(m["year"], ref.year), int(m["month"]), int(m["day"]), tzinfo=ref.tzinfo
    )


def _english(m: re.Match[str], ref: datetime) -> datetime:
    year = expand_year(m["year"], ref.year)
    # dateutil resolves month names and abbreviations ("Sept", "January")
    parsed = date_parser.parse(f"{int(m['day'])} {m['month']} {year}", dayfirst=True)
    return parsed.replace(tzinfo=ref.tzinfo)


def _arabic(m: re.Match[str], ref: datetime) -> datetime:
    return datetime(
        expand_year(m["year"], ref.year), ARABIC_MONTHS[m["month"]], int(m["day"]), tzinfo=ref.tzinfo
    )


DATE_PATTERNS: tuple[tuple[str, re.Pattern[str], Callable[[re.Match[str], datetime], datetime]], ...] = (
    ("mm/dd[/yyyy]", MDY_SLASH_RE, _numeric),
    ("dd-mm-yyyy", DMY_RE, _numeric),
    ("yyyy-mm-dd", YMD_RE, _numeric),
    ("d month yyyy", EN_DMY_RE, _english),
    ("month d, yyyy", EN_MDY_RE, _english),
    ("d شهر yyyy", AR_DMY_RE, _arabic),
)


def extract_date(message: str, reference: Optional[datetime] = None) -> Optional[datetime]:
    """Return the first valid date found in *message* (midnight), else ``None``.

    *reference* supplies the year for year-less dates like ``05/01`` and the
    tzinfo of the result, so dates from the text compare with it.
    """
    ref = reference or datetime.now()
    for name, pattern, build in DATE_PATTERNS:
        for m in pattern.finditer(message):
            try:
                return build(m, ref)
            except (ValueError, OverflowError):
                logger.debug("Pattern %s matched invalid date %r", name, m.group(0))
    return None
