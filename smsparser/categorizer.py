# smsparser/categorizer.py
"""Layered category classifier.

Порядок принятия решения
-------------------------
1. **Custom rules** – пользовательские ключевые слова; первое совпадение
   побеждает и задаёт category/subcategory/type.
2. **Category rules** – хранимые шаблоны, по убыванию ``priority``;
   подстрока или regex по ``description + raw message``.
3. **Built-in keywords** – фиксированная многоязычная таблица по описанию,
   плюс ярлык ``Income`` для положительных сумм; иначе ``Miscellaneous``.

После шагов 2-3 подкатегория уточняется по списку подкатегорий выбранной
категории и нескольким захардкоженным эвристикам.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Iterable, Optional, Sequence, Union

from smsparser.models import CategoryRule, CustomParsingRule, TxnType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Miscellaneous"
INCOME_CATEGORY = "Income"

# ---------------------------------------------------------------------------
# Built-in keyword table (English / Arabic / Hindi)
# ---------------------------------------------------------------------------
BUILTIN_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Groceries", (
        "grocery", "groceries", "supermarket", "hypermarket", "market", "carrefour",
        "panda", "tamimi", "danube", "lulu", "othaim",
        "بقالة", "سوبرماركت", "هايبر", "تموينات", "العثيم", "كارفور",
        "किराना",
    )),
    ("Dining", (
        "restaurant", "cafe", "coffee", "starbucks", "mcdonald", "kfc", "pizza",
        "burger", "food", "talabat", "hungerstation", "jahez",
        "مطعم", "مقهى", "كافيه", "كوفي",
        "रेस्टोरेंट", "खाना",
    )),
    ("Transport", (
        "uber", "lyft", "careem", "taxi", "transport", "fuel", "petrol",
        "gas station", "aldrees", "parking", "metro",
        "أوبر", "كريم", "تاكسي", "بنزين", "وقود", "محطة",
        "टैक्सी", "पेट्रोल",
    )),
    ("Entertainment", (
        "netflix", "spotify", "movie", "cinema", "entertainment", "shahid",
        "playstation", "steam",
        "سينما", "نتفليكس", "ترفيه",
        "फिल्म",
    )),
    ("Healthcare", (
        "doctor", "pharmacy", "hospital", "medical", "clinic", "dental",
        "nahdi", "dawaa",
        "صيدلية", "مستشفى", "عيادة", "طبي",
        "अस्पताल", "दवा",
    )),
    ("Shopping", (
        "amazon", "noon", "store", "mall", "shop", "ikea", "jarir", "zara",
        "namshi",
        "متجر", "مول", "تسوق", "أمازون",
        "खरीदारी",
    )),
    ("Bills", (
        "bill", "electric", "electricity", "water", "internet", "mobily",
        "zain", "etisalat", "vodafone", "stc",
        "فاتورة", "كهرباء", "مياه", "اتصالات",
        "बिल", "बिजली",
    )),
    ("Travel", (
        "airline", "airways", "flight", "hotel", "booking", "airbnb", "saudia",
        "flynas", "expedia",
        "طيران", "فندق", "رحلة",
        "होटल", "उड़ान",
    )),
)

# ---------------------------------------------------------------------------
# Subcategory special cases
# ---------------------------------------------------------------------------
_CAR_CASES = (
    (("fuel", "petrol", "gas", "aldrees", "بنزين", "وقود", "محطة"), "Gas"),
    (("maintenance", "service", "repair", "tyre", "tire", "oil change", "صيانة", "ورشة"), "Maintenance"),
)
_HEALTH_CASES = (
    (("hospital", "مستشفى"), "Hospital"),
    (("pharmacy", "nahdi", "dawaa", "صيدلية"), "Pharmacy"),
    (("gym", "fitness", "نادي رياضي"), "Gym"),
)
_SALARY_CASES = (
    (("bonus", "مكافأة", "مكافاة"), "Bonus"),
    (("benefit", "allowance", "بدل"), "Benefit"),
)
SUBCATEGORY_SPECIAL_CASES: dict[str, tuple[tuple[tuple[str, ...], str], ...]] = {
    "Shopping": (
        (("grocery", "supermarket", "market", "بقالة", "سوبرماركت"), "Grocery"),
        (("clothing", "clothes", "fashion", "apparel", "zara", "ملابس", "أزياء"), "Clothing"),
        (("appliance", "electronics", "jarir", "أجهزة", "الكترونيات"), "Appliances"),
    ),
    "Car": _CAR_CASES,
    "Transport": _CAR_CASES,
    "Health": _HEALTH_CASES,
    "Healthcare": _HEALTH_CASES,
    "Salary": _SALARY_CASES,
    "Income": _SALARY_CASES,
}


@dataclass(frozen=True)
class Classification:
    category: str
    subcategory: Optional[str] = None
    type: Optional[TxnType] = None  # set only by a custom rule
    source: str = "builtin"  # custom | rule | builtin


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _keyword_in(keyword: str, lowered: str) -> bool:
    """Latin keywords must start on a word boundary, others are substrings."""
    kw = keyword.lower()
    if kw.isascii():
        return re.search(rf"(?<![a-z0-9]){re.escape(kw)}", lowered) is not None
    return kw in lowered


@lru_cache(maxsize=512)
def _compile_rule(pattern: str) -> Union[re.Pattern[str], re.error]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        return exc


# ---------------------------------------------------------------------------
# Step 1 – custom rules
# ---------------------------------------------------------------------------
def match_custom_rule(
    message: str, rules: Iterable[CustomParsingRule]
) -> Optional[CustomParsingRule]:
    """First rule (storage order) with a keyword contained in *message*.

    Keywords are plain substrings, never compiled as regular expressions.
    """
    lowered = message.casefold()
    for rule in rules:
        if any(k.casefold() in lowered for k in rule.keywords):
            return rule
    return None


# ---------------------------------------------------------------------------
# Step 2 – stored category rules
# ---------------------------------------------------------------------------
def match_category_rules(
    text: str,
    rules: Sequence[CategoryRule],
    *,
    max_pattern_length: int = 200,
) -> Optional[str]:
    # sorted() is stable: equal priorities keep storage order
    for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
        if not rule.is_regex:
            if rule.pattern.casefold() in text.casefold():
                return rule.category_id
            continue
        if len(rule.pattern) > max_pattern_length:
            logger.warning(
                "Skipping category rule %r: pattern longer than %d chars",
                rule.category_id, max_pattern_length,
            )
            continue
        compiled = _compile_rule(rule.pattern)
        if isinstance(compiled, re.error):
            logger.warning("Invalid regex in category rule %r: %s", rule.pattern, compiled)
            continue
        if compiled.search(text):
            return rule.category_id
    return None


# ---------------------------------------------------------------------------
# Step 3 – built-in keyword fallback
# ---------------------------------------------------------------------------
def keyword_category(description: str, amount: Decimal) -> str:
    if amount > 0:
        return INCOME_CATEGORY
    lowered = description.lower()
    for category, keywords in BUILTIN_CATEGORY_KEYWORDS:
        if any(_keyword_in(k, lowered) for k in keywords):
            return category
    return DEFAULT_CATEGORY


# ---------------------------------------------------------------------------
# Subcategory refinement
# ---------------------------------------------------------------------------
def _name_variants(name: str) -> set[str]:
    base = name.lower().strip()
    variants = {base}
    if base.endswith("ies"):
        variants.add(base[:-3] + "y")
    elif base.endswith("s"):
        variants.add(base[:-1])
    else:
        variants.add(base + "s")
    for part in re.split(r"\s*&\s*|\s+and\s+|\s*/\s*", base):
        if len(part) > 2:
            variants.add(part)
    return {v for v in variants if v}


def refine_subcategory(
    category: str, text: str, subcategories: Sequence[str]
) -> Optional[str]:
    lowered = text.lower()
    for sub in subcategories:
        if any(_keyword_in(v, lowered) for v in _name_variants(sub)):
            return sub
    for keywords, sub in SUBCATEGORY_SPECIAL_CASES.get(category, ()):
        if any(_keyword_in(k, lowered) for k in keywords):
            return sub
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def categorize(
    description: str,
    amount: Decimal,
    message: str,
    *,
    custom_rules: Sequence[CustomParsingRule] = (),
    category_rules: Sequence[CategoryRule] = (),
    subcategories_for=lambda _category: (),
    max_pattern_length: int = 200,
) -> Classification:
    """Run the three tiers and return the winning classification."""
    custom = match_custom_rule(message, custom_rules)
    if custom is not None:
        logger.debug("Custom rule %s matched", custom.id)
        return Classification(
            category=custom.category,
            subcategory=custom.subcategory,
            type=custom.type,
            source="custom",
        )

    text = f"{description} {message}"
    category = match_category_rules(text, category_rules, max_pattern_length=max_pattern_length)
    source = "rule"
    if category is None:
        category = keyword_category(description, amount)
        source = "builtin"

    subcategory = refine_subcategory(category, text, list(subcategories_for(category)))
    return Classification(category=category, subcategory=subcategory, source=source)
