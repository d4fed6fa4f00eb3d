# smsparser/amount_rules.py
"""Single point of truth for the amount/currency regular expressions.

Новая схема = достаточно добавить правило в таблицу ниже.  Правила
проверяются **по порядку**, побеждает первое совпавшее – никакого скоринга,
поэтому узкие региональные шаблоны должны стоять раньше общих.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from smsparser.amounts import parse_amount
from smsparser.currency import CURRENCY_TOKEN_RE, resolve_currency

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regex building blocks
# ---------------------------------------------------------------------------
# точки-тысячные ("1.234,56"), запятые-тысячные ("1,234.56"), остальное
NUM_RE = (
    r"(?P<amount>\d{1,3}(?:\.\d{3})+(?:,\d+)?(?!\d)"
    r"|\d{1,3}(?:,\d{3})+(?:\.\d+)?(?!\d)"
    r"|\d+(?:[.,]\d+)?)"
)
CUR_PRE_RE = rf"(?:(?P<currency_pre>{CURRENCY_TOKEN_RE})\s?)"
CUR_POST_RE = rf"(?:\s?(?P<currency>{CURRENCY_TOKEN_RE}))"

INCOME_KEYWORDS = (
    "received", "credited", "income", "salary", "deposit", "refund",
    "cashback", "dividend", "reversal",
    "إيداع", "ايداع", "راتب", "واردة", "وارده", "استلام", "استرداد", "مسترد",
    "إضافة", "اضافة",
    "जमा", "प्राप्त",
)
INCOME_ACTIONS = frozenset({
    "credited", "received", "deposited", "deposit", "refund", "refunded",
    "salary", "cashback", "dividend",
})
EXPENSE_ACTIONS = frozenset({
    "debited", "spent", "purchase", "paid", "charged", "withdrawal",
    "withdrawn", "debit", "sent", "transfer", "transferred",
})

IsExpense = Callable[[re.Match[str], str], bool]


@dataclass(frozen=True)
class AmountRule:
    name: str
    pattern: re.Pattern[str]
    is_expense: IsExpense


@dataclass(frozen=True)
class AmountMatch:
    rule: str
    amount: Decimal  # always positive
    currency: Optional[str]  # ISO code or None when not present in text
    is_expense: bool


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------
def has_income_keyword(message: str) -> bool:
    lowered = message.lower()
    return any(k in lowered for k in INCOME_KEYWORDS)


def _by_action(m: re.Match[str], message: str) -> bool:
    """Captured verb decides; ambiguous verbs ("payment") fall back to keywords."""
    verb = (m.groupdict().get("action") or "").lower()
    if verb in INCOME_ACTIONS:
        return False
    if verb in EXPENSE_ACTIONS:
        return True
    return not has_income_keyword(message)


def _by_keywords(_m: re.Match[str], message: str) -> bool:
    return not has_income_keyword(message)


def _never(_m: re.Match[str], _message: str) -> bool:
    return False


def _compile(body: str) -> re.Pattern[str]:
    return re.compile(body, re.IGNORECASE | re.VERBOSE)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
# --- 1. Арабские формулировки саудовских/египетских банков -------------------
ARABIC_AMOUNT_RE = _compile(
    rf"""
    (?:بمبلغ|المبلغ|مبلغ)\s*:?\s*
    {CUR_PRE_RE}?
    {NUM_RE}
    {CUR_POST_RE}?
    """
)

# --- 2. Индия: "Rs 500.00 debited from A/c" ----------------------------------
INDIAN_RE = _compile(
    rf"""
    (?P<currency_pre>(?<!\w)(?:rs\.?|inr)|₹)\s?
    {NUM_RE}\s+
    (?:has\s+been\s+|is\s+|was\s+)?
    (?P<action>debited|credited|spent|received|sent|paid|withdrawn)
    """
)

# --- 3. "Your account has been debited with $125.40" --------------------------
CREDITED_DEBITED_RE = _compile(
    rf"""
    (?P<action>credited|debited)\s+
    (?:(?:with|by|for)\s+)?
    {CUR_PRE_RE}?
    {NUM_RE}
    {CUR_POST_RE}?
    """
)

# --- 4. Дивиденды – всегда доход ---------------------------------------------
DIVIDEND_RE = _compile(
    rf"""
    dividend\s+of\s+
    {CUR_PRE_RE}?
    {NUM_RE}
    {CUR_POST_RE}?
    """
)

# --- 5. Покупка/оплата: "Purchase of $75.20 at", "charged SAR 45" -------------
PURCHASE_PAYMENT_RE = _compile(
    rf"""
    (?P<action>purchase|payment|spent|paid|charged|withdrawal|withdrawn|debit
        |transfer(?:red)?|sent)\s+
    (?:(?:of|for|amount)\s+)?
    {CUR_PRE_RE}?
    {NUM_RE}
    {CUR_POST_RE}?
    """
)

# --- 6. Зачисления: "received SAR 300", "salary of 9,000 AED" -----------------
RECEIVED_RE = _compile(
    rf"""
    (?P<action>received|deposited|deposit|refund(?:ed)?|salary|cashback)\s+
    (?:(?:of|for|amount)\s+)?
    {CUR_PRE_RE}?
    {NUM_RE}
    {CUR_POST_RE}?
    """
)

# --- 7-8. Общие: валюта до суммы / сумма до валюты ---------------------------
CURRENCY_FIRST_RE = _compile(rf"{CUR_PRE_RE}{NUM_RE}")
AMOUNT_FIRST_RE = _compile(rf"{NUM_RE}{CUR_POST_RE}")


AMOUNT_RULES: tuple[AmountRule, ...] = (
    AmountRule("arabic_amount", ARABIC_AMOUNT_RE, _by_keywords),
    AmountRule("indian_rupee", INDIAN_RE, _by_action),
    AmountRule("credited_debited", CREDITED_DEBITED_RE, _by_action),
    AmountRule("dividend", DIVIDEND_RE, _never),
    AmountRule("purchase_payment", PURCHASE_PAYMENT_RE, _by_action),
    AmountRule("received", RECEIVED_RE, _by_action),
    AmountRule("currency_first", CURRENCY_FIRST_RE, _by_keywords),
    AmountRule("amount_first", AMOUNT_FIRST_RE, _by_keywords),
)

# правила без глагола операции: сами по себе транзакцию не подтверждают
KEYWORDLESS_RULES = frozenset({"arabic_amount", "currency_first", "amount_first"})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def extract_amount(
    message: str, rules: tuple[AmountRule, ...] = AMOUNT_RULES
) -> Optional[AmountMatch]:
    """Run the rule table over *message*; ``None`` when nothing matched.

    A rule whose regex matches but whose amount does not parse to a positive
    number counts as not matched and the next rule is tried.
    """
    for rule in rules:
        m = rule.pattern.search(message)
        if m is None:
            continue
        try:
            amount = parse_amount(m["amount"])
        except ValueError:
            logger.debug("Rule %s matched unparseable amount %r", rule.name, m["amount"])
            continue
        if amount <= 0:
            continue
        groups = m.groupdict()
        token = groups.get("currency") or groups.get("currency_pre")
        return AmountMatch(
            rule=rule.name,
            amount=amount,
            currency=resolve_currency(token),
            is_expense=rule.is_expense(m, message),
        )
    return None


__all__ = [
    "AMOUNT_RULES",
    "KEYWORDLESS_RULES",
    "AmountMatch",
    "AmountRule",
    "extract_amount",
    "has_income_keyword",
]
