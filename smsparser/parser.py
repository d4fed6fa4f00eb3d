# smsparser/parser.py
"""SMS → :class:`ParsedTransaction` orchestrator.

Конвейер одного сообщения
-------------------------
1. нормализация цифр/разделителей, обрезка по длине, RTL-флаг;
2. сумма + валюта (первое правило из таблицы); нет суммы → ``None``;
3. OTP-код без глагола операции (только «голая» сумма) → ``None``;
4. знак суммы по классификатору правила;
5. описание и категория;
6. перевод → получатель и ``type = transfer``;
7. пользовательское правило переопределяет category/subcategory/type и знак;
8. дата, банк, страна, счёт списания.

Функция чистая: никакого I/O, правила берутся из иммутабельного
:class:`~smsparser.storage.ParsingContext`.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from smsparser.amount_rules import KEYWORDLESS_RULES, extract_amount
from smsparser.categorizer import categorize
from smsparser.config import get_settings
from smsparser.currency import normalize_currency_code
from smsparser.dates import extract_date
from smsparser.entities import (
    detect_country,
    extract_description,
    extract_from_account,
    extract_to_account,
    resolve_bank_name,
)
from smsparser.models import ParsedTransaction, TxnType, get_md5_hash
from smsparser.normalizer import is_rtl, normalize_text
from smsparser.storage import ParsingContext
from smsparser.transfers import is_transfer

logger = logging.getLogger(__name__)

# --- OTP / коды подтверждения – не транзакции ---------------------------------
# Ловим только само сообщение с кодом ("OTP is 4821", "4821 is your OTP"),
# а не приписку "never share your OTP" под обычной покупкой.
_OTP_WORDS = (
    r"\bOTP\b|one[\s\-]?time\s+pass(?:word|code)|(?:verification|security|activation)\s+code"
    r"|رمز التحقق|كلمة المرور لمرة واحدة|رمز التفعيل"
)
OTP_RE = re.compile(
    rf"(?:{_OTP_WORDS})\s*(?:is|هو)?\s*[:=]?\s*\d{{4,8}}(?!\d)"
    rf"|(?<!\d)\d{{4,8}}\s+is\s+your\s+(?:{_OTP_WORDS})",
    re.IGNORECASE,
)


def _apply_sign(amount: Decimal, txn_type: TxnType) -> Decimal:
    """expense → negative, income → positive, transfer keeps its direction."""
    if txn_type is TxnType.EXPENSE:
        return -abs(amount)
    if txn_type is TxnType.INCOME:
        return abs(amount)
    return amount


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_sms_message(
    message: str,
    sender: Optional[str],
    *,
    context: Optional[ParsingContext] = None,
    received_at: Optional[datetime] = None,
) -> Optional[ParsedTransaction]:
    """Parse one bank SMS.

    Returns ``None`` for anything that is not a financial transaction
    (no amount, OTP, empty input).  *received_at* is used as the reference
    year for ``MM/DD`` dates and as the date when the text carries none.
    """
    if not isinstance(message, str) or not message.strip():
        return None

    settings = get_settings()
    ctx = context or ParsingContext.empty()

    # 1. нормализация
    text = normalize_text(message).strip()[: settings.max_message_length]
    rtl = is_rtl(text, settings.rtl_threshold)

    # 2-4. сумма, валюта, знак; OTP с «голой» суммой – не транзакция
    found = extract_amount(text)
    if found is None:
        logger.debug("No amount pattern matched: %.60r", text)
        return None
    if found.rule in KEYWORDLESS_RULES and OTP_RE.search(text):
        logger.debug("Skipping OTP message from %s", sender)
        return None
    amount = -found.amount if found.is_expense else found.amount
    txn_type = TxnType.EXPENSE if found.is_expense else TxnType.INCOME

    # 5. описание и категория
    description = extract_description(text, sender)
    classification = categorize(
        description,
        amount,
        text,
        custom_rules=ctx.custom_rules,
        category_rules=ctx.category_rules,
        subcategories_for=ctx.subcategories_for,
        max_pattern_length=settings.max_rule_pattern_length,
    )

    # 6. перевод
    to_account = None
    if is_transfer(text):
        txn_type = TxnType.TRANSFER
        to_account = extract_to_account(text)

    # 7. пользовательское правило
    if classification.type is not None:
        txn_type = classification.type
        amount = _apply_sign(amount, txn_type)
        if txn_type is TxnType.TRANSFER and to_account is None:
            to_account = extract_to_account(text)

    # 8. дата и прочие сущности
    date = extract_date(text, reference=received_at) or received_at or datetime.now()

    logger.debug(
        "Parsed %s %s via %s (category=%s, source=%s)",
        amount, found.currency, found.rule, classification.category, classification.source,
    )
    return ParsedTransaction(
        amount=amount,
        date=date,
        currency=found.currency or normalize_currency_code(None, ctx.preferred_currency),
        sender=resolve_bank_name(sender, text),
        category=classification.category,
        subcategory=classification.subcategory,
        description=description,
        raw_message=text,
        country=detect_country(text),
        from_account=extract_from_account(text, exclude=to_account),
        to_account=to_account,
        rtl=rtl,
        type=txn_type,
    )


def parse_messages(
    messages: Iterable[tuple[str, Optional[str]]],
    *,
    context: Optional[ParsingContext] = None,
    received_at: Optional[datetime] = None,
) -> list[ParsedTransaction]:
    """Parse ``(message, sender)`` pairs, dropping non-transactions and repeats.

    Повторы определяются по MD5 тела сообщения – как в кеше импортёра.
    """
    seen: set[str] = set()
    results: list[ParsedTransaction] = []
    for message, sender in messages:
        key = get_md5_hash(message or "")
        if key in seen:
            logger.debug("Duplicate message skipped: %s", key)
            continue
        seen.add(key)
        parsed = parse_sms_message(message, sender, context=context, received_at=received_at)
        if parsed is not None:
            results.append(parsed)
    logger.info("Parsed %d of %d unique messages", len(results), len(seen))
    return results
