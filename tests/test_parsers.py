# tests/test_parsers.py
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from smsparser.models import CategoryRule, CustomParsingRule, TxnType
from smsparser.parser import parse_messages, parse_sms_message
from smsparser.storage import ParsingContext

RECEIVED_AT = datetime(2024, 6, 1, 12, 0)

CASES = [
    # ─ 1. Списание в долларах, дата MM/DD без года ───────────────────
    (
        "Your account has been debited with $125.40 for purchase at GROCERY STORE on 05/01.",
        "Bank ABC",
        dict(
            amount=Decimal("-125.40"),
            currency="USD",
            type=TxnType.EXPENSE,
            category="Groceries",
            description="GROCERY STORE",
            sender="Bank ABC",
            date=datetime(2024, 5, 1),
            country=None,
            rtl=False,
        ),
    ),
    # ─ 2. Арабский текст, саудовский риял ────────────────────────────
    (
        "عملية شراء بمبلغ 175.50 ريال سعودي في سوبرماركت العثيم بتاريخ 07/05/2023",
        "Al Rajhi Bank",
        dict(
            amount=Decimal("-175.50"),
            currency="SAR",
            type=TxnType.EXPENSE,
            category="Groceries",
            description="سوبرماركت العثيم",
            sender="Al Rajhi Bank",
            date=datetime(2023, 7, 5),
            country="Saudi Arabia",
            rtl=True,
        ),
    ),
    # ─ 3. Перевод ───────────────────────────────────────────────────
    (
        "Transfer of SAR 500 sent to Ahmed account 12345",
        "Bank ABC",
        dict(
            amount=Decimal("-500"),
            currency="SAR",
            type=TxnType.TRANSFER,
            category="Miscellaneous",
            description="Ahmed account 12345",
            sender="Bank ABC",
            date=RECEIVED_AT,
            country="Saudi Arabia",
            rtl=False,
        ),
    ),
    # ─ 4. Зарплата ──────────────────────────────────────────────────
    (
        "Salary of AED 12,500.00 credited to your account on 2024-05-28",
        "ENBD",
        dict(
            amount=Decimal("12500.00"),
            currency="AED",
            type=TxnType.INCOME,
            category="Income",
            description="ENBD",
            sender="ENBD",
            date=datetime(2024, 5, 28),
            country="UAE",
            rtl=False,
        ),
    ),
    # ─ 5. Индия, отправитель – короткий номер ─────────────────────────
    (
        "Rs 500.00 debited from A/c XX1234 at Uber India on 05-06-24",
        "56161",
        dict(
            amount=Decimal("-500.00"),
            currency="INR",
            type=TxnType.EXPENSE,
            category="Transport",
            description="Uber India",
            sender="Financial Institution",
            date=datetime(2024, 6, 5),
            country=None,
            rtl=False,
        ),
    ),
]


@pytest.mark.parametrize("message, sender, expected", CASES)
def test_parse_sms_message(message: str, sender: str, expected: dict):
    result = parse_sms_message(message, sender, received_at=RECEIVED_AT)

    assert result is not None
    assert result.amount == expected["amount"]
    assert result.currency == expected["currency"]
    assert result.type == expected["type"]
    assert result.category == expected["category"]
    assert result.description == expected["description"]
    assert result.sender == expected["sender"]
    assert result.date == expected["date"]
    assert result.country == expected["country"]
    assert result.rtl is expected["rtl"]
    assert result.raw_message == message


def test_transfer_destination_account():
    result = parse_sms_message("Transfer of SAR 500 sent to Ahmed account 12345", "Bank ABC")
    assert result is not None
    assert result.type is TxnType.TRANSFER
    assert result.to_account == "Ahmed account 12345"


def test_from_account_is_extracted():
    result = parse_sms_message("Rs 500.00 debited from A/c XX1234 at Uber India", "HDFCBK")
    assert result is not None
    assert result.from_account == "XX1234"
    assert result.to_account is None


@pytest.mark.parametrize(
    "message",
    [
        "Your OTP is 4821",
        "Use verification code 1234 to pay SAR 50",  # OTP с суммой тоже пропускаем
        "رمز التحقق: 5521 لعملية بمبلغ 100 ريال",
        "Meeting moved to 5 pm",
        "",
        "   ",
    ],
)
def test_non_transactions_return_none(message: str):
    assert parse_sms_message(message, "Bank ABC") is None


def test_otp_disclaimer_does_not_hide_purchase():
    result = parse_sms_message(
        "Purchase of SAR 250.00 at JARIR on 05/01. Never share your OTP with anyone.",
        "SNB",
        received_at=RECEIVED_AT,
    )
    assert result is not None
    assert result.amount == Decimal("-250.00")
    assert result.date == datetime(2024, 5, 1)


def test_dot_thousands_amount():
    result = parse_sms_message("Purchase of EUR 1.234,56 at IKEA", "Bank ABC")
    assert result is not None
    assert result.amount == Decimal("-1234.56")
    assert result.currency == "EUR"


def test_us_dollar_symbol():
    result = parse_sms_message("Purchase of US$ 50.00 at AMAZON", "Bank ABC")
    assert result is not None
    assert result.currency == "USD"


def test_text_date_takes_received_at_timezone():
    received_at = datetime(2024, 2, 14, 9, 30, tzinfo=timezone.utc)
    result = parse_sms_message(
        "Purchase of SAR 45.00 at JARIR BOOKSTORE on 12/02/2024", "AlRajhi", received_at=received_at
    )
    assert result is not None
    assert result.date == datetime(2024, 12, 2, tzinfo=timezone.utc)
    assert result.date > received_at  # aware vs aware – сравнимы


def test_localized_digits_are_normalized():
    result = parse_sms_message("تم خصم مبلغ ٢٥٠٫٧٥ ر.س من بطاقة رقم ٤٣٢١", "ALINMA")
    assert result is not None
    assert result.amount == Decimal("-250.75")
    assert result.from_account == "4321"
    assert "250.75" in result.raw_message


# ─ свойства ────────────────────────────────────────────────────────


def test_idempotent():
    message = "Purchase of SAR 18 at STARBUCKS"
    first = parse_sms_message(message, "SNB", received_at=RECEIVED_AT)
    second = parse_sms_message(message, "SNB", received_at=RECEIVED_AT)
    assert first == second
    assert first.date == RECEIVED_AT


SIGN_CASES = [
    "Your account has been debited with $125.40 for purchase at GROCERY STORE",
    "Salary of AED 12,500.00 credited to your account",
    "Refund of SAR 99.00 processed",
    "Transfer of SAR 500 sent to Ahmed account 12345",
    "NEFT: INR 2,000 credited to A/c XX5678",
    "عملية شراء بمبلغ 175.50 ريال سعودي",
    "حوالة واردة بمبلغ 1,200 ريال",
]


@pytest.mark.parametrize("message", SIGN_CASES)
def test_sign_invariant(message: str):
    result = parse_sms_message(message, "BANK")
    assert result is not None
    if result.type is TxnType.EXPENSE:
        assert result.amount < 0
    elif result.type is TxnType.INCOME:
        assert result.amount > 0
    else:
        assert result.amount != 0


def test_incoming_transfer_keeps_positive_sign():
    result = parse_sms_message("حوالة واردة بمبلغ 1,200 ريال", "BANK")
    assert result is not None
    assert result.type is TxnType.TRANSFER
    assert result.amount == Decimal("1200")


def test_currency_falls_back_to_preferred():
    ctx = ParsingContext(preferred_currency="EGP")
    result = parse_sms_message("Your account was debited with 250.00 at Carrefour", "CIB", context=ctx)
    assert result is not None
    assert result.currency == "EGP"
    assert result.category == "Groceries"


def test_currency_falls_back_to_settings():
    result = parse_sms_message("Your account was debited with 250.00 at Carrefour", "CIB")
    assert result is not None
    assert result.currency == "SAR"


# ─ правила ─────────────────────────────────────────────────────────


def test_custom_rule_precedence():
    ctx = ParsingContext(
        custom_rules=(
            CustomParsingRule(
                id="1",
                keywords=["netflix"],
                type=TxnType.EXPENSE,
                category="Entertainment",
                subcategory="Streaming",
            ),
        ),
    )
    result = parse_sms_message("NETFLIX.COM charged SAR 45", "Bank ABC", context=ctx)

    assert result is not None
    assert result.category == "Entertainment"
    assert result.subcategory == "Streaming"
    assert result.type is TxnType.EXPENSE
    assert result.amount == Decimal("-45")


def test_custom_rule_flips_sign():
    ctx = ParsingContext(
        custom_rules=(
            CustomParsingRule(id="2", keywords=["cashback partner"], type=TxnType.INCOME, category="Rewards"),
        ),
    )
    result = parse_sms_message(
        "Your account was debited with SAR 20.00 at Cashback Partner", "Bank ABC", context=ctx
    )
    assert result is not None
    assert result.type is TxnType.INCOME
    assert result.amount == Decimal("20.00")
    assert result.category == "Rewards"


def test_category_rule_priority():
    ctx = ParsingContext(
        category_rules=(
            CategoryRule(pattern="coffee", category_id="Cafe", priority=1),
            CategoryRule(pattern="starbucks", category_id="Treats", priority=5),
        ),
    )
    result = parse_sms_message("Purchase of SAR 18 at STARBUCKS COFFEE", "SNB", context=ctx)
    assert result is not None
    assert result.category == "Treats"


def test_subcategory_from_hierarchy():
    ctx = ParsingContext(hierarchy={"Dining": ("Fast Food", "Coffee")})
    result = parse_sms_message("Purchase of SAR 18 at STARBUCKS COFFEE", "SNB", context=ctx)
    assert result is not None
    assert result.category == "Dining"
    assert result.subcategory == "Coffee"


# ─ batch ───────────────────────────────────────────────────────────


def test_parse_messages_drops_duplicates_and_noise():
    results = parse_messages(
        [
            ("Purchase of SAR 18 at STARBUCKS", "SNB"),
            ("Purchase of SAR 18 at STARBUCKS", "SNB"),
            ("Your OTP is 4821", "SNB"),
            ("Salary of AED 500 credited", "ENBD"),
        ],
        received_at=RECEIVED_AT,
    )
    assert [r.amount for r in results] == [Decimal("-18"), Decimal("500")]
