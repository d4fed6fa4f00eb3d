# smsparser/entities.py
"""Entity extractors: institution name, description, accounts and country.

Все функции «best effort»: при отсутствии совпадения возвращают дефолт или
``None`` и никогда не бросают исключений.
"""
from __future__ import annotations

import re
from typing import Callable, Optional

DEFAULT_BANK_NAME = "Financial Institution"
DESCRIPTION_LIMIT = 50

# ---------------------------------------------------------------------------
# Bank / payment platform table
# ---------------------------------------------------------------------------
# Порядок важен: «البنك الأهلي المصري» должен проверяться раньше «الأهلي».
BANK_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(p, re.IGNORECASE), name)
    for p, name in (
        # Egypt
        (r"national\s+bank\s+of\s+egypt|\bnbe\b|البنك الأهلي المصري|الاهلي المصري", "National Bank of Egypt"),
        (r"banque\s+misr|بنك مصر", "Banque Misr"),
        (r"\bcib\b|commercial\s+international\s+bank|التجاري الدولي", "CIB"),
        (r"\bqnb\b|qatar\s+national\s+bank", "QNB"),
        # Gulf
        (r"al\s*rajhi|alrajhi|الراجحي", "Al Rajhi Bank"),
        (r"\bsnb\b|al\s*ahli|alahli|الأهلي|الاهلي", "Saudi National Bank"),
        (r"riyad\s*bank|بنك الرياض", "Riyad Bank"),
        (r"alinma|الإنماء|الانماء", "Alinma Bank"),
        (r"\bsabb\b|بنك ساب", "SABB"),
        (r"al\s*bilad|بنك البلاد", "Bank Albilad"),
        (r"banque\s+saudi\s+fransi|\bbsf\b|السعودي الفرنسي", "Banque Saudi Fransi"),
        (r"emirates\s*nbd|\benbd\b", "Emirates NBD"),
        (r"\badcb\b|abu\s+dhabi\s+commercial", "ADCB"),
        (r"\bfab\b|first\s+abu\s+dhabi", "First Abu Dhabi Bank"),
        (r"mashreq|المشرق", "Mashreq"),
        (r"national\s+bank\s+of\s+bahrain|\bnbb\b", "National Bank of Bahrain"),
        (r"\bbbk\b|bank\s+of\s+bahrain\s+and\s+kuwait", "BBK"),
        # India
        (r"\bhdfc\b", "HDFC Bank"),
        (r"\bicici\b", "ICICI Bank"),
        (r"\bsbi\b|state\s+bank\s+of\s+india", "State Bank of India"),
        (r"\baxis\s+bank\b", "Axis Bank"),
        (r"\bkotak\b", "Kotak Mahindra Bank"),
        # International
        (r"\bhsbc\b", "HSBC"),
        (r"\bciti(?:bank)?\b", "Citibank"),
        (r"\bchase\b", "Chase"),
        (r"bank\s+of\s+america|\bbofa\b", "Bank of America"),
        (r"\bbarclays\b", "Barclays"),
        # Digital wallets
        (r"stc\s*pay", "STC Pay"),
        (r"\burpay\b", "urpay"),
        (r"apple\s*pay", "Apple Pay"),
        (r"google\s*pay|\bgpay\b", "Google Pay"),
        (r"paypal", "PayPal"),
        (r"\bpaytm\b", "Paytm"),
        (r"phonepe", "PhonePe"),
        (r"vodafone\s*cash|فودافون كاش", "Vodafone Cash"),
        (r"instapay|انستاباي", "InstaPay"),
    )
)

_SENDER_PREFIX_RE = re.compile(r"^\s*(?:sms\s+from|from|sms)\s*[:\-]?\s*", re.IGNORECASE)
_PHONE_CHARS_RE = re.compile(r"[\s+\-()]")


def _clean_sender(sender: Optional[str]) -> str:
    return _SENDER_PREFIX_RE.sub("", sender or "").strip()


def is_named_sender(sender: Optional[str]) -> bool:
    """False for empty or purely numeric senders (short codes, phone numbers)."""
    cleaned = _PHONE_CHARS_RE.sub("", _clean_sender(sender))
    return bool(cleaned) and not cleaned.isdigit()


def resolve_bank_name(sender: Optional[str], message: str) -> str:
    if is_named_sender(sender):
        return _clean_sender(sender)
    for pattern, name in BANK_PATTERNS:
        if pattern.search(message):
            return name
    return DEFAULT_BANK_NAME


# ---------------------------------------------------------------------------
# Description / merchant
# ---------------------------------------------------------------------------
_STOP = r"(?=\s+(?:on|at|for|ref|via|using|with|dated|from|to|avl|available)\b|\s*[.,;:\n]|\s*$)"
_TOKEN = r"[A-Za-z0-9&'*\-]+(?:\.[A-Za-z0-9&'*\-]+)*"
_NAME = rf"((?=[A-Za-z0-9]){_TOKEN}(?:\s+{_TOKEN}){{0,5}}?)"


def _identity(value: str) -> str:
    return value


def _reference(value: str) -> str:
    return f"Reference: {value}"


def _phrase(value: str) -> str:
    return value.title() if value.isascii() else value


DESCRIPTION_PATTERNS: tuple[tuple[re.Pattern[str], Callable[[str], str]], ...] = (
    (re.compile(rf"\bat\s+{_NAME}{_STOP}", re.IGNORECASE), _identity),
    (re.compile(rf"\b(?:from|to)\s+{_NAME}{_STOP}", re.IGNORECASE), _identity),
    (re.compile(rf"\bin\s+{_NAME}{_STOP}", re.IGNORECASE), _identity),
    (re.compile(r"\bref(?:erence)?(?:\s*no)?[:\s#.]+([A-Za-z0-9]{3,})", re.IGNORECASE), _reference),
    (re.compile(rf"\b(?:purpose|for)\s*:?\s+(?!purchase\b|payment\b){_NAME}{_STOP}", re.IGNORECASE), _identity),
    (
        re.compile(
            r"(?:^|\s)(?:في|لدى|من|إلى|الى)\s*:?\s+([^\d\n,.:;]{2,40}?)"
            r"(?=\s+(?:بتاريخ|في|بمبلغ|رقم|عبر|على)(?!\w)|\s*[\n,.:;]|\s*\d|\s*$)"
        ),
        _identity,
    ),
    (
        re.compile(
            r"(online\s+purchase|pos\s+purchase|atm\s+withdrawal|cash\s+withdrawal|bill\s+payment"
            r"|شراء عبر الإنترنت|شراء عبر الانترنت|شراء نقاط البيع|سحب صراف)",
            re.IGNORECASE,
        ),
        _phrase,
    ),
)

# Слова, которые не бывают началом названия мерчанта.
_NOT_A_NAME = frozenset({"your", "the", "a", "an", "account", "a/c", "card", "you", "حسابك", "حساب"})


def truncate(message: str, limit: int = DESCRIPTION_LIMIT) -> str:
    return message if len(message) <= limit else message[:limit] + "..."


def _looks_like_name(value: str) -> bool:
    if not value or value.replace(".", "").replace(",", "").isdigit():
        return False
    return value.split()[0].lower() not in _NOT_A_NAME


def extract_description(message: str, sender: Optional[str] = None) -> str:
    for pattern, render in DESCRIPTION_PATTERNS:
        for m in pattern.finditer(message):
            value = " ".join(m.group(1).split()).strip(" -*")
            if _looks_like_name(value):
                return render(value)
    if is_named_sender(sender):
        return _clean_sender(sender)
    return truncate(message.strip())


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------
_RECIPIENT_STOP = r"(?=\s+(?:on|ref|via|from|dated|at)\b|\s*[\n,;]|\.(?:\s|$)|\s*$)"

TO_ACCOUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"\b(?:sent|transferred|transfer|wired|remitted|paid)\s+to\s+(?:a/c\s+|acct?\s+)?(.+?){_RECIPIENT_STOP}",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?:recipient|beneficiary|payee)\s*(?:name)?\s*[:\-]?\s+(.+?){_RECIPIENT_STOP}", re.IGNORECASE),
    re.compile(r"\bto\s+(?:a/c|acct?|account|iban)\s*(?:no\.?|number)?\s*[:#]?\s*([A-Z]{0,2}[X*\d][X*\d\s]{3,}\d)", re.IGNORECASE),
    re.compile(
        r"(?:حوالة|تحويل)[^\n]{0,40}?(?:إلى|الى|للمستفيد|لـ)\s*:?\s*([^\n,.;]+?)"
        r"(?=\s+(?:بتاريخ|في|بمبلغ|رقم|من)\b|\s*[\n,.;]|\s*$)"
    ),
    re.compile(rf"\bto\s+(.+?){_RECIPIENT_STOP}", re.IGNORECASE),
)

FROM_ACCOUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bcard\s+(?:no\.?\s*)?(?:ending\s+(?:with\s+|in\s+)?)?[:#]?\s*([X*]*\d{4,})", re.IGNORECASE),
    re.compile(r"\bfrom\s+(?:your\s+)?(?:a/c|acct?|account)\s*(?:no\.?)?\s*[:#]?\s*([X*]*\d{3,})", re.IGNORECASE),
    re.compile(r"\b(?:a/c|acct)\s*(?:no\.?)?\s*[:#]?\s*([X*]*\d{3,})", re.IGNORECASE),
    re.compile(r"(?:بطاقة|البطاقة|حساب|الحساب)\s*(?:رقم)?\s*:?\s*([X*]*\d{4,}\**)"),
)

ACCOUNT_LIMIT = 60


def extract_to_account(message: str) -> Optional[str]:
    """Recipient of a transfer, or ``None`` when no phrase matched."""
    for pattern in TO_ACCOUNT_PATTERNS:
        m = pattern.search(message)
        if m:
            value = " ".join(m.group(1).split()).strip(" .:-")
            if value:
                return value[:ACCOUNT_LIMIT]
    return None


def extract_from_account(message: str, exclude: Optional[str] = None) -> Optional[str]:
    """Card/account identifier the money left from, ignoring the *exclude* text."""
    for pattern in FROM_ACCOUNT_PATTERNS:
        for m in pattern.finditer(message):
            value = m.group(1).strip()
            if exclude and value in exclude:
                continue
            return value
    return None


# ---------------------------------------------------------------------------
# Country
# ---------------------------------------------------------------------------
COUNTRY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Bahrain", ("BHD", "bahrain", "bahraini", "دينار بحريني", "البحرين", "د.ب")),
    ("UAE", ("AED", "dirham", "emirates", "uae", "درهم", "الإمارات", "د.إ")),
    ("Egypt", ("EGP", "egypt", "egyptian", "جنيه", "مصر", "ج.م")),
    ("Saudi Arabia", ("SAR", "riyal", "saudi", "ريال", "ر.س", "السعودية", "سعودي")),
)


def _keyword_re(keywords: tuple[str, ...]) -> re.Pattern[str]:
    parts = []
    for kw in keywords:
        esc = re.escape(kw)
        parts.append(rf"(?<!\w){esc}(?!\w)")
    return re.compile("|".join(parts), re.IGNORECASE)


_COUNTRY_RES = tuple((country, _keyword_re(kws)) for country, kws in COUNTRY_KEYWORDS)


def detect_country(message: str) -> Optional[str]:
    for country, pattern in _COUNTRY_RES:
        if pattern.search(message):
            return country
    return None
