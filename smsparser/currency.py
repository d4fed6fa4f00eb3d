"""Currency symbols, codes and names → ISO 4217 codes."""
from __future__ import annotations

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

# Set of valid ISO 4217 currency codes the parser recognises in text.
VALID_CURRENCY_CODES = frozenset({
    # Major currencies
    "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY", "INR", "NZD",
    # Middle East / Africa
    "EGP", "SAR", "AED", "BHD", "KWD", "OMR", "QAR", "JOD", "LBP", "IQD",
    "TND", "DZD", "MAD", "ZAR",
    # Asia
    "PKR", "BDT", "LKR", "NPR", "THB", "MYR", "SGD", "IDR", "PHP", "HKD",
    # Europe / Americas
    "SEK", "NOK", "DKK", "PLN", "TRY", "RUB", "MXN", "BRL",
})

# Symbols and names.  Keys are lower case, lookups lowercase the token.
CURRENCY_ALIASES: dict[str, str] = {
    # symbols
    "us$": "USD",
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₹": "INR",
    "﷼": "SAR",
    "rs.": "INR",
    "rs": "INR",
    "sr": "SAR",
    "l.e": "EGP",
    "bd": "BHD",
    # Arabic
    "ريال سعودي": "SAR",
    "ريال": "SAR",
    "ر.س": "SAR",
    "ر. س": "SAR",
    "ر س": "SAR",
    "جنيه مصري": "EGP",
    "جنيه مصرى": "EGP",
    "جنيه": "EGP",
    "ج.م": "EGP",
    "درهم إماراتي": "AED",
    "درهم": "AED",
    "د.إ": "AED",
    "دينار بحريني": "BHD",
    "د.ب": "BHD",
    "دينار كويتي": "KWD",
    "دينار": "KWD",
    "دولار": "USD",
    "يورو": "EUR",
    # Hindi
    "रुपये": "INR",
    "रु": "INR",
    # English names
    "riyals": "SAR",
    "riyal": "SAR",
    "dirhams": "AED",
    "dirham": "AED",
    "dollars": "USD",
    "dollar": "USD",
    "euros": "EUR",
    "euro": "EUR",
    "pounds": "GBP",
    "pound": "GBP",
    "rupees": "INR",
    "rupee": "INR",
}


def _token_pattern(token: str) -> str:
    esc = re.escape(token)
    if token[0].isalnum():
        esc = r"(?<!\w)" + esc
    if token[-1].isalnum():
        esc += r"(?!\w)"
    return esc


# Longest first so that "ريال سعودي" wins over "ريال" and "US$" over "$".
_TOKENS = sorted(
    set(CURRENCY_ALIASES) | {c.lower() for c in VALID_CURRENCY_CODES},
    key=len,
    reverse=True,
)
CURRENCY_TOKEN_RE = "(?:" + "|".join(_token_pattern(t) for t in _TOKENS) + ")"


def resolve_currency(token: Optional[str]) -> Optional[str]:
    """Map a captured currency token to its ISO code, ``None`` if unknown."""
    if not token:
        return None
    cleaned = " ".join(token.split())
    upper = cleaned.upper()
    if upper in VALID_CURRENCY_CODES:
        return upper
    code = CURRENCY_ALIASES.get(cleaned.lower())
    if code is None:
        logger.debug("Unknown currency token %r", token)
    return code


def normalize_currency_code(currency: Optional[str], fallback: str = "SAR") -> str:
    """Like :func:`resolve_currency`, but never returns ``None``."""
    return resolve_currency(currency) or fallback.upper()
