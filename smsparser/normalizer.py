"""Text normalisation applied to every SMS before any regex runs."""
from __future__ import annotations

# Arabic-Indic, Extended Arabic-Indic (Persian/Urdu) and Devanagari digits.
_DIGITS = {
    **{chr(0x0660 + i): str(i) for i in range(10)},
    **{chr(0x06F0 + i): str(i) for i in range(10)},
    **{chr(0x0966 + i): str(i) for i in range(10)},
}

_PUNCTUATION = {
    "٫": ".",  # ARABIC DECIMAL SEPARATOR
    "٬": ",",  # ARABIC THOUSANDS SEPARATOR
    "،": ",",  # ARABIC COMMA
    "؛": ";",  # ARABIC SEMICOLON
    "\u00a0": " ",  # NO-BREAK SPACE
    "\u202f": " ",  # NARROW NO-BREAK SPACE
    "\u2009": " ",  # THIN SPACE
}

_TABLE = str.maketrans({**_DIGITS, **_PUNCTUATION})

_RTL_RANGES = (
    (0x0590, 0x05FF),  # Hebrew
    (0x0600, 0x06FF),  # Arabic
    (0x0750, 0x077F),  # Arabic Supplement
    (0x08A0, 0x08FF),  # Arabic Extended-A
    (0xFB1D, 0xFDFF),  # Hebrew/Arabic presentation forms A
    (0xFE70, 0xFEFF),  # Arabic presentation forms B
)


def normalize_text(text: str) -> str:
    """Map localized digits and separators to their ASCII equivalents."""
    if not text:
        return ""
    return text.translate(_TABLE)


def _is_rtl_char(ch: str) -> bool:
    code = ord(ch)
    return any(lo <= code <= hi for lo, hi in _RTL_RANGES)


def is_rtl(text: str, threshold: float = 0.3) -> bool:
    """True when the share of right-to-left letters exceeds *threshold*."""
    letters = [ch for ch in text if ch.isalpha()]
    if not letters:
        return False
    rtl = sum(1 for ch in letters if _is_rtl_char(ch))
    return rtl / len(letters) > threshold
