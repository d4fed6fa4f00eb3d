"""Transfer detection: a plain keyword check, no scoring."""
from __future__ import annotations

import re

TRANSFER_KEYWORDS = (
    "transfer", "transfers", "transferred", "sent to", "wire", "wired",
    "remittance", "remitted",
    "neft", "imps", "rtgs", "iban",
    "حوالة", "حواله", "تحويل", "حولت", "أرسلت", "ارسلت",
    "हस्तांतरण", "ट्रांसफर",
)

_TRANSFER_RE = re.compile(
    "|".join(
        rf"(?<!\w){re.escape(k)}(?!\w)" if k.isascii() else re.escape(k)
        for k in TRANSFER_KEYWORDS
    ),
    re.IGNORECASE,
)


def is_transfer(message: str) -> bool:
    """True when any transfer keyword occurs in *message*."""
    return bool(_TRANSFER_RE.search(message))
