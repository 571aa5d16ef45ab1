from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import List

MAX_SATS = 2**63 - 1
MAX_PRICE_DIGITS = 100

_DIGITS_RE = re.compile(r"[0-9]+")
_SATS_SUFFIX_RE = re.compile(r"\s*sats?\s*$", re.IGNORECASE)


def is_digits(text: str) -> bool:
    return bool(_DIGITS_RE.fullmatch(text or ""))


def accept_custom_edit(current: str, proposed: str) -> str:
    """Edit boundary for the custom amount field: digits only, or empty."""
    if proposed == "" or is_digits(proposed):
        return proposed
    return current


def parse_sats_lenient(text: str) -> int:
    """Parse a custom amount, resolving anything unusable to 0."""
    if not is_digits(text):
        return 0
    value = int(text)
    if value > MAX_SATS:
        return 0
    return value


def parse_sats(text: str, *, min_value: int = 1) -> int:
    s = _SATS_SUFFIX_RE.sub("", text.strip())
    raw = re.sub(r"[\s,_]", "", s)
    if not is_digits(raw):
        raise ValueError("Enter a whole number of sats (e.g., 2100)")
    value = int(raw)
    if value > MAX_SATS:
        raise ValueError("Amount is too large")
    if value < min_value:
        raise ValueError(f"Amount must be >= {min_value} sats")
    return value


def parse_price(text: str) -> Decimal:
    s = str(text).strip()
    raw = re.sub(r"\s+", "", s).replace(",", "").replace("$", "")
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError("Enter a valid BTC price in USD (e.g., 60000)") from exc
    if not value.is_finite() or value <= 0:
        raise ValueError("BTC price must be greater than 0")
    if value.adjusted() >= MAX_PRICE_DIGITS:
        raise ValueError("BTC price is too large")
    return value


def parse_presets(text: str) -> List[int]:
    vals: List[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        vals.append(parse_sats(part, min_value=1))
    return vals
