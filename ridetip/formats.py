from __future__ import annotations

import platform
import subprocess
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import Optional, Union

try:  # Optional dependency for locale-aware currency formatting
    from babel.numbers import format_currency as _babel_format_currency  # type: ignore
except Exception:  # pragma: no cover - optional at runtime
    _babel_format_currency = None


# --- Amount helpers & constants ---
SATS_PER_BTC = 100_000_000
CENT = Decimal("0.01")
SATS_UNIT = "sats"
# Fiat values with more integer digits than this display in sats instead.
MAX_FIAT_DIGITS = 400

Rate = Union[Decimal, int, float, str]


class DisplayCurrency(str, Enum):
    NATIVE_UNIT = "sats"
    FIAT = "usd"

    @classmethod
    def parse(cls, text: str) -> "DisplayCurrency":
        key = (text or "").strip().lower()
        if key in {"sats", "sat", "native", "native_unit"}:
            return cls.NATIVE_UNIT
        if key in {"usd", "fiat", "$"}:
            return cls.FIAT
        raise ValueError("Display currency must be 'sats' or 'usd'")

    def toggled(self) -> "DisplayCurrency":
        return DisplayCurrency.FIAT if self is DisplayCurrency.NATIVE_UNIT else DisplayCurrency.NATIVE_UNIT


def to_cents(value: Decimal) -> Decimal:
    """Round a Decimal to two fractional digits using ROUND_HALF_EVEN."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def _coerce_rate(rate: Optional[Rate]) -> Optional[Decimal]:
    if rate is None or isinstance(rate, bool):
        return None
    try:
        value = Decimal(str(rate))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def sats_to_fiat(amount: int, rate: Optional[Rate]) -> Optional[Decimal]:
    """Convert sats to fiat at ``rate`` (fiat per whole coin).

    Returns ``None`` when no usable rate is available or the result is too
    large to display.
    """
    price = _coerce_rate(rate)
    if price is None:
        return None
    sats = Decimal(int(amount))
    with localcontext() as ctx:
        # exact product; dividing by 10**8 only shifts the exponent
        ctx.prec = max(ctx.prec, len(sats.as_tuple().digits) + len(price.as_tuple().digits) + 2)
        try:
            fiat = sats * price / Decimal(SATS_PER_BTC)
        except ArithmeticError:
            return None
    if fiat.adjusted() >= MAX_FIAT_DIGITS:
        return None
    return to_cents(fiat)


# --- Formatting ---
def format_sats(amount: int) -> str:
    return f"{int(amount)} {SATS_UNIT}"


def format_fiat(value: Decimal, *, symbol: str = "$") -> str:
    return f"{symbol}{to_cents(value):.2f}"


def format_amount(
    amount: int,
    mode: DisplayCurrency,
    rate: Optional[Rate] = None,
) -> str:
    """Display string for a sat amount in the chosen currency.

    FIAT without a usable rate falls back to the sats string.
    """
    if mode == DisplayCurrency.FIAT:
        fiat = sats_to_fiat(amount, rate)
        if fiat is not None:
            return format_fiat(fiat)
    return format_sats(amount)


def fmt_money(
    value: Decimal,
    *,
    symbol: str = "$",
    currency: str = "USD",
    locale: Optional[str] = None,
) -> str:
    """Format money for reports.

    - If Babel is installed and a ``locale`` is provided, use locale-aware
      formatting (e.g., thousands separators, proper symbol placement).
    - Otherwise, fall back to a simple symbol + 2-decimal format with commas.
    """
    amount = to_cents(value)
    if _babel_format_currency and locale:
        try:
            return _babel_format_currency(amount, currency, locale=locale)
        except (ValueError, LookupError, ArithmeticError):
            pass
    return f"{symbol}{amount:,.2f}"


def copy_to_clipboard(text: str) -> bool:
    try:
        import pyperclip  # type: ignore
        pyperclip.copy(text)
        return True
    except Exception:
        pass
    try:
        system = platform.system()
        if system == "Windows":
            p = subprocess.Popen(["clip"], stdin=subprocess.PIPE, close_fds=True)
            if p.stdin:
                p.stdin.write(text.encode("utf-16le"))
                p.stdin.close()
            return p.wait() == 0
        elif system == "Darwin":
            p = subprocess.Popen(["pbcopy"], stdin=subprocess.PIPE)
            p.communicate(input=text.encode())
            return p.returncode == 0
        else:
            for cmd in (["xclip", "-selection", "clipboard"], ["xsel", "--clipboard", "--input"]):
                try:
                    p = subprocess.Popen(cmd, stdin=subprocess.PIPE)
                    p.communicate(input=text.encode())
                    if p.returncode == 0:
                        return True
                except OSError:
                    continue
    except OSError:
        pass
    return False
