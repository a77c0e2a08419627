"""
Formatting helpers and Decimal-based parsing (non-core arithmetic).

Core arithmetic uses integer stroops and exact rationals. Decimal here is
only for display and for parsing user-facing strings.
"""

from decimal import Decimal, getcontext, InvalidOperation as DecimalError

from .amounts import Amount, stroops_from_units_out, units_from_stroops
from .constants import AMOUNT_DIGITS, AMOUNT_QUANTUM
from .exc import AmountDomainError
from .price import Price


# ---------------------------------------------------------------------------
# Global Decimal precision (formatting only)
# ---------------------------------------------------------------------------

#: Enough significant digits for int64 stroops rendered as units.
DEFAULT_DECIMAL_PRECISION: int = 28
getcontext().prec = DEFAULT_DECIMAL_PRECISION


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def fmt_amount(a: Amount) -> str:
    """Format an amount with all seven fractional digits.

      Amount(1000000000) -> '100.0000000'
      Amount(1)          -> '0.0000001'
    """
    if not isinstance(a, Amount):
        raise AmountDomainError("fmt_amount(): expected Amount")
    return format(units_from_stroops(a.value), f".{AMOUNT_DIGITS}f")


def fmt_price(p: Price, places: int = 7) -> str:
    """Decimal rendering of a price for display only."""
    if not isinstance(p, Price):
        raise AmountDomainError("fmt_price(): expected Price")
    return format(p.to_decimal(), f".{places}f")


def parse_amount(s: str) -> Amount:
    """Parse a unit-denominated string such as '12.5'.

    Digits beyond the seventh fractional place are rejected rather than
    silently dropped.
    """
    try:
        d = s if isinstance(s, Decimal) else Decimal(str(s).strip())
    except DecimalError as e:
        raise AmountDomainError(f"invalid amount: {s!r}") from e
    if d.is_nan() or d.is_infinite() or d < 0:
        raise AmountDomainError(f"invalid amount: {s!r}")
    try:
        exact = d == d.quantize(AMOUNT_QUANTUM)
    except DecimalError as e:
        raise AmountDomainError(f"amount out of range: {s!r}") from e
    if not exact:
        raise AmountDomainError(f"amount has more than {AMOUNT_DIGITS} fractional digits: {s!r}")
    return Amount(stroops_from_units_out(d))


__all__ = [
    "DEFAULT_DECIMAL_PRECISION",
    "fmt_amount",
    "fmt_price",
    "parse_amount",
]
