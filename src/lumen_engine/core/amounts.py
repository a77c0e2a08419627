"""
Amount primitive: integer stroops on the ledger's 7-digit grid.

- Amount: non-negative integer stroops; Decimal only at the I/O boundary.
- Non-negative domain: negative values are rejected at input.
- Rounding semantics: IN rounds up, OUT rounds down.

Conversions against a rational price live here too so every module rounds
the same way (the maker is never short-changed).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_UP, InvalidOperation as DecimalError
from fractions import Fraction
from typing import Union

from .constants import MAX_AMOUNT, AMOUNT_QUANTUM
from .exc import AmountDomainError, InvariantViolation


# ----------------------------
# Integer rounding helpers (centralised)
# ----------------------------

def _ceil_div(a: int, b: int) -> int:
    if a < 0 or b <= 0:
        raise AmountDomainError("_ceil_div expects a>=0 and b>0")
    return 0 if a == 0 else -(-a // b)


def _floor_div(a: int, b: int) -> int:
    if a < 0 or b <= 0:
        raise AmountDomainError("_floor_div expects a>=0 and b>0")
    return a // b


# ----------------------------
# Amount (integer stroops)
# ----------------------------

@dataclass(frozen=True, order=True)
class Amount:
    """Asset amount in integer stroops (non-negative domain)."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise AmountDomainError(f"Amount expects int stroops, got {self.value!r}")
        if self.value < 0:
            raise AmountDomainError("Amount must be >= 0 stroops")
        if self.value > MAX_AMOUNT:
            raise AmountDomainError(f"Amount exceeds int64 range: {self.value}")

    # ------------- constructors -------------

    @staticmethod
    def zero() -> "Amount":
        return Amount(0)

    @classmethod
    def from_decimal(cls, x: Union[Decimal, int, str], *, round_up: bool = False) -> "Amount":
        """Bridge from a unit-denominated Decimal (OUT-style floor by default)."""
        return cls(stroops_from_units_in(x) if round_up else stroops_from_units_out(x))

    # ------------- conversions -------------

    def to_decimal(self) -> Decimal:
        return Decimal(self.value) * AMOUNT_QUANTUM

    # ------------- predicates -------------

    def is_zero(self) -> bool:
        return self.value == 0

    # ------------- arithmetic (integer domain) -------------

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            raise AmountDomainError("Amount arithmetic requires Amount operands")
        return Amount(self.value + other.value)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            raise AmountDomainError("Amount arithmetic requires Amount operands")
        if self.value < other.value:
            raise InvariantViolation("subtraction underflow would produce negative amount")
        return Amount(self.value - other.value)

    def min(self, other: "Amount") -> "Amount":
        return self if self.value <= other.value else other

    def mul_ratio_down(self, ratio: Fraction) -> "Amount":
        """self * ratio rounded toward zero (OUT side)."""
        if ratio < 0:
            raise AmountDomainError(f"negative ratio not allowed: {ratio}")
        return Amount(_floor_div(self.value * ratio.numerator, ratio.denominator))

    def mul_ratio_up(self, ratio: Fraction) -> "Amount":
        """self * ratio rounded away from zero (IN side)."""
        if ratio < 0:
            raise AmountDomainError(f"negative ratio not allowed: {ratio}")
        return Amount(_ceil_div(self.value * ratio.numerator, ratio.denominator))

    def __str__(self) -> str:
        return format(self.to_decimal(), "f")


#
# ----------------------------
# Decimal bridges (I/O only)
# ----------------------------

def _as_decimal(x: Union[Decimal, int, str]) -> Decimal:
    if isinstance(x, Decimal):
        d = x
    else:
        try:
            d = Decimal(str(x).strip())
        except DecimalError as e:
            raise AmountDomainError(f"invalid amount: {x!r}") from e
    if d.is_nan() or d.is_infinite():
        raise AmountDomainError(f"invalid amount: {x!r}")
    if d < 0:
        raise AmountDomainError(f"negative amount not allowed: {x!r}")
    return d


def units_from_stroops(d: int) -> Decimal:
    """Return Decimal units from integer stroops (I/O/display only)."""
    if not isinstance(d, int):
        raise AmountDomainError("units_from_stroops: stroops must be int")
    if d < 0:
        raise AmountDomainError("units_from_stroops: stroops must be >= 0")
    return Decimal(d) * AMOUNT_QUANTUM


def stroops_from_units_out(x: Union[Decimal, int, str]) -> int:
    """OUT-path: floor to whole stroops (won't give more OUT)."""
    q = (_as_decimal(x) / AMOUNT_QUANTUM).to_integral_value(rounding=ROUND_DOWN)
    return int(q)


def stroops_from_units_in(x: Union[Decimal, int, str]) -> int:
    """IN-path: ceil to whole stroops (won't pay less IN)."""
    q = (_as_decimal(x) / AMOUNT_QUANTUM).to_integral_value(rounding=ROUND_UP)
    return int(q)


__all__ = [
    "Amount",
    "units_from_stroops",
    "stroops_from_units_out",
    "stroops_from_units_in",
]
