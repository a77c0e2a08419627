"""
Price (exact rational) utilities aligned with ledger offer semantics.

Alignment notes:
- An offer's price is n/d units of the buying asset per unit of the selling
  asset. Lower is better for a taker consuming that offer.
- Prices are kept as exact rationals; comparisons never go through floats
  or Decimal.
- Conversions from Decimal approximate with a continued-fraction limited to
  int32 terms, like the network's price representation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation as DecimalError
from fractions import Fraction
from typing import Union

from .constants import MAX_PRICE_TERM
from .exc import AmountDomainError


@dataclass(frozen=True)
class Price:
    """Price wrapper around a positive rational n/d.

    Comparisons delegate to the exact Fraction value, so 1/2 == 2/4.
    """

    n: int
    d: int

    def __post_init__(self):
        if not isinstance(self.n, int) or not isinstance(self.d, int):
            raise AmountDomainError("Price terms must be int")
        if self.n <= 0 or self.d <= 0:
            raise AmountDomainError(f"Price must be positive, got {self.n}/{self.d}")

    @classmethod
    def from_fraction(cls, f: Fraction) -> "Price":
        return cls(f.numerator, f.denominator)

    @classmethod
    def from_decimal(cls, x: Union[Decimal, int, str]) -> "Price":
        """Build a price from a decimal string such as '1.5'."""
        try:
            d = x if isinstance(x, Decimal) else Decimal(str(x))
        except DecimalError as e:
            raise AmountDomainError(f"invalid price: {x!r}") from e
        if d.is_nan() or d.is_infinite() or d <= 0:
            raise AmountDomainError(f"invalid price: {x!r}")
        f = Fraction(d)
        if f.numerator > MAX_PRICE_TERM or f.denominator > MAX_PRICE_TERM:
            f = f.limit_denominator(MAX_PRICE_TERM)
        if f.numerator > MAX_PRICE_TERM:
            raise AmountDomainError(f"price out of range: {x!r}")
        if f <= 0:
            raise AmountDomainError(f"price underflow: {x!r}")
        return cls.from_fraction(f)

    @classmethod
    def from_amounts(cls, buying: int, selling: int) -> "Price":
        """Price implied by exchanging `selling` units for `buying` units."""
        return cls.from_fraction(Fraction(buying, selling))

    def as_fraction(self) -> Fraction:
        return Fraction(self.n, self.d)

    def inverse(self) -> "Price":
        """The same exchange rate seen from the other side of the book."""
        return Price(self.d, self.n)

    def to_decimal(self) -> Decimal:
        return Decimal(self.n) / Decimal(self.d)

    # Ordering on exact value (lower is a better deal for the taker).
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Price):
            return NotImplemented
        return self.as_fraction() == other.as_fraction()

    def __hash__(self) -> int:
        return hash(self.as_fraction())

    def __lt__(self, other: "Price") -> bool:
        return self.as_fraction() < other.as_fraction()

    def __le__(self, other: "Price") -> bool:
        return self.as_fraction() <= other.as_fraction()

    def __gt__(self, other: "Price") -> bool:
        return self.as_fraction() > other.as_fraction()

    def __ge__(self, other: "Price") -> bool:
        return self.as_fraction() >= other.as_fraction()

    def __str__(self) -> str:
        return f"{self.n}/{self.d}"


def crosses(maker: Price, taker: Price) -> bool:
    """True when a taker at `taker` is willing to trade with a maker at `maker`.

    Both prices are expressed from their own offer's side (buying per
    selling), so the offers cross iff maker * taker <= 1.
    """
    return maker.as_fraction() * taker.as_fraction() <= 1


__all__ = [
    "Price",
    "crosses",
]
