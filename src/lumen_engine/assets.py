"""Asset and TrustLine model.

Assets are immutable values: the native asset, or an issued (code, issuer)
pair. A TrustLine is the capacity-bounded permission for a holder to keep an
issued asset; it is ledger state, so crediting returns a new value rather
than mutating.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Optional

from .core import Amount, ASSET_CODE_MAX_LEN, InvalidOperation, TrustLineCapacityExceeded
from .core.exc import InvariantViolation

NATIVE = "native"

_CODE_RE = re.compile(r"^[A-Za-z0-9]{1,%d}$" % ASSET_CODE_MAX_LEN)


@dataclass(frozen=True)
class Asset:
    """Native asset (code/issuer None) or an issued asset."""

    code: Optional[str] = None
    issuer: Optional[str] = None

    def __post_init__(self):
        if (self.code is None) != (self.issuer is None):
            raise InvalidOperation("issued asset needs both code and issuer")
        if self.code is not None:
            if not _CODE_RE.match(self.code):
                raise InvalidOperation(f"invalid asset code: {self.code!r}")
            if not self.issuer:
                raise InvalidOperation("asset issuer must be non-empty")

    @staticmethod
    def native() -> "Asset":
        return Asset()

    @staticmethod
    def issued(code: str, issuer: str) -> "Asset":
        return Asset(code, issuer)

    @classmethod
    def parse(cls, s: str) -> "Asset":
        """Parse the canonical string form: 'native' or 'CODE:ISSUER'."""
        if s == NATIVE:
            return cls.native()
        code, sep, issuer = s.partition(":")
        if not sep:
            raise InvalidOperation(f"asset must be 'native' or CODE:ISSUER, got {s!r}")
        return cls(code, issuer)

    @property
    def is_native(self) -> bool:
        return self.code is None

    def sort_key(self) -> tuple:
        # native first, then by code and issuer; used for deterministic traversal
        return (0, "", "") if self.is_native else (1, self.code, self.issuer)

    def __str__(self) -> str:
        return NATIVE if self.is_native else f"{self.code}:{self.issuer}"


@dataclass(frozen=True)
class TrustLine:
    """Holder's permission to keep `asset`, bounded by `limit`.

    Invariant: 0 <= balance <= limit. A limit of zero means the line is
    being removed.
    """

    holder: str
    asset: Asset
    limit: Amount
    balance: Amount = Amount(0)
    authorized: bool = True

    def __post_init__(self):
        if self.asset.is_native:
            raise InvalidOperation("native asset needs no trustline")
        if self.balance > self.limit:
            raise InvariantViolation(
                f"trustline {self.holder}/{self.asset}: balance {self.balance.value} > limit {self.limit.value}"
            )

    @property
    def remaining_capacity(self) -> Amount:
        return self.limit - self.balance

    def can_receive(self, amount: Amount) -> bool:
        return self.authorized and self.remaining_capacity >= amount

    def credit(self, amount: Amount) -> "TrustLine":
        """Return the line after receiving `amount`."""
        if not self.can_receive(amount):
            capacity = self.remaining_capacity.value if self.authorized else 0
            raise TrustLineCapacityExceeded(self.holder, self.asset, amount.value, capacity)
        return replace(self, balance=self.balance + amount)

    def debit(self, amount: Amount) -> "TrustLine":
        """Return the line after sending `amount`."""
        if amount > self.balance:
            raise InvalidOperation(
                f"trustline {self.holder}/{self.asset}: balance {self.balance.value} < {amount.value}"
            )
        return replace(self, balance=self.balance - amount)

    def with_limit(self, limit: Amount) -> "TrustLine":
        if limit < self.balance:
            raise InvalidOperation(
                f"trustline {self.holder}/{self.asset}: limit {limit.value} below balance {self.balance.value}"
            )
        return replace(self, limit=limit)


def is_issuer(account_id: str, asset: Asset) -> bool:
    """Issuers implicitly trust their own asset without limit."""
    return (not asset.is_native) and asset.issuer == account_id


__all__ = [
    "NATIVE",
    "Asset",
    "TrustLine",
    "is_issuer",
]
