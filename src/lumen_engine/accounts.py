"""Signer & Threshold model.

An account's authorization policy is its weighted signer list plus one
threshold per authorization class. The account's own key is a signer whose
weight is the `master` threshold field; a master weight of 0 means the
account can no longer sign for itself.

Everything here is recomputed from the supplied Account value on each call;
nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum, IntFlag
from typing import Dict, Mapping, Optional, Tuple

from .core import Amount, InvalidOperation, MAX_WEIGHT, MAX_SEQUENCE


class AuthClass(IntEnum):
    """Authorization tier of an operation; higher needs more weight."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class AccountFlags(IntFlag):
    NONE = 0
    AUTH_REQUIRED = 1
    AUTH_REVOCABLE = 2
    AUTH_IMMUTABLE = 4


def _check_weight(name: str, w: int) -> int:
    if isinstance(w, bool) or not isinstance(w, int) or not 0 <= w <= MAX_WEIGHT:
        raise InvalidOperation(f"{name} must be an int in 0..{MAX_WEIGHT}, got {w!r}")
    return w


@dataclass(frozen=True)
class Signer:
    key: str
    weight: int

    def __post_init__(self):
        if not self.key:
            raise InvalidOperation("signer key must be non-empty")
        _check_weight("signer weight", self.weight)


@dataclass(frozen=True)
class Thresholds:
    """Master key weight plus low/medium/high thresholds (0..255 each)."""

    master: int = 1
    low: int = 0
    medium: int = 0
    high: int = 0

    def __post_init__(self):
        for name in ("master", "low", "medium", "high"):
            _check_weight(name, getattr(self, name))

    def for_class(self, auth_class: AuthClass) -> int:
        if auth_class is AuthClass.LOW:
            return self.low
        if auth_class is AuthClass.MEDIUM:
            return self.medium
        if auth_class is AuthClass.HIGH:
            return self.high
        raise InvalidOperation(f"unknown authorization class: {auth_class!r}")


@dataclass(frozen=True)
class Account:
    """Read-only snapshot of an account's ledger entry."""

    account_id: str
    sequence: int
    balance: Amount = Amount(0)
    base_reserve: Amount = Amount(5_000_000)
    signers: Tuple[Signer, ...] = ()
    thresholds: Thresholds = Thresholds()
    flags: AccountFlags = AccountFlags.NONE
    data: Mapping[str, bytes] = field(default_factory=dict)
    num_subentries: int = 0

    def __post_init__(self):
        if not self.account_id:
            raise InvalidOperation("account id must be non-empty")
        if not 0 <= self.sequence <= MAX_SEQUENCE:
            raise InvalidOperation(f"sequence out of range: {self.sequence}")
        # accept any iterable of signers; store as a tuple
        object.__setattr__(self, "signers", tuple(self.signers))

    def minimum_balance(self) -> Amount:
        return Amount((2 + self.num_subentries) * self.base_reserve.value)

    def with_signer(self, key: str, weight: int) -> "Account":
        """Return a copy with `key` set to `weight` (0 removes it)."""
        kept = tuple(s for s in self.signers if s.key != key)
        if weight > 0:
            kept = kept + (Signer(key, weight),)
        return replace(self, signers=kept)

    def with_thresholds(
        self,
        *,
        master: Optional[int] = None,
        low: Optional[int] = None,
        medium: Optional[int] = None,
        high: Optional[int] = None,
    ) -> "Account":
        t = self.thresholds
        return replace(self, thresholds=Thresholds(
            master=t.master if master is None else master,
            low=t.low if low is None else low,
            medium=t.medium if medium is None else medium,
            high=t.high if high is None else high,
        ))


def required_weight(account: Account, auth_class: AuthClass) -> int:
    """Threshold the signature weight must reach for `auth_class`."""
    return account.thresholds.for_class(auth_class)


def signer_weights(account: Account) -> Dict[str, int]:
    """Map of public key -> weight, master key included at the master weight.

    Zero-weight signers are dropped (a zero-weight signer is a removed one);
    the master key is always listed, even at weight 0. If a signer entry
    duplicates the master key, the master weight wins.
    """
    weights: Dict[str, int] = {}
    for s in account.signers:
        if s.weight > 0:
            weights[s.key] = s.weight
    weights[account.account_id] = account.thresholds.master
    return weights


def reachable_weight(account: Account) -> int:
    """Total weight if every signer signed; 0 means the account is locked."""
    return sum(signer_weights(account).values())


__all__ = [
    "AuthClass",
    "AccountFlags",
    "Signer",
    "Thresholds",
    "Account",
    "required_weight",
    "signer_weights",
    "reachable_weight",
]
