"""Operation variants.

`Operation` is a closed union of frozen dataclasses, one per kind. Each
variant carries its own payload plus an optional `source` account that
overrides the transaction source for that operation. Authorization class,
structural validation and the canonical payload are pure functions of the
variant, dispatched exhaustively over `OPERATION_TYPES`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .accounts import AccountFlags, AuthClass
from .assets import Asset
from .core import (
    Amount,
    Price,
    InvalidOperation,
    MAX_AMOUNT,
    MAX_SEQUENCE,
    MAX_WEIGHT,
    DATA_NAME_MAX_BYTES,
    DATA_VALUE_MAX_BYTES,
    fmt_amount,
)

# Path payments may name at most this many intermediate assets.
MAX_PATH_LENGTH = 5


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreateAccount:
    destination: str
    starting_balance: Amount
    source: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    destination: str
    asset: Asset
    amount: Amount
    source: Optional[str] = None


@dataclass(frozen=True)
class PathPayment:
    """Cross-asset payment.

    Strict-receive: `dest_amount` fixed, at most `send_max` spent.
    Strict-send: `send_amount` fixed, at least `dest_min` delivered.
    `path` lists intermediate assets only (empty means resolve or direct).
    """

    destination: str
    send_asset: Asset
    dest_asset: Asset
    dest_amount: Optional[Amount] = None
    send_max: Optional[Amount] = None
    send_amount: Optional[Amount] = None
    dest_min: Optional[Amount] = None
    path: Tuple[Asset, ...] = ()
    source: Optional[str] = None

    @classmethod
    def strict_receive(cls, destination, send_asset, send_max, dest_asset, dest_amount, path=(), source=None):
        return cls(destination, send_asset, dest_asset, dest_amount=dest_amount,
                   send_max=send_max, path=tuple(path), source=source)

    @classmethod
    def strict_send(cls, destination, send_asset, send_amount, dest_asset, dest_min, path=(), source=None):
        return cls(destination, send_asset, dest_asset, send_amount=send_amount,
                   dest_min=dest_min, path=tuple(path), source=source)

    @property
    def is_strict_receive(self) -> bool:
        return self.dest_amount is not None

    def credited_amount(self) -> Amount:
        """Least amount the destination is guaranteed to receive."""
        return self.dest_amount if self.is_strict_receive else self.dest_min


@dataclass(frozen=True)
class CreateTrustLine:
    asset: Asset
    limit: Amount = Amount(MAX_AMOUNT)
    source: Optional[str] = None


@dataclass(frozen=True)
class RemoveTrustLine:
    """Trustline change with limit 0; the line's balance must be zero."""

    asset: Asset
    source: Optional[str] = None


@dataclass(frozen=True)
class SetSigner:
    """Add, update (weight > 0) or remove (weight 0) a signer."""

    key: str
    weight: int
    source: Optional[str] = None


@dataclass(frozen=True)
class SetThresholds:
    low: Optional[int] = None
    medium: Optional[int] = None
    high: Optional[int] = None
    master: Optional[int] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class SetFlags:
    set_flags: AccountFlags = AccountFlags.NONE
    clear_flags: AccountFlags = AccountFlags.NONE
    source: Optional[str] = None


@dataclass(frozen=True)
class ManageOffer:
    """Create (offer_id 0), update, or delete (amount 0) a sell offer."""

    selling: Asset
    buying: Asset
    amount: Amount
    price: Price
    offer_id: int = 0
    source: Optional[str] = None


@dataclass(frozen=True)
class ManageData:
    """Set (value given) or clear (value None) an account data entry."""

    name: str
    value: Optional[bytes] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class BumpSequence:
    bump_to: int
    source: Optional[str] = None


Operation = Union[
    CreateAccount,
    Payment,
    PathPayment,
    CreateTrustLine,
    RemoveTrustLine,
    SetSigner,
    SetThresholds,
    SetFlags,
    ManageOffer,
    ManageData,
    BumpSequence,
]

#: Variant -> (wire-style type name, authorization class).
OPERATION_TYPES: Dict[type, Tuple[str, AuthClass]] = {
    CreateAccount: ("create_account", AuthClass.MEDIUM),
    Payment: ("payment", AuthClass.MEDIUM),
    PathPayment: ("path_payment", AuthClass.MEDIUM),
    CreateTrustLine: ("change_trust", AuthClass.MEDIUM),
    RemoveTrustLine: ("change_trust", AuthClass.MEDIUM),
    ManageOffer: ("manage_offer", AuthClass.MEDIUM),
    SetSigner: ("set_options", AuthClass.HIGH),
    SetThresholds: ("set_options", AuthClass.HIGH),
    SetFlags: ("set_options", AuthClass.HIGH),
    ManageData: ("manage_data", AuthClass.LOW),
    BumpSequence: ("bump_sequence", AuthClass.LOW),
}


def _lookup(op: Any) -> Tuple[str, AuthClass]:
    try:
        return OPERATION_TYPES[type(op)]
    except KeyError:
        raise InvalidOperation(f"unsupported operation type: {type(op).__name__}") from None


def auth_class(op: Operation) -> AuthClass:
    """Authorization class the operation's source must satisfy."""
    return _lookup(op)[1]


def operation_source(op: Operation, default: str) -> str:
    """Effective source account: the operation's own, else the transaction's."""
    return op.source if op.source is not None else default


# ---------------------------------------------------------------------------
# Structural validation
# ---------------------------------------------------------------------------

def _positive(name: str, a: Optional[Amount]) -> None:
    if not isinstance(a, Amount):
        raise InvalidOperation(f"{name} must be an Amount, got {a!r}")
    if a.is_zero():
        raise InvalidOperation(f"{name} must be > 0")


def _weight(name: str, w: Optional[int]) -> None:
    if w is None:
        return
    if isinstance(w, bool) or not isinstance(w, int) or not 0 <= w <= MAX_WEIGHT:
        raise InvalidOperation(f"{name} must be in 0..{MAX_WEIGHT}, got {w!r}")


def validate_operation(op: Operation, source: str) -> None:
    """Reject operations that can never be valid, whatever the ledger state.

    `source` is the operation's effective source account.
    """
    _lookup(op)
    if isinstance(op, CreateAccount):
        _positive("starting_balance", op.starting_balance)
        if op.destination == source:
            raise InvalidOperation("account cannot create itself")
    elif isinstance(op, Payment):
        _positive("amount", op.amount)
        if not op.destination:
            raise InvalidOperation("payment destination must be non-empty")
        if op.destination == source:
            raise InvalidOperation("payment to self")
    elif isinstance(op, PathPayment):
        strict_receive = op.dest_amount is not None or op.send_max is not None
        strict_send = op.send_amount is not None or op.dest_min is not None
        if strict_receive == strict_send:
            raise InvalidOperation("path payment must be either strict-receive or strict-send")
        if strict_receive:
            _positive("dest_amount", op.dest_amount)
            _positive("send_max", op.send_max)
        else:
            _positive("send_amount", op.send_amount)
            _positive("dest_min", op.dest_min)
        if len(op.path) > MAX_PATH_LENGTH:
            raise InvalidOperation(f"path longer than {MAX_PATH_LENGTH} assets")
    elif isinstance(op, CreateTrustLine):
        _positive("limit", op.limit)
        if op.asset.is_native:
            raise InvalidOperation("cannot trust the native asset")
        if op.asset.issuer == source:
            raise InvalidOperation("issuer cannot trust its own asset")
    elif isinstance(op, RemoveTrustLine):
        if op.asset.is_native:
            raise InvalidOperation("cannot remove trust in the native asset")
    elif isinstance(op, SetSigner):
        _weight("signer weight", op.weight)
        if not op.key:
            raise InvalidOperation("signer key must be non-empty")
        if op.key == source:
            raise InvalidOperation("use SetThresholds(master=...) to change the master key weight")
    elif isinstance(op, SetThresholds):
        for name in ("low", "medium", "high", "master"):
            _weight(name, getattr(op, name))
        if all(getattr(op, n) is None for n in ("low", "medium", "high", "master")):
            raise InvalidOperation("SetThresholds changes nothing")
    elif isinstance(op, SetFlags):
        if op.set_flags & op.clear_flags:
            raise InvalidOperation("cannot set and clear the same flag")
        if not (op.set_flags or op.clear_flags):
            raise InvalidOperation("SetFlags changes nothing")
    elif isinstance(op, ManageOffer):
        if op.selling == op.buying:
            raise InvalidOperation("offer must trade two different assets")
        if not isinstance(op.amount, Amount):
            raise InvalidOperation("offer amount must be an Amount")
        if op.offer_id < 0:
            raise InvalidOperation("offer id must be >= 0")
        if op.offer_id == 0 and op.amount.is_zero():
            raise InvalidOperation("new offer needs a positive amount")
    elif isinstance(op, ManageData):
        if not op.name or len(op.name.encode("utf-8")) > DATA_NAME_MAX_BYTES:
            raise InvalidOperation(f"data name must be 1..{DATA_NAME_MAX_BYTES} bytes")
        if op.value is not None and len(op.value) > DATA_VALUE_MAX_BYTES:
            raise InvalidOperation(f"data value must be at most {DATA_VALUE_MAX_BYTES} bytes")
    elif isinstance(op, BumpSequence):
        if not 0 <= op.bump_to <= MAX_SEQUENCE:
            raise InvalidOperation(f"bump_to out of range: {op.bump_to}")


# ---------------------------------------------------------------------------
# Canonical payload (signing input; not the network wire format)
# ---------------------------------------------------------------------------

def _amt(a: Optional[Amount]) -> Optional[str]:
    return None if a is None else fmt_amount(a)


def describe(op: Operation) -> Dict[str, Any]:
    """JSON-serialisable description of an operation."""
    name, cls = _lookup(op)
    body: Dict[str, Any] = {"type": name, "auth_class": cls.name.lower()}
    if op.source is not None:
        body["source"] = op.source
    if isinstance(op, CreateAccount):
        body.update(destination=op.destination, starting_balance=_amt(op.starting_balance))
    elif isinstance(op, Payment):
        body.update(destination=op.destination, asset=str(op.asset), amount=_amt(op.amount))
    elif isinstance(op, PathPayment):
        body.update(
            destination=op.destination,
            send_asset=str(op.send_asset),
            dest_asset=str(op.dest_asset),
            path=[str(a) for a in op.path],
        )
        if op.is_strict_receive:
            body.update(mode="strict_receive", dest_amount=_amt(op.dest_amount), send_max=_amt(op.send_max))
        else:
            body.update(mode="strict_send", send_amount=_amt(op.send_amount), dest_min=_amt(op.dest_min))
    elif isinstance(op, CreateTrustLine):
        body.update(asset=str(op.asset), limit=_amt(op.limit))
    elif isinstance(op, RemoveTrustLine):
        body.update(asset=str(op.asset), limit=_amt(Amount(0)))
    elif isinstance(op, SetSigner):
        body.update(signer={"key": op.key, "weight": op.weight})
    elif isinstance(op, SetThresholds):
        body.update({
            f"{n}_threshold" if n != "master" else "master_weight": getattr(op, n)
            for n in ("low", "medium", "high", "master")
            if getattr(op, n) is not None
        })
    elif isinstance(op, SetFlags):
        body.update(set_flags=int(op.set_flags), clear_flags=int(op.clear_flags))
    elif isinstance(op, ManageOffer):
        body.update(
            selling=str(op.selling),
            buying=str(op.buying),
            amount=_amt(op.amount),
            price={"n": op.price.n, "d": op.price.d},
            offer_id=op.offer_id,
        )
    elif isinstance(op, ManageData):
        body.update(name=op.name, value=None if op.value is None else op.value.hex())
    elif isinstance(op, BumpSequence):
        body.update(bump_to=op.bump_to)
    return body


__all__ = [
    "MAX_PATH_LENGTH",
    "CreateAccount",
    "Payment",
    "PathPayment",
    "CreateTrustLine",
    "RemoveTrustLine",
    "SetSigner",
    "SetThresholds",
    "SetFlags",
    "ManageOffer",
    "ManageData",
    "BumpSequence",
    "Operation",
    "OPERATION_TYPES",
    "auth_class",
    "operation_source",
    "validate_operation",
    "describe",
]
