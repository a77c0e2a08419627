"""Transaction builder and submission readiness.

Flow: build (structural validation + staged ledger preconditions) ->
authorize (every referenced source account evaluated separately) ->
prepare (a `ReadyTransaction`, the only value handed to submission).

Building and authorizing are pure functions over the supplied snapshot; a
builder holds no state besides the snapshot and the optional clock reading.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .accounts import Account, AuthClass
from .assets import Asset
from .auth import AuthResult, SignatureSet, authorize
from .core import (
    Amount,
    InvalidOperation,
    MAX_MEMO_ID,
    MAX_OPERATIONS,
    MAX_SEQUENCE,
    MEMO_TEXT_MAX_BYTES,
)
from .operations import (
    BumpSequence,
    CreateAccount,
    CreateTrustLine,
    ManageData,
    ManageOffer,
    Operation,
    PathPayment,
    Payment,
    RemoveTrustLine,
    SetFlags,
    SetSigner,
    SetThresholds,
    auth_class,
    describe,
    operation_source,
    validate_operation,
)
from .pathfind import PathConfig, find_path
from .snapshot import LedgerSandbox, LedgerSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Memo and time bounds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoText:
    text: str

    def __post_init__(self):
        if len(self.text.encode("utf-8")) > MEMO_TEXT_MAX_BYTES:
            raise InvalidOperation(f"memo text longer than {MEMO_TEXT_MAX_BYTES} bytes")


@dataclass(frozen=True)
class MemoId:
    id: int

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or not 0 <= self.id <= MAX_MEMO_ID:
            raise InvalidOperation(f"memo id must be a uint64, got {self.id!r}")


Memo = Union[MemoText, MemoId]


def _epoch(t: Union[int, datetime]) -> int:
    if isinstance(t, datetime):
        if t.tzinfo is None:
            t = t.replace(tzinfo=timezone.utc)
        return int(t.timestamp())
    return t


@dataclass(frozen=True)
class TimeBounds:
    """Half-open validity window [min_time, max_time) in epoch seconds.

    0 leaves that side unbounded.
    """

    min_time: int = 0
    max_time: int = 0

    def __post_init__(self):
        if self.min_time < 0 or self.max_time < 0:
            raise InvalidOperation("time bounds must be >= 0")
        if self.min_time and self.max_time and self.min_time >= self.max_time:
            raise InvalidOperation(
                f"time bounds inverted: min_time {self.min_time} >= max_time {self.max_time}"
            )

    @classmethod
    def between(cls, min_time: Union[int, datetime, None] = None, max_time: Union[int, datetime, None] = None) -> "TimeBounds":
        """Build from epoch seconds or datetimes (naive datetimes are UTC)."""
        return cls(
            0 if min_time is None else _epoch(min_time),
            0 if max_time is None else _epoch(max_time),
        )

    def contains(self, now: int) -> bool:
        if self.min_time and now < self.min_time:
            return False
        if self.max_time and now >= self.max_time:
            return False
        return True

    def expired(self, now: int) -> bool:
        return bool(self.max_time) and now >= self.max_time


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transaction:
    """Abstract transaction value; encoding to the wire format happens elsewhere."""

    source: str
    sequence: int
    operations: Tuple[Operation, ...]
    memo: Optional[Memo] = None
    time_bounds: Optional[TimeBounds] = None

    def required_class(self) -> AuthClass:
        return max(auth_class(op) for op in self.operations)

    def sources(self) -> List[str]:
        """Distinct source accounts, transaction source first."""
        seen = [self.source]
        for op in self.operations:
            s = operation_source(op, self.source)
            if s not in seen:
                seen.append(s)
        return seen

    def class_by_account(self) -> Dict[str, AuthClass]:
        """Highest class each referenced account must authorize.

        The transaction source always needs at least LOW (it pays for and
        sequences the transaction).
        """
        classes: Dict[str, AuthClass] = {self.source: AuthClass.LOW}
        for op in self.operations:
            s = operation_source(op, self.source)
            c = auth_class(op)
            if c > classes.get(s, AuthClass.LOW):
                classes[s] = c
            else:
                classes.setdefault(s, c)
        return classes

    def payload(self) -> Dict[str, Any]:
        """Canonical JSON-serialisable description (signing input)."""
        body: Dict[str, Any] = {
            "source": self.source,
            "sequence": self.sequence,
            "operations": [describe(op) for op in self.operations],
        }
        if isinstance(self.memo, MemoText):
            body["memo"] = {"type": "text", "value": self.memo.text}
        elif isinstance(self.memo, MemoId):
            body["memo"] = {"type": "id", "value": self.memo.id}
        if self.time_bounds is not None:
            body["time_bounds"] = {"min_time": self.time_bounds.min_time, "max_time": self.time_bounds.max_time}
        return body

    def signing_bytes(self) -> bytes:
        return json.dumps(self.payload(), sort_keys=True, separators=(",", ":")).encode("utf-8")

    def hash(self) -> str:
        return hashlib.sha256(self.signing_bytes()).hexdigest()


@dataclass(frozen=True)
class TransactionAuthorization:
    """Per-account authorization results for one transaction."""

    transaction: Transaction
    results: Tuple[AuthResult, ...]

    @property
    def authorized(self) -> bool:
        return all(r.authorized for r in self.results)

    @property
    def failures(self) -> List[AuthResult]:
        return [r for r in self.results if not r.authorized]

    def raise_for_status(self) -> "TransactionAuthorization":
        for r in self.results:
            r.raise_for_status()
        return self


@dataclass(frozen=True)
class ReadyTransaction:
    """An authorized transaction with the signatures that authorize it."""

    transaction: Transaction
    signatures: SignatureSet
    authorization: TransactionAuthorization


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class TransactionBuilder:
    """Compose, validate and authorize transactions against a snapshot.

    `now` (epoch seconds) enables time-window checks; without it the
    builder never looks at a clock.
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        *,
        now: Optional[int] = None,
        path_config: PathConfig = PathConfig(),
    ):
        self.snapshot = snapshot
        self.now = now
        self.path_config = path_config

    # ------------- build -------------

    def build(
        self,
        source_account: Union[Account, str],
        operations: Iterable[Operation],
        *,
        memo_text: Optional[str] = None,
        memo_id: Optional[int] = None,
        time_bounds: Union[TimeBounds, Tuple[int, int], None] = None,
    ) -> Transaction:
        """Validate and assemble a transaction with sequence = current + 1.

        `time_bounds` may be a TimeBounds or a (min_time, max_time) pair.
        """
        account = self.snapshot.account(source_account) if isinstance(source_account, str) else source_account
        ops = tuple(operations)
        if not ops:
            raise InvalidOperation("transaction needs at least one operation")
        if len(ops) > MAX_OPERATIONS:
            raise InvalidOperation(f"transaction has more than {MAX_OPERATIONS} operations")

        if memo_text is not None and memo_id is not None:
            raise InvalidOperation("memo text and memo id are mutually exclusive")
        memo: Optional[Memo] = None
        if memo_text is not None:
            memo = MemoText(memo_text)
        elif memo_id is not None:
            memo = MemoId(memo_id)

        if time_bounds is not None and not isinstance(time_bounds, TimeBounds):
            time_bounds = TimeBounds.between(*time_bounds)

        if time_bounds is not None and self.now is not None and time_bounds.expired(self.now):
            raise InvalidOperation(f"time bounds closed at {time_bounds.max_time}, now {self.now}")

        if account.sequence >= MAX_SEQUENCE:
            raise InvalidOperation(f"account {account.account_id} sequence exhausted")

        sandbox = LedgerSandbox(self.snapshot)
        for i, op in enumerate(ops):
            src = operation_source(op, account.account_id)
            validate_operation(op, src)
            self._stage(sandbox, op, src)
            logger.debug("build %s op[%d] %s ok", account.account_id, i, type(op).__name__)

        tx = Transaction(
            source=account.account_id,
            sequence=account.sequence + 1,
            operations=ops,
            memo=memo,
            time_bounds=time_bounds,
        )
        logger.debug("built tx %s seq=%d ops=%d class=%s", tx.source, tx.sequence, len(ops), tx.required_class().name)
        return tx

    def _stage(self, sandbox: LedgerSandbox, op: Operation, src: str) -> None:
        """Apply the locally known ledger preconditions of one operation."""
        if isinstance(op, CreateAccount):
            sandbox.create_account(op.destination)
            if sandbox.snapshot.has_account(src):
                reserve = sandbox.snapshot.account(src).base_reserve
                if op.starting_balance.value < 2 * reserve.value:
                    raise InvalidOperation(
                        f"starting balance {op.starting_balance} below minimum {Amount(2 * reserve.value)}"
                    )
        elif isinstance(op, Payment):
            sandbox.debit(src, op.asset, op.amount)
            sandbox.credit(op.destination, op.asset, op.amount)
        elif isinstance(op, PathPayment):
            sandbox.credit(op.destination, op.dest_asset, op.credited_amount())
        elif isinstance(op, CreateTrustLine):
            sandbox.change_trust(src, op.asset, op.limit)
        elif isinstance(op, RemoveTrustLine):
            sandbox.remove_trust(src, op.asset)
        elif isinstance(op, ManageOffer):
            if op.offer_id:
                existing = self.snapshot.order_book.get(op.offer_id)
                if existing is not None and existing.seller != src:
                    raise InvalidOperation(f"offer {op.offer_id} belongs to {existing.seller}")
        elif isinstance(op, ManageData):
            sandbox.set_data(src, op.name, op.value)
        elif isinstance(op, (SetSigner, SetThresholds, SetFlags, BumpSequence)):
            # signer/threshold changes apply after this transaction is authorized
            return
        else:
            raise InvalidOperation(f"unsupported operation type: {type(op).__name__}")

    def project(self, tx: Transaction) -> LedgerSnapshot:
        """Snapshot as it would look after `tx` succeeds (trustlines and data)."""
        sandbox = LedgerSandbox(self.snapshot)
        for op in tx.operations:
            self._stage(sandbox, op, operation_source(op, tx.source))
        return sandbox.project()

    # ------------- path payments -------------

    def path_payment(
        self,
        destination: str,
        send_asset: Asset,
        dest_asset: Asset,
        *,
        dest_amount: Optional[Amount] = None,
        max_send: Optional[Amount] = None,
        send_amount: Optional[Amount] = None,
        min_receive: Optional[Amount] = None,
        path: Optional[Sequence[Asset]] = None,
        source: Optional[str] = None,
    ) -> PathPayment:
        """Resolve a path against the snapshot book and return the operation.

        Raises NoPathFound / ExceedsBound / HopLimitExceeded from the
        resolver. The operation's bound is the caller's bound, so a book that
        moves before submission cannot push the payment past it.
        """
        resolved = find_path(
            self.snapshot.order_book,
            send_asset,
            dest_asset,
            send_amount=send_amount,
            dest_amount=dest_amount,
            max_send=max_send,
            min_receive=min_receive,
            path=path,
            config=self.path_config,
        )
        if dest_amount is not None:
            bound = max_send if max_send is not None else resolved.send_amount
            return PathPayment.strict_receive(destination, send_asset, bound, dest_asset, dest_amount,
                                              path=resolved.path, source=source)
        bound = min_receive if min_receive is not None else resolved.dest_amount
        return PathPayment.strict_send(destination, send_asset, send_amount, dest_asset, bound,
                                       path=resolved.path, source=source)

    # ------------- authorize -------------

    def authorize(self, tx: Transaction, signatures: Iterable[str]) -> TransactionAuthorization:
        """Evaluate every referenced source account independently."""
        sigs = list(signatures)
        results = []
        for account_id, cls in tx.class_by_account().items():
            account = self.snapshot.account(account_id)
            results.append(authorize(account, cls, sigs))
        auth = TransactionAuthorization(tx, tuple(results))
        if not auth.authorized:
            logger.debug(
                "tx %s seq=%d not authorized: %s",
                tx.source, tx.sequence,
                ", ".join(f"{r.account_id} {r.have}/{r.need}" for r in auth.failures),
            )
        return auth

    def prepare(self, tx: Transaction, signatures: SignatureSet) -> ReadyTransaction:
        """Authorize and check the time window; only the result may be submitted."""
        if self.now is not None and tx.time_bounds is not None and not tx.time_bounds.contains(self.now):
            raise InvalidOperation(
                f"now {self.now} outside time bounds [{tx.time_bounds.min_time}, {tx.time_bounds.max_time})"
            )
        auth = self.authorize(tx, signatures).raise_for_status()
        return ReadyTransaction(tx, signatures, auth)


__all__ = [
    "MemoText",
    "MemoId",
    "Memo",
    "TimeBounds",
    "Transaction",
    "TransactionAuthorization",
    "ReadyTransaction",
    "TransactionBuilder",
]
