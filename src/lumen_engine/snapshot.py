"""Ledger snapshot and staged trustline view.

A `LedgerSnapshot` is the read-only, point-in-time ledger state a caller
hands to the engine: accounts, trustlines and the order book. The engine
never mutates it. `LedgerSandbox` stages the effects of a transaction's
operations on top of a snapshot (later operations see earlier ones) and can
project them into a new snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .accounts import Account
from .assets import Asset, TrustLine, is_issuer
from .core import Amount, InvalidOperation, TrustLineCapacityExceeded
from .orderbook import Offer, OrderBook

TrustKey = Tuple[str, Asset]


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable view of the ledger state relevant to one request.

    Trustlines are only considered *known* for holders whose account is in
    the snapshot; for anyone else the engine defers to the ledger.
    """

    accounts: Mapping[str, Account] = field(default_factory=dict)
    trustlines: Mapping[TrustKey, TrustLine] = field(default_factory=dict)
    order_book: OrderBook = field(default_factory=OrderBook)

    @classmethod
    def of(
        cls,
        accounts: Iterable[Account] = (),
        trustlines: Iterable[TrustLine] = (),
        offers: Iterable[Offer] = (),
    ) -> "LedgerSnapshot":
        return cls(
            accounts={a.account_id: a for a in accounts},
            trustlines={(t.holder, t.asset): t for t in trustlines},
            order_book=OrderBook(offers),
        )

    def has_account(self, account_id: str) -> bool:
        return account_id in self.accounts

    def account(self, account_id: str) -> Account:
        try:
            return self.accounts[account_id]
        except KeyError:
            raise InvalidOperation(f"account {account_id} not in snapshot") from None

    def trustline(self, holder: str, asset: Asset) -> Optional[TrustLine]:
        return self.trustlines.get((holder, asset))

    def trustlines_of(self, holder: str) -> List[TrustLine]:
        return [t for (h, _), t in self.trustlines.items() if h == holder]


class LedgerSandbox:
    """Stage trustline/account effects between operations of one transaction.

    Reads fall through to the snapshot; writes stay local. Nothing is shared
    between sandboxes.
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot
        self._lines: Dict[TrustKey, Optional[TrustLine]] = {}
        self._created: Set[str] = set()
        self._data: Dict[Tuple[str, str], Optional[bytes]] = {}

    # ------------- accounts -------------

    def knows(self, account_id: str) -> bool:
        return self.snapshot.has_account(account_id) or account_id in self._created

    def create_account(self, account_id: str) -> None:
        if self.knows(account_id):
            raise InvalidOperation(f"account {account_id} already exists")
        self._created.add(account_id)

    # ------------- data entries -------------

    def data(self, account_id: str, name: str) -> Optional[bytes]:
        if (account_id, name) in self._data:
            return self._data[(account_id, name)]
        if self.snapshot.has_account(account_id):
            return self.snapshot.account(account_id).data.get(name)
        return None

    def set_data(self, account_id: str, name: str, value: Optional[bytes]) -> None:
        if value is None and self.snapshot.has_account(account_id) and self.data(account_id, name) is None:
            raise InvalidOperation(f"account {account_id} has no data entry {name!r}")
        self._data[(account_id, name)] = value

    # ------------- trustlines -------------

    def trustline(self, holder: str, asset: Asset) -> Optional[TrustLine]:
        key = (holder, asset)
        if key in self._lines:
            return self._lines[key]
        return self.snapshot.trustline(holder, asset)

    def change_trust(self, holder: str, asset: Asset, limit: Amount) -> None:
        line = self.trustline(holder, asset)
        if line is None:
            self._lines[(holder, asset)] = TrustLine(holder, asset, limit)
        else:
            self._lines[(holder, asset)] = line.with_limit(limit)

    def remove_trust(self, holder: str, asset: Asset) -> None:
        line = self.trustline(holder, asset)
        if line is not None and not line.balance.is_zero():
            raise InvalidOperation(
                f"trustline {holder}/{asset} still holds {line.balance.value}; balance must be zero to remove"
            )
        self._lines[(holder, asset)] = None

    def _tracks(self, holder: str, asset: Asset) -> bool:
        """Whether the line is checked: a known holder, or one staged in this sandbox."""
        return self.knows(holder) or (holder, asset) in self._lines

    def credit(self, holder: str, asset: Asset, amount: Amount) -> None:
        """Receive `amount`; enforces remaining capacity when the holder is tracked."""
        if asset.is_native or is_issuer(holder, asset) or not self._tracks(holder, asset):
            return
        line = self.trustline(holder, asset)
        if line is None:
            raise TrustLineCapacityExceeded(holder, asset, amount.value, 0)
        self._lines[(holder, asset)] = line.credit(amount)

    def debit(self, holder: str, asset: Asset, amount: Amount) -> None:
        """Send `amount`; enforces the known balance."""
        if asset.is_native or is_issuer(holder, asset) or not self._tracks(holder, asset):
            return
        line = self.trustline(holder, asset)
        if line is None:
            raise InvalidOperation(f"account {holder} holds no {asset}")
        self._lines[(holder, asset)] = line.debit(amount)

    # ------------- projection -------------

    def project(self) -> LedgerSnapshot:
        """New snapshot with the staged trustline and data changes applied."""
        lines = dict(self.snapshot.trustlines)
        for key, line in self._lines.items():
            if line is None:
                lines.pop(key, None)
            else:
                lines[key] = line
        accounts = dict(self.snapshot.accounts)
        touched = {acct for acct, _ in self._data}
        for acct in touched:
            if acct not in accounts:
                continue
            data = dict(accounts[acct].data)
            for (a, name), value in self._data.items():
                if a != acct:
                    continue
                if value is None:
                    data.pop(name, None)
                else:
                    data[name] = value
            accounts[acct] = replace(accounts[acct], data=data)
        return LedgerSnapshot(accounts=accounts, trustlines=lines, order_book=self.snapshot.order_book)


__all__ = [
    "TrustKey",
    "LedgerSnapshot",
    "LedgerSandbox",
]
