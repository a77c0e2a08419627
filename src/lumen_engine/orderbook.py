"""Order book: resting offers per asset pair, price-time priority.

Offers are keyed by the unordered asset pair and partitioned by direction
(selling A for B vs. selling B for A). Within a partition the matching
priority is best (lowest) price first, earlier creation first on ties.

Price convention follows the ledger: an offer's price is units of its
buying asset per unit of its selling asset. A taker that wants `get` and
pays with `pay` consumes offers selling `get` for `pay`, so the maker's
price is what the taker pays per unit received.

Rounding always favours the resting offer: the taker receives floor and
pays ceiling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .assets import Asset
from .core import (
    Amount,
    Price,
    apply_price_limit,
    crosses,
    sort_by_priority,
    InvalidOperation,
    InvariantViolation,
)
from .core.amounts import _floor_div

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Offer:
    """A resting sell offer: `amount` of `selling` at `price` buying-per-selling."""

    offer_id: int
    seller: str
    selling: Asset
    buying: Asset
    amount: Amount
    price: Price
    created: Optional[int] = None

    @property
    def pair(self) -> FrozenSet[Asset]:
        return frozenset((self.selling, self.buying))


@dataclass(frozen=True)
class Trade:
    """One fill against a resting offer, seen from the maker.

    The maker gave `sold` of `sold_asset` and received `bought` of
    `bought_asset`.
    """

    offer_id: int
    seller: str
    sold_asset: Asset
    sold: Amount
    bought_asset: Asset
    bought: Amount


@dataclass
class MatchResult:
    """Outcome of crossing a taker offer against the book.

    `sold` is what the taker paid, `bought` what it received; `resting` is
    the remainder inserted into the book (None when filled or IOC).
    """

    sold: Amount
    bought: Amount
    trades: List[Trade] = field(default_factory=list)
    resting: Optional[Offer] = None

    @property
    def filled_amount(self) -> Amount:
        return self.bought

    def is_empty(self) -> bool:
        return not self.trades


def _cost(take: Amount, price: Price) -> Amount:
    """What a taker pays for `take` units at `price` (rounded up)."""
    return take.mul_ratio_up(price.as_fraction())


def _affordable(budget: Amount, price: Price) -> Amount:
    """Most units purchasable with `budget` at `price` (rounded down)."""
    f = price.as_fraction()
    return Amount(_floor_div(budget.value * f.denominator, f.numerator))


class OrderBook:
    """Point-in-time collection of resting offers.

    A book is plain data owned by its caller. Quotes never mutate it;
    `match`, `add` and `remove` do, so simulate on `copy()` when the
    snapshot must stay intact.
    """

    def __init__(self, offers: Iterable[Offer] = ()):
        self._pairs: Dict[FrozenSet[Asset], Dict[Tuple[Asset, Asset], List[Offer]]] = {}
        self._index: Dict[int, Offer] = {}
        self._next_created = 0
        self._next_id = 1
        for o in offers:
            self.add(o)

    # ------------- bookkeeping -------------

    def _partition(self, selling: Asset, buying: Asset, *, create: bool = False) -> Optional[List[Offer]]:
        sides = self._pairs.get(frozenset((selling, buying)))
        if sides is None:
            if not create:
                return None
            sides = self._pairs.setdefault(frozenset((selling, buying)), {})
        part = sides.get((selling, buying))
        if part is None and create:
            part = sides.setdefault((selling, buying), [])
        return part

    def _resort(self, part: List[Offer]) -> None:
        part[:] = sort_by_priority(part, get_price=lambda o: o.price, get_created=lambda o: o.created)

    def add(self, offer: Offer) -> Offer:
        """Insert a resting offer; assigns creation order when missing."""
        if offer.selling == offer.buying:
            raise InvalidOperation("offer must trade two different assets")
        if offer.amount.is_zero():
            raise InvalidOperation(f"offer {offer.offer_id}: resting amount must be > 0")
        if offer.offer_id in self._index:
            raise InvalidOperation(f"duplicate offer id {offer.offer_id}")
        if offer.created is None:
            offer = replace(offer, created=self._next_created)
        self._next_created = max(self._next_created, offer.created + 1)
        self._next_id = max(self._next_id, offer.offer_id + 1)
        part = self._partition(offer.selling, offer.buying, create=True)
        part.append(offer)
        self._resort(part)
        self._index[offer.offer_id] = offer
        return offer

    def remove(self, offer_id: int) -> Optional[Offer]:
        offer = self._index.pop(offer_id, None)
        if offer is None:
            return None
        part = self._partition(offer.selling, offer.buying)
        part[:] = [o for o in part if o.offer_id != offer_id]
        return offer

    def _replace(self, offer: Offer) -> None:
        part = self._partition(offer.selling, offer.buying)
        part[:] = [offer if o.offer_id == offer.offer_id else o for o in part]
        self._index[offer.offer_id] = offer

    def next_offer_id(self) -> int:
        return self._next_id

    def copy(self) -> "OrderBook":
        clone = OrderBook()
        for sides in self._pairs.values():
            for (selling, buying), part in sides.items():
                clone._pairs.setdefault(frozenset((selling, buying)), {})[(selling, buying)] = list(part)
        clone._index = dict(self._index)
        clone._next_created = self._next_created
        clone._next_id = self._next_id
        return clone

    # ------------- queries -------------

    def get(self, offer_id: int) -> Optional[Offer]:
        return self._index.get(offer_id)

    def offers(self, selling: Asset, buying: Asset, limit: Optional[Price] = None) -> List[Offer]:
        """Resting offers selling `selling` for `buying`, best price first.

        `limit` drops offers priced worse (higher) than it.
        """
        part = self._partition(selling, buying)
        if not part:
            return []
        for o in part:
            if o.amount.is_zero():
                raise InvariantViolation(f"offer {o.offer_id} resting with non-positive amount")
        return apply_price_limit(part, limit=limit, get_price=lambda o: o.price)

    def best(self, selling: Asset, buying: Asset) -> Optional[Offer]:
        lst = self.offers(selling, buying)
        return lst[0] if lst else None

    def has_liquidity(self, selling: Asset, buying: Asset) -> bool:
        return bool(self._partition(selling, buying))

    def offers_by_seller(self, seller: str) -> List[Offer]:
        return sorted((o for o in self._index.values() if o.seller == seller), key=lambda o: o.offer_id)

    def depth(self, selling: Asset, buying: Asset, limit: Optional[int] = None) -> List[Tuple[Price, Amount]]:
        """Aggregate the partition into (price, total amount) levels."""
        levels: List[Tuple[Price, Amount]] = []
        for o in self.offers(selling, buying):
            if levels and levels[-1][0] == o.price:
                levels[-1] = (levels[-1][0], levels[-1][1] + o.amount)
            else:
                if limit is not None and len(levels) >= limit:
                    break
                levels.append((o.price, o.amount))
        return levels

    def pairs(self) -> List[Tuple[Asset, Asset]]:
        """Directions (selling, buying) that currently hold offers."""
        out = []
        for sides in self._pairs.values():
            for key, part in sides.items():
                if part:
                    out.append(key)
        return sorted(out, key=lambda k: (k[0].sort_key(), k[1].sort_key()))

    def neighbours(self, pay: Asset) -> List[Asset]:
        """Assets obtainable by paying with `pay` (offers buying `pay`)."""
        return sorted(
            {selling for selling, buying in self.pairs() if buying == pay},
            key=Asset.sort_key,
        )

    def __len__(self) -> int:
        return len(self._index)

    # ------------- pricing (non-mutating) -------------

    def quote_send(self, pay: Asset, get: Asset, send: Amount) -> Tuple[Amount, Amount]:
        """Spend up to `send` of `pay` for `get`; return (spent, received)."""
        remaining = send
        spent = Amount(0)
        received = Amount(0)
        for o in self.offers(get, pay):
            if remaining.is_zero():
                break
            take = o.amount.min(_affordable(remaining, o.price))
            if take.is_zero():
                break
            cost = _cost(take, o.price)
            spent = spent + cost
            received = received + take
            remaining = remaining - cost
        return spent, received

    def quote_receive(self, pay: Asset, get: Asset, receive: Amount) -> Optional[Amount]:
        """Cost in `pay` to obtain exactly `receive` of `get`, None if too thin."""
        remaining = receive
        cost = Amount(0)
        for o in self.offers(get, pay):
            if remaining.is_zero():
                break
            take = o.amount.min(remaining)
            cost = cost + _cost(take, o.price)
            remaining = remaining - take
        if not remaining.is_zero():
            return None
        return cost

    # ------------- matching (mutating) -------------

    def match(
        self,
        taker: Offer,
        *,
        max_receive: Optional[Amount] = None,
        immediate_or_cancel: bool = False,
    ) -> MatchResult:
        """Cross `taker` against resting offers (continuous double auction).

        Consumes offers selling `taker.buying` for `taker.selling` in
        priority order while their price is at least as good as the taker's
        limit. `max_receive` caps what the taker buys. Any unsold remainder
        of a non-IOC taker rests in the book at the taker's price.
        """
        if taker.selling == taker.buying:
            raise InvalidOperation("offer must trade two different assets")
        remaining = taker.amount
        bought = Amount(0)
        trades: List[Trade] = []

        for maker in self.offers(taker.buying, taker.selling):
            if remaining.is_zero():
                break
            if max_receive is not None and bought >= max_receive:
                break
            if not crosses(maker.price, taker.price):
                break
            take = maker.amount.min(_affordable(remaining, maker.price))
            if max_receive is not None:
                take = take.min(max_receive - bought)
            if take.is_zero():
                break
            cost = _cost(take, maker.price)
            left = maker.amount - take
            if left.is_zero():
                self.remove(maker.offer_id)
            else:
                self._replace(replace(maker, amount=left))
            trades.append(Trade(maker.offer_id, maker.seller, maker.selling, take, maker.buying, cost))
            bought = bought + take
            remaining = remaining - cost
            logger.debug("match: offer %d filled %d at %s (left %d)", maker.offer_id, take.value, maker.price, left.value)

        resting: Optional[Offer] = None
        filled = max_receive is not None and bought >= max_receive
        if not remaining.is_zero() and not immediate_or_cancel and not filled:
            offer_id = taker.offer_id if taker.offer_id > 0 and taker.offer_id not in self._index else self._next_id
            resting = self.add(replace(taker, offer_id=offer_id, amount=remaining, created=None))
            logger.debug("match: remainder %d rests as offer %d", remaining.value, resting.offer_id)

        return MatchResult(sold=taker.amount - remaining, bought=bought, trades=trades, resting=resting)


__all__ = [
    "Offer",
    "Trade",
    "MatchResult",
    "OrderBook",
]
