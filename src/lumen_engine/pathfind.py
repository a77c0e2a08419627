"""Path resolver: convert a payment in one asset into another via the book.

Two modes, mirroring the two path payment kinds:

- strict-receive: the delivered amount is fixed; the resolver minimises the
  cost and fails if it would exceed `max_send`.
- strict-send: the spent amount is fixed; the resolver maximises the output
  and fails if it would fall below `min_receive`.

With an explicit path the hops are fixed and only priced. Otherwise a
breadth-first search over simple paths (no asset visited twice) enumerates
candidates up to `PathConfig.max_hops` conversions; every candidate is
priced against the same snapshot and the best one wins, ties going to fewer
hops and then to discovery order. Neighbours are visited in canonical asset
order, so repeated calls on an unchanged book return identical paths.

Hops of a route never repeat a direction (selling, buying), so pricing them
one after another against the untouched book is exact. Searched routes are
simple; an explicit route that repeats a direction is rejected.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence, Tuple

from .assets import Asset
from .core import (
    Amount,
    DEFAULT_MAX_HOPS,
    DEFAULT_MAX_PATHS,
    ExceedsBound,
    HopLimitExceeded,
    InvalidOperation,
    NoPathFound,
)
from .orderbook import OrderBook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathConfig:
    """Path search configuration.

    max_hops: conversions allowed between source and destination asset.
    max_paths: candidate paths priced before the search stops early.
    """
    max_hops: int = DEFAULT_MAX_HOPS
    max_paths: int = DEFAULT_MAX_PATHS

    def __post_init__(self):
        if self.max_hops < 1:
            raise InvalidOperation("max_hops must be >= 1")
        if self.max_paths < 1:
            raise InvalidOperation("max_paths must be >= 1")


@dataclass(frozen=True)
class Path:
    """A priced conversion route.

    `path` holds the intermediate assets only; `send_amount` is what the
    sender pays in `source_asset`, `dest_amount` what arrives in
    `dest_asset`.
    """

    source_asset: Asset
    dest_asset: Asset
    path: Tuple[Asset, ...]
    send_amount: Amount
    dest_amount: Amount

    @property
    def assets(self) -> Tuple[Asset, ...]:
        return _collapse((self.source_asset,) + self.path + (self.dest_asset,))

    @property
    def hops(self) -> int:
        return len(self.assets) - 1


# ---------------------------------------------------------------------------
# Pricing a fixed route
# ---------------------------------------------------------------------------

def _collapse(route: Sequence[Asset]) -> Tuple[Asset, ...]:
    """Drop consecutive repeats (same-asset hops are no-ops)."""
    out: List[Asset] = []
    for a in route:
        if not out or out[-1] != a:
            out.append(a)
    return tuple(out)


def _price_receive(book: OrderBook, route: Sequence[Asset], dest_amount: Amount) -> Optional[Amount]:
    """Cost in route[0] to deliver `dest_amount` of route[-1], None if too thin."""
    need = dest_amount
    for i in range(len(route) - 1, 0, -1):
        cost = book.quote_receive(pay=route[i - 1], get=route[i], receive=need)
        if cost is None or cost.is_zero():
            return None
        need = cost
    return need


def _price_send(book: OrderBook, route: Sequence[Asset], send_amount: Amount) -> Optional[Amount]:
    """Output in route[-1] for spending `send_amount` of route[0], None if nothing arrives."""
    have = send_amount
    for i in range(1, len(route)):
        _, received = book.quote_send(pay=route[i - 1], get=route[i], send=have)
        if received.is_zero():
            return None
        have = received
    return have


def _price(book: OrderBook, route: Sequence[Asset], send_amount: Optional[Amount], dest_amount: Optional[Amount]) -> Optional[Path]:
    if dest_amount is not None:
        cost = _price_receive(book, route, dest_amount)
        if cost is None:
            return None
        return Path(route[0], route[-1], tuple(route[1:-1]), cost, dest_amount)
    out = _price_send(book, route, send_amount)
    if out is None:
        return None
    return Path(route[0], route[-1], tuple(route[1:-1]), send_amount, out)


def _better(cand: Path, best: Optional[Path], strict_receive: bool) -> bool:
    if best is None:
        return True
    if strict_receive:
        if cand.send_amount != best.send_amount:
            return cand.send_amount < best.send_amount
    elif cand.dest_amount != best.dest_amount:
        return cand.dest_amount > best.dest_amount
    return cand.hops < best.hops


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def enumerate_routes(
    book: OrderBook,
    source: Asset,
    dest: Asset,
    config: PathConfig = PathConfig(),
) -> Tuple[List[Tuple[Asset, ...]], bool]:
    """Breadth-first enumeration of simple routes from `source` to `dest`.

    Returns (routes, truncated); `truncated` is True when some partial route
    could only have been extended past `config.max_hops`.
    """
    routes: List[Tuple[Asset, ...]] = []
    truncated = False
    queue: Deque[Tuple[Asset, ...]] = deque([(source,)])
    while queue:
        route = queue.popleft()
        for nxt in book.neighbours(route[-1]):
            if nxt in route:
                continue
            cand = route + (nxt,)
            if nxt == dest:
                routes.append(cand)
                if len(routes) >= config.max_paths:
                    return routes, True
                continue
            if len(cand) - 1 >= config.max_hops:
                truncated = True
                continue
            queue.append(cand)
    return routes, truncated


def _check_bound(best: Path, strict_receive: bool, max_send: Optional[Amount], min_receive: Optional[Amount]) -> Path:
    if strict_receive:
        if max_send is not None and best.send_amount > max_send:
            raise ExceedsBound(best.send_amount, max_send, path=best)
    elif min_receive is not None and best.dest_amount < min_receive:
        raise ExceedsBound(best.dest_amount, min_receive, path=best)
    return best


def find_path(
    book: OrderBook,
    source_asset: Asset,
    dest_asset: Asset,
    *,
    send_amount: Optional[Amount] = None,
    dest_amount: Optional[Amount] = None,
    max_send: Optional[Amount] = None,
    min_receive: Optional[Amount] = None,
    path: Optional[Sequence[Asset]] = None,
    config: PathConfig = PathConfig(),
) -> Path:
    """Resolve the best conversion route honouring the slippage bound.

    Exactly one of `send_amount` (strict-send, bound `min_receive`) or
    `dest_amount` (strict-receive, bound `max_send`) must be given. The
    book is only read.
    """
    if (send_amount is None) == (dest_amount is None):
        raise InvalidOperation("exactly one of send_amount or dest_amount is required")
    strict_receive = dest_amount is not None
    fixed = dest_amount if strict_receive else send_amount
    if fixed.is_zero():
        raise InvalidOperation("path amount must be > 0")

    # Explicit path: validate and price the fixed hops only.
    if path is not None:
        route = _collapse((source_asset,) + tuple(path) + (dest_asset,))
        hops = list(zip(route, route[1:]))
        if len(set(hops)) != len(hops):
            raise InvalidOperation("explicit path converts the same pair in the same direction twice")
        for pay, get in hops:
            if not book.has_liquidity(selling=get, buying=pay):
                raise NoPathFound(source_asset, dest_asset, reason=f"empty book {pay} -> {get}")
        priced = _price(book, route, send_amount, dest_amount)
        if priced is None:
            raise NoPathFound(source_asset, dest_asset, reason="insufficient liquidity on explicit path")
        logger.debug("find_path explicit %s send=%d dest=%d", [str(a) for a in route], priced.send_amount.value, priced.dest_amount.value)
        return _check_bound(priced, strict_receive, max_send, min_receive)

    if source_asset == dest_asset:
        direct = Path(source_asset, dest_asset, (), fixed, fixed)
        return _check_bound(direct, strict_receive, max_send, min_receive)

    routes, truncated = enumerate_routes(book, source_asset, dest_asset, config)
    best: Optional[Path] = None
    for route in routes:
        priced = _price(book, route, send_amount, dest_amount)
        if priced is None:
            continue
        if _better(priced, best, strict_receive):
            best = priced

    if best is None:
        if not routes and truncated:
            raise HopLimitExceeded(source_asset, dest_asset, config.max_hops)
        reason = "insufficient liquidity" if routes else "no path"
        raise NoPathFound(source_asset, dest_asset, reason=reason)

    logger.debug(
        "find_path %s -> %s: %d candidates, best %s send=%d dest=%d",
        source_asset, dest_asset, len(routes), [str(a) for a in best.assets],
        best.send_amount.value, best.dest_amount.value,
    )
    return _check_bound(best, strict_receive, max_send, min_receive)


__all__ = [
    "PathConfig",
    "Path",
    "enumerate_routes",
    "find_path",
]
