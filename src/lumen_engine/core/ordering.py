"""
Ordering utilities (price-time priority and limit filters).

Key behaviours:
- Sort by price ascending (lower is better for the taker), ties broken by
  creation order (earlier wins). Python's sort is stable, so equal keys also
  keep their insertion order.
- Apply a price limit: drop items strictly worse (higher) than the limit.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, TypeVar

from .price import Price

T = TypeVar("T")


def apply_price_limit(
    items: Iterable[T],
    *,
    limit: Optional[Price],
    get_price: Callable[[T], Price],
) -> List[T]:
    """Filter out items strictly worse than `limit`.

    Lower is better. Keep `item` iff `get_price(item) <= limit`.
    If `limit` is None, return all items as list.
    """
    if limit is None:
        return list(items)
    bound = limit.as_fraction()
    return [x for x in items if get_price(x).as_fraction() <= bound]


def sort_by_priority(
    items: Iterable[T],
    *,
    get_price: Callable[[T], Price],
    get_created: Callable[[T], int],
) -> List[T]:
    """Price-time priority: best (lowest) price first, then earliest created."""
    return sorted(items, key=lambda x: (get_price(x).as_fraction(), get_created(x)))


def prepare_and_order(
    items: Iterable[T],
    *,
    limit: Optional[Price],
    get_price: Callable[[T], Price],
    get_created: Callable[[T], int],
) -> List[T]:
    """Apply the price limit, then sort by price-time priority."""
    filtered = apply_price_limit(items, limit=limit, get_price=get_price)
    return sort_by_priority(filtered, get_price=get_price, get_created=get_created)


__all__ = [
    "apply_price_limit",
    "sort_by_priority",
    "prepare_and_order",
]
