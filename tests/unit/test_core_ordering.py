from collections import namedtuple

from lumen_engine.core import Price, apply_price_limit, prepare_and_order, sort_by_priority

Item = namedtuple("Item", "name price created")


def _items():
    return [
        Item("late-cheap", Price(1, 1), 5),
        Item("expensive", Price(2, 1), 0),
        Item("early-cheap", Price(2, 2), 1),
        Item("mid", Price(3, 2), 2),
    ]


def test_sort_by_price_then_time():
    out = sort_by_priority(_items(), get_price=lambda x: x.price, get_created=lambda x: x.created)
    print("[priority]", [x.name for x in out])
    assert [x.name for x in out] == ["early-cheap", "late-cheap", "mid", "expensive"]


def test_price_limit_keeps_equal_and_better():
    out = apply_price_limit(_items(), limit=Price(3, 2), get_price=lambda x: x.price)
    assert {x.name for x in out} == {"late-cheap", "early-cheap", "mid"}


def test_no_limit_keeps_everything():
    assert len(apply_price_limit(_items(), limit=None, get_price=lambda x: x.price)) == 4


def test_prepare_and_order():
    out = prepare_and_order(
        _items(), limit=Price(1, 1), get_price=lambda x: x.price, get_created=lambda x: x.created
    )
    assert [x.name for x in out] == ["early-cheap", "late-cheap"]
