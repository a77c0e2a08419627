from decimal import Decimal
from fractions import Fraction

import pytest

from lumen_engine.core.amounts import (
    Amount,
    units_from_stroops,
    stroops_from_units_in,
    stroops_from_units_out,
)
from lumen_engine.core.constants import MAX_AMOUNT, STROOPS_PER_UNIT
from lumen_engine.core.exc import AmountDomainError, InvalidOperation, InvariantViolation


# -----------------------------
# Domain checks
# -----------------------------

@pytest.mark.parametrize(
    "value,name",
    [
        (-1, "negative"),
        (MAX_AMOUNT + 1, "above int64"),
        (True, "bool"),
        (1.5, "float"),
    ],
)
def test_amount_rejects_out_of_domain(value, name):
    print(f"[amount-domain] {name}: Amount({value!r}) -> expect AmountDomainError")
    with pytest.raises(AmountDomainError):
        Amount(value)


def test_amount_domain_error_is_invalid_operation():
    with pytest.raises(InvalidOperation):
        Amount(-5)


def test_amount_bounds_accepted():
    assert Amount(0).is_zero()
    assert Amount(MAX_AMOUNT).value == MAX_AMOUNT


# -----------------------------
# Arithmetic
# -----------------------------

def test_add_sub_min():
    a, b = Amount(7), Amount(5)
    assert a + b == Amount(12)
    assert a - b == Amount(2)
    assert a.min(b) == b
    assert b.min(a) == b


def test_subtraction_underflow_is_invariant_violation():
    print("[amount-underflow] 5 - 6 stroops -> expect InvariantViolation")
    with pytest.raises(InvariantViolation):
        Amount(5) - Amount(6)


def test_addition_overflow_rejected():
    with pytest.raises(AmountDomainError):
        Amount(MAX_AMOUNT) + Amount(1)


def test_mixed_operand_rejected():
    with pytest.raises(AmountDomainError):
        Amount(1) + 1


def test_ratio_rounding_directions():
    a = Amount(10)
    third = Fraction(1, 3)
    assert a.mul_ratio_down(third) == Amount(3)
    assert a.mul_ratio_up(third) == Amount(4)
    # exact ratios are unaffected by direction
    assert a.mul_ratio_down(Fraction(1, 2)) == a.mul_ratio_up(Fraction(1, 2)) == Amount(5)


def test_ordering_follows_value():
    assert Amount(1) < Amount(2)
    assert max(Amount(3), Amount(9), Amount(4)) == Amount(9)


# -----------------------------
# Decimal bridges (I/O only)
# -----------------------------

def test_from_decimal_floors_by_default_and_ceils_on_request():
    x = Decimal("1.23456789")
    print(f"[from_decimal] {x} -> OUT floor / IN ceil on the 7-digit grid")
    assert Amount.from_decimal(x) == Amount(12345678)
    assert Amount.from_decimal(x, round_up=True) == Amount(12345679)


def test_decimal_round_trip_on_grid():
    a = Amount.from_decimal("12.5")
    assert a.value == 125_000_000
    assert a.to_decimal() == Decimal("12.5")
    assert str(Amount(1)) == "0.0000001"
    assert str(Amount(STROOPS_PER_UNIT)) == "1.0000000"


@pytest.mark.parametrize(
    "call,name",
    [
        (lambda: units_from_stroops(-1), "units_from_stroops(-1)"),
        (lambda: stroops_from_units_out("-0.1"), "stroops_from_units_out(-0.1)"),
        (lambda: stroops_from_units_in("abc"), "stroops_from_units_in('abc')"),
        (lambda: Amount.from_decimal("NaN"), "Amount.from_decimal(NaN)"),
    ],
)
def test_bridge_inputs_rejected(call, name):
    print(f"[bridge-inputs] {name} -> expect AmountDomainError")
    with pytest.raises(AmountDomainError):
        call()


def test_units_from_stroops():
    assert units_from_stroops(15_000_000) == Decimal("1.5")
