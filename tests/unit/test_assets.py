import pytest

from lumen_engine.assets import Asset, TrustLine, is_issuer
from lumen_engine.core import Amount, InvalidOperation, InvariantViolation, TrustLineCapacityExceeded

from conftest import ISSUER, units


# -----------------------------
# Asset values
# -----------------------------

def test_parse_canonical_forms():
    assert Asset.parse("native") == Asset.native()
    assert Asset.parse("native").is_native
    usd = Asset.parse(f"USD:{ISSUER}")
    assert usd == Asset("USD", ISSUER)
    assert str(usd) == f"USD:{ISSUER}"
    assert Asset.parse(str(usd)) == usd


@pytest.mark.parametrize(
    "make,name",
    [
        (lambda: Asset.parse("USD"), "missing issuer separator"),
        (lambda: Asset("USD", None), "code without issuer"),
        (lambda: Asset(None, ISSUER), "issuer without code"),
        (lambda: Asset("THIRTEENCHARS", ISSUER), "code too long"),
        (lambda: Asset("US-D", ISSUER), "non-alphanumeric code"),
        (lambda: Asset("USD", ""), "empty issuer"),
    ],
)
def test_invalid_assets_rejected(make, name):
    print(f"[asset] {name} -> expect InvalidOperation")
    with pytest.raises(InvalidOperation):
        make()


def test_assets_differ_by_issuer():
    assert Asset("USD", "GA") != Asset("USD", "GB")
    assert len({Asset("USD", "GA"), Asset("USD", "GA"), Asset.native()}) == 2


def test_sort_key_puts_native_first():
    assets = [Asset("ZZZ", "GA"), Asset.native(), Asset("AAA", "GB")]
    assert sorted(assets, key=Asset.sort_key) == [Asset.native(), Asset("AAA", "GB"), Asset("ZZZ", "GA")]


def test_is_issuer():
    usd = Asset("USD", ISSUER)
    assert is_issuer(ISSUER, usd)
    assert not is_issuer("GOTHER", usd)
    assert not is_issuer(ISSUER, Asset.native())


# -----------------------------
# TrustLine capacity
# -----------------------------

def test_trustline_capacity_scenario(usd):
    """Limit 1000, balance 900: 150 is refused, 100 fills the line exactly."""
    line = TrustLine("GBOB", usd, units(1000), units(900))
    assert line.remaining_capacity == units(100)

    with pytest.raises(TrustLineCapacityExceeded) as ei:
        line.credit(units(150))
    assert ei.value.capacity == units(100).value
    assert ei.value.amount == units(150).value
    assert ei.value.holder == "GBOB"

    after = line.credit(units(100))
    assert after.balance == units(1000)
    assert after.remaining_capacity.is_zero()
    # frozen: the receiver is unchanged
    assert line.balance == units(900)


def test_unauthorized_line_cannot_receive(usd):
    line = TrustLine("GBOB", usd, units(1000), authorized=False)
    assert not line.can_receive(Amount(1))
    with pytest.raises(TrustLineCapacityExceeded) as ei:
        line.credit(Amount(1))
    assert ei.value.capacity == 0


def test_debit_and_limit_changes(usd):
    line = TrustLine("GBOB", usd, units(1000), units(300))
    assert line.debit(units(300)).balance.is_zero()
    with pytest.raises(InvalidOperation):
        line.debit(units(301))
    assert line.with_limit(units(300)).limit == units(300)
    with pytest.raises(InvalidOperation):
        line.with_limit(units(299))


def test_trustline_invariants(usd):
    with pytest.raises(InvalidOperation):
        TrustLine("GBOB", Asset.native(), units(1))
    with pytest.raises(InvariantViolation):
        TrustLine("GBOB", usd, units(1), units(2))
