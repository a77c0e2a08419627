from __future__ import annotations

from typing import List

import pytest

# Import project primitives
from lumen_engine.core import Amount, Price, STROOPS_PER_UNIT
from lumen_engine.assets import Asset, TrustLine
from lumen_engine.accounts import Account, Signer, Thresholds
from lumen_engine.orderbook import Offer
from lumen_engine.snapshot import LedgerSnapshot


ISSUER = "GISSUER"
ALICE = "GALICE"
BOB = "GBOB"
CAROL = "GCAROL"
MAKER = "GMAKER"
S1 = "GSIGNER1"
S2 = "GSIGNER2"


# -----------------------------
# Test helpers (pure functions)
# -----------------------------

def units(n) -> Amount:
    """Whole units -> Amount in stroops."""
    return Amount(int(n * STROOPS_PER_UNIT))


def make_offer(offer_id: int, selling: Asset, buying: Asset, amount: int, n: int, d: int = 1,
               seller: str = MAKER) -> Offer:
    return Offer(offer_id, seller, selling, buying, units(amount), Price(n, d))


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def usd() -> Asset:
    return Asset("USD", ISSUER)


@pytest.fixture()
def eur() -> Asset:
    return Asset("EUR", ISSUER)


@pytest.fixture()
def gbp() -> Asset:
    return Asset("GBP", ISSUER)


@pytest.fixture()
def multisig_account() -> Account:
    """{master:1, S1:1, S2:1} with thresholds {low:1, medium:2, high:3}."""
    return Account(
        ALICE,
        sequence=100,
        signers=(Signer(S1, 1), Signer(S2, 1)),
        thresholds=Thresholds(master=1, low=1, medium=2, high=3),
    )


@pytest.fixture()
def ledger(usd, eur) -> LedgerSnapshot:
    """Alice pays Bob in USD/EUR; Bob's USD line is 900/1000, his EUR line empty."""
    accounts: List[Account] = [
        Account(ALICE, sequence=100, balance=units(100)),
        Account(BOB, sequence=7, balance=units(100)),
        Account(CAROL, sequence=1, balance=units(100)),
    ]
    lines = [
        TrustLine(ALICE, usd, units(5000), units(500)),
        TrustLine(ALICE, eur, units(5000), units(10)),
        TrustLine(BOB, usd, units(1000), units(900)),
        TrustLine(BOB, eur, units(1000), units(0)),
    ]
    return LedgerSnapshot.of(accounts, lines)
