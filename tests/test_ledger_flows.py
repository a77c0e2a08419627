"""
End-to-end flows: issuing an asset, multi-signature payments, trading on the
book and paying across it, data entries and validity windows. Each step
builds against a snapshot and, where the ledger would change, continues
from the projected snapshot or an explicitly updated account.
"""

from datetime import datetime, timezone

import pytest

from lumen_engine.accounts import Account, AccountFlags, Signer, Thresholds
from lumen_engine.assets import Asset, TrustLine
from lumen_engine.auth import SignatureSet
from lumen_engine.core import InsufficientWeight, InvalidOperation, Price, fmt_amount
from lumen_engine.operations import (
    CreateAccount,
    CreateTrustLine,
    ManageData,
    Payment,
    SetFlags,
    SetSigner,
    SetThresholds,
)
from lumen_engine.orderbook import Offer, OrderBook
from lumen_engine.snapshot import LedgerSnapshot
from lumen_engine.transaction import TimeBounds, TransactionBuilder

from conftest import units

MO = "GMO"
CITIBANK = "GCITIBANK"
KELLY = "GKELLY"
SHARON = "GSHARON"
BOB = "GBOB"
MARY = "GMARY"
FRED = "GFRED"
ISSUER = "GISSUER"
CHASE = "GCHASE"


def _epoch(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


def test_issue_asset_flow():
    usd = Asset("USD", CITIBANK)
    snap = LedgerSnapshot.of([Account(MO, 10, balance=units(1000)), Account(CITIBANK, 3)])
    b = TransactionBuilder(snap)

    fund = b.build(MO, [CreateAccount(KELLY, units(10))], memo_text="initial")
    assert b.prepare(fund, SignatureSet.of(MO)).transaction is fund

    # kelly now exists on the ledger
    snap = LedgerSnapshot.of([Account(MO, 11), Account(CITIBANK, 3), Account(KELLY, 0)])
    b = TransactionBuilder(snap)
    trust = b.build(KELLY, [CreateTrustLine(usd, units(1000))])
    snap = b.project(trust)
    b = TransactionBuilder(snap)
    issue = b.build(CITIBANK, [Payment(KELLY, usd, units(100))])
    snap = b.project(issue)

    assert fmt_amount(snap.trustline(KELLY, usd).balance) == "100.0000000"

    b = TransactionBuilder(snap)
    for op in (SetFlags(set_flags=AccountFlags.AUTH_REVOCABLE), SetFlags(clear_flags=AccountFlags.AUTH_REVOCABLE)):
        tx = b.build(CITIBANK, [op])
        assert b.authorize(tx, [CITIBANK]).authorized


def test_multisig_flow():
    sharon = Account(SHARON, 1, balance=units(100))
    snap = LedgerSnapshot.of([sharon])
    b = TransactionBuilder(snap)
    native = Asset.native()

    # add bob and mary as signers, then raise thresholds to 2
    for op in (SetSigner(BOB, 1), SetSigner(MARY, 1), SetThresholds(low=2, medium=2, high=2)):
        tx = b.build(SHARON, [op])
        b.prepare(tx, SignatureSet.of(SHARON))
    sharon = sharon.with_signer(BOB, 1).with_signer(MARY, 1).with_thresholds(low=2, medium=2, high=2)
    b = TransactionBuilder(LedgerSnapshot.of([sharon]))

    pay = b.build(SHARON, [Payment(FRED, native, units(10))])
    with pytest.raises(InsufficientWeight):
        b.prepare(pay, SignatureSet.of(SHARON))
    b.prepare(pay, SignatureSet.of(BOB, MARY))

    # removing bob is itself a multisig change
    remove = b.build(SHARON, [SetSigner(BOB, 0)])
    b.prepare(remove, SignatureSet.of(SHARON, BOB))
    sharon = sharon.with_signer(BOB, 0)
    b = TransactionBuilder(LedgerSnapshot.of([sharon]))
    assert not b.authorize(pay, [BOB, MARY]).authorized
    b.prepare(pay, SignatureSet.of(SHARON, MARY))

    # kill the master key
    lower = b.build(SHARON, [SetThresholds(low=1, medium=1, high=1)])
    b.prepare(lower, SignatureSet.of(SHARON, MARY))
    sharon = sharon.with_thresholds(low=1, medium=1, high=1)
    b = TransactionBuilder(LedgerSnapshot.of([sharon]))
    kill = b.build(SHARON, [SetThresholds(master=0)])
    b.prepare(kill, SignatureSet.of(SHARON))
    sharon = sharon.with_thresholds(master=0)
    b = TransactionBuilder(LedgerSnapshot.of([sharon]))

    with pytest.raises(InsufficientWeight):
        b.prepare(pay, SignatureSet.of(SHARON))
    b.prepare(pay, SignatureSet.of(MARY))


def test_dex_flow():
    usd, eur, xlm = Asset("USD", ISSUER), Asset("EUR", ISSUER), Asset.native()
    book = OrderBook()

    book.match(Offer(0, MO, usd, eur, units(5), Price(1, 1)))
    book.match(Offer(0, BOB, usd, eur, units(5), Price(2, 1)))
    assert book.offers_by_seller(MO) and book.offers_by_seller(BOB)
    assert book.depth(usd, eur) == [(Price(1, 1), units(5)), (Price(2, 1), units(5))]
    assert book.depth(eur, usd, limit=0) == []

    # counterparty offers cross both resting offers
    res = book.match(Offer(0, CITIBANK, eur, usd, units(10), Price(1, 2)))
    print(f"[dex] citibank bought {res.bought} USD for {res.sold} EUR in {len(res.trades)} trades")
    by_seller = {t.seller: t for t in res.trades}
    assert by_seller[MO].sold == units(5)            # mo gave 5 USD
    assert by_seller[BOB].bought == units(5)         # bob received 5 EUR
    assert res.resting is None
    res = book.match(Offer(0, CHASE, eur, usd, units(2), Price(1, 1)))
    assert res.is_empty() and res.resting is not None

    # automatic path payment XLM -> USD -> EUR
    book.match(Offer(0, CITIBANK, usd, xlm, units(10), Price(1, 1)))
    lines = [TrustLine(BOB, eur, units(1_000_000), units(100_005)), TrustLine(MO, usd, units(1_000_000), units(99_995))]
    snap = LedgerSnapshot(
        accounts={MO: Account(MO, 20, balance=units(1000)), BOB: Account(BOB, 5)},
        trustlines={(t.holder, t.asset): t for t in lines},
        order_book=book,
    )
    b = TransactionBuilder(snap)
    op = b.path_payment(BOB, xlm, eur, dest_amount=units(1), max_send=units(20))
    assert op.path == (usd,)
    tx = b.build(MO, [op])
    assert fmt_amount(b.project(tx).trustline(BOB, eur).balance) == "100006.0000000"

    # same payment along an explicit path
    manual = b.path_payment(BOB, xlm, eur, dest_amount=units(1), max_send=units(20), path=[usd, eur])
    assert manual.path == (usd,)
    assert b.build(MO, [manual]).operations == (manual,)


def test_data_flow():
    snap = LedgerSnapshot.of([Account(MO, 1)])
    b = TransactionBuilder(snap)
    with pytest.raises(InvalidOperation):
        b.build(MO, [ManageData("foo")])
    snap = b.project(b.build(MO, [ManageData("foo", b"bar")]))
    assert snap.account(MO).data["foo"] == b"bar"

    b = TransactionBuilder(snap)
    snap = b.project(b.build(MO, [ManageData("foo")]))
    assert "foo" not in snap.account(MO).data
    with pytest.raises(InvalidOperation):
        TransactionBuilder(snap).build(MO, [ManageData("foo")])


def test_time_bounds_flow():
    now = _epoch(2024, 1, 1)
    snap = LedgerSnapshot.of([Account(MO, 1), Account(BOB, 1)])
    b = TransactionBuilder(snap, now=now)
    pay = [Payment(BOB, Asset.native(), units(1))]
    sigs = SignatureSet.of(MO)

    # window already closed
    with pytest.raises(InvalidOperation):
        b.build(MO, pay, time_bounds=TimeBounds.between(max_time=datetime(2017, 1, 1, 12)))

    # window not open yet
    future = b.build(MO, pay, time_bounds=TimeBounds.between(datetime(2060, 1, 1, 12), datetime(2075, 1, 1, 12)))
    with pytest.raises(InvalidOperation):
        b.prepare(future, sigs)

    # open window
    ok = b.build(MO, pay, time_bounds=TimeBounds.between(datetime(2006, 1, 1, 12), datetime(2075, 1, 1, 12)))
    assert b.prepare(ok, sigs).authorization.authorized

    # inverted window never reaches authorization
    with pytest.raises(InvalidOperation):
        TransactionBuilder(snap).build(MO, pay, time_bounds=(_epoch(2075, 1, 1), _epoch(2060, 1, 1)))


def test_locked_account_cannot_transact():
    locked = Account(SHARON, 1, signers=(Signer(MARY, 0),), thresholds=Thresholds(master=0, low=1, medium=1, high=1))
    b = TransactionBuilder(LedgerSnapshot.of([locked]))
    tx = b.build(SHARON, [Payment(FRED, Asset.native(), units(1))])
    for sigs in (SignatureSet(), SignatureSet.of(SHARON), SignatureSet.of(SHARON, MARY)):
        with pytest.raises(InsufficientWeight):
            b.prepare(tx, sigs)
