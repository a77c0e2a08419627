"""External collaborators: ledger snapshots, signing and submission.

The engine itself never talks to the network. Callers plug in objects that
satisfy the protocols below; `HorizonSnapshotProvider` is a concrete
snapshot source reading a Horizon-style REST API.

The payload parsers (`parse_asset`, `parse_account`, `parse_balances`,
`parse_offer`) are pure and usable on saved JSON.
"""

from __future__ import annotations

import base64
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

import requests

from .accounts import Account, AccountFlags, Signer, Thresholds
from .assets import Asset, TrustLine
from .auth import SignatureSet
from .core import Amount, LedgerError, Price
from .orderbook import Offer
from .snapshot import LedgerSnapshot
from .transaction import ReadyTransaction, Transaction

logger = logging.getLogger(__name__)


class ServiceError(LedgerError):
    """A collaborator call failed (transport error or unexpected response).

    `status` is the HTTP status when one was received.
    """

    def __init__(self, message, *, status=None):
        super().__init__(message)
        self.status = status


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------

class SnapshotProvider(Protocol):
    def account(self, account_id: str) -> Account: ...

    def trustlines(self, account_id: str) -> List[TrustLine]: ...

    def offers(self, selling: Asset, buying: Asset) -> List[Offer]: ...


class SigningService(Protocol):
    def sign(self, public_key: str, payload: bytes) -> bytes: ...


@dataclass(frozen=True)
class SubmitResult:
    tx_hash: str
    accepted: bool
    detail: Optional[str] = None


class SubmissionService(Protocol):
    def submit(self, ready: ReadyTransaction) -> SubmitResult: ...


def sign_transaction(tx: Transaction, signing_service: SigningService, keys: Iterable[str]) -> SignatureSet:
    """Collect one signature per key over the transaction's signing bytes."""
    payload = tx.signing_bytes()
    return SignatureSet((key, signing_service.sign(key, payload)) for key in keys)


def load_snapshot(
    provider: SnapshotProvider,
    account_ids: Iterable[str],
    asset_pairs: Iterable[Tuple[Asset, Asset]] = (),
) -> LedgerSnapshot:
    """Assemble a snapshot of `account_ids` plus both sides of each pair's book."""
    accounts: List[Account] = []
    lines: List[TrustLine] = []
    for account_id in dict.fromkeys(account_ids):
        accounts.append(provider.account(account_id))
        lines.extend(provider.trustlines(account_id))

    offers: Dict[int, Offer] = {}
    for a, b in asset_pairs:
        for selling, buying in ((a, b), (b, a)):
            for o in provider.offers(selling, buying):
                offers.setdefault(o.offer_id, o)
    logger.debug("load_snapshot: %d accounts, %d trustlines, %d offers", len(accounts), len(lines), len(offers))
    return LedgerSnapshot.of(accounts, lines, offers.values())


# ---------------------------------------------------------------------------
# Payload parsers (Horizon JSON -> core model)
# ---------------------------------------------------------------------------

def parse_asset(record: Mapping[str, Any], prefix: str = "") -> Asset:
    """Asset from `{prefix}asset_type` / `_code` / `_issuer` fields."""
    kind = record[f"{prefix}asset_type"]
    if kind == "native":
        return Asset.native()
    return Asset(record[f"{prefix}asset_code"], record[f"{prefix}asset_issuer"])


def asset_params(asset: Asset, prefix: str) -> Dict[str, str]:
    """Query parameters selecting `asset` (prefix 'selling' or 'buying')."""
    if asset.is_native:
        return {f"{prefix}_asset_type": "native"}
    kind = "credit_alphanum4" if len(asset.code) <= 4 else "credit_alphanum12"
    return {
        f"{prefix}_asset_type": kind,
        f"{prefix}_asset_code": asset.code,
        f"{prefix}_asset_issuer": asset.issuer,
    }


def parse_account(record: Mapping[str, Any], *, base_reserve: Amount = Amount(5_000_000)) -> Account:
    account_id = record["account_id"]
    master = 0
    signers: List[Signer] = []
    for s in record.get("signers", []):
        if s["key"] == account_id:
            master = int(s["weight"])
        elif int(s["weight"]) > 0:
            signers.append(Signer(s["key"], int(s["weight"])))

    t = record.get("thresholds", {})
    thresholds = Thresholds(
        master=master,
        low=int(t.get("low_threshold", 0)),
        medium=int(t.get("med_threshold", 0)),
        high=int(t.get("high_threshold", 0)),
    )

    f = record.get("flags", {})
    flags = AccountFlags.NONE
    if f.get("auth_required"):
        flags |= AccountFlags.AUTH_REQUIRED
    if f.get("auth_revocable"):
        flags |= AccountFlags.AUTH_REVOCABLE
    if f.get("auth_immutable"):
        flags |= AccountFlags.AUTH_IMMUTABLE

    native = Amount(0)
    for b in record.get("balances", []):
        if b.get("asset_type") == "native":
            native = Amount.from_decimal(b["balance"])

    data = {name: base64.b64decode(value) for name, value in record.get("data", {}).items()}

    return Account(
        account_id=account_id,
        sequence=int(record["sequence"]),
        balance=native,
        base_reserve=base_reserve,
        signers=tuple(signers),
        thresholds=thresholds,
        flags=flags,
        data=data,
        num_subentries=int(record.get("subentry_count", 0)),
    )


def parse_balances(record: Mapping[str, Any]) -> List[TrustLine]:
    """Trustlines from an account record's balances (native and pool shares skipped)."""
    holder = record["account_id"]
    out: List[TrustLine] = []
    for b in record.get("balances", []):
        if b.get("asset_type") in ("native", "liquidity_pool_shares"):
            continue
        out.append(TrustLine(
            holder=holder,
            asset=parse_asset(b),
            limit=Amount.from_decimal(b["limit"]),
            balance=Amount.from_decimal(b["balance"]),
            authorized=bool(b.get("is_authorized", True)),
        ))
    return out


def parse_offer(record: Mapping[str, Any]) -> Offer:
    pr = record.get("price_r")
    if pr:
        price = Price(int(pr["n"]), int(pr["d"]))
    else:
        price = Price.from_decimal(record["price"])
    return Offer(
        offer_id=int(record["id"]),
        seller=record["seller"],
        selling=parse_asset(record["selling"]),
        buying=parse_asset(record["buying"]),
        amount=Amount.from_decimal(record["amount"]),
        price=price,
    )


# ---------------------------------------------------------------------------
# Horizon provider
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HorizonConfig:
    """Connection settings for `HorizonSnapshotProvider`.

    retries: extra attempts after a 429, 5xx or transport error.
    backoff_base / backoff_max: exponential backoff bounds in seconds.
    page_limit: records requested per page of a collection.
    """
    base_url: str = "https://horizon-testnet.stellar.org"
    timeout: float = 30.0
    retries: int = 5
    backoff_base: float = 0.25
    backoff_max: float = 10.0
    page_limit: int = 200
    base_reserve: Amount = Amount(5_000_000)


_RETRYABLE = {429, 500, 502, 503, 504}


class HorizonSnapshotProvider:
    """Read accounts, trustlines and offers from a Horizon-style REST API."""

    def __init__(
        self,
        config: HorizonConfig = HorizonConfig(),
        session: Optional[requests.Session] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self._sleep = sleep

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self.config.base_url.rstrip("/") + path
        last_exc: Optional[Exception] = None
        for attempt in range(self.config.retries + 1):
            try:
                r = self.session.get(url, params=params, timeout=self.config.timeout)
                if r.status_code in _RETRYABLE:
                    raise ServiceError(f"HTTP {r.status_code} from {path}", status=r.status_code)
                if r.status_code >= 400:
                    # not retryable
                    raise ServiceError(f"HTTP {r.status_code} from {path}: {r.text[:200]}", status=r.status_code)
                return r.json()
            except ServiceError as e:
                if e.status not in _RETRYABLE:
                    raise
                last_exc = e
            except (requests.RequestException, ValueError) as e:
                last_exc = e
            if attempt >= self.config.retries:
                break
            # Exponential backoff with jitter
            delay = min(self.config.backoff_max, self.config.backoff_base * (2 ** attempt))
            delay = delay * (0.5 + random.random())
            logger.debug("GET %s failed (%s); retry %d in %.2fs", path, last_exc, attempt + 1, delay)
            self._sleep(delay)

        if isinstance(last_exc, ServiceError):
            raise last_exc
        raise ServiceError(f"GET {path} failed: {last_exc}") from last_exc

    def _records(self, path: str, params: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """Walk a paged collection in ascending order."""
        query = dict(params, limit=self.config.page_limit, order="asc")
        while True:
            body = self._get(path, query)
            records = body.get("_embedded", {}).get("records", [])
            yield from records
            if len(records) < self.config.page_limit:
                return
            query["cursor"] = records[-1]["paging_token"]

    def account_record(self, account_id: str) -> Dict[str, Any]:
        return self._get(f"/accounts/{account_id}")

    # ------------- SnapshotProvider -------------

    def account(self, account_id: str) -> Account:
        return parse_account(self.account_record(account_id), base_reserve=self.config.base_reserve)

    def trustlines(self, account_id: str) -> List[TrustLine]:
        return parse_balances(self.account_record(account_id))

    def offers(self, selling: Asset, buying: Asset) -> List[Offer]:
        params = dict(asset_params(selling, "selling"), **asset_params(buying, "buying"))
        return [parse_offer(rec) for rec in self._records("/offers", params)]

    def offers_by_seller(self, seller: str) -> List[Offer]:
        return [parse_offer(rec) for rec in self._records("/offers", {"seller": seller})]

    def snapshot(
        self,
        account_ids: Sequence[str],
        asset_pairs: Iterable[Tuple[Asset, Asset]] = (),
    ) -> LedgerSnapshot:
        """One snapshot; each account record is fetched once."""
        accounts: List[Account] = []
        lines: List[TrustLine] = []
        for account_id in dict.fromkeys(account_ids):
            rec = self.account_record(account_id)
            accounts.append(parse_account(rec, base_reserve=self.config.base_reserve))
            lines.extend(parse_balances(rec))
        offers: Dict[int, Offer] = {}
        for a, b in asset_pairs:
            for selling, buying in ((a, b), (b, a)):
                for o in self.offers(selling, buying):
                    offers.setdefault(o.offer_id, o)
        return LedgerSnapshot.of(accounts, lines, offers.values())


__all__ = [
    "ServiceError",
    "SnapshotProvider",
    "SigningService",
    "SubmitResult",
    "SubmissionService",
    "sign_transaction",
    "load_snapshot",
    "parse_asset",
    "asset_params",
    "parse_account",
    "parse_balances",
    "parse_offer",
    "HorizonConfig",
    "HorizonSnapshotProvider",
]
