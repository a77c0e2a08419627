# Top-level API for lumen_engine (integer-domain).
"""
Top-level API for lumen_engine (integer-domain).

Client-side transaction construction and authorization for a Stellar-style
ledger:
  - accounts / auth: signer & threshold model and the authorization evaluator
  - orderbook: resting offers with price-time priority
  - pathfind: strict-send / strict-receive path resolution over the book
  - transaction: builder, staged ledger preconditions, submission readiness

Amounts are integer stroops and prices exact rationals; Decimal only appears
at I/O boundaries (`lumen_engine.core.fmt`).
"""

# NOTE:
#   Network collaborators (snapshot provider, signing, submission) live in
#   `lumen_engine.services` and are not imported here, so the engine itself
#   imports without `requests`.

from __future__ import annotations

from .assets import Asset, TrustLine
from .accounts import (
    Account,
    AccountFlags,
    AuthClass,
    Signer,
    Thresholds,
    required_weight,
    signer_weights,
    reachable_weight,
)
from .auth import AuthResult, SignatureSet, authorize
from .operations import (
    BumpSequence,
    CreateAccount,
    CreateTrustLine,
    ManageData,
    ManageOffer,
    Operation,
    PathPayment,
    Payment,
    RemoveTrustLine,
    SetFlags,
    SetSigner,
    SetThresholds,
)
from .orderbook import MatchResult, Offer, OrderBook, Trade
from .pathfind import Path, PathConfig, find_path
from .snapshot import LedgerSnapshot
from .transaction import (
    MemoId,
    MemoText,
    ReadyTransaction,
    TimeBounds,
    Transaction,
    TransactionAuthorization,
    TransactionBuilder,
)

# Core data types and errors
from .core import (
    Amount,
    Price,
    fmt_amount,
    parse_amount,
    LedgerError,
    InvalidOperation,
    AmountDomainError,
    TrustLineCapacityExceeded,
    InsufficientWeight,
    NoPathFound,
    ExceedsBound,
    HopLimitExceeded,
    InvariantViolation,
)

__all__ = [
    # assets & accounts
    "Asset",
    "TrustLine",
    "Account",
    "AccountFlags",
    "AuthClass",
    "Signer",
    "Thresholds",
    "required_weight",
    "signer_weights",
    "reachable_weight",
    # authorization
    "AuthResult",
    "SignatureSet",
    "authorize",
    # operations
    "BumpSequence",
    "CreateAccount",
    "CreateTrustLine",
    "ManageData",
    "ManageOffer",
    "Operation",
    "PathPayment",
    "Payment",
    "RemoveTrustLine",
    "SetFlags",
    "SetSigner",
    "SetThresholds",
    # order book & paths
    "MatchResult",
    "Offer",
    "OrderBook",
    "Trade",
    "Path",
    "PathConfig",
    "find_path",
    # transactions
    "LedgerSnapshot",
    "MemoId",
    "MemoText",
    "ReadyTransaction",
    "TimeBounds",
    "Transaction",
    "TransactionAuthorization",
    "TransactionBuilder",
    # core
    "Amount",
    "Price",
    "fmt_amount",
    "parse_amount",
    "LedgerError",
    "InvalidOperation",
    "AmountDomainError",
    "TrustLineCapacityExceeded",
    "InsufficientWeight",
    "NoPathFound",
    "ExceedsBound",
    "HopLimitExceeded",
    "InvariantViolation",
]
