"""
Lumen Engine Core
=================

Unified exports for integer-domain primitives and utilities. Amounts are
integer stroops, prices exact rationals. Decimal helpers are provided *only*
for I/O formatting.
"""

# NOTE:
#   The `core` package is dependency-free and shared by every other module.
#   Nothing here touches ledger state; it only defines values, ordering and
#   the error kinds the engine surfaces.

# Integer-domain constants
from .constants import (
    AMOUNT_DIGITS,
    STROOPS_PER_UNIT,
    MAX_AMOUNT,
    MAX_PRICE_TERM,
    MAX_SEQUENCE,
    MAX_MEMO_ID,
    MAX_WEIGHT,
    MAX_OPERATIONS,
    MEMO_TEXT_MAX_BYTES,
    DATA_NAME_MAX_BYTES,
    DATA_VALUE_MAX_BYTES,
    ASSET_CODE_MAX_LEN,
    DEFAULT_MAX_HOPS,
    DEFAULT_MAX_PATHS,
    AMOUNT_QUANTUM,
)

# Amount primitive and bridges
from .amounts import (
    Amount,
    units_from_stroops,
    stroops_from_units_in,
    stroops_from_units_out,
)

# Price (exact rational)
from .price import Price, crosses

# Ordering utilities: price limit, price-time priority
from .ordering import (
    apply_price_limit,
    sort_by_priority,
    prepare_and_order,
)

# Decimal formatting helpers (non-core arithmetic)
from .fmt import (
    DEFAULT_DECIMAL_PRECISION,
    fmt_amount,
    fmt_price,
    parse_amount,
)

# Core exceptions
from .exc import (
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
    # constants
    "AMOUNT_DIGITS",
    "STROOPS_PER_UNIT",
    "MAX_AMOUNT",
    "MAX_PRICE_TERM",
    "MAX_SEQUENCE",
    "MAX_MEMO_ID",
    "MAX_WEIGHT",
    "MAX_OPERATIONS",
    "MEMO_TEXT_MAX_BYTES",
    "DATA_NAME_MAX_BYTES",
    "DATA_VALUE_MAX_BYTES",
    "ASSET_CODE_MAX_LEN",
    "DEFAULT_MAX_HOPS",
    "DEFAULT_MAX_PATHS",
    "AMOUNT_QUANTUM",
    # amounts
    "Amount",
    "units_from_stroops",
    "stroops_from_units_in",
    "stroops_from_units_out",
    # price
    "Price",
    "crosses",
    # ordering
    "apply_price_limit",
    "sort_by_priority",
    "prepare_and_order",
    # fmt
    "DEFAULT_DECIMAL_PRECISION",
    "fmt_amount",
    "fmt_price",
    "parse_amount",
    # exceptions
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
