"""
Lumen Engine Core Constants (integer domain)
============================================

Only ledger-aligned integer constants live here. Decimal quanta are kept for
the formatting helpers in `fmt.py`.
"""

# NOTE: amounts are integer stroops; Decimal is never used for core arithmetic.

from decimal import Decimal

# ---------------------------------------------------------------------------
# Amount grid
# ---------------------------------------------------------------------------

#: Seven fractional digits: 1 unit = 10^7 stroops.
AMOUNT_DIGITS: int = 7
STROOPS_PER_UNIT: int = 10 ** AMOUNT_DIGITS

#: Amounts are signed 64-bit on the ledger; only the non-negative half is valid.
MAX_AMOUNT: int = (1 << 63) - 1

#: Prices are int32 rationals on the ledger.
MAX_PRICE_TERM: int = (1 << 31) - 1

#: Sequence numbers are signed 64-bit.
MAX_SEQUENCE: int = (1 << 63) - 1

#: Memo ids are unsigned 64-bit.
MAX_MEMO_ID: int = (1 << 64) - 1


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

#: Signer weights and thresholds are single bytes.
MAX_WEIGHT: int = 255


# ---------------------------------------------------------------------------
# Transaction limits
# ---------------------------------------------------------------------------

MAX_OPERATIONS: int = 100
MEMO_TEXT_MAX_BYTES: int = 28
DATA_NAME_MAX_BYTES: int = 64
DATA_VALUE_MAX_BYTES: int = 64
ASSET_CODE_MAX_LEN: int = 12


# ---------------------------------------------------------------------------
# Path search
# ---------------------------------------------------------------------------

#: Conversions allowed in an unconstrained path search (source -> ... -> dest).
DEFAULT_MAX_HOPS: int = 4

#: Upper bound on candidate paths priced per search.
DEFAULT_MAX_PATHS: int = 256


# ---------------------------------------------------------------------------
# Decimal quanta for display/IO quantisation (formatting helpers)
# ---------------------------------------------------------------------------

AMOUNT_QUANTUM: Decimal = Decimal("1e-7")


__all__ = [
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
]
