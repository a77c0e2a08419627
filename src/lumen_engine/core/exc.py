"""
Core exception types for lumen_engine.

These are dependency-free and may be imported by all modules. Every
`LedgerError` stems from caller-supplied data or a state snapshot and is
recoverable; `InvariantViolation` marks a defect and is never caught inside
the engine.
"""

__all__ = [
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


class LedgerError(Exception):
    """Base class for recoverable errors surfaced to the caller."""
    pass


class InvalidOperation(LedgerError):
    """Raised when an operation or transaction is structurally malformed."""
    pass


class AmountDomainError(InvalidOperation):
    """Raised when inputs violate the non-negative amount domain."""
    pass


class TrustLineCapacityExceeded(LedgerError):
    """Raised when a credit would exceed a trustline's remaining capacity.

    Attributes
    ----------
    holder : str
        Account that would receive the asset.
    asset : Any
        The asset being credited.
    amount : int
        Requested credit in stroops.
    capacity : int
        Remaining capacity in stroops (0 when no trustline exists).
    """

    def __init__(self, holder, asset, amount, capacity):
        super().__init__(
            f"trustline {holder}/{asset} cannot accept {amount} (remaining capacity {capacity})"
        )
        self.holder = holder
        self.asset = asset
        self.amount = amount
        self.capacity = capacity


class InsufficientWeight(LedgerError):
    """Raised when a signature set does not reach an account's threshold."""

    def __init__(self, account, have, need):
        super().__init__(f"account {account}: signer weight {have} < required {need}")
        self.account = account
        self.have = have
        self.need = need


class NoPathFound(LedgerError):
    """Raised when no conversion path with enough liquidity exists."""

    def __init__(self, source_asset, dest_asset, reason="no path"):
        super().__init__(f"{reason}: {source_asset} -> {dest_asset}")
        self.source_asset = source_asset
        self.dest_asset = dest_asset
        self.reason = reason


class ExceedsBound(LedgerError):
    """Raised when the best path violates send_max / dest_min (slippage guard).

    `amount` is the best cost (strict-receive) or output (strict-send);
    `bound` is the caller's limit it violated.
    """

    def __init__(self, amount, bound, *, path=None):
        super().__init__(f"best path amount {amount} violates bound {bound}")
        self.amount = amount
        self.bound = bound
        self.path = path


class HopLimitExceeded(LedgerError):
    """Raised when path search was cut off at the hop limit without an answer."""

    def __init__(self, source_asset, dest_asset, max_hops):
        super().__init__(
            f"no path {source_asset} -> {dest_asset} within {max_hops} hops"
        )
        self.source_asset = source_asset
        self.dest_asset = dest_asset
        self.max_hops = max_hops


class InvariantViolation(Exception):
    """Raised when arithmetic or book state would break core invariants."""
    pass
