"""Authorization evaluator.

`authorize(account, auth_class, signatures)` sums the weights of the
signatures whose key is one of the account's signers and compares the total
against the account's threshold for the class. Unknown keys are ignored, not
errors. Results are recomputed from the supplied account each call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Tuple, Union

from .accounts import Account, AuthClass, required_weight, signer_weights
from .core import InsufficientWeight, InvalidOperation

logger = logging.getLogger(__name__)


class SignatureSet(Mapping[str, bytes]):
    """Immutable public key -> signature mapping.

    Order-insensitive; duplicate keys collapse to the first signature seen,
    so a key can only ever be counted once.
    """

    def __init__(self, pairs: Union[Iterable[Tuple[str, bytes]], Mapping[str, bytes], None] = None):
        sigs: Dict[str, bytes] = {}
        if pairs is not None:
            items = pairs.items() if isinstance(pairs, Mapping) else pairs
            for key, sig in items:
                if not key:
                    raise InvalidOperation("signature key must be non-empty")
                sigs.setdefault(key, bytes(sig))
        self._sigs = sigs

    @classmethod
    def of(cls, *keys: str) -> "SignatureSet":
        """Signature set with placeholder signatures, for offline evaluation."""
        return cls((k, b"") for k in keys)

    def with_signature(self, key: str, sig: bytes) -> "SignatureSet":
        return SignatureSet(list(self._sigs.items()) + [(key, sig)])

    def union(self, other: Iterable[Tuple[str, bytes]]) -> "SignatureSet":
        items = other.items() if isinstance(other, Mapping) else other
        return SignatureSet(list(self._sigs.items()) + list(items))

    def __getitem__(self, key: str) -> bytes:
        return self._sigs[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sigs)

    def __len__(self) -> int:
        return len(self._sigs)

    def __repr__(self) -> str:
        return f"SignatureSet({sorted(self._sigs)!r})"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of one authorization check.

    `have` is the summed weight of matching signatures, `need` the threshold,
    `matched` how many signatures belonged to the account.
    """

    account_id: str
    auth_class: AuthClass
    have: int
    need: int
    matched: int

    @property
    def authorized(self) -> bool:
        return self.matched > 0 and self.have >= self.need

    def raise_for_status(self) -> "AuthResult":
        if not self.authorized:
            raise InsufficientWeight(self.account_id, self.have, self.need)
        return self


def signature_weight(account: Account, signatures: Iterable[str]) -> Tuple[int, int]:
    """Return (total weight, matched count) of `signatures` on `account`."""
    weights = signer_weights(account)
    total = 0
    matched = 0
    for key in set(signatures):
        w = weights.get(key)
        if w is None:
            continue
        total += w
        matched += 1
    return total, matched


def authorize(account: Account, auth_class: AuthClass, signatures: Iterable[str]) -> AuthResult:
    """Decide whether `signatures` authorize an `auth_class` action on `account`."""
    have, matched = signature_weight(account, signatures)
    need = required_weight(account, auth_class)
    result = AuthResult(account.account_id, auth_class, have, need, matched)
    logger.debug(
        "authorize %s class=%s have=%d need=%d matched=%d -> %s",
        account.account_id, auth_class.name, have, need, matched, result.authorized,
    )
    return result


__all__ = [
    "AuthClass",
    "SignatureSet",
    "AuthResult",
    "signature_weight",
    "authorize",
]
