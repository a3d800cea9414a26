"""Router error taxonomy.

Every router failure is terminal for the call: the host ledger rolls back
all effects and the caller is expected to resubmit with fresh parameters.
"""

from __future__ import annotations


class RouterError(Exception):
    """Base class for router errors."""


# Input validation


class ValidationError(RouterError):
    """Malformed or out-of-range input."""


class InsufficientAmount(ValidationError):
    """Zero amount passed to quote."""


class InsufficientInputAmount(ValidationError):
    """Zero input amount."""


class InsufficientOutputAmount(ValidationError):
    """Zero output amount."""


class InsufficientLiquidity(ValidationError):
    """Empty reserve, or requested output not below the reserve."""


class InvalidPath(ValidationError):
    """Path too short, or a parallel sequence does not match it."""


# Timing


class Expired(RouterError):
    """Operation deadline passed."""


# Economic


class SlippageExceeded(RouterError):
    """Realized amount is worse than the caller's bound."""

    def __init__(self, message: str, realized: int, bound: int):
        self.realized = realized
        self.bound = bound
        super().__init__(f"{message}: realized={realized} bound={bound}")


# Authorization


class AuthorizationError(RouterError):
    """Restricted-token authorization rejected."""


class InvalidSignature(AuthorizationError):
    """Missing, malformed or foreign signature."""


class AuthorizationExpired(AuthorizationError):
    """Authorization deadline passed."""


class NonceMismatch(AuthorizationError):
    """Signed nonce is not the holder's current swap nonce."""

    def __init__(self, expected: int, supplied: int):
        self.expected = expected
        self.supplied = supplied
        super().__init__(f"nonce mismatch: expected {expected}, got {supplied}")


# Transfer


class TransferFailed(RouterError):
    """Token or native transfer failed or reverted."""


class EthRefundFailed(TransferFailed):
    """Refund of excess native value failed."""

