"""Failures raised by the in-memory collaborator contracts."""

from __future__ import annotations

from core.base_types import Address


class LedgerError(Exception):
    """Base class for ledger errors."""


class InsufficientBalance(LedgerError):
    """Not enough token or native balance."""

    def __init__(self, owner: Address, needed: int, available: int):
        self.owner = owner
        self.needed = needed
        self.available = available
        super().__init__(f"{owner} has {available}, needs {needed}")


class InsufficientAllowance(LedgerError):
    """Spender allowance below the transferred amount."""


class PairError(LedgerError):
    """Pair rejected a mint, burn, swap or creation."""


class NativeTransferRejected(LedgerError):
    """Recipient refuses native value."""


class UnknownContract(LedgerError):
    """No contract of the requested kind at this address."""
