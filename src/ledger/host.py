"""
In-memory host ledger.

Holds every deployed contract, native balances and the clock. ``atomic()``
captures all of it and restores it if the block raises, which is how a
failing router call leaves no partial effect. Scopes nest.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Iterator

from core.base_types import Address

from .errors import InsufficientBalance, NativeTransferRejected, UnknownContract

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP = 1_700_000_000
_FIRST_CONTRACT = 0x1000


class Contract:
    """Base for ledger-resident contracts. Attributes not listed are state."""

    _untracked: tuple[str, ...] = ("ledger", "address")

    def __init__(self, ledger: "InMemoryLedger"):
        self.ledger = ledger
        self.address = ledger.deploy(self)

    def state(self) -> dict:
        return {
            key: copy.deepcopy(value)
            for key, value in vars(self).items()
            if key not in self._untracked
        }

    def restore(self, state: dict) -> None:
        self.__dict__.update(state)


class InMemoryLedger:
    def __init__(self, chain_id: int = 1, timestamp: int = DEFAULT_TIMESTAMP):
        if chain_id <= 0:
            raise ValueError("chain_id must be positive")
        self.chain_id = chain_id
        self._timestamp = timestamp
        self._contracts: dict[Address, Contract] = {}
        self._native: dict[Address, int] = {}
        self._rejects_native: set[Address] = set()
        self._next_address = _FIRST_CONTRACT

    # ---- clock ----

    def timestamp(self) -> int:
        return self._timestamp

    def set_timestamp(self, timestamp: int) -> None:
        self._timestamp = timestamp

    def advance(self, seconds: int) -> int:
        self._timestamp += seconds
        return self._timestamp

    # ---- contracts ----

    def deploy(self, contract: Contract) -> Address:
        address = Address.from_int(self._next_address)
        self._next_address += 1
        self._contracts[address] = contract
        logger.debug("deployed %s at %s", type(contract).__name__, address)
        return address

    def contract_at(self, address: Address) -> Contract:
        try:
            return self._contracts[address]
        except KeyError:
            raise UnknownContract(f"no contract at {address}") from None

    def token_at(self, address: Address):
        contract = self.contract_at(address)
        if not hasattr(contract, "balance_of"):
            raise UnknownContract(f"{address} is not a token")
        return contract

    def pair_at(self, address: Address):
        contract = self.contract_at(address)
        if not hasattr(contract, "reserves"):
            raise UnknownContract(f"{address} is not a pair")
        return contract

    # ---- native value ----

    def native_balance(self, address: Address) -> int:
        return self._native.get(address, 0)

    def fund(self, address: Address, amount: int) -> None:
        """Credit native value out of thin air (test setup)."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._native[address] = self.native_balance(address) + amount

    def reject_native(self, address: Address) -> None:
        """Make ``address`` refuse incoming native transfers."""
        self._rejects_native.add(address)

    def transfer_native(self, caller: Address, to: Address, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if to in self._rejects_native:
            raise NativeTransferRejected(f"{to} rejects native value")
        available = self.native_balance(caller)
        if available < amount:
            raise InsufficientBalance(caller, amount, available)
        self._native[caller] = available - amount
        self._native[to] = self.native_balance(to) + amount

    # ---- rollback ----

    def _capture(self) -> dict:
        return {
            "native": dict(self._native),
            "rejects_native": set(self._rejects_native),
            "contracts": dict(self._contracts),
            "states": {
                address: contract.state()
                for address, contract in self._contracts.items()
            },
        }

    def _restore(self, saved: dict) -> None:
        self._native = saved["native"]
        self._rejects_native = saved["rejects_native"]
        self._contracts = saved["contracts"]
        for address, state in saved["states"].items():
            self._contracts[address].restore(state)

    @contextmanager
    def atomic(self) -> Iterator["InMemoryLedger"]:
        saved = self._capture()
        try:
            yield self
        except Exception:
            logger.debug("rolling back ledger state")
            self._restore(saved)
            raise
