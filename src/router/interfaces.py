"""
Collaborator protocols consumed by the routers.

Every mutating call takes an explicit ``caller``: the address on whose
behalf the collaborator acts (the contract-call sender). The routers never
hold collaborator state between calls; everything is read fresh through
these interfaces.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Protocol

from core.base_types import Address


class Token(Protocol):
    address: Address
    decimals: int
    restricted: bool

    def name(self) -> str:
        ...

    def symbol(self) -> str:
        ...

    def balance_of(self, owner: Address) -> int:
        ...

    def transfer(self, caller: Address, to: Address, value: int) -> bool:
        ...

    def transfer_from(
        self, caller: Address, owner: Address, to: Address, value: int
    ) -> bool:
        ...

    def approve(self, caller: Address, spender: Address, value: int) -> bool:
        ...


class RestrictedToken(Token, Protocol):
    """Security token: transfers through a router need a signed authorization."""

    def swap_nonces(self, holder: Address) -> int:
        ...

    def is_swap_operator(self, operator: Address) -> bool:
        ...

    def consume_swap_nonce(self, caller: Address, holder: Address, nonce: int) -> None:
        ...


class WrappedNative(Token, Protocol):
    def deposit(self, caller: Address, value: int) -> None:
        ...

    def withdraw(self, caller: Address, amount: int) -> None:
        ...


class Pair(Token, Protocol):
    token0: Address
    token1: Address
    is_restricted_pair: bool

    def reserves(self) -> tuple[int, int, Address, Address]:
        ...

    def swap(
        self, caller: Address, amount0_out: int, amount1_out: int, to: Address
    ) -> None:
        ...

    def mint(self, caller: Address, to: Address) -> int:
        ...

    def burn(self, caller: Address, to: Address) -> tuple[int, int]:
        ...

    def nonces(self, owner: Address) -> int:
        ...

    def permit(
        self,
        caller: Address,
        owner: Address,
        spender: Address,
        value: int,
        deadline: int,
        v: int,
        r: int,
        s: int,
    ) -> None:
        ...


class Factory(Protocol):
    address: Address

    def get_pair(self, token_a: Address, token_b: Address) -> Optional[Address]:
        ...

    def create_pair(
        self,
        caller: Address,
        token_a: Address,
        token_b: Address,
        restricted: bool = False,
    ) -> Address:
        ...


class Host(Protocol):
    """The ledger executing a call: clock, chain id, contracts, native value."""

    chain_id: int

    def timestamp(self) -> int:
        ...

    def atomic(self) -> AbstractContextManager:
        ...

    def token_at(self, address: Address) -> Token:
        ...

    def pair_at(self, address: Address) -> Pair:
        ...

    def native_balance(self, address: Address) -> int:
        ...

    def transfer_native(self, caller: Address, to: Address, amount: int) -> None:
        ...
