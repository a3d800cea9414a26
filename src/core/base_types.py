"""Core type definitions shared by the router, the ledger and the chain adapters."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from eth_utils.address import is_address, to_checksum_address

MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class Address:
    """Ethereum address with validation and checksumming."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("Address value must be a string")
        if not is_address(self.value):
            raise ValueError("Invalid Ethereum address")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    @classmethod
    def from_string(cls, s: str) -> "Address":
        return cls(s)

    @classmethod
    def from_int(cls, n: int) -> "Address":
        """Deterministic address from an integer (used for local deployments)."""
        if n < 0 or n >= 2**160:
            raise ValueError("address integer out of range")
        return cls(f"0x{n:040x}")

    @property
    def checksum(self) -> str:
        return self.value

    @property
    def lower(self) -> str:
        return self.value.lower()

    @property
    def is_zero(self) -> bool:
        return int(self.value, 16) == 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self.lower == other.lower
        if isinstance(other, str):
            return self.lower == other.lower()
        return False

    def __lt__(self, other: "Address") -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return int(self.value, 16) < int(other.value, 16)

    def __str__(self) -> str:
        return self.value


ZERO_ADDRESS = Address.from_int(0)


def sort_tokens(token_a: Address, token_b: Address) -> tuple[Address, Address]:
    """Canonical pair ordering: token0 has the numerically smaller address."""
    if token_a == token_b:
        raise ValueError("identical token addresses")
    token0, token1 = (token_a, token_b) if token_a < token_b else (token_b, token_a)
    if token0.is_zero:
        raise ValueError("zero address")
    return token0, token1


@dataclass(frozen=True)
class TokenAmount:
    """
    Represents a token amount with proper decimal handling.

    Internally stores raw integer (wei-equivalent).
    Provides human-readable formatting.
    """

    raw: int
    decimals: int
    symbol: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int):
            raise TypeError("raw must be an int")
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")

    @classmethod
    def from_human(
        cls, amount: str | Decimal, decimals: int, symbol: str | None = None
    ) -> "TokenAmount":
        """Create from human-readable amount (e.g., '1.5' ETH)."""
        if isinstance(amount, float):
            raise TypeError("amount must be a string or Decimal, not float")
        if isinstance(amount, str):
            decimal_amount = Decimal(amount)
        elif isinstance(amount, Decimal):
            decimal_amount = amount
        else:
            raise TypeError("amount must be a string or Decimal")

        scale = Decimal(10) ** Decimal(decimals)
        raw_decimal = decimal_amount * scale
        if raw_decimal != raw_decimal.to_integral_value():
            raise ValueError("amount has more precision than decimals allow")
        return cls(raw=int(raw_decimal), decimals=decimals, symbol=symbol)

    @property
    def human(self) -> Decimal:
        """Returns human-readable decimal."""
        scale = Decimal(10) ** Decimal(self.decimals)
        return Decimal(self.raw) / scale

    def __str__(self) -> str:
        return f"{self.human} {self.symbol or ''}".strip()


@dataclass
class TransactionRequest:
    """A read-only call or a transaction to be signed."""

    to: Address
    value: TokenAmount
    data: bytes
    chain_id: int = 1

    def to_dict(self) -> dict:
        """Convert to JSON-RPC call object."""
        return {
            "to": self.to.checksum,
            "value": hex(self.value.raw),
            "data": f"0x{self.data.hex()}",
            "chainId": hex(self.chain_id),
        }
