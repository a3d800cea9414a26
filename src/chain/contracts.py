"""
Read-only collaborators backed by a live chain.

These satisfy the router's collaborator protocols for everything that only
reads state, so ``get_amounts_out``/``get_amounts_in`` and authorization
signing work against deployed contracts. Anything that would change state
raises ``ReadOnlyAdapter``.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Any, Optional, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils.crypto import keccak

from core.base_types import ZERO_ADDRESS, Address, TokenAmount, TransactionRequest

from .client import ChainClient
from .errors import ExecutionReverted, ReadOnlyAdapter

logger = logging.getLogger(__name__)


def selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def _eth_call(
    client: ChainClient,
    to: Address,
    signature: str,
    result_types: Sequence[str],
    arg_types: Sequence[str] = (),
    args: Sequence[Any] = (),
) -> tuple:
    data = selector(signature)
    if arg_types:
        data += encode(list(arg_types), list(args))
    tx = TransactionRequest(
        to=to,
        value=TokenAmount(raw=0, decimals=18),
        data=data,
    )
    return decode(list(result_types), client.call(tx))


def _call_string(client: ChainClient, token: Address, signature: str) -> str:
    data = selector(signature)
    tx = TransactionRequest(to=token, value=TokenAmount(raw=0, decimals=18), data=data)
    raw = client.call(tx)
    # some early tokens return bytes32 instead of string
    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
    (decoded,) = decode(["string"], raw)
    return str(decoded)


def _read_only(operation: str):
    raise ReadOnlyAdapter(f"{operation} needs a signed transaction")


class ChainToken:
    def __init__(self, client: ChainClient, address: Address):
        self._client = client
        self.address = address
        self._decimals: Optional[int] = None
        self._restricted: Optional[bool] = None

    @property
    def decimals(self) -> int:
        if self._decimals is None:
            (value,) = _eth_call(self._client, self.address, "decimals()", ["uint8"])
            self._decimals = int(value)
        return self._decimals

    @property
    def restricted(self) -> bool:
        """Security tokens are the ones answering ``swapNonces``."""
        if self._restricted is None:
            try:
                self.swap_nonces(ZERO_ADDRESS)
            except (ExecutionReverted, DecodingError):
                self._restricted = False
            else:
                self._restricted = True
            logger.debug("token %s restricted=%s", self.address, self._restricted)
        return self._restricted

    def name(self) -> str:
        return _call_string(self._client, self.address, "name()")

    def symbol(self) -> str:
        return _call_string(self._client, self.address, "symbol()")

    def balance_of(self, owner: Address) -> int:
        (value,) = _eth_call(
            self._client,
            self.address,
            "balanceOf(address)",
            ["uint256"],
            ["address"],
            [owner.checksum],
        )
        return int(value)

    def swap_nonces(self, holder: Address) -> int:
        (value,) = _eth_call(
            self._client,
            self.address,
            "swapNonces(address)",
            ["uint256"],
            ["address"],
            [holder.checksum],
        )
        return int(value)

    def transfer(self, caller: Address, to: Address, value: int) -> bool:
        _read_only("transfer")

    def transfer_from(
        self, caller: Address, owner: Address, to: Address, value: int
    ) -> bool:
        _read_only("transferFrom")

    def approve(self, caller: Address, spender: Address, value: int) -> bool:
        _read_only("approve")


class ChainPair(ChainToken):
    def __init__(self, client: ChainClient, address: Address, host: "ChainHost"):
        super().__init__(client, address)
        self._host = host
        self._tokens: Optional[tuple[Address, Address]] = None

    def _token_pair(self) -> tuple[Address, Address]:
        if self._tokens is None:
            (token0,) = _eth_call(self._client, self.address, "token0()", ["address"])
            (token1,) = _eth_call(self._client, self.address, "token1()", ["address"])
            self._tokens = (Address.from_string(token0), Address.from_string(token1))
        return self._tokens

    @property
    def token0(self) -> Address:
        return self._token_pair()[0]

    @property
    def token1(self) -> Address:
        return self._token_pair()[1]

    @property
    def is_restricted_pair(self) -> bool:
        token0, token1 = self._token_pair()
        return (
            self._host.token_at(token0).restricted
            or self._host.token_at(token1).restricted
        )

    def reserves(self) -> tuple[int, int, Address, Address]:
        reserve0, reserve1, _ = _eth_call(
            self._client, self.address, "getReserves()", ["uint112", "uint112", "uint32"]
        )
        token0, token1 = self._token_pair()
        return int(reserve0), int(reserve1), token0, token1

    def nonces(self, owner: Address) -> int:
        (value,) = _eth_call(
            self._client,
            self.address,
            "nonces(address)",
            ["uint256"],
            ["address"],
            [owner.checksum],
        )
        return int(value)

    def swap(
        self, caller: Address, amount0_out: int, amount1_out: int, to: Address
    ) -> None:
        _read_only("swap")

    def mint(self, caller: Address, to: Address) -> int:
        _read_only("mint")

    def burn(self, caller: Address, to: Address) -> tuple[int, int]:
        _read_only("burn")

    def permit(self, caller, owner, spender, value, deadline, v, r, s) -> None:
        _read_only("permit")


class ChainFactory:
    def __init__(self, client: ChainClient, address: Address):
        self._client = client
        self.address = address

    def get_pair(self, token_a: Address, token_b: Address) -> Optional[Address]:
        (pair,) = _eth_call(
            self._client,
            self.address,
            "getPair(address,address)",
            ["address"],
            ["address", "address"],
            [token_a.checksum, token_b.checksum],
        )
        address = Address.from_string(pair)
        return None if address.is_zero else address

    def create_pair(
        self,
        caller: Address,
        token_a: Address,
        token_b: Address,
        restricted: bool = False,
    ) -> Address:
        _read_only("createPair")


class ChainHost:
    """Host view of a live chain: latest block clock, no rollback needed."""

    def __init__(self, client: ChainClient, chain_id: Optional[int] = None):
        self._client = client
        self._chain_id = chain_id
        self._tokens: dict[Address, ChainToken] = {}
        self._pairs: dict[Address, ChainPair] = {}

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self._client.get_chain_id()
        return self._chain_id

    def timestamp(self) -> int:
        return self._client.get_timestamp()

    def atomic(self):
        return nullcontext(self)

    def token_at(self, address: Address) -> ChainToken:
        if address not in self._tokens:
            self._tokens[address] = ChainToken(self._client, address)
        return self._tokens[address]

    def pair_at(self, address: Address) -> ChainPair:
        if address not in self._pairs:
            self._pairs[address] = ChainPair(self._client, address, self)
        return self._pairs[address]

    def native_balance(self, address: Address) -> int:
        return self._client.get_balance(address).raw

    def transfer_native(self, caller: Address, to: Address, amount: int) -> None:
        _read_only("native transfer")
