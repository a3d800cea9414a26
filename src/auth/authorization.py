"""
Per-hop swap authorizations.

An authorization is either ``SignedAuthorization`` (a compliance operator's
signature over the holder's current swap nonce and a deadline) or
``NoAuthorization``. On the wire the second variant is the sentinel tuple
(zero operator, MAX_UINT256 deadline, zero v/r/s); ``parse_authorization``
collapses it into the explicit variant and rejects anything else that
carries a zero operator.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from core.base_types import MAX_UINT256, ZERO_ADDRESS, Address
from core.errors import InvalidPath, InvalidSignature

from .typed_data import TokenDomain, swap_authorization_message

_ZERO_WORD = b"\x00" * 32


@dataclass(frozen=True)
class NoAuthorization:
    """Placeholder for a hop whose token needs no authorization."""

    def to_wire(self) -> tuple[str, int, int, bytes, bytes]:
        return (ZERO_ADDRESS.checksum, MAX_UINT256, 0, _ZERO_WORD, _ZERO_WORD)


NO_AUTHORIZATION = NoAuthorization()


@dataclass(frozen=True)
class SignedAuthorization:
    operator: Address
    deadline: int
    v: int
    r: int
    s: int
    # None: the holder's current nonce at verification time (wire convention)
    nonce: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.operator, Address):
            raise TypeError("operator must be an Address")
        if self.nonce is not None and (
            not isinstance(self.nonce, int) or self.nonce < 0
        ):
            raise ValueError("nonce must be a non-negative int")
        for name in ("deadline", "v", "r", "s"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be int")
            if value < 0 or value > MAX_UINT256:
                raise ValueError(f"{name} out of uint256 range")

    def to_wire(self) -> tuple[str, int, int, bytes, bytes]:
        return (
            self.operator.checksum,
            self.deadline,
            self.v,
            self.r.to_bytes(32, "big"),
            self.s.to_bytes(32, "big"),
        )


SwapAuthorization = Union[SignedAuthorization, NoAuthorization]


def _word_to_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{name} must be int, bytes or hex string")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) > 32:
            raise ValueError(f"{name} longer than 32 bytes")
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        if value.startswith("0x"):
            return int(value, 16) if len(value) > 2 else 0
        return int(value)
    raise TypeError(f"{name} must be int, bytes or hex string")


def parse_authorization(value: Any) -> SwapAuthorization:
    """
    Accept a variant, a mapping (operator/deadline/v/r/s, optional nonce) or
    a 5-tuple.
    """
    if isinstance(value, (SignedAuthorization, NoAuthorization)):
        return value
    nonce = None
    if isinstance(value, Mapping):
        try:
            fields = [value[key] for key in ("operator", "deadline", "v", "r", "s")]
        except KeyError as exc:
            raise InvalidSignature(f"authorization missing field {exc}") from exc
        if value.get("nonce") is not None:
            nonce = _word_to_int(value["nonce"], "nonce")
    elif isinstance(value, (tuple, list)) and len(value) == 5:
        fields = list(value)
    else:
        raise InvalidSignature("authorization must be a mapping or 5-tuple")

    raw_operator, raw_deadline, raw_v, raw_r, raw_s = fields
    operator = (
        raw_operator
        if isinstance(raw_operator, Address)
        else Address.from_string(str(raw_operator))
    )
    deadline = _word_to_int(raw_deadline, "deadline")
    v = _word_to_int(raw_v, "v")
    r = _word_to_int(raw_r, "r")
    s = _word_to_int(raw_s, "s")

    if operator.is_zero:
        if deadline == MAX_UINT256 and v == 0 and r == 0 and s == 0:
            return NO_AUTHORIZATION
        raise InvalidSignature("malformed empty authorization")
    return SignedAuthorization(
        operator=operator, deadline=deadline, v=v, r=r, s=s, nonce=nonce
    )


def parse_authorizations(
    values: Sequence[Any], path: Sequence[Address]
) -> list[SwapAuthorization]:
    """One authorization per path token."""
    if len(values) != len(path):
        raise InvalidPath(
            f"expected {len(path)} authorizations for {len(path)} tokens, got {len(values)}"
        )
    return [parse_authorization(value) for value in values]


def empty_authorizations(path: Sequence[Address]) -> list[SwapAuthorization]:
    return [NO_AUTHORIZATION for _ in path]


def sign_swap_authorization(
    operator_wallet,
    domain: TokenDomain,
    spender: Address,
    nonce: int,
    deadline: int = MAX_UINT256,
) -> SignedAuthorization:
    """Operator-side: sign AuthorizeSwap for ``spender`` at ``nonce``."""
    operator = Address.from_string(operator_wallet.address)
    message = swap_authorization_message(domain, operator, spender, nonce, deadline)
    signed = operator_wallet.sign_structured(message)
    return SignedAuthorization(
        operator=operator,
        deadline=deadline,
        v=int(signed.v),
        r=int(signed.r),
        s=int(signed.s),
        nonce=nonce,
    )
