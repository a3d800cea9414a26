"""EIP-2612 permits: off-chain approvals consumed atomically with an operation."""

from __future__ import annotations

from dataclasses import dataclass

from core.base_types import MAX_UINT256, Address

from .typed_data import TokenDomain, permit_message, recover_signer


@dataclass(frozen=True)
class PermitSignature:
    v: int
    r: int
    s: int


def sign_permit(
    owner_wallet,
    domain: TokenDomain,
    spender: Address,
    value: int,
    nonce: int,
    deadline: int = MAX_UINT256,
) -> PermitSignature:
    owner = Address.from_string(owner_wallet.address)
    message = permit_message(domain, owner, spender, value, nonce, deadline)
    signed = owner_wallet.sign_structured(message)
    return PermitSignature(v=int(signed.v), r=int(signed.r), s=int(signed.s))


def permit_signer(
    domain: TokenDomain,
    owner: Address,
    spender: Address,
    value: int,
    nonce: int,
    deadline: int,
    signature: PermitSignature,
) -> Address:
    message = permit_message(domain, owner, spender, value, nonce, deadline)
    return recover_signer(message, signature.v, signature.r, signature.s)
