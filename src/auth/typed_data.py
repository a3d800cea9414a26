"""
EIP-712 hashing for swap authorizations and permits.

Restricted (security) tokens use a domain that also binds the token symbol:

    EIP712Domain(string name,string symbol,string version,uint256 chainId,address verifyingContract)

Plain tokens and LP tokens use the standard domain without ``symbol``.
The digest is keccak256(0x19 0x01 || domainSeparator || structHash).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from eth_abi import encode
from eth_account import Account
from eth_account.messages import SignableMessage
from eth_utils.crypto import keccak

from core.base_types import MAX_UINT256, Address
from core.errors import InvalidSignature

DEFAULT_VERSION = "1"

RESTRICTED_DOMAIN_TYPEHASH = keccak(
    text=(
        "EIP712Domain(string name,string symbol,string version,"
        "uint256 chainId,address verifyingContract)"
    )
)
STANDARD_DOMAIN_TYPEHASH = keccak(
    text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
AUTHORIZE_SWAP_TYPEHASH = keccak(
    text="AuthorizeSwap(address operator,address spender,uint256 nonce,uint256 deadline)"
)
PERMIT_TYPEHASH = keccak(
    text="Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)"
)


def _uint256(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"{name} out of uint256 range")
    return value


@dataclass(frozen=True)
class TokenDomain:
    """Signing domain of one token instance on one chain."""

    name: str
    chain_id: int
    verifying_contract: Address
    symbol: Optional[str] = None
    version: str = DEFAULT_VERSION

    @classmethod
    def for_token(
        cls, token, chain_id: int, version: str = DEFAULT_VERSION
    ) -> "TokenDomain":
        """Read name (and symbol for restricted tokens) from the token itself."""
        symbol = token.symbol() if token.restricted else None
        return cls(
            name=token.name(),
            chain_id=chain_id,
            verifying_contract=token.address,
            symbol=symbol,
            version=version,
        )

    @property
    def separator(self) -> bytes:
        chain_id = _uint256("chain_id", self.chain_id)
        if self.symbol is None:
            return keccak(
                encode(
                    ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                    [
                        STANDARD_DOMAIN_TYPEHASH,
                        keccak(text=self.name),
                        keccak(text=self.version),
                        chain_id,
                        self.verifying_contract.checksum,
                    ],
                )
            )
        return keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    RESTRICTED_DOMAIN_TYPEHASH,
                    keccak(text=self.name),
                    keccak(text=self.symbol),
                    keccak(text=self.version),
                    chain_id,
                    self.verifying_contract.checksum,
                ],
            )
        )


def swap_struct_hash(
    operator: Address, spender: Address, nonce: int, deadline: int
) -> bytes:
    return keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256"],
            [
                AUTHORIZE_SWAP_TYPEHASH,
                operator.checksum,
                spender.checksum,
                _uint256("nonce", nonce),
                _uint256("deadline", deadline),
            ],
        )
    )


def permit_struct_hash(
    owner: Address, spender: Address, value: int, nonce: int, deadline: int
) -> bytes:
    return keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
            [
                PERMIT_TYPEHASH,
                owner.checksum,
                spender.checksum,
                _uint256("value", value),
                _uint256("nonce", nonce),
                _uint256("deadline", deadline),
            ],
        )
    )


def structured_message(domain: TokenDomain, struct_hash: bytes) -> SignableMessage:
    return SignableMessage(
        version=b"\x01", header=domain.separator, body=struct_hash
    )


def swap_authorization_message(
    domain: TokenDomain,
    operator: Address,
    spender: Address,
    nonce: int,
    deadline: int,
) -> SignableMessage:
    return structured_message(
        domain, swap_struct_hash(operator, spender, nonce, deadline)
    )


def permit_message(
    domain: TokenDomain,
    owner: Address,
    spender: Address,
    value: int,
    nonce: int,
    deadline: int,
) -> SignableMessage:
    return structured_message(
        domain, permit_struct_hash(owner, spender, value, nonce, deadline)
    )


def typed_data_digest(message: SignableMessage) -> bytes:
    """keccak256(0x19 || version || header || body)."""
    return keccak(b"\x19" + message.version + message.header + message.body)


def recover_signer(message: SignableMessage, v: int, r: int, s: int) -> Address:
    """Recover the signing address; malformed signatures raise InvalidSignature."""
    try:
        recovered = Account.recover_message(message, vrs=(v, r, s))
    except Exception as exc:
        raise InvalidSignature("signature could not be recovered") from exc
    return Address.from_string(recovered)
