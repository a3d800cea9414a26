import pytest
from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils.crypto import keccak

from auth.permit import permit_signer, sign_permit
from auth.typed_data import (
    AUTHORIZE_SWAP_TYPEHASH,
    TokenDomain,
    recover_signer,
    swap_authorization_message,
    typed_data_digest,
)
from core.base_types import MAX_UINT256, Address
from core.errors import InvalidSignature
from core.wallet_manager import WalletManager

TOKEN = Address.from_string("0x000000000000000000000000000000000000c0de")
OPERATOR_KEY = "0x" + "22" * 32
HOLDER_KEY = "0x" + "11" * 32


def _restricted_domain(chain_id=1):
    return TokenDomain(
        name="Tesla Equity", chain_id=chain_id, verifying_contract=TOKEN, symbol="SEC"
    )


def test_restricted_domain_binds_symbol():
    expected = keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                keccak(
                    text="EIP712Domain(string name,string symbol,string version,"
                    "uint256 chainId,address verifyingContract)"
                ),
                keccak(text="Tesla Equity"),
                keccak(text="SEC"),
                keccak(text="1"),
                1,
                TOKEN.checksum,
            ],
        )
    )
    assert _restricted_domain().separator == expected


def test_separator_differs_per_chain_and_token():
    base = _restricted_domain()
    other_chain = _restricted_domain(chain_id=42)
    other_token = TokenDomain(
        name="Tesla Equity",
        chain_id=1,
        verifying_contract=Address.from_int(0xBEEF),
        symbol="SEC",
    )
    assert len({base.separator, other_chain.separator, other_token.separator}) == 3


def test_swap_digest_layout():
    operator = Address.from_string(Account.from_key(OPERATOR_KEY).address)
    spender = Address.from_int(0x1234)
    domain = _restricted_domain()
    message = swap_authorization_message(domain, operator, spender, 7, MAX_UINT256)

    struct_hash = keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256"],
            [AUTHORIZE_SWAP_TYPEHASH, operator.checksum, spender.checksum, 7, MAX_UINT256],
        )
    )
    assert message.body == struct_hash
    assert typed_data_digest(message) == keccak(
        b"\x19\x01" + domain.separator + struct_hash
    )


def test_signed_swap_message_recovers_operator():
    wallet = WalletManager(OPERATOR_KEY)
    message = swap_authorization_message(
        _restricted_domain(), Address.from_string(wallet.address), TOKEN, 0, MAX_UINT256
    )
    signed = wallet.sign_structured(message)

    signer = recover_signer(message, signed.v, signed.r, signed.s)
    assert signer == wallet.address


def test_recover_signer_rejects_garbage():
    message = swap_authorization_message(
        _restricted_domain(), TOKEN, TOKEN, 0, MAX_UINT256
    )
    with pytest.raises(InvalidSignature):
        recover_signer(message, 0, 0, 0)


def test_standard_permit_matches_eth_account_encoding():
    owner = Account.from_key(HOLDER_KEY).address
    spender = Address.from_int(0x5A5A0002)
    domain = TokenDomain(name="SecSwap LP", chain_id=1, verifying_contract=TOKEN)
    full_message = {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "Permit": [
                {"name": "owner", "type": "address"},
                {"name": "spender", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "nonce", "type": "uint256"},
                {"name": "deadline", "type": "uint256"},
            ],
        },
        "primaryType": "Permit",
        "domain": {
            "name": "SecSwap LP",
            "version": "1",
            "chainId": 1,
            "verifyingContract": TOKEN.checksum,
        },
        "message": {
            "owner": owner,
            "spender": spender.checksum,
            "value": 10**18,
            "nonce": 0,
            "deadline": 2**40,
        },
    }
    reference = encode_typed_data(full_message=full_message)

    signature = sign_permit(
        WalletManager(HOLDER_KEY), domain, spender, 10**18, 0, 2**40
    )
    signed = Account.sign_message(reference, HOLDER_KEY)

    assert domain.separator == reference.header
    assert (signature.v, signature.r, signature.s) == (signed.v, signed.r, signed.s)


def test_permit_signer_detects_changed_value():
    wallet = WalletManager(HOLDER_KEY)
    owner = Address.from_string(wallet.address)
    domain = TokenDomain(name="SecSwap LP", chain_id=1, verifying_contract=TOKEN)
    signature = sign_permit(wallet, domain, TOKEN, 100, 0, MAX_UINT256)

    assert permit_signer(domain, owner, TOKEN, 100, 0, MAX_UINT256, signature) == owner
    assert permit_signer(domain, owner, TOKEN, 101, 0, MAX_UINT256, signature) != owner
