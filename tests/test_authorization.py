import pytest

from auth.authorization import (
    NO_AUTHORIZATION,
    NoAuthorization,
    SignedAuthorization,
    empty_authorizations,
    parse_authorization,
    parse_authorizations,
    sign_swap_authorization,
)
from auth.verifier import AuthorizationVerifier
from core.base_types import MAX_UINT256, ZERO_ADDRESS, Address
from core.errors import (
    AuthorizationExpired,
    InvalidPath,
    InvalidSignature,
    NonceMismatch,
)
from core.wallet_manager import WalletManager

OPERATOR_KEY = "0x" + "22" * 32
OUTSIDER_KEY = "0x" + "33" * 32
HOLDER = Address.from_int(0xF00D)
NOW = 1_700_000_000


class _FakeSecurityToken:
    restricted = True

    def __init__(self, operators=(), nonce=0):
        self.address = Address.from_int(0xC0DE)
        self._operators = {Address.from_string(op) for op in operators}
        self._nonce = nonce

    def name(self):
        return "Tesla Equity"

    def symbol(self):
        return "SEC"

    def swap_nonces(self, holder):
        return self._nonce

    def is_swap_operator(self, operator):
        return operator in self._operators


class _FakePlainToken:
    restricted = False
    address = Address.from_int(0xDA1)

    def swap_nonces(self, holder):
        raise AssertionError("plain tokens are never asked for nonces")


def _make_authorization(token, key=OPERATOR_KEY, nonce=0, deadline=MAX_UINT256):
    verifier = AuthorizationVerifier(chain_id=1)
    return sign_swap_authorization(
        WalletManager(key), verifier.domain_for(token), HOLDER, nonce, deadline
    )


def test_sentinel_tuple_parses_to_no_authorization():
    sentinel = (ZERO_ADDRESS.checksum, MAX_UINT256, 0, b"\x00" * 32, "0x" + "00" * 32)
    assert parse_authorization(sentinel) is NO_AUTHORIZATION
    assert NO_AUTHORIZATION.to_wire()[0] == ZERO_ADDRESS.checksum


def test_zero_operator_with_signature_is_rejected():
    with pytest.raises(InvalidSignature, match="malformed"):
        parse_authorization(
            {"operator": ZERO_ADDRESS.checksum, "deadline": 5, "v": 27, "r": 1, "s": 2}
        )


def test_mapping_parses_with_optional_nonce():
    parsed = parse_authorization(
        {
            "operator": "0x000000000000000000000000000000000000beef",
            "deadline": "0x10",
            "v": 28,
            "r": "0x01",
            "s": bytes.fromhex("02"),
            "nonce": 3,
        }
    )
    assert isinstance(parsed, SignedAuthorization)
    assert (parsed.deadline, parsed.v, parsed.r, parsed.s) == (16, 28, 1, 2)
    assert parsed.nonce == 3


def test_missing_field_is_invalid_signature():
    with pytest.raises(InvalidSignature, match="missing field"):
        parse_authorization({"operator": HOLDER.checksum})


def test_authorizations_align_with_path():
    path = [Address.from_int(1), Address.from_int(2), Address.from_int(3)]
    assert parse_authorizations(empty_authorizations(path), path) == [NO_AUTHORIZATION] * 3
    with pytest.raises(InvalidPath):
        parse_authorizations([NO_AUTHORIZATION], path)


def test_signed_authorization_validates_fields():
    with pytest.raises(TypeError):
        SignedAuthorization(
            operator="0xabc", deadline=1, v=27, r=1, s=1  # type: ignore[arg-type]
        )
    with pytest.raises(ValueError):
        SignedAuthorization(operator=HOLDER, deadline=-1, v=27, r=1, s=1)


def test_unrestricted_token_short_circuits():
    verifier = AuthorizationVerifier(chain_id=1)
    assert verifier.verify(_FakePlainToken(), HOLDER, NO_AUTHORIZATION, NOW) is None


def test_restricted_token_requires_authorization():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address])
    verifier = AuthorizationVerifier(chain_id=1)
    with pytest.raises(InvalidSignature):
        verifier.verify(token, HOLDER, NoAuthorization(), NOW)


def test_valid_authorization_yields_grant():
    operator = WalletManager(OPERATOR_KEY).address
    token = _FakeSecurityToken(operators=[operator], nonce=4)
    authorization = _make_authorization(token, nonce=4)

    grant = AuthorizationVerifier(chain_id=1).verify(token, HOLDER, authorization, NOW)

    assert grant.nonce == 4
    assert grant.operator == operator
    assert grant.holder == HOLDER
    assert token.swap_nonces(HOLDER) == 4


def test_wire_authorization_uses_current_nonce():
    operator = WalletManager(OPERATOR_KEY).address
    token = _FakeSecurityToken(operators=[operator], nonce=2)
    operator_addr, deadline, v, r, s = _make_authorization(token, nonce=2).to_wire()
    wire = parse_authorization((operator_addr, deadline, v, r, s))

    grant = AuthorizationVerifier(chain_id=1).verify(token, HOLDER, wire, NOW)
    assert grant.nonce == 2


def test_stale_nonce_is_mismatch():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address], nonce=1)
    authorization = _make_authorization(token, nonce=0)

    with pytest.raises(NonceMismatch) as exc:
        AuthorizationVerifier(chain_id=1).verify(token, HOLDER, authorization, NOW)
    assert (exc.value.expected, exc.value.supplied) == (1, 0)


def test_wire_authorization_signed_at_consumed_nonce_is_mismatch():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address], nonce=3)
    wire = parse_authorization(_make_authorization(token, nonce=1).to_wire())

    with pytest.raises(NonceMismatch) as exc:
        AuthorizationVerifier(chain_id=1).verify(token, HOLDER, wire, NOW)
    assert (exc.value.expected, exc.value.supplied) == (3, 1)


def test_wire_authorization_for_unseen_nonce_is_invalid():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address], nonce=1)
    wire = parse_authorization(_make_authorization(token, nonce=5).to_wire())

    with pytest.raises(InvalidSignature, match="does not match operator"):
        AuthorizationVerifier(chain_id=1).verify(token, HOLDER, wire, NOW)


def test_expired_authorization_rejected_even_if_unused():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address])
    authorization = _make_authorization(token, deadline=NOW)

    with pytest.raises(AuthorizationExpired):
        AuthorizationVerifier(chain_id=1).verify(token, HOLDER, authorization, NOW)


def test_signature_for_other_spender_is_rejected():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address])
    authorization = _make_authorization(token)

    with pytest.raises(InvalidSignature, match="does not match operator"):
        AuthorizationVerifier(chain_id=1).verify(
            token, Address.from_int(0xBAD), authorization, NOW
        )


def test_signature_from_other_chain_is_rejected():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address])
    authorization = _make_authorization(token)

    with pytest.raises(InvalidSignature):
        AuthorizationVerifier(chain_id=42).verify(token, HOLDER, authorization, NOW)


def test_non_operator_signer_is_rejected():
    token = _FakeSecurityToken(operators=[WalletManager(OPERATOR_KEY).address])
    authorization = _make_authorization(token, key=OUTSIDER_KEY)

    with pytest.raises(InvalidSignature, match="not a swap operator"):
        AuthorizationVerifier(chain_id=1).verify(token, HOLDER, authorization, NOW)


def test_verifier_requires_positive_chain_id():
    with pytest.raises(ValueError):
        AuthorizationVerifier(chain_id=0)
