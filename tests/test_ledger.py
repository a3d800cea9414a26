import pytest

from auth.permit import sign_permit
from auth.typed_data import TokenDomain
from core.base_types import ZERO_ADDRESS, Address
from core.errors import Expired, InvalidSignature, NonceMismatch
from core.wallet_manager import WalletManager
from ledger import (
    MINIMUM_LIQUIDITY,
    ERC20Token,
    Factory,
    InMemoryLedger,
    InsufficientAllowance,
    InsufficientBalance,
    NativeTransferRejected,
    PairError,
    SecurityToken,
    UnknownContract,
    WrappedNative,
)

E18 = 10**18
ALICE = Address.from_int(0xA11CE)
BOB = Address.from_int(0xB0B)


def _make_pair(ledger, amount0=10 * E18, amount1=10 * E18):
    factory = Factory(ledger)
    token_x = ERC20Token(ledger, "X", "X")
    token_y = ERC20Token(ledger, "Y", "Y")
    pair = ledger.pair_at(factory.create_pair(ALICE, token_x.address, token_y.address))
    token0 = ledger.token_at(pair.token0)
    token1 = ledger.token_at(pair.token1)
    token0.mint(pair.address, amount0)
    token1.mint(pair.address, amount1)
    pair.mint(ALICE, ALICE)
    return pair, token0, token1


def test_atomic_restores_on_error():
    ledger = InMemoryLedger()
    token = ERC20Token(ledger, "Token", "TKN")
    token.mint(ALICE, 100)
    ledger.fund(ALICE, 50)

    with pytest.raises(InsufficientBalance):
        with ledger.atomic():
            token.transfer(ALICE, BOB, 60)
            ledger.transfer_native(ALICE, BOB, 20)
            token.transfer(ALICE, BOB, 60)

    assert token.balance_of(ALICE) == 100
    assert token.balance_of(BOB) == 0
    assert ledger.native_balance(ALICE) == 50


def test_atomic_scopes_nest():
    ledger = InMemoryLedger()
    token = ERC20Token(ledger, "Token", "TKN")
    token.mint(ALICE, 100)

    with ledger.atomic():
        token.transfer(ALICE, BOB, 10)
        with pytest.raises(InsufficientBalance):
            with ledger.atomic():
                token.transfer(ALICE, BOB, 10)
                token.transfer(ALICE, BOB, 1000)
        assert token.balance_of(BOB) == 10

    assert token.balance_of(BOB) == 10


def test_atomic_forgets_contracts_deployed_inside():
    ledger = InMemoryLedger()
    with pytest.raises(RuntimeError):
        with ledger.atomic():
            token = ERC20Token(ledger, "Token", "TKN")
            raise RuntimeError("boom")

    with pytest.raises(UnknownContract):
        ledger.contract_at(token.address)


def test_lookup_by_kind():
    ledger = InMemoryLedger()
    token = ERC20Token(ledger, "Token", "TKN")
    factory = Factory(ledger)

    assert ledger.token_at(token.address) is token
    with pytest.raises(UnknownContract, match="not a pair"):
        ledger.pair_at(token.address)
    with pytest.raises(UnknownContract, match="not a token"):
        ledger.token_at(factory.address)


def test_clock():
    ledger = InMemoryLedger(timestamp=100)
    assert ledger.advance(20) == 120
    ledger.set_timestamp(5)
    assert ledger.timestamp() == 5


def test_native_transfers():
    ledger = InMemoryLedger()
    ledger.fund(ALICE, 10)
    ledger.reject_native(BOB)

    with pytest.raises(NativeTransferRejected):
        ledger.transfer_native(ALICE, BOB, 1)
    with pytest.raises(InsufficientBalance):
        ledger.transfer_native(ALICE, ZERO_ADDRESS, 11)


def test_allowance_spent_unless_max():
    ledger = InMemoryLedger()
    token = ERC20Token(ledger, "Token", "TKN")
    token.mint(ALICE, 100)
    token.approve(ALICE, BOB, 30)

    token.transfer_from(BOB, ALICE, BOB, 20)
    assert token.allowance(ALICE, BOB) == 10
    with pytest.raises(InsufficientAllowance):
        token.transfer_from(BOB, ALICE, BOB, 20)


def test_wrapped_native_round_trip():
    ledger = InMemoryLedger()
    weth = WrappedNative(ledger)
    ledger.fund(ALICE, 5)

    weth.deposit(ALICE, 5)
    assert weth.balance_of(ALICE) == 5
    assert ledger.native_balance(weth.address) == 5

    weth.withdraw(ALICE, 2)
    assert ledger.native_balance(ALICE) == 2
    assert weth.total_supply == 3


def test_security_token_nonce():
    ledger = InMemoryLedger()
    token = SecurityToken(ledger, "Tesla Equity", "SEC")
    token.consume_swap_nonce(BOB, ALICE, 0)

    assert token.swap_nonces(ALICE) == 1
    with pytest.raises(NonceMismatch):
        token.consume_swap_nonce(BOB, ALICE, 0)
    assert token.swap_nonces(BOB) == 0


def test_factory_one_pair_per_couple():
    ledger = InMemoryLedger()
    factory = Factory(ledger)
    token_x = ERC20Token(ledger, "X", "X")
    token_y = SecurityToken(ledger, "Y", "Y")

    pair = factory.create_pair(ALICE, token_y.address, token_x.address)
    assert factory.get_pair(token_x.address, token_y.address) == pair
    assert ledger.pair_at(pair).is_restricted_pair
    with pytest.raises(PairError, match="exists"):
        factory.create_pair(ALICE, token_x.address, token_y.address)
    with pytest.raises(PairError, match="identical"):
        factory.create_pair(ALICE, token_x.address, token_x.address)
    assert factory.get_pair(token_x.address, token_x.address) is None


def test_first_mint_locks_minimum_liquidity():
    ledger = InMemoryLedger()
    pair, _, _ = _make_pair(ledger)

    assert pair.balance_of(ZERO_ADDRESS) == MINIMUM_LIQUIDITY
    assert pair.balance_of(ALICE) == 10 * E18 - MINIMUM_LIQUIDITY
    assert pair.block_timestamp_last == ledger.timestamp()


def test_swap_requires_input():
    ledger = InMemoryLedger()
    pair, _, _ = _make_pair(ledger)

    with pytest.raises(PairError, match="insufficient input"):
        pair.swap(ALICE, 0, E18, BOB)
    with pytest.raises(PairError, match="insufficient liquidity"):
        pair.swap(ALICE, 10 * E18, 0, BOB)


def test_swap_enforces_product():
    ledger = InMemoryLedger()
    pair, token0, token1 = _make_pair(ledger)
    token0.mint(pair.address, E18)

    with pytest.raises(PairError, match="K"):
        pair.swap(ALICE, 0, E18, BOB)
    assert token1.balance_of(BOB) == 0
    assert token1.balance_of(pair.address) == pair.reserves()[1]
    assert not pair._locked

    pair.swap(ALICE, 0, 906610893880149131, BOB)
    assert token1.balance_of(BOB) == 906610893880149131
    assert pair.reserves()[:2] == (11 * E18, 10 * E18 - 906610893880149131)


def test_sync_absorbs_donations():
    ledger = InMemoryLedger()
    pair, token0, _ = _make_pair(ledger)
    token0.mint(pair.address, 7)

    pair.sync(ALICE)
    assert pair.reserves()[0] == 10 * E18 + 7


def test_permit_checks_deadline_and_owner():
    ledger = InMemoryLedger()
    pair, _, _ = _make_pair(ledger)
    owner = WalletManager("0x" + "11" * 32)
    owner_address = Address.from_string(owner.address)
    domain = TokenDomain.for_token(pair, ledger.chain_id)
    now = ledger.timestamp()

    stale = sign_permit(owner, domain, BOB, 1, 0, now)
    with pytest.raises(Expired):
        pair.permit(BOB, owner_address, BOB, 1, now, stale.v, stale.r, stale.s)

    signature = sign_permit(owner, domain, BOB, 1, 0, now + 60)
    with pytest.raises(InvalidSignature):
        pair.permit(BOB, ALICE, BOB, 1, now + 60, signature.v, signature.r, signature.s)

    pair.permit(BOB, owner_address, BOB, 1, now + 60, signature.v, signature.r, signature.s)
    assert pair.allowance(owner_address, BOB) == 1
    assert pair.nonces(owner_address) == 1
