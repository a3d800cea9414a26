"""Test configuration for module import paths and shared ledger fixtures."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path


def _ensure_src_on_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    src_value = str(src_path)
    if src_value not in sys.path:
        sys.path.insert(0, src_value)


_ensure_src_on_path()

import pytest  # noqa: E402

from auth.authorization import SignedAuthorization, sign_swap_authorization  # noqa: E402
from auth.typed_data import TokenDomain  # noqa: E402
from core.base_types import MAX_UINT256, Address  # noqa: E402
from core.wallet_manager import WalletManager  # noqa: E402
from ledger import (  # noqa: E402
    DeflatingToken,
    ERC20Token,
    Factory,
    InMemoryLedger,
    SecurityToken,
    WrappedNative,
)
from router import LiquidityRouter, SwapRouter  # noqa: E402

E18 = 10**18
HOLDER_KEY = "0x" + "11" * 32
OPERATOR_KEY = "0x" + "22" * 32
OUTSIDER_KEY = "0x" + "33" * 32
SWAP_ROUTER = Address.from_int(0x5A5A0001)
LIQUIDITY_ROUTER = Address.from_int(0x5A5A0002)


@dataclass
class Deployment:
    ledger: InMemoryLedger
    factory: Factory
    weth: WrappedNative
    swap_router: SwapRouter
    liquidity_router: LiquidityRouter
    holder: WalletManager
    operator: WalletManager

    @property
    def holder_address(self) -> Address:
        return Address.from_string(self.holder.address)

    def _approve_routers(self, token) -> None:
        for router in (SWAP_ROUTER, LIQUIDITY_ROUTER):
            token.approve(self.holder_address, router, MAX_UINT256)

    def token(self, symbol: str, supply: int = 10_000 * E18, cls=ERC20Token):
        token = cls(self.ledger, f"{symbol} Token", symbol)
        token.mint(self.holder_address, supply)
        self._approve_routers(token)
        return token

    def security_token(self, symbol: str, supply: int = 10_000 * E18) -> SecurityToken:
        token = SecurityToken(self.ledger, f"{symbol} Equity", symbol)
        token.add_operator(Address.from_string(self.operator.address))
        token.mint(self.holder_address, supply)
        self._approve_routers(token)
        return token

    def deflating_token(self, symbol: str, supply: int = 10_000 * E18) -> DeflatingToken:
        return self.token(symbol, supply, cls=DeflatingToken)

    def fund_weth(self, amount: int) -> None:
        """Give the holder ``amount`` WETH (and approve the routers for it)."""
        self.ledger.fund(self.holder_address, amount)
        self.weth.deposit(self.holder_address, amount)
        self._approve_routers(self.weth)

    def add_liquidity(self, token_a, token_b, amount_a: int, amount_b: int):
        return self.liquidity_router.add_liquidity(
            token_a.address,
            token_b.address,
            amount_a,
            amount_b,
            0,
            0,
            self.holder_address,
            MAX_UINT256,
            sender=self.holder_address,
        )

    def authorize(
        self,
        token: SecurityToken,
        nonce: int | None = None,
        deadline: int = MAX_UINT256,
        signer: WalletManager | None = None,
    ) -> SignedAuthorization:
        domain = TokenDomain.for_token(token, self.ledger.chain_id)
        if nonce is None:
            nonce = token.swap_nonces(self.holder_address)
        return sign_swap_authorization(
            signer or self.operator, domain, self.holder_address, nonce, deadline
        )

    def pair(self, token_a, token_b):
        return self.ledger.pair_at(self.factory.get_pair(token_a.address, token_b.address))


@pytest.fixture
def deployment() -> Deployment:
    ledger = InMemoryLedger(chain_id=1)
    factory = Factory(ledger)
    weth = WrappedNative(ledger)
    return Deployment(
        ledger=ledger,
        factory=factory,
        weth=weth,
        swap_router=SwapRouter(factory, ledger, weth.address, SWAP_ROUTER),
        liquidity_router=LiquidityRouter(factory, ledger, weth.address, LIQUIDITY_ROUTER),
        holder=WalletManager(HOLDER_KEY),
        operator=WalletManager(OPERATOR_KEY),
    )
