from __future__ import annotations

import logging

from amm.math import quote
from core.base_types import MAX_UINT256, Address, sort_tokens
from core.errors import Expired, InsufficientLiquidity, InvalidPath, SlippageExceeded

from .native import NativeAdapter
from .transfers import safe_transfer, safe_transfer_from

logger = logging.getLogger(__name__)


class LiquidityRouter:
    """
    Adds and removes liquidity at the pool's current ratio.

    Pairs are created on first deposit; ``restricted=True`` asks the factory
    for the higher-fee tier (pairs holding a restricted token get it anyway).
    Liquidity operations do not take swap authorizations.
    """

    def __init__(self, factory, host, weth: Address, address: Address):
        self.factory = factory
        self.weth = weth
        self.address = address
        self._host = host
        self._native = NativeAdapter(host, weth, address)

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return quote(amount_a, reserve_a, reserve_b)

    def _ensure(self, deadline: int) -> None:
        now = self._host.timestamp()
        if now >= deadline:
            raise Expired(f"deadline {deadline} passed at {now}")

    def _pair_for(self, token_a: Address, token_b: Address) -> Address:
        pair = self.factory.get_pair(token_a, token_b)
        if pair is None:
            raise InvalidPath(f"no pair for {token_a} / {token_b}")
        return pair

    def _reserves(self, pair: Address, token_a: Address) -> tuple[int, int]:
        reserve0, reserve1, token0, _ = self._host.pair_at(pair).reserves()
        if token_a == token0:
            return reserve0, reserve1
        return reserve1, reserve0

    def _add_amounts(
        self,
        token_a: Address,
        token_b: Address,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        restricted: bool,
    ) -> tuple[Address, int, int]:
        pair = self.factory.get_pair(token_a, token_b)
        if pair is None:
            pair = self.factory.create_pair(self.address, token_a, token_b, restricted)
            logger.info(
                "created pair %s for %s / %s restricted=%s",
                pair,
                token_a,
                token_b,
                restricted,
            )
        reserve_a, reserve_b = self._reserves(pair, token_a)
        if reserve_a == 0 and reserve_b == 0:
            return pair, amount_a_desired, amount_b_desired

        amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
        if amount_b_optimal <= amount_b_desired:
            if amount_b_optimal < amount_b_min:
                raise SlippageExceeded(
                    "token_b amount below minimum", amount_b_optimal, amount_b_min
                )
            return pair, amount_a_desired, amount_b_optimal

        amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
        if amount_a_optimal > amount_a_desired:
            raise InsufficientLiquidity("reserves admit no deposit at the pool ratio")
        if amount_a_optimal < amount_a_min:
            raise SlippageExceeded(
                "token_a amount below minimum", amount_a_optimal, amount_a_min
            )
        return pair, amount_a_optimal, amount_b_desired

    def _remove(
        self,
        token_a: Address,
        token_b: Address,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: Address,
        sender: Address,
    ) -> tuple[int, int]:
        pair_address = self._pair_for(token_a, token_b)
        pair = self._host.pair_at(pair_address)
        safe_transfer_from(pair, self.address, sender, pair_address, liquidity)
        amount0, amount1 = pair.burn(self.address, to)
        token0, _ = sort_tokens(token_a, token_b)
        amount_a, amount_b = (
            (amount0, amount1) if token_a == token0 else (amount1, amount0)
        )
        if amount_a < amount_a_min:
            raise SlippageExceeded("token_a amount below minimum", amount_a, amount_a_min)
        if amount_b < amount_b_min:
            raise SlippageExceeded("token_b amount below minimum", amount_b, amount_b_min)
        return amount_a, amount_b

    def _permit(
        self,
        token_a: Address,
        token_b: Address,
        liquidity: int,
        deadline: int,
        approve_max: bool,
        v: int,
        r: int,
        s: int,
        sender: Address,
    ) -> None:
        pair = self._host.pair_at(self._pair_for(token_a, token_b))
        value = MAX_UINT256 if approve_max else liquidity
        pair.permit(self.address, sender, self.address, value, deadline, v, r, s)

    def _forward_measured(
        self,
        token: Address,
        liquidity: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        sender: Address,
    ) -> int:
        """Remove into the router, then pass on whatever actually arrived."""
        erc20 = self._host.token_at(token)
        before = erc20.balance_of(self.address)
        _, amount_eth = self._remove(
            token,
            self.weth,
            liquidity,
            amount_token_min,
            amount_eth_min,
            self.address,
            sender,
        )
        received = erc20.balance_of(self.address) - before
        safe_transfer(erc20, self.address, to, received)
        self._native.unwrap_to(to, amount_eth)
        return amount_eth

    # ---- add ----

    def add_liquidity(
        self,
        token_a: Address,
        token_b: Address,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: Address,
        deadline: int,
        restricted: bool = False,
        *,
        sender: Address,
    ) -> tuple[int, int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            pair, amount_a, amount_b = self._add_amounts(
                token_a,
                token_b,
                amount_a_desired,
                amount_b_desired,
                amount_a_min,
                amount_b_min,
                restricted,
            )
            host = self._host
            safe_transfer_from(host.token_at(token_a), self.address, sender, pair, amount_a)
            safe_transfer_from(host.token_at(token_b), self.address, sender, pair, amount_b)
            liquidity = host.pair_at(pair).mint(self.address, to)
        logger.info(
            "add_liquidity pair=%s amounts=(%d, %d) liquidity=%d",
            pair,
            amount_a,
            amount_b,
            liquidity,
        )
        return amount_a, amount_b, liquidity

    def add_liquidity_eth(
        self,
        token: Address,
        amount_token_desired: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        deadline: int,
        restricted: bool = False,
        *,
        sender: Address,
        value: int,
    ) -> tuple[int, int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            pair, amount_token, amount_eth = self._add_amounts(
                token,
                self.weth,
                amount_token_desired,
                value,
                amount_token_min,
                amount_eth_min,
                restricted,
            )
            safe_transfer_from(
                self._host.token_at(token), self.address, sender, pair, amount_token
            )
            self._native.receive(sender, value)
            self._native.wrap_to(pair, amount_eth)
            liquidity = self._host.pair_at(pair).mint(self.address, to)
            self._native.refund(sender, value - amount_eth)
        logger.info(
            "add_liquidity_eth pair=%s amounts=(%d, %d) liquidity=%d",
            pair,
            amount_token,
            amount_eth,
            liquidity,
        )
        return amount_token, amount_eth, liquidity

    # ---- remove ----

    def remove_liquidity(
        self,
        token_a: Address,
        token_b: Address,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> tuple[int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            amounts = self._remove(
                token_a, token_b, liquidity, amount_a_min, amount_b_min, to, sender
            )
        logger.info("remove_liquidity liquidity=%d amounts=%s", liquidity, amounts)
        return amounts

    def remove_liquidity_eth(
        self,
        token: Address,
        liquidity: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> tuple[int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            amount_token, amount_eth = self._remove(
                token,
                self.weth,
                liquidity,
                amount_token_min,
                amount_eth_min,
                self.address,
                sender,
            )
            safe_transfer(self._host.token_at(token), self.address, to, amount_token)
            self._native.unwrap_to(to, amount_eth)
        logger.info(
            "remove_liquidity_eth liquidity=%d amounts=(%d, %d)",
            liquidity,
            amount_token,
            amount_eth,
        )
        return amount_token, amount_eth

    def remove_liquidity_with_permit(
        self,
        token_a: Address,
        token_b: Address,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: Address,
        deadline: int,
        approve_max: bool,
        v: int,
        r: int,
        s: int,
        *,
        sender: Address,
    ) -> tuple[int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            self._permit(
                token_a, token_b, liquidity, deadline, approve_max, v, r, s, sender
            )
            amounts = self._remove(
                token_a, token_b, liquidity, amount_a_min, amount_b_min, to, sender
            )
        logger.info(
            "remove_liquidity_with_permit liquidity=%d amounts=%s", liquidity, amounts
        )
        return amounts

    def remove_liquidity_eth_with_permit(
        self,
        token: Address,
        liquidity: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        deadline: int,
        approve_max: bool,
        v: int,
        r: int,
        s: int,
        *,
        sender: Address,
    ) -> tuple[int, int]:
        self._ensure(deadline)
        with self._host.atomic():
            self._permit(
                token, self.weth, liquidity, deadline, approve_max, v, r, s, sender
            )
            amount_token, amount_eth = self._remove(
                token,
                self.weth,
                liquidity,
                amount_token_min,
                amount_eth_min,
                self.address,
                sender,
            )
            safe_transfer(self._host.token_at(token), self.address, to, amount_token)
            self._native.unwrap_to(to, amount_eth)
        logger.info(
            "remove_liquidity_eth_with_permit liquidity=%d amounts=(%d, %d)",
            liquidity,
            amount_token,
            amount_eth,
        )
        return amount_token, amount_eth

    def remove_liquidity_eth_supporting_fee_on_transfer_tokens(
        self,
        token: Address,
        liquidity: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> int:
        self._ensure(deadline)
        with self._host.atomic():
            amount_eth = self._forward_measured(
                token, liquidity, amount_token_min, amount_eth_min, to, sender
            )
        logger.info(
            "remove_liquidity_eth_supporting_fee_on_transfer_tokens liquidity=%d eth=%d",
            liquidity,
            amount_eth,
        )
        return amount_eth

    def remove_liquidity_eth_with_permit_supporting_fee_on_transfer_tokens(
        self,
        token: Address,
        liquidity: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: Address,
        deadline: int,
        approve_max: bool,
        v: int,
        r: int,
        s: int,
        *,
        sender: Address,
    ) -> int:
        self._ensure(deadline)
        with self._host.atomic():
            self._permit(
                token, self.weth, liquidity, deadline, approve_max, v, r, s, sender
            )
            amount_eth = self._forward_measured(
                token, liquidity, amount_token_min, amount_eth_min, to, sender
            )
        logger.info(
            "remove_liquidity_eth_with_permit_supporting_fee_on_transfer_tokens "
            "liquidity=%d eth=%d",
            liquidity,
            amount_eth,
        )
        return amount_eth
