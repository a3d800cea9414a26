"""
Constant-product pair with its own LP token.

Reserves only move inside ``mint``, ``burn`` and ``swap``, each of which
runs in its own ledger scope so a rejected call leaves no effect. ``swap``
sends the requested outputs first, then requires the fee-adjusted product of the
new balances to cover the old reserve product:

    (balance0 * D - in0 * (D - N)) * (balance1 * D - in1 * (D - N)) >= r0 * r1 * D**2

where N/D is the pair's fee tier.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager

from amm.math import DEFAULT_FEES, FeeSchedule
from core.base_types import ZERO_ADDRESS, Address

from .errors import PairError
from .host import InMemoryLedger
from .tokens import ERC20Token, PermitMixin

logger = logging.getLogger(__name__)

MINIMUM_LIQUIDITY = 1000


class Pair(PermitMixin, ERC20Token):
    def __init__(
        self,
        ledger: InMemoryLedger,
        factory: Address,
        token0: Address,
        token1: Address,
        restricted: bool = False,
        fees: FeeSchedule = DEFAULT_FEES,
    ):
        if not token0 < token1:
            raise PairError("tokens must be sorted")
        super().__init__(ledger, "SecSwap LP", "SEC-LP", 18)
        self.factory = factory
        self.token0 = token0
        self.token1 = token1
        self.is_restricted_pair = restricted
        self.fees = fees
        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = 0
        self.permit_nonces: dict[Address, int] = {}
        self._locked = False

    @contextmanager
    def _lock(self):
        if self._locked:
            raise PairError("locked")
        self._locked = True
        try:
            yield
        finally:
            self._locked = False

    def reserves(self) -> tuple[int, int, Address, Address]:
        return self.reserve0, self.reserve1, self.token0, self.token1

    def _balances(self) -> tuple[int, int]:
        return (
            self.ledger.token_at(self.token0).balance_of(self.address),
            self.ledger.token_at(self.token1).balance_of(self.address),
        )

    def _update(self, balance0: int, balance1: int) -> None:
        self.reserve0 = balance0
        self.reserve1 = balance1
        self.block_timestamp_last = self.ledger.timestamp()

    def mint(self, caller: Address, to: Address) -> int:
        with self.ledger.atomic(), self._lock():
            balance0, balance1 = self._balances()
            amount0 = balance0 - self.reserve0
            amount1 = balance1 - self.reserve1
            if self.total_supply == 0:
                liquidity = math.isqrt(amount0 * amount1) - MINIMUM_LIQUIDITY
                if liquidity > 0:
                    self._mint(ZERO_ADDRESS, MINIMUM_LIQUIDITY)
            else:
                liquidity = min(
                    amount0 * self.total_supply // self.reserve0,
                    amount1 * self.total_supply // self.reserve1,
                )
            if liquidity <= 0:
                raise PairError("insufficient liquidity minted")
            self._mint(to, liquidity)
            self._update(balance0, balance1)
        logger.debug("%s mint %d to %s", self.address, liquidity, to)
        return liquidity

    def burn(self, caller: Address, to: Address) -> tuple[int, int]:
        with self.ledger.atomic(), self._lock():
            balance0, balance1 = self._balances()
            liquidity = self.balance_of(self.address)
            amount0 = liquidity * balance0 // self.total_supply
            amount1 = liquidity * balance1 // self.total_supply
            if amount0 <= 0 or amount1 <= 0:
                raise PairError("insufficient liquidity burned")
            self._burn(self.address, liquidity)
            self.ledger.token_at(self.token0).transfer(self.address, to, amount0)
            self.ledger.token_at(self.token1).transfer(self.address, to, amount1)
            self._update(*self._balances())
        logger.debug("%s burn %d -> (%d, %d)", self.address, liquidity, amount0, amount1)
        return amount0, amount1

    def swap(
        self, caller: Address, amount0_out: int, amount1_out: int, to: Address
    ) -> None:
        if amount0_out <= 0 and amount1_out <= 0:
            raise PairError("insufficient output amount")
        if amount0_out >= self.reserve0 or amount1_out >= self.reserve1:
            raise PairError("insufficient liquidity")
        if to == self.token0 or to == self.token1:
            raise PairError("invalid to")

        with self.ledger.atomic(), self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            if amount0_out > 0:
                self.ledger.token_at(self.token0).transfer(self.address, to, amount0_out)
            if amount1_out > 0:
                self.ledger.token_at(self.token1).transfer(self.address, to, amount1_out)
            balance0, balance1 = self._balances()

            amount0_in = max(balance0 - (reserve0 - amount0_out), 0)
            amount1_in = max(balance1 - (reserve1 - amount1_out), 0)
            if amount0_in <= 0 and amount1_in <= 0:
                raise PairError("insufficient input amount")

            denominator = self.fees.denominator
            fee = denominator - self.fees.numerator(self.is_restricted_pair)
            adjusted0 = balance0 * denominator - amount0_in * fee
            adjusted1 = balance1 * denominator - amount1_in * fee
            if adjusted0 * adjusted1 < reserve0 * reserve1 * denominator**2:
                raise PairError("K")
            self._update(balance0, balance1)
        logger.debug(
            "%s swap in=(%d, %d) out=(%d, %d) to %s",
            self.address,
            amount0_in,
            amount1_in,
            amount0_out,
            amount1_out,
            to,
        )

    def sync(self, caller: Address) -> None:
        with self._lock():
            self._update(*self._balances())
