from __future__ import annotations

import logging
from typing import Optional

from amm.math import DEFAULT_FEES, FeeSchedule
from core.base_types import Address, sort_tokens

from .errors import PairError
from .host import Contract, InMemoryLedger
from .pair import Pair

logger = logging.getLogger(__name__)


class Factory(Contract):
    """Creates one pair per unordered token couple."""

    def __init__(self, ledger: InMemoryLedger, fees: FeeSchedule = DEFAULT_FEES):
        super().__init__(ledger)
        self.fees = fees
        self.pairs: dict[tuple[Address, Address], Address] = {}
        self.all_pairs: list[Address] = []

    def get_pair(self, token_a: Address, token_b: Address) -> Optional[Address]:
        if token_a == token_b:
            return None
        token0, token1 = (token_a, token_b) if token_a < token_b else (token_b, token_a)
        return self.pairs.get((token0, token1))

    def create_pair(
        self,
        caller: Address,
        token_a: Address,
        token_b: Address,
        restricted: bool = False,
    ) -> Address:
        try:
            token0, token1 = sort_tokens(token_a, token_b)
        except ValueError as exc:
            raise PairError(str(exc)) from exc
        if (token0, token1) in self.pairs:
            raise PairError("pair exists")

        restricted = (
            restricted
            or self.ledger.token_at(token0).restricted
            or self.ledger.token_at(token1).restricted
        )
        pair = Pair(self.ledger, self.address, token0, token1, restricted, self.fees)
        self.pairs[(token0, token1)] = pair.address
        self.all_pairs.append(pair.address)
        logger.info(
            "pair %s created for %s / %s restricted=%s by %s",
            pair.address,
            token0,
            token1,
            restricted,
            caller,
        )
        return pair.address
