from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from amm.math import DEFAULT_FEES, FeeSchedule, get_amount_in, get_amount_out, quote
from amm.paths import (
    amounts_in_over,
    amounts_out_over,
    get_amounts_in,
    get_amounts_out,
    validate_path,
)
from auth.authorization import parse_authorizations
from auth.verifier import AuthorizationVerifier
from core.base_types import Address
from core.errors import Expired, SlippageExceeded

from .native import NativeAdapter
from .plan import ReserveBook, SwapPlan, consume_grants, snapshot
from .transfers import safe_transfer_from

logger = logging.getLogger(__name__)


def _as_path(path: Sequence[Any]) -> list[Address]:
    addresses = [
        token if isinstance(token, Address) else Address.from_string(str(token))
        for token in path
    ]
    validate_path(addresses)
    return addresses


class SwapRouter:
    """
    Routes swaps across constant-product pairs, including pairs that trade
    restricted (security) tokens.

    Every swap takes one authorization per path token. Hops whose token is
    restricted need a signed authorization for ``sender``; every other entry
    must be the empty placeholder. A call either completes or leaves no
    trace: effects run inside ``host.atomic()``.
    """

    def __init__(
        self,
        factory,
        host,
        weth: Address,
        address: Address,
        fees: FeeSchedule = DEFAULT_FEES,
        verifier: Optional[AuthorizationVerifier] = None,
    ):
        self.factory = factory
        self.weth = weth
        self.address = address
        self._host = host
        self._fees = fees
        self._verifier = verifier or AuthorizationVerifier(host.chain_id)
        self._native = NativeAdapter(host, weth, address)

    # ---- read-only ----

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return quote(amount_a, reserve_a, reserve_b)

    def get_amount_out(
        self, amount_in: int, reserve_in: int, reserve_out: int, restricted: bool = False
    ) -> int:
        return get_amount_out(amount_in, reserve_in, reserve_out, restricted, self._fees)

    def get_amount_in(
        self, amount_out: int, reserve_in: int, reserve_out: int, restricted: bool = False
    ) -> int:
        return get_amount_in(amount_out, reserve_in, reserve_out, restricted, self._fees)

    def get_amounts_out(
        self,
        amount_in: int,
        path: Sequence[Any],
        restricted_flags: Optional[Sequence[bool]] = None,
    ) -> list[int]:
        return get_amounts_out(
            self.factory,
            self._host,
            amount_in,
            _as_path(path),
            restricted_flags,
            self._fees,
        )

    def get_amounts_in(
        self,
        amount_out: int,
        path: Sequence[Any],
        restricted_flags: Optional[Sequence[bool]] = None,
    ) -> list[int]:
        return get_amounts_in(
            self.factory,
            self._host,
            amount_out,
            _as_path(path),
            restricted_flags,
            self._fees,
        )

    # ---- internals ----

    def _ensure(self, deadline: int) -> None:
        now = self._host.timestamp()
        if now >= deadline:
            raise Expired(f"deadline {deadline} passed at {now}")

    def _plan(
        self, path: list[Address], authorizations: Sequence[Any], sender: Address
    ) -> SwapPlan:
        parsed = parse_authorizations(authorizations, path)
        return snapshot(self.factory, self._host, self._verifier, path, parsed, sender)

    def _balance(self, token: Address, owner: Address) -> int:
        return self._host.token_at(token).balance_of(owner)

    def _pull(self, token: Address, owner: Address, to: Address, amount: int) -> int:
        """transfer_from ``owner``; returns what actually left ``owner``."""
        before = self._balance(token, owner)
        safe_transfer_from(self._host.token_at(token), self.address, owner, to, amount)
        return before - self._balance(token, owner)

    def _swap(self, plan: SwapPlan, amounts: list[int], to: Address) -> None:
        for i, hop in enumerate(plan.hops):
            amount_out = amounts[i + 1]
            amount0_out, amount1_out = (
                (0, amount_out) if hop.input_is_token0 else (amount_out, 0)
            )
            self._host.pair_at(hop.pair).swap(
                self.address, amount0_out, amount1_out, plan.recipient_after(i, to)
            )

    def _swap_supporting_fee_on_transfer(self, plan: SwapPlan, to: Address) -> None:
        """Size each hop from the input the pair actually received."""
        book = ReserveBook(plan.hops)
        for i, hop in enumerate(plan.hops):
            reserve_in, reserve_out = book.oriented(hop)
            amount_input = self._balance(hop.token_in, hop.pair) - reserve_in
            amount_output = get_amount_out(
                amount_input, reserve_in, reserve_out, hop.restricted, self._fees
            )
            book.settle(hop, amount_input, amount_output)
            amount0_out, amount1_out = (
                (0, amount_output) if hop.input_is_token0 else (amount_output, 0)
            )
            self._host.pair_at(hop.pair).swap(
                self.address, amount0_out, amount1_out, plan.recipient_after(i, to)
            )

    @staticmethod
    def _require_min(realized: int, amount_out_min: int) -> None:
        if realized < amount_out_min:
            raise SlippageExceeded("output below minimum", realized, amount_out_min)

    @staticmethod
    def _require_max(realized: int, amount_in_max: int) -> None:
        if realized > amount_in_max:
            raise SlippageExceeded("input above maximum", realized, amount_in_max)

    def _log(
        self, operation: str, path: list[Address], amount_in: int, amount_out: int
    ) -> None:
        logger.info(
            "%s path=%s in=%d out=%d",
            operation,
            "->".join(str(token) for token in path),
            amount_in,
            amount_out,
        )

    # ---- exact input ----

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_out_over(amount_in, plan.hops, self._fees)
            self._require_min(amounts[-1], amount_out_min)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], to)
            self._pull(path[0], sender, plan.first_pair, amounts[0])
            self._swap(plan, amounts, to)
            realized = self._balance(path[-1], to) - before
            self._require_min(realized, amount_out_min)
        self._log("swap_exact_tokens_for_tokens", path, amounts[0], realized)
        return amounts

    def swap_exact_eth_for_tokens(
        self,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
        value: int,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_input(path[0])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_out_over(value, plan.hops, self._fees)
            self._require_min(amounts[-1], amount_out_min)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], to)
            self._native.receive(sender, value)
            self._native.wrap_to(plan.first_pair, amounts[0])
            self._swap(plan, amounts, to)
            realized = self._balance(path[-1], to) - before
            self._require_min(realized, amount_out_min)
        self._log("swap_exact_eth_for_tokens", path, value, realized)
        return amounts

    def swap_exact_tokens_for_eth(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_output(path[-1])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_out_over(amount_in, plan.hops, self._fees)
            self._require_min(amounts[-1], amount_out_min)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], self.address)
            self._pull(path[0], sender, plan.first_pair, amounts[0])
            self._swap(plan, amounts, self.address)
            realized = self._balance(path[-1], self.address) - before
            self._require_min(realized, amount_out_min)
            self._native.unwrap_to(to, realized)
        self._log("swap_exact_tokens_for_eth", path, amounts[0], realized)
        return amounts

    # ---- exact output ----

    def swap_tokens_for_exact_tokens(
        self,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_in_over(amount_out, plan.hops, self._fees)
            self._require_max(amounts[0], amount_in_max)
            consume_grants(self._host, plan, self.address)

            spent = self._pull(path[0], sender, plan.first_pair, amounts[0])
            self._require_max(spent, amount_in_max)
            self._swap(plan, amounts, to)
        self._log("swap_tokens_for_exact_tokens", path, spent, amount_out)
        return amounts

    def swap_tokens_for_exact_eth(
        self,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_output(path[-1])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_in_over(amount_out, plan.hops, self._fees)
            self._require_max(amounts[0], amount_in_max)
            consume_grants(self._host, plan, self.address)

            spent = self._pull(path[0], sender, plan.first_pair, amounts[0])
            self._require_max(spent, amount_in_max)
            self._swap(plan, amounts, self.address)
            self._native.unwrap_to(to, amounts[-1])
        self._log("swap_tokens_for_exact_eth", path, spent, amount_out)
        return amounts

    def swap_eth_for_exact_tokens(
        self,
        amount_out: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
        value: int,
    ) -> list[int]:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_input(path[0])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            amounts = amounts_in_over(amount_out, plan.hops, self._fees)
            self._require_max(amounts[0], value)
            consume_grants(self._host, plan, self.address)

            self._native.receive(sender, value)
            self._native.wrap_to(plan.first_pair, amounts[0])
            self._swap(plan, amounts, to)
            self._native.refund(sender, value - amounts[0])
        self._log("swap_eth_for_exact_tokens", path, amounts[0], amount_out)
        return amounts

    # ---- fee-on-transfer ----

    def swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> None:
        self._ensure(deadline)
        path = _as_path(path)
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], to)
            self._pull(path[0], sender, plan.first_pair, amount_in)
            self._swap_supporting_fee_on_transfer(plan, to)
            realized = self._balance(path[-1], to) - before
            self._require_min(realized, amount_out_min)
        self._log(
            "swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens",
            path,
            amount_in,
            realized,
        )

    def swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
        value: int,
    ) -> None:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_input(path[0])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], to)
            self._native.receive(sender, value)
            self._native.wrap_to(plan.first_pair, value)
            self._swap_supporting_fee_on_transfer(plan, to)
            realized = self._balance(path[-1], to) - before
            self._require_min(realized, amount_out_min)
        self._log(
            "swap_exact_eth_for_tokens_supporting_fee_on_transfer_tokens",
            path,
            value,
            realized,
        )

    def swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[Any],
        to: Address,
        deadline: int,
        authorizations: Sequence[Any],
        *,
        sender: Address,
    ) -> None:
        self._ensure(deadline)
        path = _as_path(path)
        self._native.require_output(path[-1])
        with self._host.atomic():
            plan = self._plan(path, authorizations, sender)
            consume_grants(self._host, plan, self.address)

            before = self._balance(path[-1], self.address)
            self._pull(path[0], sender, plan.first_pair, amount_in)
            self._swap_supporting_fee_on_transfer(plan, self.address)
            realized = self._balance(path[-1], self.address) - before
            self._require_min(realized, amount_out_min)
            self._native.unwrap_to(to, realized)
        self._log(
            "swap_exact_tokens_for_eth_supporting_fee_on_transfer_tokens",
            path,
            amount_in,
            realized,
        )
