"""
Two-phase swap planning.

Phase one (snapshot) performs reads only: every hop's reserves and every
restricted token's authorization are captured before any external call
that could hand control to a token. Phase two (effects) consumes the
grants, moves funds and settles hops. Post-transfer balance checks re-read
state; they never trust the snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from amm.paths import HopReserves, load_hops
from auth.authorization import SwapAuthorization
from auth.verifier import AuthorizationGrant, AuthorizationVerifier
from core.base_types import Address

logger = logging.getLogger(__name__)


class ReserveBook:
    """Reserves captured before effects, advanced locally as hops settle."""

    def __init__(self, hops: Sequence[HopReserves]):
        self._reserves: dict[Address, tuple[int, int]] = {}
        for hop in hops:
            if hop.pair in self._reserves:
                continue
            if hop.input_is_token0:
                self._reserves[hop.pair] = (hop.reserve_in, hop.reserve_out)
            else:
                self._reserves[hop.pair] = (hop.reserve_out, hop.reserve_in)

    def oriented(self, hop: HopReserves) -> tuple[int, int]:
        reserve0, reserve1 = self._reserves[hop.pair]
        if hop.input_is_token0:
            return reserve0, reserve1
        return reserve1, reserve0

    def settle(self, hop: HopReserves, amount_in: int, amount_out: int) -> None:
        reserve_in, reserve_out = self.oriented(hop)
        reserve_in += amount_in
        reserve_out -= amount_out
        if hop.input_is_token0:
            self._reserves[hop.pair] = (reserve_in, reserve_out)
        else:
            self._reserves[hop.pair] = (reserve_out, reserve_in)


@dataclass
class SwapPlan:
    path: list[Address]
    hops: list[HopReserves]
    grants: list[AuthorizationGrant] = field(default_factory=list)
    amounts: Optional[list[int]] = None

    @property
    def first_pair(self) -> Address:
        return self.hops[0].pair

    def recipient_after(self, index: int, to: Address) -> Address:
        """Where hop ``index`` sends its output."""
        if index < len(self.hops) - 1:
            return self.hops[index + 1].pair
        return to


def snapshot(
    factory,
    host,
    verifier: AuthorizationVerifier,
    path: Sequence[Address],
    authorizations: Sequence[SwapAuthorization],
    holder: Address,
) -> SwapPlan:
    """Phase one: read reserves and verify authorizations, no effects."""
    hops = load_hops(factory, host, path)
    now = host.timestamp()
    grants: list[AuthorizationGrant] = []
    seen: set[Address] = set()
    for token_address, authorization in zip(path, authorizations):
        if token_address in seen:
            continue
        seen.add(token_address)
        grant = verifier.verify(host.token_at(token_address), holder, authorization, now)
        if grant is not None:
            grants.append(grant)
    logger.debug(
        "snapshot path=%s reserves=%s grants=%d",
        [str(token) for token in path],
        [(hop.reserve_in, hop.reserve_out) for hop in hops],
        len(grants),
    )
    return SwapPlan(path=list(path), hops=hops, grants=grants)


def consume_grants(host, plan: SwapPlan, caller: Address) -> None:
    """Phase two, first effect: each granted token advances its own nonce."""
    for grant in plan.grants:
        host.token_at(grant.token).consume_swap_nonce(caller, grant.holder, grant.nonce)
