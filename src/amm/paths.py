"""Multi-hop amount resolution over a token path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from core.base_types import Address
from core.errors import InvalidPath

from .math import DEFAULT_FEES, FeeSchedule, get_amount_in, get_amount_out

if TYPE_CHECKING:
    from router.interfaces import Factory, Host


@dataclass(frozen=True)
class HopReserves:
    """Reserves of one hop, oriented input -> output."""

    token_in: Address
    token_out: Address
    pair: Address
    reserve_in: int
    reserve_out: int
    restricted: bool = False

    @property
    def input_is_token0(self) -> bool:
        return self.token_in < self.token_out


def validate_path(path: Sequence[Address]) -> None:
    if len(path) < 2:
        raise InvalidPath("path must contain at least two tokens")


def normalize_restricted_flags(
    path: Sequence[Address], restricted_flags: Optional[Sequence[bool]]
) -> Optional[list[bool]]:
    """
    One flag per hop. The per-token shape (len(path) flags) is accepted and
    its trailing entry dropped.
    """
    if restricted_flags is None:
        return None
    hops = len(path) - 1
    flags = [bool(flag) for flag in restricted_flags]
    if len(flags) == hops + 1:
        return flags[:hops]
    if len(flags) != hops:
        raise InvalidPath(
            f"expected {hops} restricted flags for {len(path)} tokens, got {len(flags)}"
        )
    return flags


def get_reserves(
    factory: "Factory", host: "Host", token_a: Address, token_b: Address
) -> HopReserves:
    """Fetch reserves for (token_a, token_b), oriented a -> b."""
    pair_address = factory.get_pair(token_a, token_b)
    if pair_address is None:
        raise InvalidPath(f"no pair for {token_a} / {token_b}")
    pair = host.pair_at(pair_address)
    reserve0, reserve1, token0, _ = pair.reserves()
    if token_a == token0:
        reserve_a, reserve_b = reserve0, reserve1
    else:
        reserve_a, reserve_b = reserve1, reserve0
    return HopReserves(
        token_in=token_a,
        token_out=token_b,
        pair=pair_address,
        reserve_in=reserve_a,
        reserve_out=reserve_b,
        restricted=bool(pair.is_restricted_pair),
    )


def load_hops(
    factory: "Factory",
    host: "Host",
    path: Sequence[Address],
    restricted_flags: Optional[Sequence[bool]] = None,
) -> list[HopReserves]:
    """Read every hop's reserves up front. Explicit flags override the pair's."""
    validate_path(path)
    flags = normalize_restricted_flags(path, restricted_flags)
    hops = []
    for i in range(len(path) - 1):
        hop = get_reserves(factory, host, path[i], path[i + 1])
        if flags is not None and flags[i] != hop.restricted:
            hop = HopReserves(
                token_in=hop.token_in,
                token_out=hop.token_out,
                pair=hop.pair,
                reserve_in=hop.reserve_in,
                reserve_out=hop.reserve_out,
                restricted=flags[i],
            )
        hops.append(hop)
    return hops


def amounts_out_over(
    amount_in: int, hops: Sequence[HopReserves], fees: FeeSchedule = DEFAULT_FEES
) -> list[int]:
    """[amount_in, after_hop1, after_hop2, ...]"""
    if not hops:
        raise InvalidPath("path must contain at least two tokens")
    amounts = [amount_in]
    for hop in hops:
        amounts.append(
            get_amount_out(
                amounts[-1], hop.reserve_in, hop.reserve_out, hop.restricted, fees
            )
        )
    return amounts


def amounts_in_over(
    amount_out: int, hops: Sequence[HopReserves], fees: FeeSchedule = DEFAULT_FEES
) -> list[int]:
    """Walks the hops back to front; amounts[-1] is amount_out."""
    if not hops:
        raise InvalidPath("path must contain at least two tokens")
    amounts = [0] * (len(hops) + 1)
    amounts[-1] = amount_out
    for i in range(len(hops) - 1, -1, -1):
        hop = hops[i]
        amounts[i] = get_amount_in(
            amounts[i + 1], hop.reserve_in, hop.reserve_out, hop.restricted, fees
        )
    return amounts


def get_amounts_out(
    factory: "Factory",
    host: "Host",
    amount_in: int,
    path: Sequence[Address],
    restricted_flags: Optional[Sequence[bool]] = None,
    fees: FeeSchedule = DEFAULT_FEES,
) -> list[int]:
    hops = load_hops(factory, host, path, restricted_flags)
    return amounts_out_over(amount_in, hops, fees)


def get_amounts_in(
    factory: "Factory",
    host: "Host",
    amount_out: int,
    path: Sequence[Address],
    restricted_flags: Optional[Sequence[bool]] = None,
    fees: FeeSchedule = DEFAULT_FEES,
) -> list[int]:
    hops = load_hops(factory, host, path, restricted_flags)
    return amounts_in_over(amount_out, hops, fees)
