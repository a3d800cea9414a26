"""
Constant-product AMM math.

All math uses integers only, no floats anywhere. Outputs always round down
and required inputs always round up, so accumulated rounding can never
leave a pool under-collateralized.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import (
    InsufficientAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
)


@dataclass(frozen=True)
class FeeSchedule:
    """
    Fee tiers as numerator/denominator of the amount that stays in the trade.

    Standard pairs keep 997/1000 (0.3% fee), restricted (security) pairs
    keep 990/1000 (1% fee).
    """

    standard_numerator: int = 997
    restricted_numerator: int = 990
    denominator: int = 1000

    def __post_init__(self) -> None:
        for name in ("standard_numerator", "restricted_numerator", "denominator"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be int")
            if value <= 0:
                raise ValueError(f"{name} must be positive")
        if self.standard_numerator >= self.denominator:
            raise ValueError("standard_numerator must be below denominator")
        if self.restricted_numerator >= self.denominator:
            raise ValueError("restricted_numerator must be below denominator")

    @classmethod
    def from_settings(cls, settings) -> "FeeSchedule":
        return cls(
            standard_numerator=settings.swap_fee_numerator,
            restricted_numerator=settings.restricted_fee_numerator,
            denominator=settings.fee_denominator,
        )

    def numerator(self, restricted: bool) -> int:
        return self.restricted_numerator if restricted else self.standard_numerator


DEFAULT_FEES = FeeSchedule()


def _require_int(name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equivalent amount of B for amount_a of A at the current reserve ratio."""
    _require_int("amount_a", amount_a)
    _require_int("reserve_a", reserve_a)
    _require_int("reserve_b", reserve_b)
    if amount_a == 0:
        raise InsufficientAmount("amount_a is zero")
    if reserve_a == 0 or reserve_b == 0:
        raise InsufficientLiquidity("reserve is zero")
    return amount_a * reserve_b // reserve_a


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    restricted: bool = False,
    fees: FeeSchedule = DEFAULT_FEES,
) -> int:
    """
    Maximum output for an exact input.

    amount_in_with_fee = amount_in * fee_numerator
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * fee_denominator + amount_in_with_fee
    amount_out = numerator // denominator
    """
    _require_int("amount_in", amount_in)
    _require_int("reserve_in", reserve_in)
    _require_int("reserve_out", reserve_out)
    if amount_in == 0:
        raise InsufficientInputAmount("amount_in is zero")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("reserve is zero")

    amount_in_with_fee = amount_in * fees.numerator(restricted)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * fees.denominator + amount_in_with_fee
    return numerator // denominator


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    restricted: bool = False,
    fees: FeeSchedule = DEFAULT_FEES,
) -> int:
    """
    Minimum input for an exact output (inverse of get_amount_out, rounded up).
    """
    _require_int("amount_out", amount_out)
    _require_int("reserve_in", reserve_in)
    _require_int("reserve_out", reserve_out)
    if amount_out == 0:
        raise InsufficientOutputAmount("amount_out is zero")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("reserve is zero")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity("amount_out must be less than reserve_out")

    numerator = reserve_in * amount_out * fees.denominator
    denominator = (reserve_out - amount_out) * fees.numerator(restricted)
    return numerator // denominator + 1
