from .math import DEFAULT_FEES, FeeSchedule, get_amount_in, get_amount_out, quote
from .paths import (
    HopReserves,
    amounts_in_over,
    amounts_out_over,
    get_amounts_in,
    get_amounts_out,
    get_reserves,
    load_hops,
)

__all__ = [
    "DEFAULT_FEES",
    "FeeSchedule",
    "quote",
    "get_amount_out",
    "get_amount_in",
    "HopReserves",
    "get_reserves",
    "load_hops",
    "amounts_out_over",
    "amounts_in_over",
    "get_amounts_out",
    "get_amounts_in",
]
