from .liquidity_router import LiquidityRouter
from .native import NativeAdapter
from .plan import ReserveBook, SwapPlan, consume_grants, snapshot
from .swap_router import SwapRouter

__all__ = [
    "SwapRouter",
    "LiquidityRouter",
    "NativeAdapter",
    "ReserveBook",
    "SwapPlan",
    "snapshot",
    "consume_grants",
]
