from .errors import (
    InsufficientAllowance,
    InsufficientBalance,
    LedgerError,
    NativeTransferRejected,
    PairError,
    UnknownContract,
)
from .factory import Factory
from .host import Contract, InMemoryLedger
from .pair import MINIMUM_LIQUIDITY, Pair
from .tokens import DeflatingToken, ERC20Token, SecurityToken, WrappedNative

__all__ = [
    "InMemoryLedger",
    "Contract",
    "ERC20Token",
    "DeflatingToken",
    "SecurityToken",
    "WrappedNative",
    "Pair",
    "Factory",
    "MINIMUM_LIQUIDITY",
    "LedgerError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "PairError",
    "NativeTransferRejected",
    "UnknownContract",
]
