from .client import ChainClient
from .contracts import ChainFactory, ChainHost, ChainPair, ChainToken
from .errors import ChainError, ExecutionReverted, ReadOnlyAdapter, RPCError

__all__ = [
    "ChainClient",
    "ChainHost",
    "ChainFactory",
    "ChainPair",
    "ChainToken",
    "ChainError",
    "RPCError",
    "ExecutionReverted",
    "ReadOnlyAdapter",
]
