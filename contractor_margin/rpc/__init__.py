"""JSON-RPC tool-call interface for agent clients."""
from .dispatcher import RpcDispatcher
from .protocol import INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR
from .tools import TOOL_CATALOG, ToolName

__all__ = [
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RpcDispatcher",
    "TOOL_CATALOG",
    "ToolName",
]
