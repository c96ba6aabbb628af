"""JSON-RPC 2.0 envelope for the tool-call endpoint."""
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from ..config import RPC_JSONRPC_VERSION

# Reserved JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601

RequestId = Optional[Union[str, int]]


class RpcRequest(BaseModel):
    jsonrpc: str = RPC_JSONRPC_VERSION
    id: RequestId = None
    method: str
    params: Optional[Dict[str, Any]] = None


def rpc_result(request_id: RequestId, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": RPC_JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: RequestId, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": RPC_JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def text_content(text: str, *, is_error: bool = False) -> Dict[str, Any]:
    """A ``tools/call`` result carrying one text block.

    Failures are reported here with ``isError`` set, inside a successful
    envelope, so calling agents always get something they can render.
    """
    result: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result
