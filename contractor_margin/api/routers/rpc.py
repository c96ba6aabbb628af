"""Tool-call endpoint: one POST route speaking JSON-RPC 2.0."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from ...rpc.dispatcher import RpcDispatcher
from ..deps.auth import Identity, optional_identity
from ..deps.providers import get_margin_service, get_rpc_dispatcher
from ..services.margin_service import MarginService

router = APIRouter(tags=["rpc"])


@router.post("/mcp")
async def rpc_endpoint(
    request: Request,
    identity: Optional[Identity] = Depends(optional_identity),
    svc: MarginService = Depends(get_margin_service),
    dispatcher: RpcDispatcher = Depends(get_rpc_dispatcher),
) -> Response:
    """Protocol errors and tool failures alike are answered with HTTP 200."""
    body = await request.body()
    envelope = await dispatcher.handle(body, identity, svc)
    if envelope is None:
        return Response(status_code=202)
    return JSONResponse(content=envelope)
