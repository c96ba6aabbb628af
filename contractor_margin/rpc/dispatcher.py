"""
Tool-call dispatcher: JSON-RPC methods over the margin service.

Transport-level errors are limited to an unparseable body, a malformed
request and an unknown method. Everything that goes wrong inside
``tools/call`` (no identity, unknown tool, bad arguments, store failure)
comes back as an error-flagged text result in a successful envelope.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from ..config import RPC_PROTOCOL_VERSION, RPC_SERVER_NAME, RPC_SERVER_VERSION
from ..margin.models import JobCreate, LaborEntryCreate, MaterialEntryCreate
from .protocol import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RpcRequest,
    rpc_error,
    rpc_result,
    text_content,
)
from .tools import (
    TOOL_CATALOG,
    AddLaborArgs,
    AddMaterialArgs,
    CreateJobArgs,
    ToolArgumentError,
    ToolName,
    UnknownToolError,
    parse_tool_call,
)

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = "Authentication required. Please log in."


def _fmt_number(value: float) -> str:
    """Render 50.0 as "50" and 62.5 as "62.5"."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


class RpcDispatcher:
    """Route JSON-RPC requests to the ``initialize``/``tools/*`` handlers.

    Stateless: the caller's identity and service are passed into every
    ``handle`` call.
    """

    def __init__(self) -> None:
        self._methods: Dict[str, Callable[..., Awaitable[Optional[Dict[str, Any]]]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "notifications/initialized": self._notification,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }
        self._tools: Dict[ToolName, Callable[..., Awaitable[Dict[str, Any]]]] = {
            ToolName.get_stats: self._get_stats,
            ToolName.create_job: self._create_job,
            ToolName.add_labor: self._add_labor,
            ToolName.add_material: self._add_material,
        }
        missing = set(ToolName) - set(self._tools)
        if missing:
            raise RuntimeError(f"No handler for tools: {sorted(t.value for t in missing)}")

    async def handle(self, body: bytes, identity, service) -> Optional[Dict[str, Any]]:
        """Process one raw request body.

        Returns the response envelope, or ``None`` for a notification that
        takes no reply.
        """
        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return rpc_error(None, PARSE_ERROR, "Parse error")

        if not isinstance(payload, dict):
            return rpc_error(None, INVALID_REQUEST, "Invalid Request")
        request_id = payload.get("id")
        if not isinstance(request_id, (str, int, type(None))) or isinstance(request_id, bool):
            request_id = None
        try:
            request = RpcRequest.model_validate(payload)
        except ValidationError:
            return rpc_error(request_id, INVALID_REQUEST, "Invalid Request")

        handler = self._methods.get(request.method)
        if handler is None:
            return rpc_error(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")

        result = await handler(request, identity, service)
        if result is None:
            return None
        return rpc_result(request.id, result)

    # ── Methods ──────────────────────────────────────────────────────

    async def _initialize(self, request: RpcRequest, identity, service) -> Dict[str, Any]:
        return {
            "protocolVersion": RPC_PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": RPC_SERVER_NAME, "version": RPC_SERVER_VERSION},
        }

    async def _ping(self, request: RpcRequest, identity, service) -> Dict[str, Any]:
        return {}

    async def _notification(self, request: RpcRequest, identity, service) -> None:
        return None

    async def _tools_list(self, request: RpcRequest, identity, service) -> Dict[str, Any]:
        return {"tools": TOOL_CATALOG}

    async def _tools_call(self, request: RpcRequest, identity, service) -> Dict[str, Any]:
        if identity is None:
            return text_content(AUTH_REQUIRED_MESSAGE, is_error=True)

        try:
            tool, args = parse_tool_call(request.params or {})
        except (UnknownToolError, ToolArgumentError) as exc:
            return text_content(str(exc), is_error=True)

        try:
            return await self._tools[tool](args, identity.owner_id, service)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s failed for owner %s: %s", tool.value, identity.owner_id, exc)
            return text_content(f"Error: {str(exc) or type(exc).__name__}", is_error=True)

    # ── Tools ────────────────────────────────────────────────────────

    async def _get_stats(self, args, owner_id: str, service) -> Dict[str, Any]:
        summary = await service.stats(owner_id)
        return text_content(json.dumps(summary.to_stats(), indent=2))

    async def _create_job(self, args: CreateJobArgs, owner_id: str, service) -> Dict[str, Any]:
        job = await service.create_job(
            owner_id,
            JobCreate(
                name=args.name,
                client_name=args.client_name,
                job_type=args.job_type,
                estimated_revenue=args.estimated_revenue,
            ),
        )
        return text_content(f"Job created: {job.name} (ID: {job.id})")

    async def _add_labor(self, args: AddLaborArgs, owner_id: str, service) -> Dict[str, Any]:
        entry = await service.add_labor(
            owner_id,
            args.job_id,
            LaborEntryCreate(
                tech_name=args.tech_name,
                hours=args.hours,
                hourly_rate=args.hourly_rate,
                date=args.date,
            ),
        )
        cost = entry.hours * entry.hourly_rate
        return text_content(
            f"Labor added: {entry.tech_name}, {_fmt_number(entry.hours)}h @ "
            f"${_fmt_number(entry.hourly_rate)}/hr = ${cost:.2f}"
        )

    async def _add_material(self, args: AddMaterialArgs, owner_id: str, service) -> Dict[str, Any]:
        entry = await service.add_material(
            owner_id,
            args.job_id,
            MaterialEntryCreate(description=args.description, cost=args.cost, date=args.date),
        )
        return text_content(f"Material added: {entry.description} - ${_fmt_number(entry.cost)}")
