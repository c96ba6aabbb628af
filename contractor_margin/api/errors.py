"""Custom exceptions and FastAPI error handler registration."""
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response

from .schemas.envelope import ApiResponse, ErrorKind
from .store.sqlite import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)


# ── Custom Exceptions ────────────────────────────────────────────────


class AuthenticationError(Exception):
    """No identity could be resolved for the request."""


class BadRequestError(Exception):
    """Request parameters failed validation outside the body schema."""


# ── Error → HTTP mapping ────────────────────────────────────────────

_EXCEPTION_STATUS = {
    BadRequestError: (400, ErrorKind.validation),
    AuthenticationError: (401, ErrorKind.unauthorized),
    RecordNotFoundError: (404, ErrorKind.not_found),
    StoreError: (500, ErrorKind.store),
}


def _make_handler(status_code: int, kind: ErrorKind):
    """Create a handler that wraps an exception in ApiResponse."""

    async def _handler(request: Request, exc: Exception) -> Response:
        if status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return ApiResponse.fail(str(exc), kind).to_response(status_code)

    return _handler


def describe_validation_error(exc: RequestValidationError) -> str:
    """One-line message for the first body/query problem.

    Missing fields read ``"<field> is required"``; unparseable JSON reads
    ``"Invalid JSON"``.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON"
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    field = ".".join(loc)
    if not field:
        if first.get("type") == "missing":
            return "Request body is required"
        return "Request body must be a JSON object"
    err_type = first.get("type")
    if err_type in ("missing", "string_too_short") or (
        err_type == "string_type" and first.get("input") is None
    ):
        return f"{field} is required"
    return f"{field}: {first.get('msg', 'invalid value')}"


def _route_requires_identity(request: Request) -> bool:
    """True when the matched route depends on ``require_identity``."""
    from .deps.auth import require_identity

    dependant = getattr(request.scope.get("route"), "dependant", None)
    pending = [dependant] if dependant is not None else []
    while pending:
        dep = pending.pop()
        if dep.call is require_identity:
            return True
        pending.extend(dep.dependencies)
    return False


def _unauthenticated(request: Request) -> bool:
    """Resolve identity for a request whose body never reached its dependencies."""
    from .deps.auth import TokenIdentityResolver
    from .deps.providers import get_settings

    if not _route_requires_identity(request):
        return False
    return TokenIdentityResolver.from_settings(get_settings()).resolve(request) is None


def register_error_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""
    for exc_cls, (status, kind) in _EXCEPTION_STATUS.items():
        app.add_exception_handler(exc_cls, _make_handler(status, kind))

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> Response:
        # Body decoding happens before dependencies; a missing identity still wins
        if _unauthenticated(request):
            return ApiResponse.fail("Unauthorized", ErrorKind.unauthorized).to_response(401)
        return ApiResponse.fail(describe_validation_error(exc), ErrorKind.validation).to_response(400)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> Response:
        logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
        return ApiResponse.fail("Internal server error").to_response(500)
