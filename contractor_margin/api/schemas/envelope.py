"""Explicit handler result type and its rendering to the wire."""
from __future__ import annotations

import enum
from typing import Any, Generic, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    validation = "validation"
    unauthorized = "unauthorized"
    not_found = "not_found"
    store = "store"
    internal = "internal"


class ApiResponse(BaseModel, Generic[T]):
    """Handler outcome: ``Ok(data)`` or ``Error(kind, message)``.

    Handlers build one of these and never shape JSON themselves; the wire
    format is decided in ``to_response`` alone.
    """

    ok: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, data: Any) -> "ApiResponse":
        """Build a success response."""
        return cls(ok=True, data=data)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.internal) -> "ApiResponse":
        """Build an error response."""
        return cls(ok=False, error=error, kind=kind)

    def to_response(self, status_code: int = 200) -> Response:
        """Render: success bodies are ``data`` itself, failures are ``{"error": message}``."""
        if status_code == 204:
            return Response(status_code=204)
        if self.ok:
            content = jsonable_encoder(self.data)
        else:
            content = {"error": self.error}
        return JSONResponse(status_code=status_code, content=content)
