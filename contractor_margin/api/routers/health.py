"""Liveness probe."""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from ... import __version__
from ..schemas.envelope import ApiResponse

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health")
async def health() -> Response:
    return ApiResponse.success({"status": "ok", "version": __version__}).to_response()
