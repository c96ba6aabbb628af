"""Aggregate endpoints: headline stats and the dashboard summary."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..deps.auth import Identity, require_identity
from ..deps.providers import get_margin_service
from ..schemas.envelope import ApiResponse
from ..services.margin_service import MarginService

router = APIRouter(prefix="/v1", tags=["stats"])


@router.get("/stats")
async def get_stats(
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """Average margin, active/flagged counts and estimate accuracy (one decimal)."""
    summary = await svc.stats(identity.owner_id)
    return ApiResponse.success(summary.to_stats()).to_response()


@router.get("/dashboard")
async def get_dashboard(
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """Stats plus active pipeline value, danger jobs and the newest jobs."""
    summary = await svc.dashboard(identity.owner_id)
    return ApiResponse.success(summary.to_dict()).to_response()
