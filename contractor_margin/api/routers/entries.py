"""Line-item deletion. Entries have no update; corrections are delete + recreate."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..deps.auth import Identity, require_identity
from ..deps.providers import get_margin_service
from ..schemas.envelope import ApiResponse
from ..services.margin_service import MarginService

router = APIRouter(prefix="/v1", tags=["entries"])


@router.delete("/labor/{entry_id}", status_code=204)
async def delete_labor(
    entry_id: str,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    await svc.delete_labor(identity.owner_id, entry_id)
    return ApiResponse.success(None).to_response(204)


@router.delete("/materials/{entry_id}", status_code=204)
async def delete_material(
    entry_id: str,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    await svc.delete_material(identity.owner_id, entry_id)
    return ApiResponse.success(None).to_response(204)
