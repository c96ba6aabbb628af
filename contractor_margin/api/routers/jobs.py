"""Job resources: list with margins, create, detail, status, line items."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ...margin.models import (
    JobCreate,
    JobStatus,
    JobStatusUpdate,
    LaborEntryCreate,
    MaterialEntryCreate,
)
from ..deps.auth import Identity, require_identity
from ..deps.providers import get_margin_service
from ..schemas.envelope import ApiResponse
from ..services.margin_service import MarginService

router = APIRouter(prefix="/v1/jobs", tags=["jobs"])


@router.get("")
async def list_jobs(
    status: Optional[JobStatus] = None,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """Owner's jobs with computed margins, newest first."""
    jobs = await svc.list_jobs(identity.owner_id, status)
    return ApiResponse.success({"jobs": jobs}).to_response()


@router.post("", status_code=201)
async def create_job(
    payload: JobCreate,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """Create a job. The returned record carries no margin fields."""
    job = await svc.create_job(identity.owner_id, payload)
    return ApiResponse.success({"job": job}).to_response(201)


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    detail = await svc.job_detail(identity.owner_id, job_id)
    return ApiResponse.success(detail.to_dict()).to_response()


@router.patch("/{job_id}")
async def update_job_status(
    job_id: str,
    payload: JobStatusUpdate,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    job = await svc.set_status(identity.owner_id, job_id, payload.status)
    return ApiResponse.success({"job": job}).to_response()


@router.post("/{job_id}/labor", status_code=201)
async def add_labor(
    job_id: str,
    payload: LaborEntryCreate,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    entry = await svc.add_labor(identity.owner_id, job_id, payload)
    return ApiResponse.success({"entry": entry}).to_response(201)


@router.post("/{job_id}/materials", status_code=201)
async def add_material(
    job_id: str,
    payload: MaterialEntryCreate,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    entry = await svc.add_material(identity.owner_id, job_id, payload)
    return ApiResponse.success({"entry": entry}).to_response(201)
