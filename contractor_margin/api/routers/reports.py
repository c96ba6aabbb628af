"""Monthly profit and loss reports."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ...config import REPORT_MONTH_WINDOW
from ...margin.aggregation import month_key, parse_month
from ...margin.models import utc_now
from ..deps.auth import Identity, require_identity
from ..deps.providers import get_margin_service
from ..errors import BadRequestError
from ..schemas.envelope import ApiResponse
from ..services.margin_service import MarginService

router = APIRouter(prefix="/v1/reports", tags=["reports"])


@router.get("/monthly")
async def monthly_report(
    month: Optional[str] = None,
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """P&L for jobs created in ``month`` (YYYY-MM, default: current UTC month)."""
    if month is None:
        month = month_key(utc_now())
    try:
        month = parse_month(month)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc
    report = await svc.monthly_report(identity.owner_id, month)
    return ApiResponse.success(report.to_dict()).to_response()


@router.get("/months")
async def report_months(
    identity: Identity = Depends(require_identity),
    svc: MarginService = Depends(get_margin_service),
) -> Response:
    """Trailing months (newest first) with job counts, for report selectors."""
    months = await svc.month_counts(identity.owner_id, utc_now().date(), REPORT_MONTH_WINDOW)
    return ApiResponse.success({"months": months}).to_response()
