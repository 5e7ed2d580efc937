from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_projections_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.projections import ProjectionAdjustmentRequest, ProjectionDeal, ProjectionsResponse
from src.services.projections_service import ProjectionsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/projections", tags=["projections"])


@router.get("")
def get_projections(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    _: CallerIdentity = Depends(require_manager),
    service: ProjectionsService = Depends(get_projections_service),
) -> ResponseEnvelope[ProjectionsResponse]:
    selected_year = year or date.today().year
    data = service.get_projections(selected_year)
    return ResponseEnvelope(data=data, meta=build_meta(source="deals,billing_records", time_window=str(selected_year)))


@router.put("/adjustments/{deal_id}")
def save_projection_adjustment(
    deal_id: str,
    request: ProjectionAdjustmentRequest,
    _: CallerIdentity = Depends(require_manager),
    service: ProjectionsService = Depends(get_projections_service),
) -> ResponseEnvelope[ProjectionDeal]:
    data = service.save_adjustment(deal_id, request)
    return ResponseEnvelope(data=data, meta=build_meta(source="projection_adjustments", time_window=str(request.year)))
