from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_targets_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.targets import IndividualTargets, IndividualTargetsRequest
from src.services.targets_service import TargetsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/targets", tags=["targets"])


@router.get("/{user_id}")
def get_individual_targets(
    user_id: str,
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    _: CallerIdentity = Depends(require_manager),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[IndividualTargets]:
    selected_year = year or date.today().year
    data = service.get_targets(user_id, selected_year)
    return ResponseEnvelope(data=data, meta=build_meta(source="individual_targets", time_window=str(selected_year)))


@router.put("/{user_id}")
def save_individual_targets(
    user_id: str,
    request: IndividualTargetsRequest,
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    _: CallerIdentity = Depends(require_manager),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[IndividualTargets]:
    selected_year = year or date.today().year
    data = service.save_targets(user_id, selected_year, request)
    return ResponseEnvelope(data=data, meta=build_meta(source="individual_targets", time_window=str(selected_year)))
