from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_analytics_service, get_current_caller, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.analytics import DashboardResponse, ManagersAnalyticsResponse
from src.services.analytics_service import AnalyticsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(tags=["analytics"])


@router.get("/analytics/managers")
def managers_analytics(
    time_period: str = Query(default="month", pattern="^(month|quarter|half|year)$"),
    team_id: Optional[str] = Query(default=None),
    _: CallerIdentity = Depends(require_manager),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ResponseEnvelope[ManagersAnalyticsResponse]:
    data = service.get_managers_analytics(time_period=time_period, team_id=team_id)
    return ResponseEnvelope(data=data, meta=build_meta(source="deals", time_window=time_period))


@router.get("/dashboard/me")
def my_dashboard(
    caller: CallerIdentity = Depends(get_current_caller),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ResponseEnvelope[DashboardResponse]:
    return ResponseEnvelope(data=service.get_dashboard(caller), meta=build_meta(source="deals", time_window="all"))
