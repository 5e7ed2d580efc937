from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_caller, get_leaderboard_service
from src.models.profiles import CallerIdentity
from src.schemas.leaderboard import (
    IndividualLeaderboardRow,
    TargetsLeaderboardResponse,
    TeamLeaderboardRow,
)
from src.services.leaderboard_service import LeaderboardService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/individuals")
def individual_leaderboard(
    _: CallerIdentity = Depends(get_current_caller),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> ResponseEnvelope[List[IndividualLeaderboardRow]]:
    data = service.get_individual_leaderboard()
    return ResponseEnvelope(data=data, meta=build_meta(source="deals", time_window="all"))


@router.get("/teams")
def team_leaderboard(
    _: CallerIdentity = Depends(get_current_caller),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> ResponseEnvelope[List[TeamLeaderboardRow]]:
    data = service.get_team_leaderboard()
    return ResponseEnvelope(data=data, meta=build_meta(source="deals", time_window="all"))


@router.get("/targets")
def targets_leaderboard(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    period: str = Query(default="monthly", pattern="^(monthly|quarterly|half-yearly|yearly)$"),
    period_number: int = Query(default=1, ge=1, le=12),
    _: CallerIdentity = Depends(get_current_caller),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> ResponseEnvelope[TargetsLeaderboardResponse]:
    selected_year = year or date.today().year
    data = service.get_targets_leaderboard(selected_year, period, period_number)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="deals,individual_targets", time_window=f"{selected_year}:{period}:{period_number}"),
    )
