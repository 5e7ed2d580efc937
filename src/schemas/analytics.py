from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from src.shared.base import BaseSchema

AnalyticsPeriod = Literal["month", "quarter", "half", "year"]


class PerformanceRow(BaseSchema):
    name: str
    role: Optional[str] = None
    gp_added: float
    deals: int
    renewals: Optional[int] = None
    members: Optional[int] = None


class MonthlyTrendPoint(BaseSchema):
    month: str
    label: str
    gp_added: float
    deals: int


class ProjectionSummary(BaseSchema):
    current_total: float
    average_monthly: float
    remaining_months: int
    projection: float


class AnalyticsTotals(BaseSchema):
    total_gp: float
    total_deals: int
    total_renewals: int


class ManagersAnalyticsResponse(BaseSchema):
    time_period: AnalyticsPeriod
    period_start: date
    team_id: Optional[str] = None
    totals: AnalyticsTotals
    teams: List[PerformanceRow]
    individuals: List[PerformanceRow]
    roles: List[PerformanceRow]
    monthly_trends: List[MonthlyTrendPoint]
    projection: ProjectionSummary


class DealStats(BaseSchema):
    total_deals: int
    approved_deals: int
    pending_deals: int
    draft_deals: int
    approved_value: float


class PeerStats(BaseSchema):
    user_id: str
    name: str
    total_deals: int
    approved_deals: int
    pending_deals: int
    total_value: float


class Ranking(BaseSchema):
    rank: int
    total: int


class DashboardRankings(BaseSchema):
    total_deals: Ranking
    approved_deals: Ranking
    pending_deals: Ranking
    total_value: Ranking


class DashboardResponse(BaseSchema):
    user_id: str
    name: str
    role_type: str
    stats: DealStats
    rankings: DashboardRankings
    peers: List[PeerStats]
