from __future__ import annotations

from typing import List, Literal, Optional

from src.shared.base import BaseSchema

TargetPeriod = Literal["monthly", "quarterly", "half-yearly", "yearly"]


class IndividualLeaderboardRow(BaseSchema):
    rank: int
    user_id: str
    name: str
    email: Optional[str] = None
    role_type: str
    team_name: str
    gp_added: float
    new_placements: int
    renewal_count: int


class TeamLeaderboardRow(BaseSchema):
    rank: int
    team_id: str
    team_name: str
    member_count: int
    gp_added: float
    new_placements: int
    renewal_count: int


class TargetProgressRow(BaseSchema):
    id: str
    name: str
    role_type: Optional[str] = None
    team_name: Optional[str] = None
    member_count: Optional[int] = None
    target: float
    actual: float
    projected: float
    variance: float
    projected_variance: float
    progress: float


class TargetsLeaderboardResponse(BaseSchema):
    year: int
    period: TargetPeriod
    period_number: int
    months: List[int]
    individuals: List[TargetProgressRow]
    teams: List[TargetProgressRow]
