from __future__ import annotations

from typing import Optional

from pydantic import Field

from src.shared.base import BaseSchema


class Team(BaseSchema):
    id: str
    team_name: str
    description: Optional[str] = None
    active: bool = True
    member_count: int = 0


class TeamCreateRequest(BaseSchema):
    team_name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
