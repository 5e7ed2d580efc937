from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from src.shared.base import BaseRecord


class TeamRecord(BaseRecord):
    id: str
    team_name: str
    description: Optional[str] = None
    active: Optional[bool] = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileRecord(BaseRecord):
    id: str
    name: str = ""
    email: Optional[str] = None
    role_type: str
    sales_role: Optional[str] = None
    team_id: Optional[str] = None
    active: Optional[bool] = True
    team_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def display_role(self) -> str:
        return self.sales_role or self.role_type


class CallerIdentity(BaseRecord):
    id: str
    email: Optional[str] = None
    name: str = ""
    role_type: str
    team_id: Optional[str] = None
