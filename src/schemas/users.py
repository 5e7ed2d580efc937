from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from src.shared.base import BaseSchema

RoleType = Literal["BD", "DT", "360", "Manager", "CEO", "Admin"]


class CreateUserRequest(BaseSchema):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role_type: RoleType
    team_id: Optional[str] = None


class UpdateUserRequest(BaseSchema):
    user_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    role_type: Optional[RoleType] = None
    sales_role: Optional[str] = None
    team_id: Optional[str] = None


class CreatedUser(BaseSchema):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role_type: RoleType
    team_id: Optional[str] = None


class CreateUserResult(BaseSchema):
    success: bool = True
    user: CreatedUser


class UpdateUserResult(BaseSchema):
    success: bool = True


class ProfileSummary(BaseSchema):
    id: str
    name: str
    email: Optional[str] = None
    role_type: str
    sales_role: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    active: bool = True
