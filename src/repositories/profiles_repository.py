from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from src.core.supabase import SupabaseClient
from src.models.profiles import ProfileRecord, TeamRecord

MAX_QUERY_ROWS = 5000
PROFILE_COLUMNS = "id,name,email,role_type,sales_role,team_id,active,created_at,updated_at"


def _with_team_name(row: Dict[str, Any]) -> Dict[str, Any]:
    team = row.pop("teams", None)
    if isinstance(team, dict):
        row["team_name"] = team.get("team_name")
    return row


class ProfilesRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        rows, _ = self.client.select(
            table="profiles",
            select=f"{PROFILE_COLUMNS},teams(team_name)",
            filters=[("id", f"eq.{user_id}")],
            limit=1,
        )
        return ProfileRecord.model_validate(_with_team_name(rows[0])) if rows else None

    def list_profiles(
        self,
        active_only: bool = True,
        team_id: Optional[str] = None,
        role_type: Optional[str] = None,
    ) -> List[ProfileRecord]:
        filters: List[Tuple[str, str]] = []
        if active_only:
            filters.append(("active", "is.true"))
        if team_id:
            filters.append(("team_id", f"eq.{team_id}"))
        if role_type:
            filters.append(("role_type", f"eq.{role_type}"))
        rows, _ = self.client.select(
            table="profiles",
            select=f"{PROFILE_COLUMNS},teams(team_name)",
            filters=filters,
            order="name.asc",
            limit=MAX_QUERY_ROWS,
        )
        return [ProfileRecord.model_validate(_with_team_name(row)) for row in rows]

    def upsert_profile(self, payload: Dict[str, Any]) -> ProfileRecord:
        rows = self.client.insert(table="profiles", payload=payload, upsert=True, on_conflict="id")
        return ProfileRecord.model_validate(rows[0])

    def update_profile(self, user_id: str, payload: Dict[str, Any]) -> Optional[ProfileRecord]:
        rows = self.client.update(table="profiles", payload=payload, filters=[("id", f"eq.{user_id}")])
        return ProfileRecord.model_validate(rows[0]) if rows else None

    def replace_user_role(self, user_id: str, role: str) -> None:
        self.client.delete(table="user_roles", filters=[("user_id", f"eq.{user_id}")])
        self.client.insert(table="user_roles", payload={"user_id": user_id, "role": role})


class TeamsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_teams(self, active_only: bool = True) -> List[TeamRecord]:
        filters: List[Tuple[str, str]] = [("active", "is.true")] if active_only else []
        rows, _ = self.client.select(
            table="teams",
            select="id,team_name,description,active,created_at,updated_at",
            filters=filters,
            order="team_name.asc",
            limit=MAX_QUERY_ROWS,
        )
        return [TeamRecord.model_validate(row) for row in rows]

    def create_team(self, payload: Dict[str, Any]) -> TeamRecord:
        rows = self.client.insert(table="teams", payload=payload)
        return TeamRecord.model_validate(rows[0])
