from __future__ import annotations

import logging
from typing import Any, Dict, List

from src.core.errors import BadRequestError, NotFoundError
from src.core.supabase import SupabaseAuthClient
from src.models.profiles import CallerIdentity
from src.repositories.profiles_repository import ProfilesRepository, TeamsRepository
from src.schemas.teams import Team, TeamCreateRequest
from src.schemas.users import (
    CreatedUser,
    CreateUserRequest,
    CreateUserResult,
    ProfileSummary,
    UpdateUserRequest,
    UpdateUserResult,
)

logger = logging.getLogger(__name__)

UPDATABLE_PROFILE_FIELDS = ("name", "role_type", "sales_role", "team_id")
REQUIRED_PROFILE_FIELDS = ("name", "role_type")


class UsersService:
    def __init__(
        self,
        auth_client: SupabaseAuthClient,
        profiles_repository: ProfilesRepository,
        teams_repository: TeamsRepository,
    ) -> None:
        self.auth_client = auth_client
        self.profiles_repository = profiles_repository
        self.teams_repository = teams_repository

    def create_user(self, request: CreateUserRequest, caller: CallerIdentity) -> CreateUserResult:
        auth_user = self.auth_client.create_user(
            email=request.email,
            password=request.password,
            user_metadata={"name": request.name},
        )
        user_id = str(auth_user.get("id") or "")
        if not user_id:
            raise BadRequestError("Auth service did not return a user id")

        # The signup trigger normally creates the profile row already; upserting covers
        # projects where it does not.
        profile = self.profiles_repository.upsert_profile(
            {
                "id": user_id,
                "email": request.email,
                "name": request.name,
                "role_type": request.role_type,
                "team_id": request.team_id,
            }
        )
        self.profiles_repository.replace_user_role(user_id, request.role_type)
        logger.info("User %s created by admin %s", user_id, caller.id)
        return CreateUserResult(
            success=True,
            user=CreatedUser(
                id=profile.id,
                email=profile.email or request.email,
                name=profile.name or request.name,
                role_type=request.role_type,
                team_id=profile.team_id,
            ),
        )

    def update_user(self, request: UpdateUserRequest, caller: CallerIdentity) -> UpdateUserResult:
        supplied = request.model_fields_set
        payload: Dict[str, Any] = {
            field: getattr(request, field) for field in UPDATABLE_PROFILE_FIELDS if field in supplied
        }
        # Explicit nulls may clear team_id or sales_role, never name or role_type.
        for field in REQUIRED_PROFILE_FIELDS:
            if payload.get(field, "") is None:
                del payload[field]
        if not payload:
            raise BadRequestError("No fields to update")

        updated = self.profiles_repository.update_profile(request.user_id, payload)
        if updated is None:
            raise NotFoundError("User not found")
        if "role_type" in payload:
            self.profiles_repository.replace_user_role(request.user_id, payload["role_type"])
        logger.info("User %s updated by admin %s", request.user_id, caller.id)
        return UpdateUserResult(success=True)

    def list_profiles(self, include_inactive: bool = True) -> List[ProfileSummary]:
        profiles = self.profiles_repository.list_profiles(active_only=not include_inactive)
        return [
            ProfileSummary(
                id=profile.id,
                name=profile.name,
                email=profile.email,
                role_type=profile.role_type,
                sales_role=profile.sales_role,
                team_id=profile.team_id,
                team_name=profile.team_name,
                active=profile.active is not False,
            )
            for profile in profiles
        ]

    def list_teams(self) -> List[Team]:
        teams = self.teams_repository.list_teams(active_only=True)
        profiles = self.profiles_repository.list_profiles(active_only=True)
        counts: Dict[str, int] = {}
        for profile in profiles:
            if profile.team_id:
                counts[profile.team_id] = counts.get(profile.team_id, 0) + 1
        return [
            Team(
                id=team.id,
                team_name=team.team_name,
                description=team.description,
                active=team.active is not False,
                member_count=counts.get(team.id, 0),
            )
            for team in teams
        ]

    def create_team(self, request: TeamCreateRequest, caller: CallerIdentity) -> Team:
        created = self.teams_repository.create_team(
            {"team_name": request.team_name.strip(), "description": request.description, "active": True}
        )
        logger.info("Team %s created by %s", created.id, caller.id)
        return Team(
            id=created.id,
            team_name=created.team_name,
            description=created.description,
            active=created.active is not False,
            member_count=0,
        )
