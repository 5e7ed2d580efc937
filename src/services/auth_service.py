from __future__ import annotations

import logging
from typing import Optional

from src.core.errors import ForbiddenError, UnauthorizedError
from src.core.supabase import SupabaseAuthClient
from src.models.profiles import CallerIdentity
from src.repositories.profiles_repository import ProfilesRepository

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.strip():
        raise UnauthorizedError("Missing authorization header")
    value = authorization.strip()
    if value.lower().startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX):].strip()
    if not value:
        raise UnauthorizedError("Missing authorization header")
    return value


class AuthService:
    def __init__(self, auth_client: SupabaseAuthClient, profiles_repository: ProfilesRepository) -> None:
        self.auth_client = auth_client
        self.profiles_repository = profiles_repository

    def resolve_caller(self, authorization: Optional[str]) -> CallerIdentity:
        token = extract_bearer_token(authorization)
        user = self.auth_client.get_user(token)
        if not user:
            raise UnauthorizedError("Invalid authorization token")

        profile = self.profiles_repository.get_profile(str(user["id"]))
        if profile is None:
            logger.warning("No profile found for authenticated user %s", user["id"])
            raise ForbiddenError("Could not verify user role")

        return CallerIdentity(
            id=profile.id,
            email=profile.email or user.get("email"),
            name=profile.name,
            role_type=profile.role_type,
            team_id=profile.team_id,
        )
