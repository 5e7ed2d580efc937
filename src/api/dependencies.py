from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Iterable, Optional

from fastapi import Depends, Header

from src.core.config import get_admin_roles
from src.core.errors import ForbiddenError
from src.core.supabase import SupabaseAuthClient
from src.models.profiles import CallerIdentity
from src.repositories.billing_repository import BillingRepository, TargetsRepository
from src.repositories.deals_repository import DealsRepository, ProjectionsRepository
from src.repositories.profiles_repository import ProfilesRepository, TeamsRepository
from src.services.analytics_service import AnalyticsService
from src.services.auth_service import AuthService
from src.services.billing_service import BillingService
from src.services.deals_service import DealsService
from src.services.exchange_rate_service import ExchangeRateService
from src.services.leaderboard_service import LeaderboardService
from src.services.projections_service import ProjectionsService
from src.services.targets_service import TargetsService
from src.services.users_service import UsersService

logger = logging.getLogger(__name__)


@lru_cache
def get_auth_client() -> SupabaseAuthClient:
    return SupabaseAuthClient()


@lru_cache
def get_profiles_repository() -> ProfilesRepository:
    return ProfilesRepository()


@lru_cache
def get_teams_repository() -> TeamsRepository:
    return TeamsRepository()


@lru_cache
def get_deals_repository() -> DealsRepository:
    return DealsRepository()


@lru_cache
def get_projections_repository() -> ProjectionsRepository:
    return ProjectionsRepository()


@lru_cache
def get_billing_repository() -> BillingRepository:
    return BillingRepository()


@lru_cache
def get_targets_repository() -> TargetsRepository:
    return TargetsRepository()


def get_exchange_rate_service() -> ExchangeRateService:
    return ExchangeRateService()


def get_auth_service() -> AuthService:
    return AuthService(auth_client=get_auth_client(), profiles_repository=get_profiles_repository())


def get_users_service() -> UsersService:
    return UsersService(
        auth_client=get_auth_client(),
        profiles_repository=get_profiles_repository(),
        teams_repository=get_teams_repository(),
    )


def get_billing_service() -> BillingService:
    return BillingService(
        repository=get_billing_repository(),
        profiles_repository=get_profiles_repository(),
        exchange_rates=get_exchange_rate_service(),
    )


def get_deals_service() -> DealsService:
    return DealsService(
        repository=get_deals_repository(),
        profiles_repository=get_profiles_repository(),
        exchange_rates=get_exchange_rate_service(),
    )


def get_leaderboard_service() -> LeaderboardService:
    return LeaderboardService(
        deals_repository=get_deals_repository(),
        profiles_repository=get_profiles_repository(),
        teams_repository=get_teams_repository(),
        targets_repository=get_targets_repository(),
    )


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(
        deals_repository=get_deals_repository(),
        profiles_repository=get_profiles_repository(),
        teams_repository=get_teams_repository(),
    )


def get_targets_service() -> TargetsService:
    return TargetsService(repository=get_targets_repository(), profiles_repository=get_profiles_repository())


def get_projections_service() -> ProjectionsService:
    return ProjectionsService(
        deals_repository=get_deals_repository(),
        projections_repository=get_projections_repository(),
        billing_repository=get_billing_repository(),
    )


def get_current_caller(
    authorization: Optional[str] = Header(default=None),
    service: AuthService = Depends(get_auth_service),
) -> CallerIdentity:
    return service.resolve_caller(authorization)


def require_roles(allowed: Optional[Iterable[str]] = None) -> Callable[..., CallerIdentity]:
    """Dependency that admits only callers whose role is in ``allowed`` (admin roles by default)."""
    explicit = frozenset(allowed) if allowed is not None else None

    def checker(caller: CallerIdentity = Depends(get_current_caller)) -> CallerIdentity:
        roles = explicit if explicit is not None else get_admin_roles()
        if caller.role_type not in roles:
            logger.warning("Denied %s (role %s)", caller.id, caller.role_type)
            raise ForbiddenError()
        return caller

    return checker


require_manager = require_roles()
