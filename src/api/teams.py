from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_caller, get_users_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.teams import Team, TeamCreateRequest
from src.services.users_service import UsersService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("")
def list_teams(
    _: CallerIdentity = Depends(get_current_caller),
    service: UsersService = Depends(get_users_service),
) -> ResponseEnvelope[List[Team]]:
    return ResponseEnvelope(data=service.list_teams(), meta=build_meta(source="teams", currency=None))


@router.post("")
def create_team(
    request: TeamCreateRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: UsersService = Depends(get_users_service),
) -> ResponseEnvelope[Team]:
    data = service.create_team(request, caller)
    return ResponseEnvelope(data=data, meta=build_meta(source="teams", currency=None))
