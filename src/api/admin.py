from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_users_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.users import (
    CreateUserRequest,
    CreateUserResult,
    ProfileSummary,
    UpdateUserRequest,
    UpdateUserResult,
)
from src.services.users_service import UsersService
from src.shared.response import ResponseEnvelope, build_meta, paginate_list


router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/create-user")
def create_user(
    request: CreateUserRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: UsersService = Depends(get_users_service),
) -> CreateUserResult:
    return service.create_user(request, caller)


@router.post("/update-user")
def update_user(
    request: UpdateUserRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: UsersService = Depends(get_users_service),
) -> UpdateUserResult:
    return service.update_user(request, caller)


@router.get("/profiles")
def list_profiles(
    include_inactive: bool = Query(default=True),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=100, ge=1, le=500),
    _: CallerIdentity = Depends(require_manager),
    service: UsersService = Depends(get_users_service),
) -> ResponseEnvelope[List[ProfileSummary]]:
    profiles = service.list_profiles(include_inactive=include_inactive)
    data, pagination = paginate_list(profiles, page, page_size)
    return ResponseEnvelope(data=data, pagination=pagination, meta=build_meta(source="profiles", currency=None))
