from __future__ import annotations

from typing import List

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_users_service
from src.models.profiles import CallerIdentity
from src.schemas.users import (
    CreatedUser,
    CreateUserRequest,
    CreateUserResult,
    ProfileSummary,
    UpdateUserRequest,
    UpdateUserResult,
)

ADMIN = {"Authorization": "Bearer admin-token"}
BD = {"Authorization": "Bearer bd-token"}


class FakeUsersService:
    calls: List[str] = []

    def create_user(self, request: CreateUserRequest, caller: CallerIdentity) -> CreateUserResult:
        self.calls.append(f"create:{request.email}:{caller.id}")
        if request.email == "taken@example.com":
            request_info = httpx.Request("POST", "http://localhost:54321/auth/v1/admin/users")
            response = httpx.Response(
                422,
                json={"msg": "A user with this email address has already been registered"},
                request=request_info,
            )
            raise httpx.HTTPStatusError("conflict", request=request_info, response=response)
        if request.email == "boom@example.com":
            raise RuntimeError("database unavailable")
        return CreateUserResult(
            success=True,
            user=CreatedUser(id="new-user", email=request.email, name=request.name, role_type=request.role_type),
        )

    def update_user(self, request: UpdateUserRequest, caller: CallerIdentity) -> UpdateUserResult:
        self.calls.append(f"update:{request.user_id}:{sorted(request.model_fields_set)}")
        return UpdateUserResult(success=True)

    def list_profiles(self, include_inactive: bool = True) -> List[ProfileSummary]:
        return [ProfileSummary(id="user-bd", name="Bea Dev", role_type="BD", team_name="North")]


def make_client(app: FastAPI) -> TestClient:
    FakeUsersService.calls = []
    app.dependency_overrides[get_users_service] = FakeUsersService
    return TestClient(app, raise_server_exceptions=False)


NEW_USER = {"email": "new@example.com", "password": "secret1", "name": "New Person", "roleType": "DT"}


def test_create_user_returns_success_payload(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post("/api/v1/admin/create-user", json=NEW_USER, headers=ADMIN)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["user"]["id"] == "new-user"
    assert payload["user"]["roleType"] == "DT"
    assert FakeUsersService.calls == ["create:new@example.com:user-admin"]


def test_missing_token_is_unauthorized(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post("/api/v1/admin/create-user", json=NEW_USER)

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Missing authorization header"
    assert FakeUsersService.calls == []


def test_invalid_token_is_unauthorized(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/create-user", json=NEW_USER, headers={"Authorization": "Bearer nope"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthorized"


def test_caller_without_profile_is_forbidden(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/create-user", json=NEW_USER, headers={"Authorization": "Bearer orphan-token"}
    )
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Could not verify user role"


def test_non_manager_role_is_forbidden(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post("/api/v1/admin/create-user", json=NEW_USER, headers=BD)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Forbidden: Insufficient permissions"
    assert FakeUsersService.calls == []


def test_malformed_body_is_bad_request(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/create-user",
        json={"email": "not-an-email", "password": "123", "name": "", "roleType": "Pilot"},
        headers=ADMIN,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_backend_rejection_surfaces_its_message(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/create-user", json={**NEW_USER, "email": "taken@example.com"}, headers=ADMIN
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "backend_error"
    assert error["message"] == "A user with this email address has already been registered"


def test_unexpected_failure_is_internal_error(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/create-user", json={**NEW_USER, "email": "boom@example.com"}, headers=ADMIN
    )
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "database unavailable"


def test_update_user_passes_only_supplied_fields(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/admin/update-user",
        json={"userId": "user-bd", "teamId": "team-2"},
        headers={"Authorization": "Bearer manager-token"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert FakeUsersService.calls == ["update:user-bd:['team_id', 'user_id']"]


def test_profiles_listing_is_enveloped(app: FastAPI) -> None:
    client = make_client(app)
    response = client.get("/api/v1/admin/profiles", headers=ADMIN)
    assert response.status_code == 200
    payload = response.json()
    assert payload["data"][0]["teamName"] == "North"
    assert payload["meta"]["source"] == "profiles"
    assert payload["pagination"]["totalItems"] == 1
