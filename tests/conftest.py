from __future__ import annotations

import os
from typing import Any, Dict, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Settings are read when the app module is imported.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

from src.api.dependencies import get_auth_service  # noqa: E402
from src.main import create_app  # noqa: E402
from src.models.profiles import ProfileRecord  # noqa: E402
from src.services.auth_service import AuthService  # noqa: E402

TOKENS = {
    "admin-token": "user-admin",
    "manager-token": "user-manager",
    "bd-token": "user-bd",
    "orphan-token": "user-without-profile",
}

PROFILES = {
    "user-admin": ProfileRecord(id="user-admin", name="Ada Admin", email="ada@example.com", role_type="Admin"),
    "user-manager": ProfileRecord(
        id="user-manager", name="Max Manager", email="max@example.com", role_type="Manager", team_id="team-1"
    ),
    "user-bd": ProfileRecord(id="user-bd", name="Bea Dev", email="bea@example.com", role_type="BD", team_id="team-1"),
}


class FakeAuthClient:
    def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        user_id = TOKENS.get(access_token)
        if user_id is None:
            return None
        return {"id": user_id, "email": f"{user_id}@example.com"}


class FakeProfilesRepository:
    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return PROFILES.get(user_id)


def fake_auth_service() -> AuthService:
    return AuthService(auth_client=FakeAuthClient(), profiles_repository=FakeProfilesRepository())


@pytest.fixture()
def app() -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_auth_service] = fake_auth_service
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
