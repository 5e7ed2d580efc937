from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so the frontend's .env can be shared locally.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Sales Ops Backend"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")

    base_currency: str = Field(default="GBP", alias="BASE_CURRENCY")
    exchange_rate_base_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest", alias="EXCHANGE_RATE_BASE_URL"
    )
    exchange_rate_timeout_seconds: float = Field(default=20.0, alias="EXCHANGE_RATE_TIMEOUT_SECONDS")

    admin_roles: str = Field(default="Admin,Manager,CEO", alias="ADMIN_ROLES")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]


def get_admin_roles() -> frozenset[str]:
    settings = get_settings()
    return frozenset(role.strip() for role in settings.admin_roles.split(",") if role.strip())
