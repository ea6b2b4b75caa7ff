"""
Configuration and settings for the web tier.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Budgeting backend API
    backend_url: str = Field(default="http://localhost:3000")
    api_secret_key: str = Field(default="")

    # Supabase Auth
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_anon_key: str = Field(default="")
    supabase_service_role_key: Optional[str] = Field(default=None)
    auth_cookie_name: Optional[str] = Field(default=None)

    # "lookup" re-validates with the auth provider and resolves the internal
    # id by email on every request. "cookie" trusts the signed user_data cookie.
    identity_mode: Literal["lookup", "cookie"] = Field(default="lookup")
    cookie_secret: str = Field(default="change-me")
    secure_cookies: bool = Field(default=False)

    # Startup toggles
    check_backend_health: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    # i18n
    supported_locales: list[str] = Field(default_factory=lambda: ["en"])
    default_locale: str = Field(default="en")

    @property
    def session_cookie_name(self) -> str:
        """Name of the Supabase session cookie (sb-<project-ref>-auth-token)."""
        if self.auth_cookie_name:
            return self.auth_cookie_name
        host = urlparse(self.supabase_url).hostname or "localhost"
        project_ref = host.split(".")[0]
        return f"sb-{project_ref}-auth-token"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
