"""
In-process fakes for the backend API and the auth provider.

Both are httpx.MockTransport handlers that answer from a route table keyed by
(method, path) and record every request they see.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

import httpx

from budget_web.api_client import BackendClient
from budget_web.auth_provider import AuthProviderClient, encode_session_cookie
from budget_web.config import Settings
from budget_web.schemas import AuthSession

BACKEND_URL = "http://backend.test"
AUTH_URL = "http://auth.test"

ACCESS_TOKEN = "access-token-1"
USER_EMAIL = "ada@example.com"
INTERNAL_USER_ID = "user-1"

Route = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


def make_settings(**overrides: Any) -> Settings:
    values = {
        "backend_url": BACKEND_URL,
        "api_secret_key": "test-secret",
        "supabase_url": AUTH_URL,
        "supabase_anon_key": "anon-key",
        "supabase_service_role_key": "service-key",
        "check_backend_health": False,
        "cookie_secret": "cookie-secret",
    }
    values.update(overrides)
    return Settings(**values)


class FakeService:
    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status_code: int = 200) -> None:
        self.routes[(method, path)] = (status_code, body)

    def add_handler(
        self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]
    ) -> None:
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)
        status_code, body = route
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def requests_to(self, path: str, method: Optional[str] = None) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.url.path == path and (method is None or request.method == method)
        ]


class FakeBackend(FakeService):
    """Backend with the identity lookup for the test user already wired."""

    def __init__(self) -> None:
        super().__init__()
        self.add(
            "GET",
            "/auth/roles/by-email",
            {
                "user_id": INTERNAL_USER_ID,
                "email": USER_EMAIL,
                "roles": [],
                "is_admin": False,
                "is_moderator": False,
            },
        )

    def data_requests(self) -> list[httpx.Request]:
        """Requests other than the identity lookup."""
        return [r for r in self.requests if r.url.path != "/auth/roles/by-email"]


class FakeAuthProvider(FakeService):
    """Auth provider that accepts ACCESS_TOKEN and nothing else."""

    def __init__(self) -> None:
        super().__init__()
        self.add_handler("GET", "/auth/v1/user", self._user)

    @staticmethod
    def _user(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") != f"Bearer {ACCESS_TOKEN}":
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(
            200,
            json={
                "id": "supabase-user-1",
                "email": USER_EMAIL,
                "user_metadata": {"full_name": "Ada Lovelace"},
                "app_metadata": {"provider": "github"},
            },
        )


def make_clients(
    settings: Settings, backend: FakeService, auth: FakeService
) -> tuple[BackendClient, AuthProviderClient]:
    return (
        BackendClient(settings, transport=backend.transport),
        AuthProviderClient(settings, transport=auth.transport),
    )


def session_cookie(access_token: str = ACCESS_TOKEN) -> str:
    return encode_session_cookie(
        AuthSession(access_token=access_token, refresh_token="refresh-1")
    )
