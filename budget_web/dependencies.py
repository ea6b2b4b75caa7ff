"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import FormData

from budget_web.api_client import BackendClient
from budget_web.auth_provider import AuthProviderClient
from budget_web.composition import ActionFailure
from budget_web.config import get_settings
from budget_web.session import NO_CACHE_HEADERS, HealthProbe, RequestSession

_backend_client: BackendClient | None = None
_auth_provider: AuthProviderClient | None = None
_health_probe: HealthProbe | None = None


class PageRedirect(Exception):
    """Raised by page loaders and guards to answer with a redirect."""

    def __init__(self, location: str, status_code: int = 303):
        super().__init__(location)
        self.location = location
        self.status_code = status_code


def get_backend_client() -> BackendClient:
    """
    Return a singleton backend client. It holds configuration only; each
    request opens its own connection.
    """
    global _backend_client
    if _backend_client:
        return _backend_client
    _backend_client = BackendClient(get_settings())
    return _backend_client


def get_auth_provider() -> AuthProviderClient:
    global _auth_provider
    if _auth_provider:
        return _auth_provider
    _auth_provider = AuthProviderClient(get_settings())
    return _auth_provider


def get_health_probe() -> HealthProbe:
    """The process-wide probe; it runs once and is never reset."""
    global _health_probe
    if _health_probe:
        return _health_probe
    _health_probe = HealthProbe()
    return _health_probe


def get_request_session(request: Request) -> RequestSession:
    return request.state.auth


async def require_dashboard_user(request: Request, response: Response) -> RequestSession:
    """
    Guard for every page under /dashboard: signed-out visitors are sent to
    the login page and user-specific pages are never cached.
    """
    auth: RequestSession = request.state.auth
    session = await auth.get_session()
    if session.user is None:
        raise PageRedirect("/auth")
    response.headers.update(NO_CACHE_HEADERS)
    return auth


async def run_action(action, request: Request):
    """Run a form action and render an ActionFailure with its status."""
    form: FormData = await request.form()
    result = await action(form, request.state.auth, **request.path_params)
    if isinstance(result, ActionFailure):
        return JSONResponse(result.to_json(), status_code=result.status)
    return result
