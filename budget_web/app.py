"""
FastAPI application entry point for the budgeting web tier.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from budget_web.api_client import BackendClient
from budget_web.auth_provider import AuthProviderClient
from budget_web.config import Settings, get_settings
from budget_web.dependencies import (
    PageRedirect,
    get_auth_provider,
    get_backend_client,
    get_health_probe,
)
from budget_web.errors import BudgetWebError
from budget_web.routes import router
from budget_web.session import HealthProbe, locale_middleware, session_middleware

logger = logging.getLogger(__name__)


async def handle_budget_web_error(request: Request, exc: BudgetWebError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def handle_page_redirect(request: Request, exc: PageRedirect) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=exc.status_code)


def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[BackendClient] = None,
    auth_provider: Optional[AuthProviderClient] = None,
) -> FastAPI:
    """
    Build the app. Tests pass their own settings and clients; otherwise the
    process-wide singletons are used.
    """
    injected = settings is not None
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Help Me Budget Web", version="0.1.0")
    app.state.settings = settings
    app.state.backend = backend or (
        BackendClient(settings) if injected else get_backend_client()
    )
    app.state.auth_provider = auth_provider or (
        AuthProviderClient(settings) if injected else get_auth_provider()
    )
    app.state.health_probe = HealthProbe() if injected else get_health_probe()

    # Middleware added last runs first: session setup, then locale.
    app.middleware("http")(locale_middleware)
    app.middleware("http")(session_middleware)

    app.add_exception_handler(BudgetWebError, handle_budget_web_error)
    app.add_exception_handler(PageRedirect, handle_page_redirect)
    app.include_router(router)
    return app


app = create_app()
