"""
Per-request session plumbing.

`session_middleware` runs first on every request: it triggers the one-time
backend health probe and attaches a RequestSession to `request.state.auth`.
`locale_middleware` runs after it and negotiates the response language.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping, Optional

from fastapi import Request

from budget_web.api_client import BackendClient
from budget_web.auth_provider import AuthProviderClient, read_session_cookie
from budget_web.config import Settings
from budget_web.errors import TransportError
from budget_web.identity import (
    USER_COOKIE_NAME,
    SessionInfo,
    resolve_from_user_cookie,
    resolve_internal_user_id,
)

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = {"content-range", "x-supabase-api-version", "location"}

NO_CACHE_HEADERS = {
    "Cache-Control": "private, no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class RequestSession:
    """Request-scoped view of the auth provider session."""

    def __init__(
        self,
        *,
        auth: AuthProviderClient,
        backend: BackendClient,
        settings: Settings,
        cookies: Mapping[str, str],
    ):
        self.auth = auth
        self.backend = backend
        self.settings = settings
        self.cookies = cookies
        self._session_info: Optional[SessionInfo] = None
        self._user_id: Optional[str] = None

    async def get_session(self) -> SessionInfo:
        """
        Return the verified session, or an empty SessionInfo when signed out.

        The access token from the cookie is always checked with the auth
        server; the user object cached inside the cookie is never trusted.
        """
        if self._session_info is not None:
            return self._session_info

        session = read_session_cookie(self.cookies, self.settings.session_cookie_name)
        if session is None:
            self._session_info = SessionInfo()
            return self._session_info

        try:
            user = await self.auth.get_user(session.access_token)
        except TransportError as exc:
            logger.error("Could not verify session, treating request as signed out: %s", exc.message)
            user = None
        self._session_info = SessionInfo(session, user) if user else SessionInfo()
        return self._session_info

    async def get_user_id(self) -> str:
        """Resolve the backend's internal user id for this request."""
        if self._user_id is None:
            if self.settings.identity_mode == "cookie":
                self._user_id = resolve_from_user_cookie(
                    self.cookies.get(USER_COOKIE_NAME),
                    self.settings.cookie_secret,
                    await self.get_session(),
                )
            else:
                self._user_id = await resolve_internal_user_id(
                    await self.get_session(), self.backend
                )
        return self._user_id


class HealthProbe:
    """Checks backend reachability exactly once per process."""

    def __init__(self) -> None:
        self._checked = False
        self._lock = asyncio.Lock()
        self.available: Optional[bool] = None

    @property
    def checked(self) -> bool:
        return self._checked

    async def run_once(self, backend: BackendClient) -> None:
        if self._checked:
            return
        async with self._lock:
            if self._checked:
                return
            self.available = await backend.check_health()
            self._checked = True
        if self.available:
            logger.info("Backend API is available at %s", backend.base_url)
        else:
            logger.error(
                "Backend API is NOT available at %s; pages will render without data",
                backend.base_url,
            )


def is_auth_cookie(set_cookie_value: str, cookie_prefix: str) -> bool:
    name = set_cookie_value.split("=", 1)[0].strip()
    return name.startswith(cookie_prefix)


def filter_forwarded_headers(
    headers: Iterable[tuple[str, str]], cookie_prefix: str
) -> list[tuple[str, str]]:
    """
    Keep only headers that may be relayed from an upstream response to the
    browser. Set-Cookie survives only for the auth provider's session cookies.
    """
    kept = []
    for name, value in headers:
        lowered = name.lower()
        if lowered in FORWARDED_HEADERS:
            kept.append((name, value))
        elif lowered == "set-cookie" and is_auth_cookie(value, cookie_prefix):
            kept.append((name, value))
    return kept


def negotiate_locale(accept_language: str | None, supported: list[str], default: str) -> str:
    if not accept_language:
        return default
    candidates = []
    for index, part in enumerate(accept_language.split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip().lower()
        if not tag:
            continue
        quality = 1.0
        for param in pieces[1:]:
            key, _, value = param.strip().partition("=")
            if key == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        candidates.append((-quality, index, tag))

    supported_lower = {locale.lower(): locale for locale in supported}
    for _, _, tag in sorted(candidates):
        if tag in supported_lower:
            return supported_lower[tag]
        base = tag.split("-")[0]
        if base in supported_lower:
            return supported_lower[base]
    return default


async def session_middleware(request: Request, call_next):
    app_state = request.app.state
    backend: BackendClient = app_state.backend
    if app_state.settings.check_backend_health and not app_state.health_probe.checked:
        await app_state.health_probe.run_once(backend)

    request.state.auth = RequestSession(
        auth=app_state.auth_provider,
        backend=backend,
        settings=app_state.settings,
        cookies=request.cookies,
    )
    return await call_next(request)


async def locale_middleware(request: Request, call_next):
    settings: Settings = request.app.state.settings
    locale = negotiate_locale(
        request.headers.get("accept-language"),
        settings.supported_locales,
        settings.default_locale,
    )
    request.state.locale = locale
    response = await call_next(request)
    response.headers.setdefault("Content-Language", locale)
    return response
