"""
Supabase Auth (GoTrue) client and session cookie codec.

Only the handful of GoTrue REST calls the web tier needs are wrapped here:
user lookup by access token, PKCE code exchange, sign-out and the admin
user update used to terminate sessions.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from budget_web.config import Settings
from budget_web.errors import AuthProviderError, TransportError
from budget_web.schemas import AuthSession, AuthUser

logger = logging.getLogger(__name__)

BASE64_PREFIX = "base64-"
MAX_COOKIE_CHUNKS = 10


class AuthProviderClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = settings.supabase_url.rstrip("/")
        self.anon_key = settings.supabase_anon_key
        self.service_role_key = settings.supabase_service_role_key
        self._transport = transport

    def _headers(self, bearer: str | None = None, *, key: str | None = None) -> dict[str, str]:
        api_key = key or self.anon_key
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {bearer or api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str],
        json: Any = None,
        params: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            try:
                return await client.request(
                    method,
                    f"{self.base_url}/auth/v1{path}",
                    headers=headers,
                    json=json,
                    params=params,
                )
            except httpx.TransportError as exc:
                logger.error("Auth provider request %s %s failed: %s", method, path, exc)
                raise TransportError(f"Auth provider unreachable: {exc}") from exc

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        """
        Authenticate an access token against the auth server.

        Returns None when the token is rejected or the user payload is
        unusable; never trusts user data cached in the cookie.
        """
        response = await self._request(
            "GET", "/user", headers=self._headers(access_token)
        )
        if not response.is_success:
            logger.info("Auth provider rejected access token (%s)", response.status_code)
            return None
        try:
            return AuthUser.model_validate(response.json())
        except ValueError:
            logger.warning("Auth provider returned an unreadable user payload")
            return None

    async def exchange_code_for_session(self, code: str, code_verifier: str | None) -> AuthSession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            headers=self._headers(),
            json={"auth_code": code, "code_verifier": code_verifier or ""},
        )
        if not response.is_success:
            raise AuthProviderError(_provider_error(response, "Failed to exchange code"))
        try:
            return AuthSession.model_validate(response.json())
        except ValueError as exc:
            raise AuthProviderError("Auth provider returned an invalid session") from exc

    async def sign_out(self, access_token: str) -> None:
        response = await self._request(
            "POST", "/logout", headers=self._headers(access_token)
        )
        # 401/404 mean the session is already gone.
        if not response.is_success and response.status_code not in (401, 404):
            raise AuthProviderError(_provider_error(response, "Failed to sign out"))

    async def admin_update_user(self, user_id: str, attributes: dict[str, Any]) -> None:
        if not self.service_role_key:
            raise AuthProviderError("Service role key is not configured")
        response = await self._request(
            "PUT",
            f"/admin/users/{user_id}",
            headers=self._headers(key=self.service_role_key),
            json=attributes,
        )
        if not response.is_success:
            raise AuthProviderError(_provider_error(response, "Failed to update user"))


def _provider_error(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    for key in ("error_description", "msg", "message", "error"):
        if body.get(key):
            return str(body[key])
    return default


def read_session_cookie(cookies: Mapping[str, str], name: str) -> Optional[AuthSession]:
    """
    Decode the Supabase session cookie.

    Supabase SSR stores the session as JSON, optionally "base64-" prefixed,
    and splits large values over `name.0`, `name.1`, ... cookies.
    """
    raw = cookies.get(name)
    if raw is None:
        chunks = []
        for index in range(MAX_COOKIE_CHUNKS):
            chunk = cookies.get(f"{name}.{index}")
            if chunk is None:
                break
            chunks.append(chunk)
        raw = "".join(chunks) or None
    if not raw:
        return None

    if raw.startswith(BASE64_PREFIX):
        encoded = raw[len(BASE64_PREFIX):]
        try:
            raw = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            logger.warning("Ignoring malformed session cookie")
            return None

    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed session cookie")
        return None
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    try:
        return AuthSession.model_validate(data)
    except ValueError:
        return None


def encode_session_cookie(session: AuthSession) -> str:
    payload = json.dumps(session.to_json(), separators=(",", ":")).encode("utf-8")
    return BASE64_PREFIX + base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
