"""
Sign-in flows.

/auth/callback completes the Supabase PKCE flow. The /api/auth/login and
/api/auth/callback routes serve the older backend-driven OAuth flow, which
ends with the signed user_data cookie.
"""

from __future__ import annotations

import json
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from budget_web.auth_provider import encode_session_cookie
from budget_web.errors import AuthProviderError, BudgetWebError
from budget_web.gateways import auth as auth_gateway
from budget_web.identity import (
    USER_COOKIE_MAX_AGE,
    USER_COOKIE_NAME,
    encode_user_cookie,
    lookup_roles,
)
from budget_web.schemas import AuthUser, SyncUserRequest
from budget_web.session import RequestSession, filter_forwarded_headers

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_VERIFIER_SUFFIX = "-code-verifier"
LEGACY_SESSION_COOKIE = "session_id"
DEFAULT_NEXT = "/dashboard"


def _auth_error_redirect(message: str) -> RedirectResponse:
    return RedirectResponse(
        f"/auth/auth-code-error?error={quote(message)}", status_code=303
    )


def _sync_request(user: AuthUser) -> SyncUserRequest:
    email = user.email or ""
    meta = user.user_metadata or {}
    return SyncUserRequest(
        email=email,
        name=meta.get("full_name") or meta.get("name") or email.split("@")[0] or "User",
        avatar_url=user.avatar_url,
        provider=user.provider,
        provider_user_id=(user.app_metadata or {}).get("provider_id") or user.id,
    )


async def sync_local_user(auth: RequestSession, user: AuthUser) -> None:
    """Mirror the auth provider user into the backend. Failures never block sign-in."""
    try:
        await auth_gateway.sync_user(auth.backend, _sync_request(user))
    except BudgetWebError as exc:
        logger.error("Failed to sync user to local database: %r", exc)


def _safe_next(target: str) -> str:
    """Only same-site paths are accepted as post-login destinations."""
    if not target.startswith("/") or target.startswith("//") or target.startswith("/\\"):
        return DEFAULT_NEXT
    return target


def _is_code_verifier_error(exc: AuthProviderError) -> bool:
    message = exc.message.lower()
    return "code verifier" in message or "code_verifier" in message


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = None,
    next: str = DEFAULT_NEXT,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
):
    if error:
        logger.error("Auth callback error: %s %s", error, error_description)
        return _auth_error_redirect(error_description or error)
    if not code:
        return _auth_error_redirect("No authentication code provided")

    auth: RequestSession = request.state.auth
    cookie_name = auth.settings.session_cookie_name
    verifier = request.cookies.get(cookie_name + CODE_VERIFIER_SUFFIX)
    try:
        session = await auth.auth.exchange_code_for_session(code, verifier)
    except AuthProviderError as exc:
        logger.error("Failed to exchange code for session: %r", exc)
        # Email confirmation links arrive without the browser's verifier.
        if _is_code_verifier_error(exc):
            return RedirectResponse("/auth?verified=true", status_code=303)
        return _auth_error_redirect(exc.message)

    if session.user is None:
        return _auth_error_redirect("No authentication code provided")

    await sync_local_user(auth, session.user)

    response = RedirectResponse(_safe_next(next), status_code=303)
    response.set_cookie(
        cookie_name,
        encode_session_cookie(session),
        path="/",
        httponly=False,
        samesite="lax",
        secure=auth.settings.secure_cookies,
        max_age=session.expires_in,
    )
    response.delete_cookie(cookie_name + CODE_VERIFIER_SUFFIX, path="/")
    return response


@router.get("/api/auth/login/{provider}")
async def legacy_login(provider: str, request: Request):
    """Start the backend's OAuth flow and relay its redirect to the browser."""
    auth: RequestSession = request.state.auth
    upstream = await auth.backend.request(f"/auth/{provider}", follow_redirects=False)
    location = upstream.headers.get("location")
    if upstream.status_code not in (302, 307) or not location:
        logger.error("Backend did not return an auth URL for %s (%s)", provider, upstream.status_code)
        return PlainTextResponse("Failed to get auth URL", status_code=502)

    response = Response(status_code=302)
    for name, value in filter_forwarded_headers(
        upstream.headers.multi_items(), LEGACY_SESSION_COOKIE
    ):
        response.headers.append(name, value)
    return response


@router.get("/api/auth/callback/{provider}")
async def legacy_callback(provider: str, request: Request, user: Optional[str] = None):
    if not user:
        return PlainTextResponse("Missing user data", status_code=400)
    try:
        user_data = json.loads(user)
    except ValueError:
        logger.error("Error parsing user data from %s callback", provider)
        return PlainTextResponse("Failed to process authentication", status_code=500)
    if not isinstance(user_data, dict):
        return PlainTextResponse("Failed to process authentication", status_code=500)

    # The payload arrives in the query string, so it is only signed once the
    # backend confirms the user id belongs to the email.
    auth: RequestSession = request.state.auth
    email = user_data.get("email")
    claimed_id = user_data.get("user_id")
    if not email or not claimed_id:
        return PlainTextResponse("Invalid user data", status_code=401)
    try:
        roles = await lookup_roles(auth.backend, str(email))
    except BudgetWebError as exc:
        logger.warning("Could not verify %s callback user %s: %r", provider, email, exc)
        return PlainTextResponse("Invalid user data", status_code=401)
    if roles.user_id != str(claimed_id):
        logger.warning("Rejected %s callback: user id does not match %s", provider, email)
        return PlainTextResponse("Invalid user data", status_code=401)

    settings = auth.settings
    response = RedirectResponse("/", status_code=302)
    response.set_cookie(
        USER_COOKIE_NAME,
        encode_user_cookie(user_data, settings.cookie_secret),
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
        max_age=USER_COOKIE_MAX_AGE,
    )
    return response
