"""
Identity bridge between the auth provider's session and the backend's
internal user id.

The default path re-validates the session with the auth provider and then
looks the user up by email on every request. The signed `user_data` cookie
is the older variant; it is only consulted when IDENTITY_MODE=cookie.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from budget_web.api_client import BackendClient
from budget_web.errors import (
    NotFoundError,
    NotProvisionedError,
    UnauthorizedError,
    UpstreamError,
)
from budget_web.gateways import auth as auth_gateway
from budget_web.schemas import AuthSession, AuthUser, UserRoles

logger = logging.getLogger(__name__)

USER_COOKIE_NAME = "user_data"
USER_COOKIE_MAX_AGE = 60 * 60 * 24
USER_COOKIE_ALGORITHM = "HS256"


@dataclass
class SessionInfo:
    """Result of RequestSession.get_session(); both fields are None when signed out."""

    session: Optional[AuthSession] = None
    user: Optional[AuthUser] = None


async def lookup_roles(backend: BackendClient, email: str) -> UserRoles:
    try:
        return await auth_gateway.get_roles_by_email(backend, email)
    except NotFoundError as exc:
        raise NotProvisionedError() from exc


async def resolve_internal_user_id(session_info: SessionInfo, backend: BackendClient) -> str:
    """
    Map an authenticated session to the backend's internal user id.

    Raises UnauthorizedError before any network call when there is no user,
    and NotProvisionedError when the backend does not know the user.
    """
    user = session_info.user if session_info else None
    if user is None or not user.email:
        raise UnauthorizedError()

    try:
        roles = await auth_gateway.get_roles_by_email(backend, user.email)
    except (NotFoundError, UpstreamError) as exc:
        logger.warning("Identity lookup for %s failed: %s", user.email, exc.message)
        raise NotProvisionedError() from exc
    return roles.user_id


# Legacy signed-cookie variant


def encode_user_cookie(
    payload: dict[str, Any],
    secret: str,
    expires_delta: timedelta = timedelta(seconds=USER_COOKIE_MAX_AGE),
) -> str:
    to_encode = dict(payload)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, secret, algorithm=USER_COOKIE_ALGORITHM)


def decode_user_cookie(value: str | None, secret: str) -> Optional[dict[str, Any]]:
    """Return the cookie payload, or None when it is missing, expired or tampered with."""
    if not value:
        return None
    try:
        payload = jwt.decode(value, secret, algorithms=[USER_COOKIE_ALGORITHM])
    except JWTError as exc:
        logger.warning("Rejected user_data cookie: %s", exc)
        return None
    return payload if isinstance(payload, dict) else None


def resolve_from_user_cookie(value: str | None, secret: str, session_info: SessionInfo) -> str:
    """
    Read the internal user id from the signed cookie of a verified session.

    The cookie must belong to the signed-in user: its email has to match the
    one the auth provider reports for the session.
    """
    user = session_info.user if session_info else None
    if user is None or not user.email:
        raise UnauthorizedError()

    payload = decode_user_cookie(value, secret)
    if not payload or not payload.get("user_id"):
        raise UnauthorizedError()
    if str(payload.get("email") or "").lower() != user.email.lower():
        logger.warning("user_data cookie does not belong to %s", user.email)
        raise UnauthorizedError()
    return str(payload["user_id"])
