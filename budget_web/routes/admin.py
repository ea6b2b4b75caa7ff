"""
Admin passthrough under /api/admin.

The caller's identity is resolved first; the backend enforces the admin role
and its JSON body and status are relayed unchanged.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from budget_web.dependencies import get_request_session
from budget_web.errors import BudgetWebError, ForbiddenError
from budget_web.gateways import auth as auth_gateway
from budget_web.identity import lookup_roles
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")

SESSION_KEY_PREFIX = "session:"


async def _forward(
    auth: RequestSession,
    endpoint: str,
    *,
    method: str = "GET",
    json: Any = None,
    params: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    user_id = await auth.get_user_id()
    status_code, body = await auth_gateway.forward_admin(
        auth.backend, user_id, endpoint, method=method, json=json, params=params
    )
    return JSONResponse(body, status_code=status_code)


@router.get("/users")
async def list_users(
    limit: str = "50",
    offset: str = "0",
    auth: RequestSession = Depends(get_request_session),
):
    return await _forward(auth, "/users", params={"limit": limit, "offset": offset})


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    body: dict[str, Any] = Body(...),
    auth: RequestSession = Depends(get_request_session),
):
    return await _forward(auth, f"/users/{user_id}", method="DELETE", json=body)


@router.post("/users/{user_id}/deactivate")
async def deactivate_user(
    user_id: str,
    body: dict[str, Any] = Body(...),
    auth: RequestSession = Depends(get_request_session),
):
    return await _forward(auth, f"/users/{user_id}/deactivate", method="POST", json=body)


@router.post("/users/{user_id}/reactivate")
async def reactivate_user(user_id: str, auth: RequestSession = Depends(get_request_session)):
    return await _forward(auth, f"/users/{user_id}/reactivate", method="POST")


@router.get("/sessions")
async def list_sessions(auth: RequestSession = Depends(get_request_session)):
    return await _forward(auth, "/sessions")


@router.delete("/sessions/{key}")
async def kill_session(key: str, auth: RequestSession = Depends(get_request_session)):
    """
    Terminate every session of the user named by a "session:<user-id>" key.

    The auth provider has no per-session revoke, so the user's password is
    replaced with a random one, which invalidates all refresh tokens.
    """
    await auth.get_user_id()
    session = await auth.get_session()
    roles = await lookup_roles(auth.backend, session.user.email)
    if not roles.is_admin:
        raise ForbiddenError("Admin access required")

    target_user_id = key.replace(SESSION_KEY_PREFIX, "", 1)
    try:
        await auth.auth.admin_update_user(target_user_id, {"password": str(uuid.uuid4())})
    except BudgetWebError as exc:
        logger.error("Failed to invalidate sessions for user %s: %r", target_user_id, exc)
        return JSONResponse({"error": "Failed to terminate session"}, status_code=500)
    return {"success": True, "message": "Session terminated successfully"}


@router.get("/audit-logs")
async def audit_logs(
    limit: str = "50",
    offset: str = "0",
    auth: RequestSession = Depends(get_request_session),
):
    return await _forward(auth, "/audit-logs", params={"limit": limit, "offset": offset})
