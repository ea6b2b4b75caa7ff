"""
Auth and admin gateway: /auth/* and /admin/* on the backend.
"""

from __future__ import annotations

from typing import Any, Optional

from budget_web.api_client import BackendClient
from budget_web.gateways._base import parse_model, raise_for_status, read_json
from budget_web.schemas import SyncUserRequest, UserRoles

USER_NOT_FOUND = "User not found"


async def get_roles_by_email(backend: BackendClient, email: str) -> UserRoles:
    response = await backend.request(
        "/auth/roles/by-email", params={"email": email}
    )
    raise_for_status(
        response, not_found=USER_NOT_FOUND, default="Failed to fetch user roles"
    )
    return parse_model(UserRoles, read_json(response))


async def sync_user(backend: BackendClient, user: SyncUserRequest) -> None:
    """Create or refresh the backend's local copy of an auth provider user."""
    response = await backend.request(
        "/auth/sync", method="POST", json=user.to_body()
    )
    raise_for_status(response, not_found=USER_NOT_FOUND, default="Failed to sync user")


async def forward_admin(
    backend: BackendClient,
    user_id: str,
    endpoint: str,
    *,
    method: str = "GET",
    json: Any = None,
    params: Optional[dict[str, Any]] = None,
) -> tuple[int, Any]:
    """
    Pass an admin call through and hand back the backend's status and body.

    Admin routes relay backend errors verbatim, so this does not raise on
    non-2xx.
    """
    response = await backend.request(
        f"/admin{endpoint}", method=method, json=json, params=params, user_id=user_id
    )
    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text or "Invalid response from backend"}
    return response.status_code, body
