"""
Authenticated fetch client for the budgeting backend API.

All outbound calls to the backend go through BackendClient.request, which
adds the service key and, when given, the caller's internal user id. It hands
back the raw response; interpreting status codes is the gateways' job.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from budget_web.config import Settings
from budget_web.errors import TransportError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
USER_ID_HEADER = "X-User-ID"


class BackendClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = settings.backend_url.rstrip("/")
        self.api_key = settings.api_secret_key
        self._transport = transport

    def build_headers(self, user_id: str | None = None) -> dict[str, str]:
        headers = {
            API_KEY_HEADER: self.api_key,
            "Content-Type": "application/json",
        }
        if user_id is not None:
            headers[USER_ID_HEADER] = user_id
        return headers

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        user_id: str | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """
        Issue a request to `<backend_url><endpoint>`.

        Never raises for non-2xx responses. Network failures are raised as
        TransportError. No retry and no timeout are applied here.
        """
        url = f"{self.base_url}{endpoint}"
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=None,
            follow_redirects=follow_redirects,
        ) as client:
            try:
                return await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self.build_headers(user_id),
                )
            except httpx.TransportError as exc:
                logger.error("Backend request %s %s failed: %s", method, url, exc)
                raise TransportError(f"Backend unreachable: {exc}") from exc

    async def check_health(self) -> bool:
        try:
            response = await self.request("/")
        except TransportError:
            return False
        return response.is_success
