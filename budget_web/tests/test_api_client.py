import json
import unittest

import httpx

from budget_web.api_client import API_KEY_HEADER, USER_ID_HEADER, BackendClient
from budget_web.errors import TransportError
from budget_web.tests.fakes import BACKEND_URL, FakeService, make_settings


class BackendClientTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.settings = make_settings()
        self.backend = FakeService()
        self.client = BackendClient(self.settings, transport=self.backend.transport)

    def test_headers_without_user(self):
        headers = self.client.build_headers()
        self.assertEqual(headers[API_KEY_HEADER], "test-secret")
        self.assertEqual(headers["Content-Type"], "application/json")
        self.assertNotIn(USER_ID_HEADER, headers)

    def test_headers_with_user(self):
        headers = self.client.build_headers("user-9")
        self.assertEqual(headers[USER_ID_HEADER], "user-9")

    async def test_request_targets_backend_with_headers(self):
        self.backend.add("POST", "/api/accounts", {"id": "a1"}, status_code=201)

        response = await self.client.request(
            "/api/accounts", method="POST", json={"name": "Cash"}, user_id="user-9"
        )

        self.assertEqual(response.status_code, 201)
        sent = self.backend.requests[0]
        self.assertEqual(str(sent.url), f"{BACKEND_URL}/api/accounts")
        self.assertEqual(sent.headers[API_KEY_HEADER], "test-secret")
        self.assertEqual(sent.headers[USER_ID_HEADER], "user-9")
        self.assertEqual(json.loads(sent.content), {"name": "Cash"})

    async def test_non_success_is_returned_not_raised(self):
        self.backend.add("GET", "/api/accounts", {"error": "boom"}, status_code=500)
        response = await self.client.request("/api/accounts", user_id="user-9")
        self.assertEqual(response.status_code, 500)

    async def test_network_failure_raises_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = BackendClient(self.settings, transport=httpx.MockTransport(refuse))
        with self.assertRaises(TransportError):
            await client.request("/api/accounts")

    async def test_check_health(self):
        self.backend.add("GET", "/", {"status": "ok"})
        self.assertTrue(await self.client.check_health())

        self.backend.add("GET", "/", None, status_code=503)
        self.assertFalse(await self.client.check_health())

    async def test_check_health_unreachable(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = BackendClient(self.settings, transport=httpx.MockTransport(refuse))
        self.assertFalse(await client.check_health())


if __name__ == "__main__":
    unittest.main()
