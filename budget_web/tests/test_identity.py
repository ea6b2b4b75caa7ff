import unittest
from datetime import timedelta

from budget_web.api_client import BackendClient
from budget_web.errors import NotProvisionedError, UnauthorizedError
from budget_web.identity import (
    SessionInfo,
    decode_user_cookie,
    encode_user_cookie,
    resolve_from_user_cookie,
    resolve_internal_user_id,
)
from budget_web.schemas import AuthSession, AuthUser
from budget_web.tests.fakes import (
    INTERNAL_USER_ID,
    USER_EMAIL,
    FakeBackend,
    FakeService,
    make_settings,
)


def signed_in(email=USER_EMAIL) -> SessionInfo:
    return SessionInfo(
        session=AuthSession(access_token="token"),
        user=AuthUser(id="supabase-user-1", email=email),
    )


class ResolveInternalUserIdTests(unittest.IsolatedAsyncioTestCase):
    async def test_signed_out_raises_without_network_call(self):
        backend = FakeBackend()
        client = BackendClient(make_settings(), transport=backend.transport)

        with self.assertRaises(UnauthorizedError):
            await resolve_internal_user_id(SessionInfo(), client)
        self.assertEqual(backend.requests, [])

    async def test_user_without_email_is_unauthorized(self):
        backend = FakeBackend()
        client = BackendClient(make_settings(), transport=backend.transport)

        with self.assertRaises(UnauthorizedError):
            await resolve_internal_user_id(signed_in(email=None), client)
        self.assertEqual(backend.requests, [])

    async def test_resolves_by_email(self):
        backend = FakeBackend()
        client = BackendClient(make_settings(), transport=backend.transport)

        user_id = await resolve_internal_user_id(signed_in(), client)

        self.assertEqual(user_id, INTERNAL_USER_ID)
        request = backend.requests[0]
        self.assertEqual(request.url.path, "/auth/roles/by-email")
        self.assertEqual(request.url.params["email"], USER_EMAIL)

    async def test_unknown_user_is_not_provisioned(self):
        backend = FakeService()
        client = BackendClient(make_settings(), transport=backend.transport)

        with self.assertRaises(NotProvisionedError) as ctx:
            await resolve_internal_user_id(signed_in(), client)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.message, "User not found in local database")

    async def test_backend_failure_is_not_provisioned(self):
        backend = FakeService()
        backend.add("GET", "/auth/roles/by-email", {"error": "db down"}, status_code=500)
        client = BackendClient(make_settings(), transport=backend.transport)

        with self.assertRaises(NotProvisionedError):
            await resolve_internal_user_id(signed_in(), client)


class UserCookieTests(unittest.TestCase):
    def test_round_trip(self):
        payload = {"user_id": "u-42", "email": USER_EMAIL, "provider": "github"}
        value = encode_user_cookie(payload, "secret")
        decoded = decode_user_cookie(value, "secret")
        self.assertEqual(decoded["user_id"], "u-42")
        self.assertEqual(decoded["provider"], "github")
        self.assertIn("exp", decoded)
        self.assertEqual(resolve_from_user_cookie(value, "secret", signed_in()), "u-42")

    def test_wrong_secret_is_rejected(self):
        value = encode_user_cookie({"user_id": "u-42"}, "secret")
        self.assertIsNone(decode_user_cookie(value, "other"))

    def test_tampered_payload_is_rejected(self):
        value = encode_user_cookie({"user_id": "u-42"}, "secret")
        forged = encode_user_cookie({"user_id": "admin"}, "secret")
        tampered = ".".join(forged.split(".")[:2] + value.split(".")[2:])
        self.assertIsNone(decode_user_cookie(tampered, "secret"))

    def test_expired_cookie_is_rejected(self):
        value = encode_user_cookie(
            {"user_id": "u-42", "email": USER_EMAIL}, "secret", timedelta(seconds=-5)
        )
        self.assertIsNone(decode_user_cookie(value, "secret"))
        with self.assertRaises(UnauthorizedError):
            resolve_from_user_cookie(value, "secret", signed_in())

    def test_missing_or_unsigned_cookie_is_unauthorized(self):
        for value in (None, "", "not-a-cookie", '{"user_id": "u-42"}'):
            with self.subTest(value=value):
                with self.assertRaises(UnauthorizedError):
                    resolve_from_user_cookie(value, "secret", signed_in())

    def test_cookie_requires_verified_session(self):
        value = encode_user_cookie({"user_id": "u-42", "email": USER_EMAIL}, "secret")
        with self.assertRaises(UnauthorizedError):
            resolve_from_user_cookie(value, "secret", SessionInfo())

    def test_cookie_of_another_user_is_rejected(self):
        value = encode_user_cookie({"user_id": "admin-1", "email": "root@example.com"}, "secret")
        with self.assertRaises(UnauthorizedError):
            resolve_from_user_cookie(value, "secret", signed_in())
        without_email = encode_user_cookie({"user_id": "admin-1"}, "secret")
        with self.assertRaises(UnauthorizedError):
            resolve_from_user_cookie(without_email, "secret", signed_in())


if __name__ == "__main__":
    unittest.main()
