import unittest

from starlette.datastructures import FormData

from budget_web.composition import (
    ActionFailure,
    FanOutPolicy,
    failure_from_error,
    fan_out,
    form_action,
    form_str,
    parse_bool,
    parse_float,
    parse_int,
)
from budget_web.errors import (
    NotFoundError,
    NotProvisionedError,
    TransportError,
    UpstreamError,
)
from budget_web.identity import SessionInfo
from budget_web.schemas import AuthUser


async def value(result):
    return result


async def failure(exc):
    raise exc


class StubSession:
    def __init__(self, signed_in=True):
        self.info = SessionInfo(user=AuthUser(id="u")) if signed_in else SessionInfo()

    async def get_session(self):
        return self.info


class FanOutTests(unittest.IsolatedAsyncioTestCase):
    async def test_fail_all_returns_every_value(self):
        result = await fan_out({"a": value(1), "b": value(2)}, policy=FanOutPolicy.FAIL_ALL)
        self.assertEqual(result.values, {"a": 1, "b": 2})
        self.assertFalse(result.failed)

    async def test_fail_all_raises_first_failure(self):
        with self.assertRaises(UpstreamError):
            await fan_out(
                {"a": value(1), "b": failure(UpstreamError("down"))},
                policy=FanOutPolicy.FAIL_ALL,
            )

    async def test_isolate_substitutes_defaults(self):
        result = await fan_out(
            {
                "accounts": value(["a1"]),
                "budget": failure(NotFoundError("Budget not found")),
                "categories": failure(TransportError("unreachable")),
            },
            policy=FanOutPolicy.ISOLATE,
            defaults={"budget": None, "categories": []},
        )
        self.assertEqual(result["accounts"], ["a1"])
        self.assertIsNone(result["budget"])
        self.assertEqual(result["categories"], [])
        self.assertEqual(set(result.errors), {"budget", "categories"})
        self.assertTrue(result.failed)


class FormHelperTests(unittest.TestCase):
    def test_form_str(self):
        form = FormData([("name", "Cash"), ("empty", "")])
        self.assertEqual(form_str(form, "name"), "Cash")
        self.assertEqual(form_str(form, "empty"), "")
        self.assertIsNone(form_str(form, "missing"))

    def test_parse_float(self):
        self.assertEqual(parse_float("12.50"), 12.5)
        self.assertEqual(parse_float("-3"), -3.0)
        for raw in (None, "", "  ", "abc", "nan", "inf"):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_float(raw))

    def test_parse_int(self):
        self.assertEqual(parse_int("15"), 15)
        self.assertIsNone(parse_int("1.5"))
        self.assertIsNone(parse_int(""))

    def test_parse_bool(self):
        self.assertTrue(parse_bool("true"))
        self.assertFalse(parse_bool("false"))
        self.assertFalse(parse_bool("on"))
        self.assertIsNone(parse_bool(None))


class FailureTests(unittest.TestCase):
    def test_client_errors_keep_status_and_message(self):
        failure_ = failure_from_error(NotProvisionedError(), "Failed to create account")
        self.assertEqual((failure_.status, failure_.error), (403, "User not found in local database"))

    def test_upstream_errors_use_fallback(self):
        failure_ = failure_from_error(UpstreamError("pq: deadlock"), "Failed to create account")
        self.assertEqual((failure_.status, failure_.error), (500, "Failed to create account"))

    def test_upstream_message_can_be_exposed(self):
        failure_ = failure_from_error(
            UpstreamError("No active budget"), "Failed to teach match", expose_message=True
        )
        self.assertEqual((failure_.status, failure_.error), (500, "No active budget"))


class FormActionTests(unittest.IsolatedAsyncioTestCase):
    async def test_signed_out_is_unauthorized_before_action_runs(self):
        calls = []

        @form_action("Failed")
        async def action(form, auth):
            calls.append(form)
            return {"success": True}

        result = await action(FormData(), StubSession(signed_in=False))
        self.assertEqual(result, ActionFailure(status=401, error="Unauthorized"))
        self.assertEqual(calls, [])

    async def test_errors_become_failures(self):
        @form_action("Failed to delete account")
        async def action(form, auth, account_id):
            raise UpstreamError("boom", status_code=500)

        with self.assertLogs("budget_web.composition", level="ERROR"):
            result = await action(FormData(), StubSession(), account_id="a1")
        self.assertEqual(result.status, 500)
        self.assertEqual(result.error, "Failed to delete account")

    async def test_success_passes_through(self):
        @form_action("Failed")
        async def action(form, auth):
            return {"success": True, "name": form_str(form, "name")}

        result = await action(FormData([("name", "Cash")]), StubSession())
        self.assertEqual(result, {"success": True, "name": "Cash"})


if __name__ == "__main__":
    unittest.main()
