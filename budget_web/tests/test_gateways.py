import json
import unittest

import httpx

from budget_web.api_client import BackendClient
from budget_web.errors import NotFoundError, UpstreamError
from budget_web.gateways import (
    accounts,
    auth,
    budgets,
    dashboard,
    matching,
    reports,
    transactions,
)
from budget_web.schemas import (
    CreateAccountRequest,
    CreateBudgetEntryRequest,
    MatchingRules,
    TransactionFilters,
    UpdateAccountRequest,
)
from budget_web.tests.fakes import FakeService, make_settings

USER = "user-1"


class GatewayTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeService()
        self.client = BackendClient(make_settings(), transport=self.backend.transport)

    def last_request(self) -> httpx.Request:
        return self.backend.requests[-1]

    def last_body(self) -> dict:
        return json.loads(self.last_request().content)


class ErrorMappingTests(GatewayTestCase):
    async def test_404_raises_not_found_with_resource_message(self):
        self.backend.add("GET", "/api/accounts/missing", {"error": "nope"}, status_code=404)
        with self.assertRaises(NotFoundError) as ctx:
            await accounts.get_account(self.client, USER, "missing")
        self.assertEqual(ctx.exception.message, "Account not found")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_backend_error_field_becomes_message(self):
        self.backend.add(
            "POST", "/api/accounts", {"error": "account name taken"}, status_code=409
        )
        with self.assertRaises(UpstreamError) as ctx:
            await accounts.create_account(
                self.client,
                USER,
                CreateAccountRequest(name="Cash", account_type="cash"),
            )
        self.assertEqual(ctx.exception.message, "account name taken")
        self.assertEqual(ctx.exception.status_code, 409)

    async def test_default_message_without_error_field(self):
        self.backend.add("GET", "/api/budgets", None, status_code=500)
        with self.assertRaises(UpstreamError) as ctx:
            await budgets.get_budgets(self.client, USER)
        self.assertEqual(ctx.exception.message, "Failed to fetch budgets")
        self.assertEqual(ctx.exception.status_code, 500)

    async def test_sends_user_id(self):
        self.backend.add("GET", "/api/accounts", {"accounts": []})
        await accounts.get_accounts(self.client, USER)
        self.assertEqual(self.last_request().headers["X-User-ID"], USER)


class CollectionTests(GatewayTestCase):
    async def test_missing_wrapper_field_is_empty(self):
        self.backend.add("GET", "/api/accounts", {})
        self.assertEqual(await accounts.get_accounts(self.client, USER), [])

    async def test_null_wrapper_field_is_empty(self):
        self.backend.add("GET", "/api/transactions", {"transactions": None})
        self.assertEqual(await transactions.get_transactions(self.client, USER), [])

    async def test_unwraps_collection(self):
        self.backend.add(
            "GET",
            "/api/accounts",
            {"accounts": [{"id": "a1", "name": "Checking", "balance": 10.5}]},
        )
        result = await accounts.get_accounts(self.client, USER)
        self.assertEqual([account.id for account in result], ["a1"])
        self.assertEqual(result[0].balance, 10.5)

    async def test_budget_with_null_entries(self):
        self.backend.add("GET", "/api/budgets/b1/full", {"id": "b1", "entries": None})
        budget = await budgets.get_budget_with_entries(self.client, USER, "b1")
        self.assertEqual(budget.entries, [])

    async def test_dashboard_summary_null_lists(self):
        self.backend.add(
            "GET",
            "/api/dashboard/summary",
            {"total_balance": 12.0, "upcoming_bills": None, "recent_transactions": None},
        )
        summary = await dashboard.get_dashboard_summary(self.client, USER)
        self.assertEqual(summary.upcoming_bills, [])
        self.assertEqual(summary.recent_transactions, [])
        self.assertEqual(summary.spending_by_category, [])

    async def test_reports_tolerate_non_list_body(self):
        self.backend.add("GET", "/api/reports/spending-trends", {"unexpected": True})
        self.assertEqual(await reports.get_spending_trends(self.client, USER), [])


class RequestShapeTests(GatewayTestCase):
    async def test_unset_optionals_are_not_sent(self):
        self.backend.add(
            "POST", "/api/budgets/b1/entries", {"id": "e1", "name": "Rent"}, status_code=201
        )
        await budgets.create_budget_entry(
            self.client,
            USER,
            "b1",
            CreateBudgetEntryRequest(
                name="Rent",
                amount=1200,
                entry_type="expense",
                frequency="monthly",
                start_date="2024-01-01",
            ),
        )
        self.assertEqual(
            self.last_body(),
            {
                "name": "Rent",
                "amount": 1200.0,
                "entry_type": "expense",
                "frequency": "monthly",
                "start_date": "2024-01-01",
            },
        )

    async def test_partial_update_sends_only_given_fields(self):
        self.backend.add("PUT", "/api/accounts/a1", {"id": "a1", "name": "Renamed"})
        await accounts.update_account(
            self.client, USER, "a1", UpdateAccountRequest(name="Renamed")
        )
        self.assertEqual(self.last_body(), {"name": "Renamed"})

    async def test_absent_filters_are_omitted(self):
        self.backend.add("GET", "/api/transactions", {"transactions": []})

        await transactions.get_transactions(self.client, USER)
        self.assertEqual(self.last_request().url.query, b"")

        await transactions.get_transactions(
            self.client, USER, TransactionFilters(account_id="a1", start_date="")
        )
        self.assertEqual(dict(self.last_request().url.params), {"account_id": "a1"})

    async def test_report_defaults(self):
        self.backend.add("GET", "/api/reports/cash-flow-projection", [])
        self.backend.add("GET", "/api/reports/top-expenses", [])

        await reports.get_cash_flow_projection(self.client, USER)
        self.assertEqual(
            dict(self.last_request().url.params), {"days": "90", "starting_balance": "0"}
        )

        await reports.get_top_expenses(self.client, USER)
        self.assertEqual(dict(self.last_request().url.params), {"limit": "10"})

    async def test_matching_rules_are_wrapped(self):
        self.backend.add("POST", "/api/budgets/b1/entries/e1/matching-rules", {})
        await matching.update_budget_entry_matching_rules(
            self.client,
            USER,
            "b1",
            "e1",
            MatchingRules(description_contains=["NETFLIX"]),
        )
        self.assertEqual(
            self.last_body(), {"matching_rules": {"description_contains": ["NETFLIX"]}}
        )

    async def test_link_defaults_to_manual_confidence(self):
        self.backend.add("POST", "/api/transactions/t1/link", {"id": "t1"})
        await transactions.link_transaction_to_budget_entry(self.client, USER, "t1", "e1")
        self.assertEqual(
            self.last_body(), {"budget_entry_id": "e1", "match_confidence": "manual"}
        )

    async def test_match_suggestions_null_list(self):
        self.backend.add(
            "GET",
            "/api/matching/suggestions/t1",
            {"transaction": {"id": "t1"}, "suggestions": None},
        )
        result = await matching.get_match_suggestions(self.client, USER, "t1")
        self.assertEqual(result.suggestions, [])


class AdminForwardTests(GatewayTestCase):
    async def test_relays_status_and_body(self):
        self.backend.add("GET", "/admin/users", {"error": "Forbidden"}, status_code=403)
        status_code, body = await auth.forward_admin(
            self.client, USER, "/users", params={"limit": "50"}
        )
        self.assertEqual(status_code, 403)
        self.assertEqual(body, {"error": "Forbidden"})
        self.assertEqual(self.last_request().headers["X-User-ID"], USER)


if __name__ == "__main__":
    unittest.main()
