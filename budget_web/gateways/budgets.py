"""
Budgets gateway: /api/budgets, budget entries and budget projections.
"""

from __future__ import annotations

from budget_web.api_client import BackendClient
from budget_web.gateways._base import (
    build_query,
    parse_list,
    parse_model,
    raise_for_status,
    read_json,
    unwrap_list,
)
from budget_web.schemas import (
    Budget,
    BudgetEntry,
    BudgetSummaryResponse,
    BudgetWithEntries,
    CashFlowProjection,
    CreateBudgetEntryRequest,
    CreateBudgetRequest,
    UpdateBudgetEntryRequest,
    UpdateBudgetRequest,
)

NOT_FOUND = "Budget not found"
ENTRY_NOT_FOUND = "Budget entry not found"

DEFAULT_PROJECTION_DAYS = 90


async def get_budgets(backend: BackendClient, user_id: str) -> list[Budget]:
    response = await backend.request("/api/budgets", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch budgets")
    return parse_list(Budget, unwrap_list(read_json(response), "budgets"))


async def get_budget(backend: BackendClient, user_id: str, budget_id: str) -> Budget:
    response = await backend.request(f"/api/budgets/{budget_id}", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch budget")
    return parse_model(Budget, read_json(response))


async def get_budget_with_entries(
    backend: BackendClient, user_id: str, budget_id: str
) -> BudgetWithEntries:
    response = await backend.request(f"/api/budgets/{budget_id}/full", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch budget")
    budget = parse_model(BudgetWithEntries, read_json(response))
    if budget.entries is None:
        budget.entries = []
    return budget


async def create_budget(
    backend: BackendClient, user_id: str, budget: CreateBudgetRequest
) -> Budget:
    response = await backend.request(
        "/api/budgets", method="POST", json=budget.to_body(), user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to create budget")
    return parse_model(Budget, read_json(response))


async def update_budget(
    backend: BackendClient,
    user_id: str,
    budget_id: str,
    updates: UpdateBudgetRequest,
) -> Budget:
    response = await backend.request(
        f"/api/budgets/{budget_id}",
        method="PUT",
        json=updates.to_body(),
        user_id=user_id,
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to update budget")
    return parse_model(Budget, read_json(response))


async def delete_budget(backend: BackendClient, user_id: str, budget_id: str) -> None:
    response = await backend.request(
        f"/api/budgets/{budget_id}", method="DELETE", user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to delete budget")


async def get_budget_summary(
    backend: BackendClient, user_id: str, budget_id: str
) -> BudgetSummaryResponse:
    """Income/expense totals plus the health score for one budget."""
    response = await backend.request(
        f"/api/budgets/{budget_id}/summary", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch budget summary"
    )
    return parse_model(BudgetSummaryResponse, read_json(response))


async def project_cash_flow(
    backend: BackendClient,
    user_id: str,
    budget_id: str,
    starting_balance: float = 0,
    days: int = DEFAULT_PROJECTION_DAYS,
) -> CashFlowProjection:
    response = await backend.request(
        f"/api/budgets/{budget_id}/projection",
        params=build_query(starting_balance=starting_balance, days=days),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to project cash flow"
    )
    return parse_model(CashFlowProjection, read_json(response))


async def get_budget_entries(
    backend: BackendClient, user_id: str, budget_id: str
) -> list[BudgetEntry]:
    response = await backend.request(
        f"/api/budgets/{budget_id}/entries", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch budget entries"
    )
    return parse_list(BudgetEntry, unwrap_list(read_json(response), "entries"))


async def create_budget_entry(
    backend: BackendClient,
    user_id: str,
    budget_id: str,
    entry: CreateBudgetEntryRequest,
) -> BudgetEntry:
    response = await backend.request(
        f"/api/budgets/{budget_id}/entries",
        method="POST",
        json=entry.to_body(),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to create budget entry"
    )
    return parse_model(BudgetEntry, read_json(response))


async def update_budget_entry(
    backend: BackendClient,
    user_id: str,
    budget_id: str,
    entry_id: str,
    updates: UpdateBudgetEntryRequest,
) -> BudgetEntry:
    response = await backend.request(
        f"/api/budgets/{budget_id}/entries/{entry_id}",
        method="PUT",
        json=updates.to_body(),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=ENTRY_NOT_FOUND, default="Failed to update budget entry"
    )
    return parse_model(BudgetEntry, read_json(response))


async def delete_budget_entry(
    backend: BackendClient, user_id: str, budget_id: str, entry_id: str
) -> None:
    response = await backend.request(
        f"/api/budgets/{budget_id}/entries/{entry_id}",
        method="DELETE",
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=ENTRY_NOT_FOUND, default="Failed to delete budget entry"
    )
