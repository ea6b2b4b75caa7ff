"""
Reports gateway: /api/reports.

Report endpoints answer with bare JSON arrays rather than wrapper objects.
"""

from __future__ import annotations

from typing import Optional

from budget_web.api_client import BackendClient
from budget_web.gateways._base import (
    build_query,
    parse_list,
    raise_for_status,
    read_json,
)
from budget_web.schemas import (
    BudgetVariance,
    DailyCashFlowProjection,
    SpendingTrend,
    TopExpense,
)

NOT_FOUND = "Report not found"

DEFAULT_PROJECTION_DAYS = 90
DEFAULT_STARTING_BALANCE = 0
DEFAULT_TOP_EXPENSES_LIMIT = 10


def _as_list(body) -> list:
    return body if isinstance(body, list) else []


async def get_spending_trends(
    backend: BackendClient,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> list[SpendingTrend]:
    """Spending per category per month (YYYY-MM)."""
    response = await backend.request(
        "/api/reports/spending-trends",
        params=build_query(start_date=start_date, end_date=end_date) or None,
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to get spending trends"
    )
    return parse_list(SpendingTrend, _as_list(read_json(response)))


async def get_budget_variance(
    backend: BackendClient, user_id: str, month: Optional[str] = None
) -> list[BudgetVariance]:
    """Budget vs actual for a month; positive variance means under budget."""
    response = await backend.request(
        "/api/reports/budget-variance",
        params=build_query(month=month) or None,
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to get budget variance"
    )
    return parse_list(BudgetVariance, _as_list(read_json(response)))


async def get_cash_flow_projection(
    backend: BackendClient,
    user_id: str,
    days: Optional[int] = None,
    starting_balance: Optional[float] = None,
) -> list[DailyCashFlowProjection]:
    if days is None:
        days = DEFAULT_PROJECTION_DAYS
    if starting_balance is None:
        starting_balance = DEFAULT_STARTING_BALANCE
    response = await backend.request(
        "/api/reports/cash-flow-projection",
        params=build_query(days=days, starting_balance=starting_balance),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to get cash flow projection"
    )
    return parse_list(DailyCashFlowProjection, _as_list(read_json(response)))


async def get_top_expenses(
    backend: BackendClient,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[TopExpense]:
    if limit is None:
        limit = DEFAULT_TOP_EXPENSES_LIMIT
    response = await backend.request(
        "/api/reports/top-expenses",
        params=build_query(start_date=start_date, end_date=end_date, limit=limit),
        user_id=user_id,
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to get top expenses")
    return parse_list(TopExpense, _as_list(read_json(response)))
