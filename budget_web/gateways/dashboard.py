"""
Dashboard gateway: /api/dashboard.
"""

from __future__ import annotations

from typing import Optional

from budget_web.api_client import BackendClient
from budget_web.gateways._base import (
    build_query,
    parse_list,
    parse_model,
    raise_for_status,
    read_json,
    unwrap_list,
)
from budget_web.schemas import DashboardSummary, SpendingByCategoryResponse, Transaction

NOT_FOUND = "Dashboard data not found"

DEFAULT_RECENT_ACTIVITY_LIMIT = 20


async def get_dashboard_summary(backend: BackendClient, user_id: str) -> DashboardSummary:
    response = await backend.request("/api/dashboard/summary", user_id=user_id)
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch dashboard summary"
    )
    summary = parse_model(DashboardSummary, read_json(response))
    # Go encodes empty slices as null.
    for field in ("upcoming_bills", "recent_transactions", "spending_by_category"):
        if getattr(summary, field) is None:
            setattr(summary, field, [])
    return summary


async def get_recent_activity(
    backend: BackendClient, user_id: str, limit: int = DEFAULT_RECENT_ACTIVITY_LIMIT
) -> list[Transaction]:
    response = await backend.request(
        "/api/dashboard/recent-activity",
        params=build_query(limit=limit),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch recent activity"
    )
    return parse_list(Transaction, unwrap_list(read_json(response), "transactions"))


async def get_spending_by_category(
    backend: BackendClient,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> SpendingByCategoryResponse:
    response = await backend.request(
        "/api/dashboard/spending-by-category",
        params=build_query(start_date=start_date, end_date=end_date) or None,
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch spending by category"
    )
    spending = parse_model(SpendingByCategoryResponse, read_json(response))
    if spending.spending_by_category is None:
        spending.spending_by_category = []
    return spending
