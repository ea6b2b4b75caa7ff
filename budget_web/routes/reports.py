"""
/dashboard/reports: spending trends, budget variance, cash flow and top
expenses for the current month.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from budget_web.composition import FanOutPolicy, fan_out
from budget_web.dependencies import require_dashboard_user
from budget_web.errors import BudgetWebError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.gateways import reports as reports_gateway
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/reports")

TREND_MONTHS = 6


def month_bounds(today: date) -> tuple[str, str]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return (
        today.replace(day=1).isoformat(),
        today.replace(day=last_day).isoformat(),
    )


def months_ago(today: date, months: int) -> date:
    month_index = today.year * 12 + today.month - 1 - months
    year, month = divmod(month_index, 12)
    day = min(today.day, calendar.monthrange(year, month + 1)[1])
    return date(year, month + 1, day)


def _empty(current_month: str, load_error: Optional[str] = None) -> dict:
    data = {
        "spendingTrends": [],
        "budgetVariance": [],
        "cashFlowProjection": [],
        "topExpenses": [],
        "totalBalance": 0,
        "currentMonth": current_month,
    }
    if load_error:
        data["loadError"] = load_error
    return data


async def load_reports(
    auth: RequestSession,
    month: Optional[str] = None,
    days: Optional[int] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Fetch every report concurrently, then re-run the cash flow projection
    starting from the combined balance of the user's active accounts. The
    first projection only exists to keep the fan-out uniform; the returned
    projection is always the recomputed one.
    """
    today = today or date.today()
    current_month = today.strftime("%Y-%m")
    start_of_month, end_of_month = month_bounds(today)
    days = days or reports_gateway.DEFAULT_PROJECTION_DAYS

    session = await auth.get_session()
    if session.user is None:
        return _empty(current_month)

    try:
        user_id = await auth.get_user_id()
        result = await fan_out(
            {
                "spendingTrends": reports_gateway.get_spending_trends(
                    auth.backend,
                    user_id,
                    months_ago(today, TREND_MONTHS).isoformat(),
                    end_of_month,
                ),
                "budgetVariance": reports_gateway.get_budget_variance(
                    auth.backend, user_id, month or current_month
                ),
                "cashFlowProjection": reports_gateway.get_cash_flow_projection(
                    auth.backend, user_id, days, 0
                ),
                "topExpenses": reports_gateway.get_top_expenses(
                    auth.backend, user_id, start_of_month, end_of_month, 10
                ),
                "accounts": accounts_gateway.get_accounts(auth.backend, user_id),
            },
            policy=FanOutPolicy.FAIL_ALL,
        )

        total_balance = sum(
            account.balance for account in result["accounts"] if account.is_active
        )
        projection = await reports_gateway.get_cash_flow_projection(
            auth.backend, user_id, days, total_balance
        )
    except BudgetWebError as exc:
        logger.error("Error loading reports: %r", exc)
        return _empty(current_month, exc.message or "Failed to load reports")

    return {
        "spendingTrends": [trend.to_json() for trend in result["spendingTrends"]],
        "budgetVariance": [row.to_json() for row in result["budgetVariance"]],
        "cashFlowProjection": [day.to_json() for day in projection],
        "topExpenses": [expense.to_json() for expense in result["topExpenses"]],
        "totalBalance": total_balance,
        "currentMonth": current_month,
    }


@router.get("")
async def reports_page(
    month: Optional[str] = None,
    days: Optional[int] = None,
    auth: RequestSession = Depends(require_dashboard_user),
):
    return await load_reports(auth, month=month, days=days)
