"""
Typed gateways over the budgeting backend, one module per resource family.

Every function takes the BackendClient and the caller's resolved internal
user id, raises NotFoundError / UpstreamError on non-success responses and
returns pydantic models.
"""

from budget_web.gateways import (
    accounts,
    auth,
    budgets,
    categories,
    dashboard,
    matching,
    reports,
    transactions,
)

__all__ = [
    "accounts",
    "auth",
    "budgets",
    "categories",
    "dashboard",
    "matching",
    "reports",
    "transactions",
]
