"""
HTTP routes. Each module owns one page or API area and exposes `router`.
"""

from fastapi import APIRouter

from budget_web.routes import (
    accounts,
    admin,
    api,
    auth,
    budgets,
    categories,
    pages,
    reports,
    review,
    transactions,
)

router = APIRouter()
for module in (
    pages,
    accounts,
    budgets,
    categories,
    review,
    transactions,
    reports,
    api,
    auth,
    admin,
):
    router.include_router(module.router)

__all__ = ["router"]
