"""
/dashboard/budgets and /dashboard/budgets/{budget_id}: budgets and their entries.
"""

from __future__ import annotations

import logging
from typing import get_args

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData

from budget_web.composition import (
    FanOutPolicy,
    fail,
    fan_out,
    form_action,
    form_str,
    parse_bool,
    parse_float,
    parse_int,
)
from budget_web.dependencies import require_dashboard_user, run_action
from budget_web.errors import BudgetWebError, NotFoundError, UnauthorizedError
from budget_web.gateways import budgets as budgets_gateway
from budget_web.schemas import (
    CreateBudgetEntryRequest,
    CreateBudgetRequest,
    EntryType,
    Frequency,
    UpdateBudgetEntryRequest,
    UpdateBudgetRequest,
)
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/budgets")

ENTRY_TYPES = get_args(EntryType)
FREQUENCIES = get_args(Frequency)


async def load_budgets(auth: RequestSession) -> dict:
    try:
        session = await auth.get_session()
        if session.user is None:
            return {"budgets": []}
        user_id = await auth.get_user_id()
        budgets = await budgets_gateway.get_budgets(auth.backend, user_id)
    except BudgetWebError as exc:
        logger.error("Error loading budgets: %r", exc)
        return {
            "budgets": [],
            "loadError": "Failed to load budgets. Please try refreshing the page.",
        }
    return {"budgets": [budget.to_json() for budget in budgets]}


async def load_budget_detail(auth: RequestSession, budget_id: str) -> dict:
    """
    Budget with its entries plus the summary. Both calls must succeed; any
    failure is reported as the budget not being found.
    """
    session = await auth.get_session()
    if session.user is None:
        raise UnauthorizedError()

    try:
        user_id = await auth.get_user_id()
        result = await fan_out(
            {
                "budget": budgets_gateway.get_budget_with_entries(
                    auth.backend, user_id, budget_id
                ),
                "summary": budgets_gateway.get_budget_summary(
                    auth.backend, user_id, budget_id
                ),
            },
            policy=FanOutPolicy.FAIL_ALL,
        )
    except BudgetWebError as exc:
        logger.error("Error loading budget %s: %r", budget_id, exc)
        raise NotFoundError("Budget not found") from exc

    budget = result["budget"].to_json()
    budget["entries"] = [entry.to_json() for entry in result["budget"].entries or []]
    summary = result["summary"]
    return {
        "budget": budget,
        "summary": summary.summary.to_json() if summary.summary else None,
        "health": summary.health.to_json() if summary.health else None,
    }


# Budget actions


@form_action("Failed to create budget")
async def create_budget(form: FormData, auth: RequestSession):
    name = form_str(form, "name")
    description = form_str(form, "description")
    if not name:
        return fail(400, "Budget name is required")

    user_id = await auth.get_user_id()
    budget = await budgets_gateway.create_budget(
        auth.backend,
        user_id,
        CreateBudgetRequest(name=name, description=description or None),
    )
    return {"success": True, "budget": budget.to_json()}


@form_action("Failed to update budget")
async def update_budget(form: FormData, auth: RequestSession):
    budget_id = form_str(form, "id")
    if not budget_id:
        return fail(400, "Budget ID is required")

    updates = UpdateBudgetRequest()
    name = form_str(form, "name")
    if name:
        updates.name = name
    # An empty description clears it.
    updates.description = form_str(form, "description")
    updates.is_active = parse_bool(form_str(form, "is_active"))

    user_id = await auth.get_user_id()
    budget = await budgets_gateway.update_budget(auth.backend, user_id, budget_id, updates)
    return {"success": True, "budget": budget.to_json()}


@form_action("Failed to delete budget")
async def delete_budget(form: FormData, auth: RequestSession):
    budget_id = form_str(form, "id")
    if not budget_id:
        return fail(400, "Budget ID is required")

    user_id = await auth.get_user_id()
    await budgets_gateway.delete_budget(auth.backend, user_id, budget_id)
    return {"success": True}


# Budget entry actions


@form_action("Failed to create budget entry")
async def create_entry(form: FormData, auth: RequestSession, budget_id: str):
    name = form_str(form, "name")
    amount = parse_float(form_str(form, "amount"))
    entry_type = form_str(form, "entry_type")
    frequency = form_str(form, "frequency")
    start_date = form_str(form, "start_date")

    if not name or amount is None or not entry_type or not frequency or not start_date:
        return fail(400, "Missing required fields")
    if entry_type not in ENTRY_TYPES or frequency not in FREQUENCIES:
        return fail(400, "Invalid entry type or frequency")

    day_of_month = form_str(form, "day_of_month")
    day_of_week = form_str(form, "day_of_week")
    entry = CreateBudgetEntryRequest(
        name=name,
        amount=amount,
        entry_type=entry_type,
        frequency=frequency,
        start_date=start_date,
        description=form_str(form, "description") or None,
        category_id=form_str(form, "category_id") or None,
        end_date=form_str(form, "end_date") or None,
        day_of_month=parse_int(day_of_month),
        day_of_week=parse_int(day_of_week),
    )
    if (day_of_month and entry.day_of_month is None) or (
        day_of_week and entry.day_of_week is None
    ):
        return fail(400, "Day of month and day of week must be whole numbers")

    user_id = await auth.get_user_id()
    created = await budgets_gateway.create_budget_entry(
        auth.backend, user_id, budget_id, entry
    )
    return {"success": True, "entry": created.to_json()}


@form_action("Failed to update budget entry")
async def update_entry(form: FormData, auth: RequestSession, budget_id: str):
    entry_id = form_str(form, "entry_id")
    if not entry_id:
        return fail(400, "Entry ID is required")

    updates = UpdateBudgetEntryRequest()
    if form_str(form, "name"):
        updates.name = form_str(form, "name")
    amount = form_str(form, "amount")
    if amount:
        updates.amount = parse_float(amount)
        if updates.amount is None:
            return fail(400, "Amount must be a number")
    entry_type = form_str(form, "entry_type")
    if entry_type:
        if entry_type not in ENTRY_TYPES:
            return fail(400, "Invalid entry type")
        updates.entry_type = entry_type
    frequency = form_str(form, "frequency")
    if frequency:
        if frequency not in FREQUENCIES:
            return fail(400, "Invalid frequency")
        updates.frequency = frequency
    if form_str(form, "start_date"):
        updates.start_date = form_str(form, "start_date")
    if form_str(form, "category_id"):
        updates.category_id = form_str(form, "category_id")
    updates.description = form_str(form, "description")
    updates.end_date = form_str(form, "end_date")
    day_of_month = form_str(form, "day_of_month")
    day_of_week = form_str(form, "day_of_week")
    updates.day_of_month = parse_int(day_of_month)
    updates.day_of_week = parse_int(day_of_week)
    if (day_of_month and updates.day_of_month is None) or (
        day_of_week and updates.day_of_week is None
    ):
        return fail(400, "Day of month and day of week must be whole numbers")
    updates.is_active = parse_bool(form_str(form, "is_active"))

    user_id = await auth.get_user_id()
    entry = await budgets_gateway.update_budget_entry(
        auth.backend, user_id, budget_id, entry_id, updates
    )
    return {"success": True, "entry": entry.to_json()}


@form_action("Failed to delete budget entry")
async def delete_entry(form: FormData, auth: RequestSession, budget_id: str):
    entry_id = form_str(form, "entry_id")
    if not entry_id:
        return fail(400, "Entry ID is required")

    user_id = await auth.get_user_id()
    await budgets_gateway.delete_budget_entry(auth.backend, user_id, budget_id, entry_id)
    return {"success": True}


@router.get("")
async def budgets_page(auth: RequestSession = Depends(require_dashboard_user)):
    return await load_budgets(auth)


@router.post("/create")
async def create_budget_action(request: Request):
    return await run_action(create_budget, request)


@router.post("/update")
async def update_budget_action(request: Request):
    return await run_action(update_budget, request)


@router.post("/delete")
async def delete_budget_action(request: Request):
    return await run_action(delete_budget, request)


@router.get("/{budget_id}")
async def budget_detail_page(
    budget_id: str, auth: RequestSession = Depends(require_dashboard_user)
):
    return await load_budget_detail(auth, budget_id)


@router.post("/{budget_id}/create-entry")
async def create_entry_action(request: Request):
    return await run_action(create_entry, request)


@router.post("/{budget_id}/update-entry")
async def update_entry_action(request: Request):
    return await run_action(update_entry, request)


@router.post("/{budget_id}/delete-entry")
async def delete_entry_action(request: Request):
    return await run_action(delete_entry, request)
