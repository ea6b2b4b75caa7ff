"""
/dashboard/transactions page loader and form actions.
"""

from __future__ import annotations

import logging
from typing import Optional, get_args

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData

from budget_web.composition import (
    FanOutPolicy,
    fail,
    fan_out,
    form_action,
    form_str,
    parse_float,
)
from budget_web.dependencies import require_dashboard_user, run_action
from budget_web.errors import BudgetWebError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.gateways import categories as categories_gateway
from budget_web.gateways import transactions as transactions_gateway
from budget_web.schemas import (
    CreateTransactionRequest,
    EntryType,
    MatchConfidence,
    TransactionFilters,
    UpdateTransactionRequest,
)
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/transactions")

TRANSACTION_TYPES = get_args(EntryType)
MATCH_CONFIDENCES = get_args(MatchConfidence)

LOAD_ERROR = "Failed to load transactions. Please try refreshing the page."


def _empty(load_error: Optional[str] = None) -> dict:
    data = {"transactions": [], "accounts": [], "categories": []}
    if load_error:
        data["loadError"] = load_error
    return data


async def load_transactions(auth: RequestSession, filters: TransactionFilters) -> dict:
    session = await auth.get_session()
    if session.user is None:
        return _empty()

    try:
        user_id = await auth.get_user_id()
        result = await fan_out(
            {
                "transactions": transactions_gateway.get_transactions(
                    auth.backend, user_id, filters
                ),
                "accounts": accounts_gateway.get_accounts(auth.backend, user_id),
                "categories": categories_gateway.get_categories(auth.backend, user_id),
            },
            policy=FanOutPolicy.FAIL_ALL,
        )
    except BudgetWebError as exc:
        logger.error("Error loading transactions: %r", exc)
        return _empty(LOAD_ERROR)

    return {
        name: [item.to_json() for item in result[name]]
        for name in ("transactions", "accounts", "categories")
    }


@form_action("Failed to create transaction")
async def create_transaction(form: FormData, auth: RequestSession):
    account_id = form_str(form, "account_id")
    amount = parse_float(form_str(form, "amount"))
    transaction_type = form_str(form, "transaction_type")
    transaction_date = form_str(form, "transaction_date")

    if not account_id or amount is None or not transaction_type or not transaction_date:
        return fail(400, "Missing required fields")
    if transaction_type not in TRANSACTION_TYPES:
        return fail(400, "Invalid transaction type")

    user_id = await auth.get_user_id()
    transaction = await transactions_gateway.create_transaction(
        auth.backend,
        user_id,
        CreateTransactionRequest(
            account_id=account_id,
            amount=amount,
            transaction_type=transaction_type,
            transaction_date=transaction_date,
            category_id=form_str(form, "category_id") or None,
            description=form_str(form, "description") or None,
            notes=form_str(form, "notes") or None,
        ),
    )
    return {"success": True, "transaction": transaction.to_json()}


@form_action("Failed to update transaction")
async def update_transaction(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    if not transaction_id:
        return fail(400, "Transaction ID is required")

    updates = UpdateTransactionRequest()
    for name in ("account_id", "category_id", "description", "transaction_date", "notes"):
        value = form_str(form, name)
        if value:
            setattr(updates, name, value)
    amount = form_str(form, "amount")
    if amount:
        updates.amount = parse_float(amount)
        if updates.amount is None:
            return fail(400, "Amount must be a number")
    transaction_type = form_str(form, "transaction_type")
    if transaction_type:
        if transaction_type not in TRANSACTION_TYPES:
            return fail(400, "Invalid transaction type")
        updates.transaction_type = transaction_type

    user_id = await auth.get_user_id()
    transaction = await transactions_gateway.update_transaction(
        auth.backend, user_id, transaction_id, updates
    )
    return {"success": True, "transaction": transaction.to_json()}


@form_action("Failed to delete transaction")
async def delete_transaction(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    if not transaction_id:
        return fail(400, "Transaction ID is required")

    user_id = await auth.get_user_id()
    await transactions_gateway.delete_transaction(auth.backend, user_id, transaction_id)
    return {"success": True}


@form_action("Failed to categorize transaction")
async def categorize_transaction(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    category_id = form_str(form, "category_id")
    if not transaction_id or not category_id:
        return fail(400, "Transaction ID and category ID are required")

    user_id = await auth.get_user_id()
    transaction = await transactions_gateway.categorize_transaction(
        auth.backend, user_id, transaction_id, category_id
    )
    return {"success": True, "transaction": transaction.to_json()}


@form_action("Failed to link transaction")
async def link_transaction(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    budget_entry_id = form_str(form, "budget_entry_id")
    match_confidence = form_str(form, "match_confidence") or "manual"
    if not transaction_id or not budget_entry_id:
        return fail(400, "Transaction ID and budget entry ID are required")
    if match_confidence not in MATCH_CONFIDENCES:
        return fail(400, "Invalid match confidence")

    user_id = await auth.get_user_id()
    transaction = await transactions_gateway.link_transaction_to_budget_entry(
        auth.backend, user_id, transaction_id, budget_entry_id, match_confidence
    )
    return {"success": True, "transaction": transaction.to_json()}


@router.get("")
async def transactions_page(
    account_id: Optional[str] = None,
    category_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    auth: RequestSession = Depends(require_dashboard_user),
):
    filters = TransactionFilters(
        account_id=account_id,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    return await load_transactions(auth, filters)


@router.post("/create")
async def create_transaction_action(request: Request):
    return await run_action(create_transaction, request)


@router.post("/update")
async def update_transaction_action(request: Request):
    return await run_action(update_transaction, request)


@router.post("/delete")
async def delete_transaction_action(request: Request):
    return await run_action(delete_transaction, request)


@router.post("/categorize")
async def categorize_transaction_action(request: Request):
    return await run_action(categorize_transaction, request)


@router.post("/link")
async def link_transaction_action(request: Request):
    return await run_action(link_transaction, request)
