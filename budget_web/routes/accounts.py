"""
/dashboard/accounts page loader and form actions.
"""

from __future__ import annotations

import logging
from typing import get_args

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData

from budget_web.composition import fail, form_action, form_str, parse_float
from budget_web.dependencies import require_dashboard_user, run_action
from budget_web.errors import BudgetWebError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.schemas import AccountType, CreateAccountRequest, UpdateAccountRequest
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/accounts")

ACCOUNT_TYPES = get_args(AccountType)


async def load_accounts(auth: RequestSession) -> dict:
    session = await auth.get_session()
    if session.user is None:
        return {"accounts": []}

    try:
        user_id = await auth.get_user_id()
        accounts = await accounts_gateway.get_accounts(auth.backend, user_id)
    except BudgetWebError as exc:
        logger.error("Error loading accounts: %r", exc)
        return {"accounts": [], "error": "Failed to load accounts"}
    return {"accounts": [account.to_json() for account in accounts]}


@form_action("Failed to create account")
async def create_account(form: FormData, auth: RequestSession):
    name = form_str(form, "name")
    account_type = form_str(form, "account_type")
    balance = parse_float(form_str(form, "balance")) or 0.0
    currency = form_str(form, "currency") or "USD"

    if not name or not account_type:
        return fail(400, "Name and account type are required")
    if account_type not in ACCOUNT_TYPES:
        return fail(400, "Invalid account type")

    user_id = await auth.get_user_id()
    account = await accounts_gateway.create_account(
        auth.backend,
        user_id,
        CreateAccountRequest(
            name=name, account_type=account_type, balance=balance, currency=currency
        ),
    )
    return {"success": True, "account": account.to_json()}


@form_action("Failed to update account")
async def update_account(form: FormData, auth: RequestSession):
    account_id = form_str(form, "id")
    if not account_id:
        return fail(400, "Account ID is required")

    updates = UpdateAccountRequest()
    name = form_str(form, "name")
    account_type = form_str(form, "account_type")
    balance = form_str(form, "balance")
    currency = form_str(form, "currency")

    if name:
        updates.name = name
    if account_type:
        if account_type not in ACCOUNT_TYPES:
            return fail(400, "Invalid account type")
        updates.account_type = account_type
    if balance:
        updates.balance = parse_float(balance)
        if updates.balance is None:
            return fail(400, "Balance must be a number")
    if currency:
        updates.currency = currency

    user_id = await auth.get_user_id()
    account = await accounts_gateway.update_account(
        auth.backend, user_id, account_id, updates
    )
    return {"success": True, "account": account.to_json()}


@form_action("Failed to delete account")
async def delete_account(form: FormData, auth: RequestSession):
    account_id = form_str(form, "id")
    if not account_id:
        return fail(400, "Account ID is required")

    user_id = await auth.get_user_id()
    await accounts_gateway.delete_account(auth.backend, user_id, account_id)
    return {"success": True}


@router.get("")
async def accounts_page(auth: RequestSession = Depends(require_dashboard_user)):
    return await load_accounts(auth)


@router.post("/create")
async def create_account_action(request: Request):
    return await run_action(create_account, request)


@router.post("/update")
async def update_account_action(request: Request):
    return await run_action(update_account, request)


@router.post("/delete")
async def delete_account_action(request: Request):
    return await run_action(delete_account, request)
