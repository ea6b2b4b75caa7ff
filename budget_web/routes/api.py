"""
JSON API routes under /api used by client-side code.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from budget_web.dependencies import get_request_session
from budget_web.errors import BudgetWebError, UnauthorizedError, ValidationError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.gateways import budgets as budgets_gateway
from budget_web.gateways import categories as categories_gateway
from budget_web.gateways import dashboard as dashboard_gateway
from budget_web.identity import lookup_roles
from budget_web.schemas import CreateAccountRequest
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def require_api_user(
    auth: RequestSession = Depends(get_request_session),
) -> RequestSession:
    session = await auth.get_session()
    if session.user is None:
        raise UnauthorizedError()
    return auth


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.post("/onboarding/account")
async def onboarding_account(
    body: dict[str, Any] = Body(...),
    auth: RequestSession = Depends(require_api_user),
):
    name = body.get("name")
    account_type = body.get("account_type")
    if not name or not account_type:
        raise ValidationError("Name and account type are required")

    try:
        account_data = CreateAccountRequest(
            name=name,
            account_type=account_type,
            balance=body.get("balance") or 0,
            currency=body.get("currency") or "USD",
        )
    except ValueError as exc:
        raise ValidationError("Invalid account data") from exc

    try:
        user_id = await auth.get_user_id()
        account = await accounts_gateway.create_account(auth.backend, user_id, account_data)
    except BudgetWebError as exc:
        logger.error("Error creating account during onboarding: %r", exc)
        return _error(500, exc.message or "Failed to create account")
    return {"success": True, "account": account.to_json()}


@router.post("/onboarding/categories")
async def onboarding_categories(auth: RequestSession = Depends(require_api_user)):
    try:
        user_id = await auth.get_user_id()
        categories = await categories_gateway.seed_default_categories(auth.backend, user_id)
    except BudgetWebError as exc:
        logger.error("Error seeding categories during onboarding: %r", exc)
        return _error(500, exc.message or "Failed to seed categories")
    return {"success": True, "categories": [c.to_json() for c in categories]}


@router.get("/user/roles")
async def user_roles(auth: RequestSession = Depends(require_api_user)):
    session = await auth.get_session()
    try:
        roles = await lookup_roles(auth.backend, session.user.email or "")
    except BudgetWebError as exc:
        logger.error("Error fetching user roles: %r", exc)
        return _error(500, "Failed to fetch user roles")
    return roles.to_json()


@router.get("/auth/me")
async def current_user(auth: RequestSession = Depends(get_request_session)):
    session = await auth.get_session()
    user = session.user
    if user is None:
        return {"user": None}
    return {
        "user": {
            "email": user.email,
            "name": user.display_name,
            "avatar_url": user.avatar_url,
            "provider": user.provider,
        }
    }


@router.post("/auth/logout")
async def logout(request: Request, auth: RequestSession = Depends(get_request_session)):
    session = await auth.get_session()
    try:
        if session.session is not None:
            await auth.auth.sign_out(session.session.access_token)
    except BudgetWebError as exc:
        logger.error("Error signing out: %r", exc)
        return _error(500, "Failed to logout")

    response = JSONResponse({"success": True})
    cookie_name = auth.settings.session_cookie_name
    for name in request.cookies:
        if name == cookie_name or name.startswith(f"{cookie_name}."):
            response.delete_cookie(name, path="/")
    return response


@router.get("/dashboard/recent-activity")
async def recent_activity(
    limit: int = dashboard_gateway.DEFAULT_RECENT_ACTIVITY_LIMIT,
    auth: RequestSession = Depends(require_api_user),
):
    user_id = await auth.get_user_id()
    transactions = await dashboard_gateway.get_recent_activity(auth.backend, user_id, limit)
    return {"transactions": [t.to_json() for t in transactions]}


@router.get("/dashboard/spending-by-category")
async def spending_by_category(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    auth: RequestSession = Depends(require_api_user),
):
    user_id = await auth.get_user_id()
    spending = await dashboard_gateway.get_spending_by_category(
        auth.backend, user_id, start_date, end_date
    )
    return spending.to_json()


@router.get("/accounts/balance/total")
async def total_balance(auth: RequestSession = Depends(require_api_user)):
    user_id = await auth.get_user_id()
    balance = await accounts_gateway.get_total_balance(auth.backend, user_id)
    return balance.to_json()


@router.get("/budgets/{budget_id}/projection")
async def budget_projection(
    budget_id: str,
    starting_balance: float = 0,
    days: int = 90,
    auth: RequestSession = Depends(require_api_user),
):
    user_id = await auth.get_user_id()
    projection = await budgets_gateway.project_cash_flow(
        auth.backend, user_id, budget_id, starting_balance=starting_balance, days=days
    )
    return projection.model_dump(mode="json")
