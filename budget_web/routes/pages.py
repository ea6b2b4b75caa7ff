"""
Landing, onboarding and dashboard overview pages.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from budget_web.composition import FanOutPolicy, fan_out
from budget_web.dependencies import (
    PageRedirect,
    get_request_session,
    require_dashboard_user,
)
from budget_web.errors import BudgetWebError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.gateways import categories as categories_gateway
from budget_web.gateways import dashboard as dashboard_gateway
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_dashboard(auth: RequestSession) -> dict:
    session = await auth.get_session()
    if session.user is None:
        return {"summary": None}

    try:
        user_id = await auth.get_user_id()
        summary = await dashboard_gateway.get_dashboard_summary(auth.backend, user_id)
    except BudgetWebError as exc:
        logger.error("Error loading dashboard: %r", exc)
        return {"summary": None, "error": "Failed to load dashboard data"}
    return {"summary": summary.to_json()}


async def load_onboarding(auth: RequestSession) -> dict:
    """
    New users land here after sign-up. Anyone who already has accounts or
    categories is sent on to the dashboard.
    """
    session = await auth.get_session()
    if session.user is None:
        raise PageRedirect("/auth")

    try:
        user_id = await auth.get_user_id()
        result = await fan_out(
            {
                "accounts": accounts_gateway.get_accounts(auth.backend, user_id),
                "categories": categories_gateway.get_categories(auth.backend, user_id),
            },
            policy=FanOutPolicy.FAIL_ALL,
        )
    except BudgetWebError as exc:
        logger.error("Error loading onboarding: %r", exc)
        return {"user": session.user.to_json()}

    if result["accounts"] or result["categories"]:
        raise PageRedirect("/dashboard")
    return {"user": session.user.to_json()}


@router.get("/")
async def home_page(auth: RequestSession = Depends(get_request_session)):
    session = await auth.get_session()
    if session.user is not None:
        raise PageRedirect("/dashboard")
    return {}


@router.get("/dashboard")
async def dashboard_page(auth: RequestSession = Depends(require_dashboard_user)):
    return await load_dashboard(auth)


@router.get("/onboarding")
async def onboarding_page(auth: RequestSession = Depends(get_request_session)):
    return await load_onboarding(auth)
