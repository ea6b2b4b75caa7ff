"""
/dashboard/transactions/review: match unmatched transactions to budget entries.

Each section of the page loads independently; a failing section falls back
to its empty default and the rest of the page still renders.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData

from budget_web.api_client import BackendClient
from budget_web.composition import (
    FanOutPolicy,
    fail,
    fan_out,
    form_action,
    form_str,
    parse_bool,
    parse_float,
)
from budget_web.dependencies import require_dashboard_user, run_action
from budget_web.errors import BudgetWebError
from budget_web.gateways import accounts as accounts_gateway
from budget_web.gateways import budgets as budgets_gateway
from budget_web.gateways import categories as categories_gateway
from budget_web.gateways import matching as matching_gateway
from budget_web.gateways import transactions as transactions_gateway
from budget_web.schemas import BudgetWithEntries, MatchingRules, TeachMatchRequest
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/transactions/review")

EMPTY_REVIEW = {
    "unmatchedTransactions": [],
    "budget": None,
    "accounts": [],
    "categories": [],
}


async def get_active_budget(
    backend: BackendClient, user_id: str
) -> Optional[BudgetWithEntries]:
    budgets = await budgets_gateway.get_budgets(backend, user_id)
    active = next((budget for budget in budgets if budget.is_active), None)
    if active is None:
        return None
    budget = await budgets_gateway.get_budget_with_entries(backend, user_id, active.id)
    if budget.entries is None:
        budget.entries = []
    return budget


async def load_review(auth: RequestSession) -> dict:
    session = await auth.get_session()
    if session.user is None:
        return dict(EMPTY_REVIEW)

    try:
        user_id = await auth.get_user_id()
    except BudgetWebError as exc:
        logger.error("Error loading matching review page: %r", exc)
        return dict(EMPTY_REVIEW)

    result = await fan_out(
        {
            "unmatchedTransactions": transactions_gateway.get_unmatched_transactions(
                auth.backend, user_id
            ),
            "budget": get_active_budget(auth.backend, user_id),
            "accounts": accounts_gateway.get_accounts(auth.backend, user_id),
            "categories": categories_gateway.get_categories(auth.backend, user_id),
        },
        policy=FanOutPolicy.ISOLATE,
        defaults=EMPTY_REVIEW,
    )
    budget = result["budget"]
    return {
        "unmatchedTransactions": [t.to_json() for t in result["unmatchedTransactions"]],
        "budget": budget.to_json() if budget is not None else None,
        "accounts": [account.to_json() for account in result["accounts"]],
        "categories": [category.to_json() for category in result["categories"]],
    }


@form_action("Failed to get suggestions", expose_message=True)
async def get_suggestions(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    if not transaction_id:
        return fail(400, "Transaction ID is required")

    user_id = await auth.get_user_id()
    suggestions = await matching_gateway.get_match_suggestions(
        auth.backend, user_id, transaction_id
    )
    return {"success": True, "suggestions": suggestions.to_json()}


@form_action("Failed to teach match", expose_message=True)
async def teach(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    budget_entry_id = form_str(form, "budget_entry_id")
    create_rules = parse_bool(form_str(form, "create_rules")) or False
    if not transaction_id or not budget_entry_id:
        return fail(400, "Transaction ID and Budget Entry ID are required")

    data = TeachMatchRequest(
        budget_entry_id=budget_entry_id,
        create_rules=create_rules,
        amount_tolerance=parse_float(form_str(form, "amount_tolerance")),
    )
    user_id = await auth.get_user_id()
    await matching_gateway.teach_match(auth.backend, user_id, transaction_id, data)
    return {
        "success": True,
        "message": (
            "Transaction linked and matching rules created"
            if create_rules
            else "Transaction linked successfully"
        ),
    }


@form_action("Failed to auto-match transaction", expose_message=True)
async def auto_match(form: FormData, auth: RequestSession):
    transaction_id = form_str(form, "transaction_id")
    if not transaction_id:
        return fail(400, "Transaction ID is required")

    user_id = await auth.get_user_id()
    result = await matching_gateway.auto_match_transaction(
        auth.backend, user_id, transaction_id
    )
    return {
        "success": True,
        "matched": result.matched,
        "transaction": result.transaction.to_json(),
    }


@form_action("Failed to auto-match transactions", expose_message=True)
async def bulk_auto_match(form: FormData, auth: RequestSession):
    user_id = await auth.get_user_id()
    result = await matching_gateway.bulk_auto_match(auth.backend, user_id)
    return {
        "success": True,
        "matchedCount": result.matched_count,
        "message": result.message,
    }


@form_action("Failed to update matching rules", expose_message=True)
async def update_matching_rules(form: FormData, auth: RequestSession):
    budget_id = form_str(form, "budget_id")
    entry_id = form_str(form, "entry_id")
    if not budget_id or not entry_id:
        return fail(400, "Budget ID and entry ID are required")

    # Keywords arrive as one comma separated field.
    keywords = [
        keyword.strip()
        for keyword in (form_str(form, "description_contains") or "").split(",")
        if keyword.strip()
    ]
    rules = MatchingRules(
        description_contains=keywords or None,
        merchant_name=form_str(form, "merchant_name") or None,
        amount_tolerance=parse_float(form_str(form, "amount_tolerance")),
    )
    user_id = await auth.get_user_id()
    await matching_gateway.update_budget_entry_matching_rules(
        auth.backend, user_id, budget_id, entry_id, rules
    )
    return {"success": True, "message": "Matching rules updated"}


@router.get("")
async def review_page(auth: RequestSession = Depends(require_dashboard_user)):
    return await load_review(auth)


@router.post("/suggestions")
async def suggestions_action(request: Request):
    return await run_action(get_suggestions, request)


@router.post("/teach")
async def teach_action(request: Request):
    return await run_action(teach, request)


@router.post("/auto-match")
async def auto_match_action(request: Request):
    return await run_action(auto_match, request)


@router.post("/bulk-auto-match")
async def bulk_auto_match_action(request: Request):
    return await run_action(bulk_auto_match, request)


@router.post("/matching-rules")
async def matching_rules_action(request: Request):
    return await run_action(update_matching_rules, request)
