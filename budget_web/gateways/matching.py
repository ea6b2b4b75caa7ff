"""
Matching gateway: /api/matching and budget entry matching rules.

Scoring and rule evaluation happen in the backend. Confidence levels
(manual, auto_high, auto_low, unmatched) are passed through as opaque tags.
"""

from __future__ import annotations

from budget_web.api_client import BackendClient
from budget_web.gateways._base import parse_model, raise_for_status, read_json
from budget_web.schemas import (
    AutoMatchResponse,
    BulkAutoMatchResponse,
    MatchingRules,
    MatchSuggestionsResponse,
    TeachMatchRequest,
    TeachMatchResponse,
)

NOT_FOUND = "Transaction not found"
ENTRY_NOT_FOUND = "Budget entry not found"


async def get_match_suggestions(
    backend: BackendClient, user_id: str, transaction_id: str
) -> MatchSuggestionsResponse:
    response = await backend.request(
        f"/api/matching/suggestions/{transaction_id}", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to get match suggestions"
    )
    result = parse_model(MatchSuggestionsResponse, read_json(response))
    if result.suggestions is None:
        result.suggestions = []
    return result


async def auto_match_transaction(
    backend: BackendClient, user_id: str, transaction_id: str
) -> AutoMatchResponse:
    """Link the transaction only when the backend is confident enough."""
    response = await backend.request(
        f"/api/matching/auto-match/{transaction_id}", method="POST", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to auto-match transaction"
    )
    return parse_model(AutoMatchResponse, read_json(response))


async def bulk_auto_match(backend: BackendClient, user_id: str) -> BulkAutoMatchResponse:
    response = await backend.request(
        "/api/matching/bulk-auto-match", method="POST", user_id=user_id
    )
    raise_for_status(
        response,
        not_found=NOT_FOUND,
        default="Failed to bulk auto-match transactions",
    )
    return parse_model(BulkAutoMatchResponse, read_json(response))


async def teach_match(
    backend: BackendClient,
    user_id: str,
    transaction_id: str,
    data: TeachMatchRequest,
) -> TeachMatchResponse:
    """Link a transaction and optionally let the backend derive matching rules."""
    response = await backend.request(
        f"/api/matching/teach/{transaction_id}",
        method="POST",
        json=data.to_body(),
        user_id=user_id,
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to teach match")
    return parse_model(TeachMatchResponse, read_json(response))


async def update_budget_entry_matching_rules(
    backend: BackendClient,
    user_id: str,
    budget_id: str,
    entry_id: str,
    rules: MatchingRules,
) -> None:
    response = await backend.request(
        f"/api/budgets/{budget_id}/entries/{entry_id}/matching-rules",
        method="POST",
        json={"matching_rules": rules.to_body()},
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=ENTRY_NOT_FOUND, default="Failed to update matching rules"
    )
