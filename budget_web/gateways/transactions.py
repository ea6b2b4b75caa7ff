"""
Transactions gateway: /api/transactions.
"""

from __future__ import annotations

from typing import Optional

from budget_web.api_client import BackendClient
from budget_web.gateways._base import (
    build_query,
    parse_list,
    parse_model,
    raise_for_status,
    read_json,
    unwrap_list,
)
from budget_web.schemas import (
    CreateTransactionRequest,
    MatchConfidence,
    Transaction,
    TransactionFilters,
    UpdateTransactionRequest,
)

NOT_FOUND = "Transaction not found"


async def get_transactions(
    backend: BackendClient,
    user_id: str,
    filters: Optional[TransactionFilters] = None,
) -> list[Transaction]:
    params = build_query(**(filters or TransactionFilters()).model_dump())
    response = await backend.request(
        "/api/transactions", params=params or None, user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch transactions"
    )
    return parse_list(Transaction, unwrap_list(read_json(response), "transactions"))


async def get_transaction(
    backend: BackendClient, user_id: str, transaction_id: str
) -> Transaction:
    response = await backend.request(
        f"/api/transactions/{transaction_id}", user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch transaction")
    return parse_model(Transaction, read_json(response))


async def create_transaction(
    backend: BackendClient, user_id: str, transaction: CreateTransactionRequest
) -> Transaction:
    response = await backend.request(
        "/api/transactions",
        method="POST",
        json=transaction.to_body(),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to create transaction"
    )
    return parse_model(Transaction, read_json(response))


async def update_transaction(
    backend: BackendClient,
    user_id: str,
    transaction_id: str,
    updates: UpdateTransactionRequest,
) -> Transaction:
    response = await backend.request(
        f"/api/transactions/{transaction_id}",
        method="PUT",
        json=updates.to_body(),
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to update transaction"
    )
    return parse_model(Transaction, read_json(response))


async def delete_transaction(
    backend: BackendClient, user_id: str, transaction_id: str
) -> None:
    response = await backend.request(
        f"/api/transactions/{transaction_id}", method="DELETE", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to delete transaction"
    )


async def get_unmatched_transactions(
    backend: BackendClient, user_id: str
) -> list[Transaction]:
    """Transactions not yet linked to a budget entry."""
    response = await backend.request("/api/transactions/unmatched", user_id=user_id)
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch unmatched transactions"
    )
    return parse_list(Transaction, unwrap_list(read_json(response), "transactions"))


async def categorize_transaction(
    backend: BackendClient, user_id: str, transaction_id: str, category_id: str
) -> Transaction:
    response = await backend.request(
        f"/api/transactions/{transaction_id}/categorize",
        method="POST",
        json={"category_id": category_id},
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to categorize transaction"
    )
    return parse_model(Transaction, read_json(response))


async def link_transaction_to_budget_entry(
    backend: BackendClient,
    user_id: str,
    transaction_id: str,
    budget_entry_id: str,
    match_confidence: MatchConfidence = "manual",
) -> Transaction:
    response = await backend.request(
        f"/api/transactions/{transaction_id}/link",
        method="POST",
        json={"budget_entry_id": budget_entry_id, "match_confidence": match_confidence},
        user_id=user_id,
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to link transaction"
    )
    return parse_model(Transaction, read_json(response))
