"""
Accounts gateway: /api/accounts.
"""

from __future__ import annotations

from budget_web.api_client import BackendClient
from budget_web.gateways._base import (
    parse_list,
    parse_model,
    raise_for_status,
    read_json,
    unwrap_list,
)
from budget_web.schemas import (
    Account,
    CreateAccountRequest,
    TotalBalance,
    UpdateAccountRequest,
)

NOT_FOUND = "Account not found"


async def get_accounts(backend: BackendClient, user_id: str) -> list[Account]:
    response = await backend.request("/api/accounts", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch accounts")
    return parse_list(Account, unwrap_list(read_json(response), "accounts"))


async def get_account(backend: BackendClient, user_id: str, account_id: str) -> Account:
    response = await backend.request(f"/api/accounts/{account_id}", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch account")
    return parse_model(Account, read_json(response))


async def create_account(
    backend: BackendClient, user_id: str, account: CreateAccountRequest
) -> Account:
    response = await backend.request(
        "/api/accounts", method="POST", json=account.to_body(), user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to create account")
    return parse_model(Account, read_json(response))


async def update_account(
    backend: BackendClient,
    user_id: str,
    account_id: str,
    updates: UpdateAccountRequest,
) -> Account:
    response = await backend.request(
        f"/api/accounts/{account_id}",
        method="PUT",
        json=updates.to_body(),
        user_id=user_id,
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to update account")
    return parse_model(Account, read_json(response))


async def delete_account(backend: BackendClient, user_id: str, account_id: str) -> None:
    """Soft delete; the backend keeps the row and marks it inactive."""
    response = await backend.request(
        f"/api/accounts/{account_id}", method="DELETE", user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to delete account")


async def get_total_balance(backend: BackendClient, user_id: str) -> TotalBalance:
    """Total balance across all active accounts."""
    response = await backend.request("/api/accounts/balance/total", user_id=user_id)
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to fetch total balance"
    )
    return parse_model(TotalBalance, read_json(response))
