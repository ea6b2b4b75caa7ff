"""
Categories gateway: /api/categories.
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
    Category,
    CreateCategoryRequest,
    EntryType,
    UpdateCategoryRequest,
)

NOT_FOUND = "Category not found"


async def get_categories(
    backend: BackendClient, user_id: str, type: Optional[EntryType] = None
) -> list[Category]:
    response = await backend.request(
        "/api/categories", params=build_query(type=type), user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch categories")
    return parse_list(Category, unwrap_list(read_json(response), "categories"))


async def get_category(
    backend: BackendClient, user_id: str, category_id: str
) -> Category:
    response = await backend.request(f"/api/categories/{category_id}", user_id=user_id)
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to fetch category")
    return parse_model(Category, read_json(response))


async def create_category(
    backend: BackendClient, user_id: str, category: CreateCategoryRequest
) -> Category:
    response = await backend.request(
        "/api/categories", method="POST", json=category.to_body(), user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to create category")
    return parse_model(Category, read_json(response))


async def update_category(
    backend: BackendClient,
    user_id: str,
    category_id: str,
    updates: UpdateCategoryRequest,
) -> Category:
    response = await backend.request(
        f"/api/categories/{category_id}",
        method="PUT",
        json=updates.to_body(),
        user_id=user_id,
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to update category")
    return parse_model(Category, read_json(response))


async def delete_category(
    backend: BackendClient, user_id: str, category_id: str
) -> None:
    response = await backend.request(
        f"/api/categories/{category_id}", method="DELETE", user_id=user_id
    )
    raise_for_status(response, not_found=NOT_FOUND, default="Failed to delete category")


async def seed_default_categories(
    backend: BackendClient, user_id: str
) -> list[Category]:
    """Create the backend's default category set for a new user."""
    response = await backend.request(
        "/api/categories/seed", method="POST", user_id=user_id
    )
    raise_for_status(
        response, not_found=NOT_FOUND, default="Failed to seed default categories"
    )
    return parse_list(Category, unwrap_list(read_json(response), "categories"))
