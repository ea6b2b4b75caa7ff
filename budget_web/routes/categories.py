"""
/dashboard/categories page loader and form actions.
"""

from __future__ import annotations

import logging
from typing import get_args

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData

from budget_web.composition import fail, form_action, form_str, parse_bool
from budget_web.dependencies import require_dashboard_user, run_action
from budget_web.errors import BudgetWebError
from budget_web.gateways import categories as categories_gateway
from budget_web.schemas import CreateCategoryRequest, EntryType, UpdateCategoryRequest
from budget_web.session import RequestSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/categories")

CATEGORY_TYPES = get_args(EntryType)


async def load_categories(auth: RequestSession) -> dict:
    session = await auth.get_session()
    if session.user is None:
        return {"categories": []}

    try:
        user_id = await auth.get_user_id()
        categories = await categories_gateway.get_categories(auth.backend, user_id)
    except BudgetWebError as exc:
        logger.error("Error loading categories: %r", exc)
        return {"categories": [], "error": "Failed to load categories"}
    return {"categories": [category.to_json() for category in categories]}


@form_action("Failed to create category")
async def create_category(form: FormData, auth: RequestSession):
    name = form_str(form, "name")
    category_type = form_str(form, "category_type")
    if not name or not category_type:
        return fail(400, "Name and category type are required")
    if category_type not in CATEGORY_TYPES:
        return fail(400, "Invalid category type")

    user_id = await auth.get_user_id()
    category = await categories_gateway.create_category(
        auth.backend,
        user_id,
        CreateCategoryRequest(
            name=name,
            category_type=category_type,
            color=form_str(form, "color") or None,
            icon=form_str(form, "icon") or None,
            parent_category_id=form_str(form, "parent_category_id") or None,
        ),
    )
    return {"success": True, "category": category.to_json()}


@form_action("Failed to update category")
async def update_category(form: FormData, auth: RequestSession):
    category_id = form_str(form, "id")
    if not category_id:
        return fail(400, "Category ID is required")

    updates = UpdateCategoryRequest()
    if form_str(form, "name"):
        updates.name = form_str(form, "name")
    category_type = form_str(form, "category_type")
    if category_type:
        if category_type not in CATEGORY_TYPES:
            return fail(400, "Invalid category type")
        updates.category_type = category_type
    if form_str(form, "color"):
        updates.color = form_str(form, "color")
    if form_str(form, "icon"):
        updates.icon = form_str(form, "icon")
    updates.is_active = parse_bool(form_str(form, "is_active"))

    user_id = await auth.get_user_id()
    category = await categories_gateway.update_category(
        auth.backend, user_id, category_id, updates
    )
    return {"success": True, "category": category.to_json()}


@form_action("Failed to delete category")
async def delete_category(form: FormData, auth: RequestSession):
    category_id = form_str(form, "id")
    if not category_id:
        return fail(400, "Category ID is required")

    user_id = await auth.get_user_id()
    await categories_gateway.delete_category(auth.backend, user_id, category_id)
    return {"success": True}


@form_action("Failed to seed default categories")
async def seed_defaults(form: FormData, auth: RequestSession):
    user_id = await auth.get_user_id()
    categories = await categories_gateway.seed_default_categories(auth.backend, user_id)
    return {
        "success": True,
        "seeded": True,
        "categories": [category.to_json() for category in categories],
    }


@router.get("")
async def categories_page(auth: RequestSession = Depends(require_dashboard_user)):
    return await load_categories(auth)


@router.post("/create")
async def create_category_action(request: Request):
    return await run_action(create_category, request)


@router.post("/update")
async def update_category_action(request: Request):
    return await run_action(update_category, request)


@router.post("/delete")
async def delete_category_action(request: Request):
    return await run_action(delete_category, request)


@router.post("/seed-defaults")
async def seed_defaults_action(request: Request):
    return await run_action(seed_defaults, request)
