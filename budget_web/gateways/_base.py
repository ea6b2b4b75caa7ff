"""
Response handling shared by every resource gateway.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from budget_web.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_query(**params: Any) -> dict[str, str]:
    """Drop absent filters so they are never sent as empty parameters."""
    return {key: str(value) for key, value in params.items() if value not in (None, "")}


def error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


def raise_for_status(response: httpx.Response, *, not_found: str, default: str) -> None:
    if response.is_success:
        return
    if response.status_code == 404:
        raise NotFoundError(not_found)
    message = error_message(response, default)
    logger.warning("Backend returned %s: %s", response.status_code, message)
    raise UpstreamError(message, status_code=response.status_code)


def read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError("Invalid JSON from backend") from exc


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise UpstreamError(f"Unexpected {model.__name__} payload from backend") from exc


def parse_list(model: Type[ModelT], items: Optional[list]) -> list[ModelT]:
    return [parse_model(model, item) for item in items or []]


def unwrap_list(body: Any, field: str) -> list:
    """Collection endpoints wrap results, e.g. {"accounts": [...]}."""
    if not isinstance(body, dict):
        return []
    return body.get(field) or []
