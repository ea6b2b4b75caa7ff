"""
Helpers shared by page loaders and form actions.

Loaders that need several gateways fan the calls out concurrently with
`fan_out`. Each loader picks its failure policy explicitly:

- FanOutPolicy.FAIL_ALL: the first failure fails the whole load.
- FanOutPolicy.ISOLATE: every call settles on its own and failures are
  replaced by the loader's defaults.

Form actions return plain dicts on success and ActionFailure values on
failure; they never let a gateway error escape.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from starlette.datastructures import FormData

from budget_web.errors import BudgetWebError

logger = logging.getLogger(__name__)


class FanOutPolicy(enum.Enum):
    FAIL_ALL = "fail_all"
    ISOLATE = "isolate"


@dataclass
class Settled:
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default


@dataclass
class FanOutResult:
    values: dict[str, Any]
    errors: dict[str, BaseException] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    @property
    def failed(self) -> bool:
        return bool(self.errors)


async def settle(awaitable: Awaitable[Any]) -> Settled:
    try:
        return Settled(ok=True, value=await awaitable)
    except BudgetWebError as exc:
        return Settled(ok=False, error=exc)


async def fan_out(
    calls: Mapping[str, Awaitable[Any]],
    *,
    policy: FanOutPolicy = FanOutPolicy.FAIL_ALL,
    defaults: Optional[Mapping[str, Any]] = None,
) -> FanOutResult:
    names = list(calls)
    if policy is FanOutPolicy.FAIL_ALL:
        results = await asyncio.gather(*(calls[name] for name in names))
        return FanOutResult(values=dict(zip(names, results)))

    defaults = defaults or {}
    settled = await asyncio.gather(*(settle(calls[name]) for name in names))
    values: dict[str, Any] = {}
    errors: dict[str, BaseException] = {}
    for name, outcome in zip(names, settled):
        values[name] = outcome.value_or(defaults.get(name))
        if not outcome.ok:
            logger.warning("Fan-out call %s failed: %s", name, outcome.error)
            errors[name] = outcome.error
    return FanOutResult(values=values, errors=errors)


# Form actions


@dataclass
class ActionFailure:
    status: int
    error: str

    def to_json(self) -> dict:
        return {"error": self.error}


def fail(status: int, error: str) -> ActionFailure:
    return ActionFailure(status=status, error=error)


def failure_from_error(
    exc: BudgetWebError, fallback: str, *, expose_message: bool = False
) -> ActionFailure:
    """
    Turn a gateway/identity error into an action failure.

    Auth and lookup errors keep their own status and message. Anything else
    becomes a 500 with the action's fallback message unless the action
    chooses to show the backend's message.
    """
    if exc.status_code in (400, 401, 403, 404):
        return fail(exc.status_code, exc.message)
    return fail(500, exc.message if expose_message else fallback)


def form_str(form: FormData, name: str) -> Optional[str]:
    """The field value, or None when the field is absent. Empty strings are kept."""
    value = form.get(name)
    if value is None or not isinstance(value, str):
        return None
    return value


def parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value == "true"


def form_action(fallback: str, *, expose_message: bool = False):
    """
    Wrap a form action with the session check and error translation.

    The wrapped action receives (form, auth, **path_params) and returns a
    success dict or an ActionFailure. A missing session answers 401 before
    the action runs.
    """

    def decorator(func: Callable[..., Awaitable[Union[dict, ActionFailure]]]):
        @functools.wraps(func)
        async def wrapper(form: FormData, auth, **path_params) -> Union[dict, ActionFailure]:
            try:
                session = await auth.get_session()
                if session.user is None:
                    return fail(401, "Unauthorized")
                return await func(form, auth, **path_params)
            except BudgetWebError as exc:
                logger.error("%s: %r", fallback, exc)
                return failure_from_error(exc, fallback, expose_message=expose_message)

        return wrapper

    return decorator
