"""
Custom action handlers.

Schema ``actions`` entries are executed by ``POST /{model}/{id}/a/{key}``.
Handlers are looked up by the action ``key`` first and its ``type`` second;
an action without a handler is logged and treated as a no-op success.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.database.utils import naive_utc_now
from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import debug_log, get_logger
from crud6.model import CRUD6Model

from .auth import CurrentUser

logger = get_logger(__name__)


@dataclass
class ActionContext:
    session: AsyncSession
    model: CRUD6Model
    record: Dict[str, Any]
    action: Dict[str, Any]
    user: CurrentUser
    payload: Dict[str, Any]

    @property
    def record_id(self) -> Any:
        return self.record[self.model.primary_key]


ActionHandler = Callable[[ActionContext], Awaitable[Dict[str, Any]]]


async def field_update_handler(ctx: ActionContext) -> Dict[str, Any]:
    """Set ``action.value`` on ``action.field``, or flip the field when the action is a toggle."""
    field = ctx.action.get("field")
    if not field or not ctx.model.has_column(field):
        raise CRUD6Exception(f"Action '{ctx.action.get('key')}' targets an unknown field '{field}'.")

    if "value" in ctx.action:
        value = ctx.action["value"]
    elif ctx.action.get("toggle", True):
        value = not bool(ctx.record.get(field))
    else:
        raise CRUD6Exception(f"Action '{ctx.action.get('key')}' has no value to set.")

    field_type = ctx.model.fields.get(field, {}).get("type", "string")
    values = {field: ctx.model.field_types.transform(field_type, value)}
    if ctx.model.timestamps:
        values["updated_at"] = naive_utc_now()
    await ctx.model.update(ctx.session, ctx.record_id, values)
    return {"field": field, "value": value}


async def reset_password_handler(ctx: ActionContext) -> Dict[str, Any]:
    # Token generation and mail delivery belong to the host application
    logger.info(
        f"Password reset requested for {ctx.model.schema.get('model')} {ctx.record_id} "
        f"({ctx.record.get('user_name', 'unknown')})"
    )
    return {"reset_initiated": True, "message": "Password reset process initiated"}


class CustomActionRegistry:
    """Registry of custom action handlers.

    Example:
        registry = CustomActionRegistry()
        registry.register("send_welcome", send_welcome_handler)
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, ActionHandler] = {}

    def register(self, name: str, handler: ActionHandler) -> None:
        self._handlers[name] = handler

    def resolve(self, action: Dict[str, Any]) -> Optional[ActionHandler]:
        key = action.get("key")
        if key in self._handlers:
            return self._handlers[key]
        return self._handlers.get(action.get("type", ""))

    async def execute(self, ctx: ActionContext) -> Dict[str, Any]:
        handler = self.resolve(ctx.action)
        if handler is None:
            logger.warning(
                f"No handler for action '{ctx.action.get('key')}' "
                f"(type: {ctx.action.get('type', 'unknown')}) on {ctx.model.schema.get('model')}"
            )
            return {}
        debug_log(
            logger,
            "Executing custom action",
            {"model": ctx.model.schema.get("model"), "action_key": ctx.action.get("key"), "id": ctx.record_id},
        )
        return await handler(ctx)


def default_action_registry() -> CustomActionRegistry:
    registry = CustomActionRegistry()
    registry.register("field_update", field_update_handler)
    registry.register("reset_password", reset_password_handler)
    return registry


_action_registry: Optional[CustomActionRegistry] = None


def get_action_registry() -> CustomActionRegistry:
    global _action_registry
    if _action_registry is None:
        _action_registry = default_action_registry()
    return _action_registry
