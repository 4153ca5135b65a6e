"""
Custom action endpoint.

Executes an entry of a schema's ``actions`` list against one record, for
example toggling a boolean flag or starting a password reset.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body

from crud6.core.exceptions import CRUD6NotFoundException
from crud6.core.logging_config import get_logger
from crud6.server.services.auth import authorize
from crud6.server.services.custom_actions import ActionContext, get_action_registry
from crud6.server.services.deps import CRUDContextDep, CurrentUserDep, SchemaServiceDep, SessionDep

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/{model}/{id}/a/{action_key}",
    summary="Execute Custom Action",
    description="Run the schema action identified by its key on one record.",
    responses={
        403: {"description": "Action permission missing"},
        404: {"description": "Record or action not found"},
    },
)
async def execute_action(
    id: str,
    action_key: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    service: SchemaServiceDep,
    payload: Optional[Dict[str, Any]] = Body(default=None),
) -> Dict[str, Any]:
    action = next((a for a in context.schema.get("actions") or [] if a.get("key") == action_key), None)
    if action is None:
        raise CRUD6NotFoundException(
            description=f"Action '{action_key}' is not defined for model '{context.model_name}'."
        )

    authorize(user, context.schema, "update", action.get("permission"))
    record_id = context.model.coerce_id(id)
    record = await context.model.find_or_fail(session, record_id)

    ctx = ActionContext(session, context.model, record, action, user, payload or {})
    try:
        result = await get_action_registry().execute(ctx)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"User {user.user_name} executed action '{action_key}' on {context.model_name} {record_id}")
    translator = service.translator
    label = translator.translate(action.get("label", action_key))
    return {
        "title": translator.translate("CRUD6.ACTION.SUCCESS_TITLE"),
        "description": translator.translate(
            action.get("success_message") or "CRUD6.ACTION.SUCCESS", {"action": label}
        ),
        "action": action_key,
        "id": record_id,
        "result": result,
        "data": context.model.to_dict(await context.model.find_or_fail(session, record_id)),
    }
