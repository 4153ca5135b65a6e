"""
Schema endpoint.

Serves a model's processed schema, reduced to the requested context(s) and
translated, so the frontend can render lists, forms and detail pages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from crud6.core.logging_config import debug_log, get_logger
from crud6.server.schemas import SchemaResponse
from crud6.server.services.auth import authorize
from crud6.server.services.deps import CRUDContextDep, CurrentUserDep, SchemaServiceDep

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{model}/schema",
    response_model=SchemaResponse,
    summary="Get Model Schema",
    description="Return the schema of a model filtered for a context (list, create, edit, form, detail, meta, full) "
    "or a comma-separated set of contexts.",
    responses={
        200: {"description": "Schema retrieved"},
        403: {"description": "Read permission missing"},
        404: {"description": "No schema file for the model"},
    },
)
async def get_schema(
    context: CRUDContextDep,
    service: SchemaServiceDep,
    user: CurrentUserDep,
    schema_context: Optional[str] = Query(default=None, alias="context"),
) -> Dict[str, Any]:
    """
    Get the schema of a model.

    - **model**: Model name, optionally ``model@connection``
    - **context**: Context name(s); omitted or ``full`` returns the whole schema
    """
    authorize(user, context.schema, "read")
    filtered = service.filter_schema_for_context(context.schema, schema_context)
    debug_log(logger, "Schema served", {"model": context.model_name, "context": schema_context})

    display_name = context.display_name
    return {
        "message": service.translator.translate("CRUD6.API.SUCCESS", {"model": display_name}),
        "model": context.model_name,
        "modelDisplayName": display_name,
        "schema": filtered,
    }
