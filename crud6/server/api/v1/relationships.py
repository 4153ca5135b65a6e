"""
Relationship endpoints.

- ``GET /{model}/{id}/{relation}``: nested listing through a ``relationships``
  entry, or through a ``details``/``detail`` entry naming the related model
- ``POST /{model}/{id}/{relation}``: attach related records (many_to_many)
- ``DELETE /{model}/{id}/{relation}``: detach related records (many_to_many)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import debug_log, get_logger
from crud6.model import BELONGS_TO_MANY_THROUGH, BelongsToManyThrough, ManyToMany, has_many_query, relationship_type
from crud6.schema import SchemaService
from crud6.server.core.config import settings
from crud6.server.schemas import ListResponse, RelationshipIdsRequest
from crud6.server.services.auth import authorize
from crud6.server.services.deps import (
    CRUDContext,
    CRUDContextDep,
    CurrentUserDep,
    RecordServiceDep,
    SchemaServiceDep,
    SessionDep,
)
from crud6.server.services.records import RecordService, find_relationship
from crud6.sprunje import Sprunje

logger = get_logger(__name__)

router = APIRouter()


def _detail_config(schema: Dict[str, Any], relation: str) -> Optional[Dict[str, Any]]:
    details: List[Dict[str, Any]] = list(schema.get("details") or [])
    if isinstance(schema.get("detail"), dict):
        details.append(schema["detail"])
    for detail in details:
        if detail.get("model") == relation:
            return detail
    return None


@router.get(
    "/{model}/{id}/{relation}",
    response_model=ListResponse,
    summary="List Related Records",
    description="Sprunje listing of the records related to one parent record.",
    responses={400: {"description": "Unknown relation"}, 404: {"description": "Parent record not found"}},
)
async def list_related(
    id: str,
    relation: str,
    request: Request,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    service: SchemaServiceDep,
) -> Dict[str, Any]:
    authorize(user, context.schema, "read")
    parent_id = context.model.coerce_id(id)
    await context.model.find_or_fail(session, parent_id)

    config = find_relationship(context.schema, relation)
    if config is not None:
        related = await service.get_model_instance(config.get("model", relation), context.connection)
        if relationship_type(config) == BELONGS_TO_MANY_THROUGH:
            through_name = config.get("through")
            through = await service.get_model_instance(through_name, context.connection) if through_name else None
            query = BelongsToManyThrough(relation, config, through).query(related, parent_id)
        else:
            query = ManyToMany(context.model, relation, config).query(related, parent_id)
        sprunje = Sprunje.for_schema(related, settings.default_page_size, settings.max_page_size, query=query)
    else:
        detail = _detail_config(context.schema, relation)
        if detail is None:
            raise CRUD6Exception(f"Relation '{relation}' is not defined for model '{context.model_name}'.")
        related = await service.get_model_instance(relation, context.connection)
        query = has_many_query(related, detail.get("foreign_key", "id"), parent_id)
        sprunje = Sprunje.for_schema(
            related,
            settings.default_page_size,
            settings.max_page_size,
            query=query,
            listable=detail.get("list_fields"),
        )

    debug_log(logger, "Nested listing", {"model": context.model_name, "id": parent_id, "relation": relation})
    sprunje.set_options(request.query_params)
    return await sprunje.get_response(session)


async def _change_relation(
    action: str,
    id: str,
    relation: str,
    context: CRUDContext,
    session: AsyncSession,
    records: RecordService,
    service: SchemaService,
    body: Optional[RelationshipIdsRequest],
) -> Dict[str, Any]:
    parent_id = context.model.coerce_id(id)
    many_to_many = records.many_to_many(context.model, relation)
    await context.model.find_or_fail(session, parent_id)

    ids = (body or RelationshipIdsRequest()).resolved_ids()
    if not ids:
        raise CRUD6Exception("No related ids given.")

    try:
        if action == "attach":
            await many_to_many.attach(session, parent_id, ids)
        else:
            await many_to_many.detach(session, parent_id, ids)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    key = "CRUD6.RELATIONSHIP.ATTACH_SUCCESS" if action == "attach" else "CRUD6.RELATIONSHIP.DETACH_SUCCESS"
    translator = service.translator
    logger.info(f"{action.capitalize()}ed {len(ids)} {relation} on {context.model_name} {parent_id}")
    return {
        "title": translator.translate("SUCCESS"),
        "description": translator.translate(key, {"count": len(ids), "relation": relation}),
        "relation": relation,
        "related_ids": ids,
    }


@router.post(
    "/{model}/{id}/{relation}",
    summary="Attach Related Records",
    description="Attach records to a many_to_many relationship. Existing pairs are left untouched.",
    responses={400: {"description": "Unknown or unsupported relation"}, 404: {"description": "Record not found"}},
)
async def attach_related(
    id: str,
    relation: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
    body: Optional[RelationshipIdsRequest] = Body(default=None),
) -> Dict[str, Any]:
    authorize(user, context.schema, "update")
    return await _change_relation("attach", id, relation, context, session, records, service, body)


@router.delete(
    "/{model}/{id}/{relation}",
    summary="Detach Related Records",
    description="Remove records from a many_to_many relationship.",
    responses={400: {"description": "Unknown or unsupported relation"}, 404: {"description": "Record not found"}},
)
async def detach_related(
    id: str,
    relation: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
    body: Optional[RelationshipIdsRequest] = Body(default=None),
) -> Dict[str, Any]:
    authorize(user, context.schema, "update")
    return await _change_relation("detach", id, relation, context, session, records, service, body)
