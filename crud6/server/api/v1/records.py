"""
Record endpoints.

Generic CRUD over any schema-backed model: paginated listing, create, read,
update, single-field update and delete.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Request, status

from crud6.core.logging_config import get_logger
from crud6.server.core.config import settings
from crud6.server.schemas import ListResponse, RecordResponse
from crud6.server.services.auth import authorize
from crud6.server.services.deps import (
    CRUDContextDep,
    CurrentUserDep,
    RecordServiceDep,
    SchemaServiceDep,
    SessionDep,
)
from crud6.sprunje import Sprunje

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{model}",
    response_model=ListResponse,
    summary="List Records",
    description="Paginated listing. Query parameters: size (int or 'all'), page (0-based), sorts[field]=asc|desc, "
    "filters[field]=value (LIKE, '||' separates alternatives) and filters[search] / search.",
    responses={400: {"description": "Unknown sort or filter field"}, 403: {"description": "Read permission missing"}},
)
async def list_records(
    request: Request,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
) -> Dict[str, Any]:
    authorize(user, context.schema, "read")
    sprunje = Sprunje.for_schema(context.model, settings.default_page_size, settings.max_page_size)
    sprunje.set_options(request.query_params)
    return await sprunje.get_response(session)


@router.post(
    "/{model}",
    status_code=status.HTTP_201_CREATED,
    summary="Create Record",
    description="Validate the body against the schema's field rules and insert a new record.",
    responses={
        201: {"description": "Record created"},
        400: {"description": "Validation failed"},
        403: {"description": "Create permission missing"},
    },
)
async def create_record(
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
    data: Optional[Dict[str, Any]] = Body(default=None),
) -> Dict[str, Any]:
    """
    Create a record.

    Runs in one transaction together with the schema's ``on_create``
    relationship actions.
    """
    authorize(user, context.schema, "create")
    record = await records.create(session, context.model, data or {})
    record_id = record[context.model.primary_key]
    translator = service.translator
    return {
        "title": translator.translate("SUCCESS"),
        "description": translator.translate(
            "CRUD6.CREATION_SUCCESSFUL", {"model": context.display_name, "name": context.record_label(record)}
        ),
        "data": context.model.to_dict(record),
        "id": record_id,
    }


@router.get(
    "/{model}/{id}",
    response_model=RecordResponse,
    summary="Get Record",
    responses={403: {"description": "Read permission missing"}, 404: {"description": "Record not found"}},
)
async def read_record(
    id: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    service: SchemaServiceDep,
) -> Dict[str, Any]:
    authorize(user, context.schema, "read")
    record_id = context.model.coerce_id(id)
    record = await context.model.find_or_fail(session, record_id)
    return {
        "message": service.translator.translate("CRUD6.API.SUCCESS", {"model": context.display_name}),
        "model": context.model_name,
        "modelDisplayName": context.display_name,
        "id": record_id,
        "data": context.model.to_dict(record),
    }


@router.put(
    "/{model}/{id}",
    summary="Update Record",
    description="Apply the fillable, non-readonly fields present in the body. Empty passwords are ignored.",
    responses={
        400: {"description": "Validation failed"},
        403: {"description": "Update permission missing"},
        404: {"description": "Record not found"},
    },
)
async def update_record(
    id: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
    data: Optional[Dict[str, Any]] = Body(default=None),
) -> Dict[str, Any]:
    authorize(user, context.schema, "update")
    record = await records.update(session, context.model, context.model.coerce_id(id), data or {})
    translator = service.translator
    return {
        "title": translator.translate("SUCCESS"),
        "description": translator.translate(
            "CRUD6.UPDATE", {"model": context.display_name, "name": context.record_label(record)}
        ),
        "data": context.model.to_dict(record),
    }


@router.put(
    "/{model}/{id}/{field}",
    summary="Update Single Field",
    description="Update one editable field. The body carries the new value under the field's name.",
    responses={
        400: {"description": "Unknown, readonly or non-editable field, or validation failed"},
        403: {"description": "Update permission missing"},
        404: {"description": "Record not found"},
    },
)
async def update_field(
    id: str,
    field: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
    data: Optional[Dict[str, Any]] = Body(default=None),
) -> Dict[str, Any]:
    authorize(user, context.schema, "update")
    record = await records.update_field(session, context.model, context.model.coerce_id(id), field, data or {})
    label = context.model.fields[field].get("label", field)
    translator = service.translator
    return {
        "title": translator.translate("SUCCESS"),
        "description": translator.translate(
            "CRUD6.UPDATE_FIELD_SUCCESSFUL", {"field": translator.translate(label), "model": context.display_name}
        ),
        "data": context.model.to_dict(record),
    }


@router.delete(
    "/{model}/{id}",
    summary="Delete Record",
    description="Soft delete when the schema enables it, hard delete otherwise. Cascades over 'details' children.",
    responses={403: {"description": "Delete permission missing"}, 404: {"description": "Record not found"}},
)
async def delete_record(
    id: str,
    context: CRUDContextDep,
    session: SessionDep,
    user: CurrentUserDep,
    records: RecordServiceDep,
    service: SchemaServiceDep,
) -> Dict[str, Any]:
    authorize(user, context.schema, "delete")
    record_id = context.model.coerce_id(id)
    record = await context.model.find_or_fail(session, record_id)
    soft = await records.delete(session, context.model, record_id)
    translator = service.translator
    return {
        "title": translator.translate("SUCCESS"),
        "description": translator.translate(
            "CRUD6.DELETION_SUCCESSFUL", {"model": context.display_name, "name": context.record_label(record)}
        ),
        "id": record_id,
        "soft_delete": soft,
    }
