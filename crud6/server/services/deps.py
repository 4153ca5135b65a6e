"""
Request dependencies.

``get_crud_context`` resolves the ``{model}`` path parameter (``model`` or
``model@connection``) into its processed schema and configured model;
``get_session`` opens a session on the database connection that schema
lives on. Tests override ``get_session`` and ``get_schema_service``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, AsyncGenerator, Dict, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.database.session import connection_manager
from crud6.field_types import default_registry
from crud6.model import CRUD6Model
from crud6.schema import SchemaCache, SchemaService, Translator, parse_model_reference
from crud6.server.core.config import settings

from .auth import CurrentUser, get_current_user
from .records import RecordService


@dataclass
class CRUDContext:
    """Schema and model resolved for one request."""

    model_name: str
    connection: Optional[str]
    schema: Dict[str, Any]
    model: CRUD6Model

    @property
    def display_name(self) -> str:
        schema = self.schema
        if schema.get("singular_title"):
            return schema["singular_title"]
        title = schema.get("title")
        if title:
            return title[: -len(" Management")] if title.endswith(" Management") else title
        return self.model_name.capitalize()

    def record_label(self, record: Dict[str, Any]) -> str:
        """Human readable name of a record for success messages."""
        for key in (self.schema.get("title_field"), "name", "user_name", "title"):
            if key and record.get(key) not in (None, ""):
                return str(record[key])
        return str(record.get(self.model.primary_key, ""))


_schema_service: Optional[SchemaService] = None


def get_schema_service() -> SchemaService:
    global _schema_service
    if _schema_service is None:
        cache = SchemaCache(
            connection_manager.sessionmaker() if settings.cache_enabled else None,
            ttl=settings.cache_ttl,
        )
        _schema_service = SchemaService(
            settings.schema_path,
            cache=cache,
            translator=Translator(settings.locale),
            field_types=default_registry(),
        )
    return _schema_service


SchemaServiceDep = Annotated[SchemaService, Depends(get_schema_service)]


async def get_crud_context(model: str, service: SchemaServiceDep) -> CRUDContext:
    model_name, connection = parse_model_reference(model)
    schema = await service.get_schema(model_name, connection)
    return CRUDContext(model_name, schema.get("connection"), schema, service.get_model(schema))


CRUDContextDep = Annotated[CRUDContext, Depends(get_crud_context)]


async def get_session(context: CRUDContextDep) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: A session on the connection of the requested schema.
    """
    async with connection_manager.sessionmaker(context.connection)() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def get_record_service(service: SchemaServiceDep, user: CurrentUserDep) -> RecordService:
    return RecordService(service, user)


RecordServiceDep = Annotated[RecordService, Depends(get_record_service)]
