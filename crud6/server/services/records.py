"""
Record Service.

Implements the write side of the API on top of ``CRUD6Model``: building
insert/update data from request payloads, relationship actions declared in
the schema (``on_create``, ``on_update``, ``on_delete``) and cascading
deletes over ``details`` children. Every public method runs in one
transaction that is rolled back on failure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.database.utils import naive_utc_now
from crud6.core.exceptions import CRUD6Exception, SchemaNotFoundException
from crud6.core.logging_config import debug_log, get_logger
from crud6.model import MANY_TO_MANY, CRUD6Model, ManyToMany, relationship_type
from crud6.schema import SchemaService
from crud6.validation import RequestValidator

from .auth import CurrentUser
from .passwords import hash_password_fields

logger = get_logger(__name__)

ON_CREATE = "on_create"
ON_UPDATE = "on_update"
ON_DELETE = "on_delete"


def find_relationship(schema: Mapping[str, Any], name: str) -> Optional[Dict[str, Any]]:
    for relationship in schema.get("relationships") or []:
        if relationship.get("name") == name:
            return relationship
    return None


class RecordService:
    """Create, update and delete records of one schema-backed model."""

    def __init__(self, schema_service: SchemaService, user: CurrentUser) -> None:
        self.schema_service = schema_service
        self.user = user
        self.validator = RequestValidator(schema_service.translator)

    # Data preparation

    def prepare_insert_data(self, model: CRUD6Model, data: Mapping[str, Any]) -> Dict[str, Any]:
        insert: Dict[str, Any] = {}
        for name, field in model.fields.items():
            if field.get("auto_increment") or field.get("computed") or not model.has_column(name):
                continue
            if data.get(name) is not None:
                insert[name] = model.field_types.transform(field.get("type", "string"), data[name])
            elif field.get("default") is not None:
                insert[name] = field["default"]

        hash_password_fields(model.fields, insert)
        if model.timestamps:
            now = naive_utc_now()
            insert["created_at"] = now
            insert["updated_at"] = now
        return insert

    def prepare_update_data(self, model: CRUD6Model, data: Mapping[str, Any]) -> Dict[str, Any]:
        update: Dict[str, Any] = {}
        for name, value in data.items():
            field = model.fields.get(name)
            if field is None or name not in model.fillable or field.get("readonly"):
                continue
            if value is None or field.get("type") == "password":
                update[name] = value
            else:
                update[name] = model.field_types.transform(field.get("type", "string"), value)

        hash_password_fields(model.fields, update)
        if model.timestamps and update:
            update["updated_at"] = naive_utc_now()
        return update

    # Operations

    async def create(self, session: AsyncSession, model: CRUD6Model, data: Dict[str, Any]) -> Dict[str, Any]:
        await self.validator.validate(session, model, data)
        try:
            record_id = await model.insert(session, self.prepare_insert_data(model, data))
            await self.process_relationship_actions(session, model, record_id, data, ON_CREATE)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(f"User {self.user.user_name} created {model.schema['model']} record {record_id}")
        return await model.find_or_fail(session, record_id)

    async def update(
        self, session: AsyncSession, model: CRUD6Model, record_id: Any, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        await model.find_or_fail(session, record_id)
        await self.validator.validate(session, model, data, fields=list(data), record_id=record_id)
        try:
            await model.update(session, record_id, self.prepare_update_data(model, data))
            await self.process_relationship_actions(session, model, record_id, data, ON_UPDATE)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(f"User {self.user.user_name} updated {model.schema['model']} record {record_id}")
        return await model.find_or_fail(session, record_id)

    async def update_field(
        self, session: AsyncSession, model: CRUD6Model, record_id: Any, field_name: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Update one field of a record.

        Raises:
            CRUD6Exception: If the field is unknown, readonly (the primary key
                included), not editable or absent from ``data``
            CRUD6NotFoundException: If the record does not exist
        """
        field = model.fields.get(field_name)
        model_name = model.schema["model"]
        if field is None:
            raise CRUD6Exception(f"Field '{field_name}' does not exist in schema for model '{model_name}'.")
        if field.get("readonly") or field_name == model.primary_key or field.get("auto_increment"):
            raise CRUD6Exception(f"Field '{field_name}' is readonly and cannot be updated.")
        if field.get("editable", True) is False or not model.has_column(field_name):
            raise CRUD6Exception(f"Field '{field_name}' is not editable.")

        if field_name not in data:
            raise CRUD6Exception(f"Field '{field_name}' is missing from the request data.")

        await model.find_or_fail(session, record_id)
        await self.validator.validate(session, model, data, fields=[field_name], record_id=record_id)

        value = data[field_name]
        values = {field_name: value}
        if value is not None and field.get("type") != "password":
            values[field_name] = model.field_types.transform(field.get("type", "string"), value)
        hash_password_fields(model.fields, values)
        if not values:
            raise CRUD6Exception(f"Field '{field_name}' cannot be set to an empty value.")
        if model.timestamps:
            values["updated_at"] = naive_utc_now()

        try:
            await model.update(session, record_id, values)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(f"User {self.user.user_name} updated '{field_name}' of {model_name} record {record_id}")
        return await model.find_or_fail(session, record_id)

    async def delete(self, session: AsyncSession, model: CRUD6Model, record_id: Any) -> bool:
        """Delete a record and its cascading children.

        Returns:
            True when the record was soft deleted
        """
        record = await model.find_or_fail(session, record_id)
        try:
            await self.process_relationship_actions(session, model, record_id, record, ON_DELETE)
            await self.cascade_delete(session, model, record_id, model.soft_delete)
            soft = await model.delete(session, record_id)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(
            f"User {self.user.user_name} {'soft ' if soft else ''}deleted {model.schema['model']} record {record_id}"
        )
        return soft

    # Relationships

    def many_to_many(self, model: CRUD6Model, name: str) -> ManyToMany:
        config = find_relationship(model.schema, name)
        if config is None:
            raise CRUD6Exception(f"Relationship '{name}' is not defined for model '{model.schema['model']}'.")
        if relationship_type(config) != MANY_TO_MANY:
            raise CRUD6Exception(f"Relationship '{name}' is not a many_to_many relationship.")
        return ManyToMany(model, name, config)

    def resolve_pivot_data(self, pivot_data: Mapping[str, Any]) -> Dict[str, Any]:
        resolved: Dict[str, Any] = {}
        for key, value in pivot_data.items():
            if value == "now":
                resolved[key] = naive_utc_now()
            elif value == "current_user":
                resolved[key] = self.user.id
            elif value == "current_date":
                resolved[key] = datetime.now().date()
            else:
                resolved[key] = value
        return resolved

    async def process_relationship_actions(
        self, session: AsyncSession, model: CRUD6Model, record_id: Any, data: Mapping[str, Any], event: str
    ) -> None:
        for relationship in model.schema.get("relationships") or []:
            action = (relationship.get("actions") or {}).get(event)
            if not isinstance(action, dict):
                continue
            name = relationship.get("name")
            if not name:
                logger.warning(f"Skipping relationship without name on {model.schema['model']} ({event})")
                continue

            if relationship_type(relationship) != MANY_TO_MANY:
                logger.warning(
                    f"Relationship actions are only supported on many_to_many relationships, "
                    f"skipping '{name}' on {model.schema['model']} ({event})"
                )
                continue

            relation = ManyToMany(model, name, relationship)
            try:
                for item in action.get("attach") or []:
                    if not isinstance(item, dict) or "related_id" not in item:
                        logger.warning(f"Invalid attach configuration for relationship '{name}' ({event})")
                        continue
                    pivot_data = self.resolve_pivot_data(item.get("pivot_data") or {})
                    await relation.attach(session, record_id, [item["related_id"]], pivot_data)

                if event == ON_UPDATE and action.get("sync"):
                    await self._sync_from_data(session, relation, record_id, action["sync"], data)

                detach = action.get("detach")
                if detach == "all":
                    await relation.detach(session, record_id)
                elif isinstance(detach, list):
                    await relation.detach(session, record_id, detach)
                elif detach is not None:
                    logger.warning(f"Invalid detach configuration for relationship '{name}': {detach!r}")
            except Exception as e:
                logger.error(f"Relationship action {event} failed for '{name}' on {model.schema['model']}: {e}")
                raise

    async def _sync_from_data(
        self, session: AsyncSession, relation: ManyToMany, record_id: Any, sync: Any, data: Mapping[str, Any]
    ) -> None:
        field = sync if isinstance(sync, str) else f"{relation.name}_ids"
        if field not in data or data[field] is None:
            debug_log(logger, "Sync field not present in data, skipping", {"relationship": relation.name, "field": field})
            return
        raw = data[field] if isinstance(data[field], list) else [data[field]]
        ids = [int(value) if isinstance(value, str) and value.isdigit() else value for value in raw if value != ""]
        await relation.sync(session, record_id, ids)

    async def cascade_delete(self, session: AsyncSession, model: CRUD6Model, record_id: Any, soft: bool) -> None:
        for detail in model.schema.get("details") or []:
            if not detail.get("model") or not detail.get("foreign_key"):
                continue
            if detail.get("cascade_delete") is False:
                debug_log(logger, "Cascade delete disabled for child", {"child_model": detail["model"]})
                continue

            try:
                child = await self.schema_service.get_model_instance(detail["model"], model.connection)
            except SchemaNotFoundException:
                logger.warning(f"Child model schema '{detail['model']}' not found, skipping cascade delete")
                continue

            mode = detail.get("cascade_delete_mode", "auto")
            children: List[Dict[str, Any]] = await child.where(session, detail["foreign_key"], record_id)
            for row in children:
                child_id = row[child.primary_key]
                if soft and child.soft_delete and mode != "hard":
                    await child.soft_delete_record(session, child_id)
                else:
                    await child.force_delete(session, child_id)
            debug_log(
                logger,
                "Cascade delete completed for child model",
                {"model": model.schema["model"], "child_model": detail["model"], "deleted_count": len(children)},
            )
