"""
Schema-configured dynamic model.

``CRUD6Model`` is one class for every schema: ``configure_from_schema`` gives
an instance its table, keys, fillable fields and casts, and the query
helpers work on plain dictionaries through SQLAlchemy Core.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.database.utils import naive_utc_now
from crud6.core.exceptions import CRUD6Exception, CRUD6NotFoundException
from crud6.core.logging_config import debug_log, get_logger
from crud6.field_types import FieldTypeRegistry, default_registry

from .tables import DELETED_AT, TIMESTAMP_COLUMNS, build_table, is_column_field

logger = get_logger(__name__)

_CASTS = {
    "integer": "int",
    "int": "int",
    "float": "float",
    "decimal": "float",
    "boolean": "bool",
    "json": "array",
    "array": "array",
    "date": "date",
    "datetime": "datetime",
}


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string into a naive UTC datetime.

    Raises:
        ValueError: If ``value`` is not ISO 8601
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: str) -> date:
    """Parse the ``YYYY-MM-DD`` prefix of ``value``.

    Raises:
        ValueError: If ``value`` does not start with an ISO date
    """
    return date.fromisoformat(value.strip()[:10])


class CRUD6Model:
    """Dynamic model over a schema-described table.

    Example:
        model = CRUD6Model(metadata).configure_from_schema(schema)
        record = await model.find(session, 1)
        await model.update(session, 1, {"name": "New name"})
    """

    def __init__(self, metadata: Optional[sa.MetaData] = None, field_types: Optional[FieldTypeRegistry] = None):
        self.metadata = metadata if metadata is not None else sa.MetaData()
        self.field_types = field_types or default_registry()
        self.schema: Dict[str, Any] = {}
        self.table_name: str = ""
        self.primary_key: str = "id"
        self.timestamps: bool = True
        self.soft_delete: bool = False
        self.connection: Optional[str] = None
        self.fillable: List[str] = []
        self.casts: Dict[str, str] = {}
        self.relationships: Dict[str, Dict[str, Any]] = {}
        self._table: Optional[sa.Table] = None

    def configure_from_schema(self, schema: Dict[str, Any]) -> "CRUD6Model":
        self.schema = schema
        self.table_name = schema["table"]
        self.primary_key = schema.get("primary_key", "id")
        self.timestamps = bool(schema.get("timestamps", True))
        self.soft_delete = bool(schema.get("soft_delete", False))
        self.connection = schema.get("connection")
        self._configure_fillable_and_casts(schema)
        self.relationships = {
            relation["name"]: relation for relation in schema.get("relationships") or [] if relation.get("name")
        }
        self._table = build_table(schema, self.metadata, self.field_types)

        debug_log(
            logger,
            "Model configured from schema",
            {
                "model": schema.get("model"),
                "table": self.table_name,
                "fillable": self.fillable,
                "soft_delete": self.soft_delete,
            },
        )
        return self

    def _configure_fillable_and_casts(self, schema: Dict[str, Any]) -> None:
        fillable: List[str] = []
        casts: Dict[str, str] = {}
        for name, field in schema["fields"].items():
            field_type = field.get("type", "string")
            if (
                not field.get("auto_increment")
                and is_column_field(field, self.field_types)
                and field.get("editable", True) is not False
            ):
                fillable.append(name)
            if field_type in _CASTS:
                casts[name] = _CASTS[field_type]

        if self.timestamps:
            fillable.extend(column for column in TIMESTAMP_COLUMNS if column not in fillable)
        self.fillable = fillable
        self.casts = casts

    @property
    def table(self) -> sa.Table:
        if self._table is None:
            raise CRUD6Exception("Model has not been configured from a schema.")
        return self._table

    @property
    def pk(self) -> sa.Column:
        return self.table.c[self.primary_key]

    @property
    def fields(self) -> Dict[str, Dict[str, Any]]:
        return self.schema.get("fields", {})

    def has_column(self, name: str) -> bool:
        return name in self.table.c

    def get_relationship_config(self, name: str) -> Optional[Dict[str, Any]]:
        return self.relationships.get(name)

    def has_relationship(self, name: str) -> bool:
        return name in self.relationships

    def column(self, name: str) -> sa.Column:
        return self.table.c[name]

    def coerce_id(self, record_id: Any) -> Any:
        """Convert a path parameter to the primary key's Python type.

        Raises:
            CRUD6NotFoundException: If an integer key is given a non-integer value
        """
        if isinstance(self.pk.type, sa.Integer) and isinstance(record_id, str):
            try:
                return int(record_id)
            except ValueError:
                raise CRUD6NotFoundException(record_id, self.table_name) from None
        return record_id

    # Queries

    def select(self, with_trashed: bool = False) -> sa.Select:
        query = sa.select(self.table)
        if self.soft_delete and not with_trashed:
            query = query.where(self.table.c[DELETED_AT].is_(None))
        return query

    def only_trashed(self) -> sa.Select:
        if not self.soft_delete:
            raise CRUD6Exception(f"Model '{self.schema.get('model')}' does not support soft deletes.")
        return sa.select(self.table).where(self.table.c[DELETED_AT].is_not(None))

    def where_active(self, query: sa.Select) -> sa.Select:
        if self.soft_delete:
            return query.where(self.table.c[DELETED_AT].is_(None))
        return query

    async def find(self, session: AsyncSession, record_id: Any, with_trashed: bool = False) -> Optional[Dict[str, Any]]:
        result = await session.execute(self.select(with_trashed).where(self.pk == record_id))
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def find_or_fail(self, session: AsyncSession, record_id: Any) -> Dict[str, Any]:
        record = await self.find(session, record_id)
        if record is None:
            raise CRUD6NotFoundException(record_id, self.table_name)
        return record

    async def exists(self, session: AsyncSession, column: str, value: Any, exclude_id: Any = None) -> bool:
        query = sa.select(sa.func.count()).select_from(self.table).where(self.table.c[column] == value)
        if exclude_id is not None:
            query = query.where(self.pk != exclude_id)
        return bool((await session.execute(query)).scalar_one())

    async def where(self, session: AsyncSession, column: str, value: Any) -> List[Dict[str, Any]]:
        result = await session.execute(self.select().where(self.table.c[column] == value))
        return [dict(row) for row in result.mappings().all()]

    # Writes

    def _coerce(self, name: str, value: Any) -> Any:
        # Date columns reject ISO strings on some drivers (SQLite)
        if not isinstance(value, str) or value == "":
            return None if value == "" and self._is_temporal(name) else value
        column_type = self.table.c[name].type
        if isinstance(column_type, sa.DateTime):
            return parse_datetime(value)
        if isinstance(column_type, sa.Date):
            return parse_date(value)
        return value

    def _is_temporal(self, name: str) -> bool:
        return isinstance(self.table.c[name].type, (sa.Date, sa.DateTime))

    def _only_columns(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: self._coerce(key, value) for key, value in data.items() if key in self.table.c}

    async def insert(self, session: AsyncSession, data: Mapping[str, Any]) -> Any:
        """Insert a row and return its primary key."""
        values = self._only_columns(data)
        result = await session.execute(sa.insert(self.table).values(**values))
        inserted = result.inserted_primary_key
        record_id = inserted[0] if inserted else values.get(self.primary_key)
        debug_log(logger, "Record inserted", {"table": self.table_name, "id": record_id})
        return record_id

    async def update(self, session: AsyncSession, record_id: Any, data: Mapping[str, Any]) -> int:
        values = self._only_columns(data)
        if not values:
            return 0
        result = await session.execute(sa.update(self.table).where(self.pk == record_id).values(**values))
        debug_log(logger, "Record updated", {"table": self.table_name, "id": record_id, "fields": list(values)})
        return result.rowcount

    async def delete(self, session: AsyncSession, record_id: Any) -> bool:
        """Delete a record: soft when the schema enables it, hard otherwise.

        Returns:
            True when the record was soft deleted
        """
        if self.soft_delete:
            await self.soft_delete_record(session, record_id)
            return True
        await self.force_delete(session, record_id)
        return False

    async def soft_delete_record(self, session: AsyncSession, record_id: Any) -> None:
        if not self.soft_delete:
            raise CRUD6Exception(f"Model '{self.schema.get('model')}' does not support soft deletes.")
        await session.execute(sa.update(self.table).where(self.pk == record_id).values({DELETED_AT: naive_utc_now()}))

    async def restore(self, session: AsyncSession, record_id: Any) -> None:
        if not self.soft_delete:
            raise CRUD6Exception(f"Model '{self.schema.get('model')}' does not support soft deletes.")
        await session.execute(sa.update(self.table).where(self.pk == record_id).values({DELETED_AT: None}))

    async def force_delete(self, session: AsyncSession, record_id: Any) -> None:
        await session.execute(sa.delete(self.table).where(self.pk == record_id))

    # Serialization

    def hidden_fields(self) -> List[str]:
        return [name for name, field in self.fields.items() if field.get("type") == "password"]

    def cast_value(self, name: str, value: Any) -> Any:
        field = self.fields.get(name)
        if field is None or value is None:
            return value
        return self.field_types.cast(field.get("type", "string"), value)

    def to_dict(self, row: Mapping[str, Any], only: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Serialize a row for API output, casting values and hiding passwords."""
        hidden = set(self.hidden_fields())
        keys = list(only) if only is not None else list(row.keys())
        return {key: self.cast_value(key, row[key]) for key in keys if key in row and key not in hidden}
