"""
SQLAlchemy table construction from schemas.

Schema fields map onto ``Column`` objects; the resulting ``Table`` lives in a
``MetaData`` collection owned by the caller (one per database connection at
runtime, a throwaway one for DDL generation).
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.types import TypeDecorator, TypeEngine

from crud6.core.logging_config import get_logger
from crud6.field_types import TEXTAREA_PATTERN, FieldTypeRegistry

logger = get_logger(__name__)

TIMESTAMP_COLUMNS = ("created_at", "updated_at")
DELETED_AT = "deleted_at"


class JSONText(TypeDecorator):
    """JSON column that accepts already-encoded JSON strings.

    Field transforms store json/array values as strings; decoding them here
    keeps the driver from encoding them a second time.
    """

    impl = sa.JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: sa.Dialect) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value


def column_type(field: Mapping[str, Any]) -> TypeEngine:
    """Map a schema field definition to a SQLAlchemy column type."""
    field_type = field.get("type", "string")
    validation = field.get("validation") or {}

    if field_type in ("integer", "int", "smartlookup", "currency"):
        return sa.Integer()
    if field_type in ("string", "email", "password"):
        length = validation.get("length") if isinstance(validation.get("length"), dict) else {}
        return sa.String(int(length.get("max") or 255))
    if field_type == "phone":
        return sa.String(20)
    if field_type == "url":
        return sa.String(2048)
    if field_type == "zip":
        return sa.String(10)
    if field_type.startswith("boolean") or field_type == "bool":
        return sa.Boolean()
    if field_type == "date":
        return sa.Date()
    if field_type in ("datetime", "timestamp"):
        return sa.DateTime()
    if field_type == "decimal":
        return sa.Numeric(10, 2, asdecimal=False)
    if field_type == "float":
        return sa.Float()
    if field_type in ("json", "array"):
        return JSONText()
    if TEXTAREA_PATTERN.match(field_type):
        return sa.Text()

    if field_type != "string":
        logger.debug(f"Unknown field type '{field_type}', defaulting to VARCHAR(255)")
    return sa.String(255)


def server_default(field: Mapping[str, Any], type_: TypeEngine) -> Optional[Any]:
    """Return a column server default, None when the field has none or the type cannot carry one."""
    if "default" not in field or field["default"] is None:
        return None
    if isinstance(type_, (sa.Text, sa.JSON, JSONText)):
        return None

    default = field["default"]
    if isinstance(default, bool):
        return sa.text("1" if default else "0")
    if isinstance(default, (int, float)):
        return sa.text(str(default))
    if isinstance(default, str):
        return default
    return None


def is_column_field(field: Mapping[str, Any], field_types: FieldTypeRegistry) -> bool:
    """Whether a schema field is backed by a database column."""
    if field.get("computed"):
        return False
    return not field_types.is_virtual(field.get("type", "string"))


def build_columns(schema: Mapping[str, Any], field_types: FieldTypeRegistry) -> List[sa.Column]:
    primary_key = schema.get("primary_key", "id")
    fields: Dict[str, Dict[str, Any]] = schema["fields"]

    columns: List[sa.Column] = []
    for name, field in fields.items():
        if not is_column_field(field, field_types):
            continue

        type_ = column_type(field)
        is_primary = name == primary_key or bool(field.get("primary"))
        required = bool(field.get("required") or (field.get("validation") or {}).get("required"))
        unique = bool((field.get("validation") or {}).get("unique"))
        columns.append(
            sa.Column(
                name,
                type_,
                primary_key=is_primary,
                autoincrement=bool(field.get("auto_increment")) if is_primary else False,
                nullable=not (required or field.get("auto_increment") or is_primary),
                unique=unique and not is_primary,
                server_default=server_default(field, type_),
            )
        )

    if primary_key not in fields:
        columns.insert(0, sa.Column(primary_key, sa.Integer(), primary_key=True, autoincrement=True))

    if schema.get("timestamps", True):
        for name in TIMESTAMP_COLUMNS:
            if name not in fields:
                columns.append(sa.Column(name, sa.DateTime(), nullable=True))
    if schema.get("soft_delete", False) and DELETED_AT not in fields:
        columns.append(sa.Column(DELETED_AT, sa.DateTime(), nullable=True))
    return columns


def build_table(
    schema: Mapping[str, Any], metadata: sa.MetaData, field_types: FieldTypeRegistry, **kwargs: Any
) -> sa.Table:
    """Get the table for a schema, building it into ``metadata`` on first use.

    Args:
        schema: Normalized schema
        metadata: Collection the table is registered in
        field_types: Registry used to detect virtual field types
        kwargs: Dialect options passed to ``Table`` (e.g. ``mysql_engine``)

    Returns:
        The schema's Table
    """
    existing = metadata.tables.get(schema["table"])
    if existing is not None:
        return existing
    return sa.Table(schema["table"], metadata, *build_columns(schema, field_types), **kwargs)


def pivot_column_type(value: Any) -> TypeEngine:
    if value == "now":
        return sa.DateTime()
    if value == "current_date":
        return sa.Date()
    if value == "current_user" or isinstance(value, int):
        return sa.Integer()
    return sa.String(255)


def pivot_extra_columns(relationship: Mapping[str, Any]) -> Dict[str, TypeEngine]:
    """Columns a relationship writes into its pivot table through ``pivot_data``."""
    extra: Dict[str, TypeEngine] = {}
    for event in (relationship.get("actions") or {}).values():
        if not isinstance(event, dict):
            continue
        for item in event.get("attach") or []:
            if not isinstance(item, dict):
                continue
            for key, value in (item.get("pivot_data") or {}).items():
                extra.setdefault(key, pivot_column_type(value))
    return extra


def build_pivot_table(
    metadata: sa.MetaData,
    name: str,
    foreign_key: str,
    related_key: str,
    extra_columns: Optional[Mapping[str, TypeEngine]] = None,
    **kwargs: Any,
) -> sa.Table:
    existing = metadata.tables.get(name)
    if existing is not None:
        # Both sides of a relationship may declare the pivot; keep every pivot_data column
        for column_name, type_ in (extra_columns or {}).items():
            if column_name not in existing.c:
                existing.append_column(sa.Column(column_name, type_, nullable=True))
        return existing

    columns = [
        sa.Column(foreign_key, sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(related_key, sa.Integer(), primary_key=True, autoincrement=False),
    ]
    for column_name, type_ in (extra_columns or {}).items():
        if column_name not in (foreign_key, related_key):
            columns.append(sa.Column(column_name, type_, nullable=True))
    return sa.Table(
        name,
        metadata,
        *columns,
        sa.Index(f"{name}_{foreign_key}_idx", foreign_key),
        sa.Index(f"{name}_{related_key}_idx", related_key),
        **kwargs,
    )
