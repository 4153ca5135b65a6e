"""
Schema generation from scanned tables.

Turns the output of ``DatabaseScanner`` into schema files: titles,
permissions, default sort, field flags and validation, and a ``detail``
section for the first table that references this one.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from crud6.core.logging_config import get_logger

logger = get_logger(__name__)

TIMESTAMP_NAMES = ("created_at", "updated_at", "deleted_at")
NAME_COLUMNS = ("name", "title", "slug", "user_name", "username")
SENSITIVE_NAMES = ("created_at", "updated_at", "password", "token", "secret")
MAX_LIST_FIELDS = 5

_PREFIX = re.compile(r"^(tbl_|test_)")

_TYPE_MAP = {
    "integer": "integer",
    "smallint": "integer",
    "bigint": "integer",
    "decimal": "decimal",
    "float": "float",
    "string": "string",
    "text": "text",
    "boolean": "boolean",
    "date": "date",
    "datetime": "datetime",
    "time": "time",
    "json": "json",
    "blob": "blob",
}


def label(column_name: str) -> str:
    return column_name.replace("_", " ").title()


def title(table_name: str) -> str:
    return label(_PREFIX.sub("", table_name)) + " Management"


def singular_title(table_name: str) -> str:
    name = label(_PREFIX.sub("", table_name))
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("es"):
        return name[:-2]
    if name.endswith("s"):
        return name[:-1]
    return name


def permissions(table_name: str) -> Dict[str, str]:
    name = _PREFIX.sub("", table_name)
    singular = name.rstrip("s")
    return {
        "read": f"uri_{name}",
        "create": f"create_{singular}",
        "update": f"update_{singular}",
        "delete": f"delete_{singular}",
    }


def default_sort(columns: Mapping[str, Any], primary_key: str) -> Dict[str, str]:
    for name in NAME_COLUMNS:
        if name in columns:
            return {name: "asc"}
    return {primary_key: "asc"}


def validation_rules(column: Mapping[str, Any]) -> Dict[str, Any]:
    name = column["name"]
    rules: Dict[str, Any] = {}
    if not column["nullable"] and name not in TIMESTAMP_NAMES and not column["autoincrement"]:
        rules["required"] = True
    if column.get("length") and column["type"] in ("string", "text"):
        rules["length"] = {"min": 1, "max": column["length"]}
    if "email" in name:
        rules["email"] = True
    if "url" in name or "link" in name:
        rules["url"] = True
    if "slug" in name:
        rules["slug"] = True
    return rules


def field_definition(column: Mapping[str, Any], primary_key: str) -> Dict[str, Any]:
    name = column["name"]
    field_type = _TYPE_MAP.get(column["type"], "string")
    is_timestamp = name in TIMESTAMP_NAMES
    system = column["autoincrement"] or name in ("created_at", "updated_at")

    field: Dict[str, Any] = {"type": field_type, "label": label(name)}
    if column["autoincrement"]:
        field["auto_increment"] = True
    if column["autoincrement"] or name == primary_key or is_timestamp:
        field["readonly"] = True
    if not column["nullable"] and not is_timestamp and not column["autoincrement"]:
        field["required"] = True

    field["sortable"] = field_type not in ("text", "blob")
    field["filterable"] = not system and field_type in ("string", "boolean", "integer")
    field["searchable"] = not system and field_type in ("string", "text")
    field["listable"] = name not in SENSITIVE_NAMES and field_type in ("string", "boolean", "integer")

    rules = validation_rules(column)
    if rules:
        field["validation"] = rules
    return field


def listable_fields(schema: Mapping[str, Any], max_fields: int = MAX_LIST_FIELDS) -> List[str]:
    """Listable field names of a schema, at most ``max_fields``, ``id`` first when present."""
    names = [name for name, field in (schema.get("fields") or {}).items() if field.get("listable") is True]
    if len(names) <= max_fields:
        return names
    if "id" in names:
        return ["id"] + [name for name in names if name != "id"][: max_fields - 1]
    return names[:max_fields]


class SchemaGenerator:
    """Write schema files for scanned tables.

    Example:
        generator = SchemaGenerator("schema/crud6")
        files = generator.generate_schemas(tables, relationships)
    """

    def __init__(self, schema_directory: str | Path) -> None:
        self.schema_directory = Path(schema_directory)

    @staticmethod
    def detail_relationship(
        table_name: str, relationships: Mapping[str, Mapping[str, List[Dict[str, Any]]]]
    ) -> Optional[Dict[str, Any]]:
        """Detail section for the first table whose references point at ``table_name``."""
        for other, info in relationships.items():
            for reference in info.get("references") or []:
                if reference["table"] == table_name:
                    return {
                        "model": other,
                        "foreign_key": reference["local_key"],
                        "list_fields": ["id", "name", "title", "email", "status"],
                        "title": f"{table_name.upper()}.{other.upper()}",
                    }
        return None

    def generate_schema(
        self,
        table: Mapping[str, Any],
        relationships: Optional[Mapping[str, Mapping[str, List[Dict[str, Any]]]]] = None,
    ) -> Dict[str, Any]:
        name = table["name"]
        primary_key = (table.get("primary_key") or ["id"])[0]
        schema: Dict[str, Any] = {
            "model": name,
            "title": title(name),
            "singular_title": singular_title(name),
            "description": f"Manage {name}",
            "table": name,
            "permissions": permissions(name),
            "default_sort": default_sort(table["columns"], primary_key),
        }
        if primary_key != "id":
            schema["primary_key"] = primary_key

        detail = self.detail_relationship(name, relationships or {})
        if detail is not None:
            schema["detail"] = detail

        schema["fields"] = {
            column_name: field_definition(column, primary_key) for column_name, column in table["columns"].items()
        }
        return schema

    def generate_schemas(
        self,
        tables: Mapping[str, Mapping[str, Any]],
        relationships: Optional[Mapping[str, Mapping[str, List[Dict[str, Any]]]]] = None,
    ) -> List[Path]:
        """Generate and write one schema file per table.

        Detail ``list_fields`` are resolved from the generated schema of the
        referencing table once every schema exists.

        Returns:
            Paths of the written files
        """
        schemas = {name: self.generate_schema(table, relationships) for name, table in tables.items()}
        for schema in schemas.values():
            detail = schema.get("detail")
            if detail and detail["model"] in schemas:
                detail["list_fields"] = listable_fields(schemas[detail["model"]])
        return [self.save_schema(name, schema) for name, schema in schemas.items()]

    def save_schema(self, table_name: str, schema: Mapping[str, Any]) -> Path:
        self.schema_directory.mkdir(parents=True, exist_ok=True)
        path = self.schema_directory / f"{table_name}.json"
        path.write_text(json.dumps(schema, indent=4) + "\n", encoding="utf-8")
        logger.info(f"Schema written: {path}")
        return path
