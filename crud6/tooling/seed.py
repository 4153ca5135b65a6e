"""
Seed data generation.

Produces deterministic, idempotent INSERT statements (three records per
model, ids from 2 upward, ``ON DUPLICATE KEY UPDATE``) plus pivot rows for
many_to_many relationships. Id 1 stays free for the admin record a host
application creates.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from crud6.core.logging_config import get_logger
from crud6.field_types import FieldTypeRegistry, default_registry
from crud6.model.tables import TIMESTAMP_COLUMNS, is_column_field

from .ddl import RULE, SEPARATOR
from .schemas import load_schema_files, pivot_keys

logger = get_logger(__name__)

FIRST_INDEX = 2
RECORD_COUNT = 3
PIVOT_PAIRS = ((2, 2), (3, 2), (3, 3))
PASSWORD_PLACEHOLDER = "$2y$10$test.password.hash.{index}"


class Raw(str):
    """SQL expression emitted without quoting."""


NULL = Raw("NULL")


def sql_literal(value: Any) -> str:
    if isinstance(value, Raw):
        return str(value)
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def seed_value(name: str, field: Dict[str, Any], index: int) -> Any:
    """Deterministic test value for a field of record ``index``."""
    if "default" in field:
        return field["default"]

    field_type = field.get("type", "string")
    validation = field.get("validation") or {}

    if field_type in ("integer", "int", "smartlookup"):
        return NULL if field.get("auto_increment") else index
    if field_type == "email" or validation.get("email") or "email" in name:
        return f"test{index}@example.com"
    if field_type == "password" or "password" in name:
        return PASSWORD_PLACEHOLDER.format(index=index)
    if field_type in ("string", "phone", "url", "zip"):
        if validation.get("unique"):
            return f"test_{name}_{index}"
        if "slug" in name:
            return f"test-{name.replace('_', '-')}-{index}"
        if "name" in name and "user_name" not in name:
            return f"Test {name} {index}"
        return f"Test {name}"
    if field_type == "text" or field_type.startswith("textarea"):
        return f"Test description for {name} - Record {index}"
    if field_type.startswith("boolean"):
        return 1
    if field_type == "date":
        return f"2024-01-{index:02d}"
    if field_type in ("datetime", "timestamp"):
        if name in TIMESTAMP_COLUMNS:
            return Raw("CURRENT_TIMESTAMP")
        return f"2024-01-{index:02d} 12:00:00"
    if field_type in ("decimal", "float", "currency"):
        minimum = validation.get("min") or 0
        return Raw(f"{minimum + index * 10.50:.2f}")
    if field_type in ("json", "array"):
        return "{}"
    if field.get("required"):
        return f"test_{name}"
    return NULL


class SeedGenerator:
    """Generate seed INSERT statements from a directory of schema files."""

    def __init__(
        self,
        schema_dir: str | Path,
        record_count: int = RECORD_COUNT,
        field_types: Optional[FieldTypeRegistry] = None,
    ) -> None:
        self.schema_dir = Path(schema_dir)
        self.record_count = record_count
        self.field_types = field_types or default_registry()

    def insert_fields(self, schema: Dict[str, Any]) -> List[str]:
        names: List[str] = []
        for name, field in schema["fields"].items():
            if field.get("auto_increment") or not is_column_field(field, self.field_types):
                continue
            if field.get("readonly") and not field.get("required"):
                continue
            if name in TIMESTAMP_COLUMNS and not field.get("required"):
                continue
            names.append(name)
        return names

    def model_inserts(self, schema: Dict[str, Any]) -> List[str]:
        table = schema["table"]
        lines = [f"-- Seed data for {table}", f"-- Generated from schema: {schema['model']}.json", ""]
        names = self.insert_fields(schema)
        if not names:
            lines.append(f"-- No insertable fields found for {table}")
            return lines

        columns = ", ".join(f"`{name}`" for name in names)
        updates = ", ".join(f"`{name}` = VALUES(`{name}`)" for name in names)
        for index in range(FIRST_INDEX, FIRST_INDEX + self.record_count):
            values = ", ".join(sql_literal(seed_value(name, schema["fields"][name], index)) for name in names)
            lines += [
                f"INSERT INTO `{table}` ({columns})",
                f"VALUES ({values})",
                f"ON DUPLICATE KEY UPDATE {updates};",
                "",
            ]
        return lines

    def pivot_inserts(self, schema: Dict[str, Any]) -> List[str]:
        lines: List[str] = []
        for relationship in schema.get("relationships") or []:
            if relationship.get("type") != "many_to_many" or not relationship.get("pivot_table"):
                continue
            pivot = relationship["pivot_table"]
            foreign_key, related_key = pivot_keys(schema, relationship)
            lines += [f"-- Relationship: {schema['model']} -> {relationship['name']}", f"-- Pivot table: {pivot}", ""]
            for parent_id, related_id in PIVOT_PAIRS:
                lines += [
                    f"INSERT INTO `{pivot}` (`{foreign_key}`, `{related_key}`)",
                    f"VALUES ({parent_id}, {related_id})",
                    f"ON DUPLICATE KEY UPDATE `{foreign_key}` = VALUES(`{foreign_key}`);",
                    "",
                ]
        return lines

    def generate(self) -> str:
        lines = [
            RULE,
            "-- CRUD6 Integration Test Seed Data",
            "-- Generated from JSON schemas",
            RULE,
            "--",
            "-- Test data starts from ID 2; ID 1 is reserved for the admin user and group.",
            "-- Uses INSERT...ON DUPLICATE KEY UPDATE for safe re-seeding.",
            "--",
            f"-- Generated: {datetime.now(timezone.utc).isoformat()}",
            f"-- Source: Schema files in {self.schema_dir}/",
            RULE,
            "",
            "-- Disable foreign key checks for seeding",
            "SET FOREIGN_KEY_CHECKS=0;",
            "",
        ]
        processed = 0
        for path, schema in load_schema_files(self.schema_dir):
            if not isinstance(schema.get("fields"), dict):
                logger.error(f"Schema {path.name} has no fields, skipping")
                continue
            logger.info(f"Processing: {path.name} (model: {schema['model']})")
            lines += [SEPARATOR, f"-- Model: {schema['model']}", SEPARATOR, ""]
            lines += self.model_inserts(schema)
            lines += self.pivot_inserts(schema)
            processed += 1

        lines += [
            "-- Re-enable foreign key checks",
            "SET FOREIGN_KEY_CHECKS=1;",
            "",
            RULE,
            f"-- Successfully generated {processed} model seed data sets",
            "-- Test Data Range: ID >= 2 (safe for DELETE/DISABLE operations)",
            RULE,
        ]
        logger.info(f"Processed {processed} schemas")
        return "\n".join(lines)
