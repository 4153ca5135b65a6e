"""
DDL generation.

Builds the same SQLAlchemy ``Table`` objects the API serves from and compiles
them to ``CREATE TABLE`` statements for a target dialect, so generated
databases match the runtime models column for column.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.schema import CreateIndex, CreateTable

from crud6.core.logging_config import get_logger
from crud6.field_types import FieldTypeRegistry, default_registry
from crud6.model.tables import build_pivot_table, build_table, is_column_field, pivot_extra_columns

from .schemas import load_schema_files, pivot_keys

logger = get_logger(__name__)

DIALECTS = {
    "mysql": mysql.dialect,
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
}
MAX_INDEXES = 5
RULE = "-- " + "=" * 63
SEPARATOR = "-- " + "-" * 60

_MYSQL_TABLE_OPTIONS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_unicode_ci",
}


def get_dialect(name: str) -> Dialect:
    try:
        return DIALECTS[name]()
    except KeyError:
        raise ValueError(f"Unsupported dialect '{name}', expected one of: {', '.join(DIALECTS)}") from None


class DDLGenerator:
    """Generate CREATE TABLE statements from a directory of schema files.

    Example:
        sql = DDLGenerator("schema/crud6", dialect="sqlite").generate()
    """

    def __init__(
        self, schema_dir: str | Path, dialect: str = "mysql", field_types: Optional[FieldTypeRegistry] = None
    ) -> None:
        self.schema_dir = Path(schema_dir)
        self.dialect_name = dialect
        self.dialect = get_dialect(dialect)
        self.field_types = field_types or default_registry()
        self.metadata = sa.MetaData()
        self.tables: Set[str] = set()
        self.pivot_tables: Set[str] = set()

    @property
    def _table_options(self) -> Dict[str, Any]:
        return _MYSQL_TABLE_OPTIONS if self.dialect_name == "mysql" else {}

    def index_columns(self, schema: Dict[str, Any]) -> List[str]:
        """Columns worth an index: filterable or sortable, not the key, not unique, not TEXT/JSON."""
        primary_key = schema.get("primary_key", "id")
        columns: List[str] = []
        for name, field in schema["fields"].items():
            if not is_column_field(field, self.field_types):
                continue
            if name == primary_key or field.get("auto_increment"):
                continue
            if not (field.get("filterable") or field.get("sortable")):
                continue
            if field.get("type") in ("text", "json", "array") or str(field.get("type", "")).startswith("textarea"):
                continue
            columns.append(name)
        return [
            name for name in columns[:MAX_INDEXES] if not (schema["fields"][name].get("validation") or {}).get("unique")
        ]

    def build_schema_table(self, schema: Dict[str, Any]) -> sa.Table:
        table = build_table(schema, self.metadata, self.field_types, **self._table_options)
        for column in self.index_columns(schema):
            sa.Index(f"{table.name}_{column}_idx", table.c[column])
        return table

    def build_pivot_tables(self, schema: Dict[str, Any]) -> List[sa.Table]:
        pivots: List[sa.Table] = []
        for relationship in schema.get("relationships") or []:
            if relationship.get("type") != "many_to_many" or not relationship.get("pivot_table"):
                continue
            name = relationship["pivot_table"]
            if name in self.tables:
                continue
            foreign_key, related_key = pivot_keys(schema, relationship)
            pivot = build_pivot_table(
                self.metadata,
                name,
                foreign_key,
                related_key,
                pivot_extra_columns(relationship),
                **self._table_options,
            )
            if name not in self.pivot_tables:
                pivots.append(pivot)
                self.pivot_tables.add(name)
        return pivots

    def compile_table(self, table: sa.Table) -> str:
        statements = [str(CreateTable(table, if_not_exists=True).compile(dialect=self.dialect)).strip() + ";"]
        # MySQL has no CREATE INDEX IF NOT EXISTS
        if_not_exists = self.dialect_name != "mysql"
        for index in sorted(table.indexes, key=lambda i: i.name or ""):
            statements.append(
                str(CreateIndex(index, if_not_exists=if_not_exists).compile(dialect=self.dialect)).strip() + ";"
            )
        return "\n".join(statements)

    def header(self) -> List[str]:
        lines = [
            RULE,
            "-- CRUD6 DDL - CREATE TABLE Statements",
            "-- Generated from JSON schemas",
            RULE,
            "--",
            "-- This file creates all tables needed by the CRUD6 schemas.",
            "-- Run this BEFORE loading seed data (crud6 seed).",
            "--",
            f"-- Dialect: {self.dialect_name}",
            f"-- Generated: {datetime.now(timezone.utc).isoformat()}",
            f"-- Source: Schema files in {self.schema_dir}/",
            RULE,
            "",
        ]
        if self.dialect_name == "mysql":
            lines += ["-- Disable foreign key checks during table creation", "SET FOREIGN_KEY_CHECKS=0;", ""]
        return lines

    def footer(self, schema_count: int) -> List[str]:
        lines: List[str] = []
        if self.dialect_name == "mysql":
            lines += ["-- Re-enable foreign key checks", "SET FOREIGN_KEY_CHECKS=1;", ""]
        lines += [
            RULE,
            f"-- Successfully generated {len(self.tables)} table definitions",
            f"-- and {len(self.pivot_tables)} pivot tables",
            f"-- from {schema_count} schema files",
            RULE,
        ]
        return lines

    def generate(self) -> str:
        """Generate the DDL script for every schema in the directory.

        A table shared by several schemas is emitted once; so is a pivot
        table shared by both sides of a relationship. Computed and virtual
        fields get no column.
        """
        built = []
        for path, schema in load_schema_files(self.schema_dir):
            if not isinstance(schema.get("fields"), dict):
                logger.error(f"Schema {path.name} has no fields, skipping")
                continue
            table_name = schema["table"]
            if table_name in self.tables:
                logger.info(f"Skipping duplicate table: {table_name} (from {path.name})")
                continue

            logger.info(f"Processing: {path.name} (table: {table_name})")
            self.tables.add(table_name)
            built.append((path, schema, self.build_schema_table(schema), self.build_pivot_tables(schema)))

        # Compiled only once every schema had the chance to add pivot_data columns
        lines = self.header()
        for path, schema, table, pivots in built:
            lines += [SEPARATOR, f"-- Table: {table.name}", f"-- Schema: {path.name}", SEPARATOR, ""]
            lines += [self.compile_table(table), ""]
            for pivot in pivots:
                lines += [f"-- Pivot table: {pivot.name} (from {schema['model']})", self.compile_table(pivot), ""]
        processed = len(built)

        lines += self.footer(processed)
        logger.info(
            f"Processed {processed} schemas, generated {len(self.tables)} tables and {len(self.pivot_tables)} pivot tables"
        )
        return "\n".join(lines)

