"""
Database introspection.

``DatabaseScanner`` reads tables, columns, indexes, foreign keys and primary
keys through the SQLAlchemy inspector and detects relationships between
tables: explicit ones from foreign keys, and optionally implicit ones from
``*_id`` / ``*Id`` column names confirmed by sampling the data.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from crud6.core.logging_config import debug_log, get_logger

logger = get_logger(__name__)

NAMING_PATTERNS = (re.compile(r"^(.+)_id$", re.IGNORECASE), re.compile(r"^(.+)Id$"))
TABLE_PREFIXES = ("tbl_", "test_")
CONFIDENCE_THRESHOLD = 0.8
INTEGER_TYPES = ("integer", "smallint", "bigint")

_SINGULAR_EXCEPTIONS = {"data", "info", "series", "species", "status", "syllabus", "campus", "genus"}


def type_name(type_: Any) -> str:
    """Generic name of an inspected column type (``integer``, ``string``, ``datetime``...)."""
    if isinstance(type_, sa.Boolean):
        return "boolean"
    if isinstance(type_, sa.BigInteger):
        return "bigint"
    if isinstance(type_, sa.SmallInteger):
        return "smallint"
    if isinstance(type_, sa.Integer):
        return "integer"
    if isinstance(type_, sa.Float):
        return "float"
    if isinstance(type_, sa.Numeric):
        return "decimal"
    if isinstance(type_, sa.Text):
        return "text"
    if isinstance(type_, sa.String):
        return "string"
    if isinstance(type_, sa.DateTime):
        return "datetime"
    if isinstance(type_, sa.Date):
        return "date"
    if isinstance(type_, sa.Time):
        return "time"
    if isinstance(type_, sa.JSON):
        return "json"
    if isinstance(type_, sa.LargeBinary):
        return "blob"
    return "string"


def singular_forms(name: str) -> List[str]:
    """Candidate singular forms of a (plural) table name."""
    if name in _SINGULAR_EXCEPTIONS:
        return [name]
    if name.endswith("ies"):
        return [name[:-3] + "y"]
    if re.search(r"(ss|sh|ch|x)es$", name):
        return [name[:-2]]
    if name.endswith("ves"):
        return [name[:-3] + "f", name[:-3] + "fe"]
    if name.endswith("oes"):
        return [name[:-2]]
    if name.endswith("ses") and name not in ("analyses", "bases", "cases"):
        return [name[:-2], name[:-1]]
    if name.endswith("us"):
        return [name]
    if name.endswith("s"):
        return [name[:-1]]
    return [name]


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head[:1].lower() + head[1:] + "".join(part[:1].upper() + part[1:] for part in rest)


class DatabaseScanner:
    """Introspect a live database.

    Example:
        scanner = DatabaseScanner(engine)
        tables = await scanner.scan_database()
        relationships = await scanner.detect_relationships(tables, include_implicit=True)
    """

    def __init__(
        self,
        engine: AsyncEngine,
        naming_patterns: Sequence[Pattern[str]] = NAMING_PATTERNS,
        table_prefixes: Sequence[str] = TABLE_PREFIXES,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
    ) -> None:
        self.engine = engine
        self.naming_patterns = list(naming_patterns)
        self.table_prefixes = list(table_prefixes)
        self.confidence_threshold = max(0.0, min(1.0, confidence_threshold))

    async def get_tables(self) -> List[str]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: sa.inspect(sync_conn).get_table_names())

    async def get_table_info(self, table_name: str) -> Dict[str, Any]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(self._inspect_table, table_name)

    @staticmethod
    def _inspect_table(sync_conn: sa.Connection, table_name: str) -> Dict[str, Any]:
        inspector = sa.inspect(sync_conn)
        primary_key: List[str] = inspector.get_pk_constraint(table_name).get("constrained_columns") or []

        columns: Dict[str, Dict[str, Any]] = {}
        for column in inspector.get_columns(table_name):
            kind = type_name(column["type"])
            autoincrement = column.get("autoincrement")
            if autoincrement in (None, "auto"):
                # Single integer primary keys auto-increment unless the dialect says otherwise
                autoincrement = primary_key == [column["name"]] and kind in INTEGER_TYPES
            columns[column["name"]] = {
                "name": column["name"],
                "type": kind,
                "length": getattr(column["type"], "length", None),
                "nullable": bool(column.get("nullable", True)),
                "default": column.get("default"),
                "autoincrement": bool(autoincrement),
                "comment": column.get("comment"),
            }
        indexes = {
            index["name"]: {
                "name": index["name"],
                "columns": index["column_names"],
                "unique": bool(index.get("unique")),
                "primary": False,
            }
            for index in inspector.get_indexes(table_name)
        }
        foreign_keys = {
            (fk.get("name") or f"{table_name}_{'_'.join(fk['constrained_columns'])}_fk"): {
                "name": fk.get("name"),
                "local_columns": fk["constrained_columns"],
                "foreign_table": fk["referred_table"],
                "foreign_columns": fk["referred_columns"],
                "on_update": (fk.get("options") or {}).get("onupdate"),
                "on_delete": (fk.get("options") or {}).get("ondelete"),
            }
            for fk in inspector.get_foreign_keys(table_name)
        }
        return {
            "name": table_name,
            "columns": columns,
            "indexes": indexes,
            "foreign_keys": foreign_keys,
            "primary_key": primary_key,
        }

    async def scan_database(self, table_filter: Optional[Iterable[str]] = None) -> Dict[str, Dict[str, Any]]:
        """Inspect every table, or only those named in ``table_filter``."""
        tables = await self.get_tables()
        wanted = set(table_filter or ())
        if wanted:
            tables = [table for table in tables if table in wanted]
        result = {table: await self.get_table_info(table) for table in tables}
        logger.info(f"Scanned {len(result)} tables")
        return result

    async def detect_relationships(
        self, tables: Dict[str, Dict[str, Any]], include_implicit: bool = False, sample_size: int = 100
    ) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        """Tables each table references, keyed by table name.

        Returns:
            ``{table: {"references": [{table, local_key, foreign_key, type[, confidence]}]}}``
        """
        relationships: Dict[str, Dict[str, List[Dict[str, Any]]]] = {name: {"references": []} for name in tables}
        for name, info in tables.items():
            for fk in info["foreign_keys"].values():
                relationships[name]["references"].append(
                    {
                        "table": fk["foreign_table"],
                        "local_key": fk["local_columns"][0] if fk["local_columns"] else None,
                        "foreign_key": fk["foreign_columns"][0] if fk["foreign_columns"] else None,
                        "type": "explicit",
                    }
                )

        if include_implicit:
            implicit = await self.detect_implicit_relationships(tables, sample_size)
            for name, references in implicit.items():
                relationships[name]["references"].extend(references)
        return relationships

    async def detect_implicit_relationships(
        self, tables: Dict[str, Dict[str, Any]], sample_size: int = 100
    ) -> Dict[str, List[Dict[str, Any]]]:
        lookup = self.build_table_lookup(tables)
        found: Dict[str, List[Dict[str, Any]]] = {name: [] for name in tables}
        for name, info in tables.items():
            explicit = {column for fk in info["foreign_keys"].values() for column in fk["local_columns"]}
            for column_name, column in info["columns"].items():
                if column_name in info["primary_key"] or column_name in explicit:
                    continue
                target = self.identify_potential_foreign_key(column_name, column, lookup)
                if target is None:
                    continue

                valid, confidence = True, 1.0
                if sample_size > 0:
                    valid, confidence = await self.validate_with_sampling(
                        name, column_name, target["table"], target["foreign_key"], sample_size
                    )
                debug_log(
                    logger,
                    "Implicit relationship candidate",
                    {"table": name, "column": column_name, "target": target["table"], "confidence": confidence},
                )
                if valid:
                    found[name].append(
                        {
                            "table": target["table"],
                            "local_key": column_name,
                            "foreign_key": target["foreign_key"],
                            "type": "implicit",
                            "confidence": confidence,
                        }
                    )
        return found

    def detect_table_prefixes(self, table_names: Iterable[str]) -> List[str]:
        """Prefixes shared by at least two tables, plus the configured ones, longest first."""
        counts: Dict[str, int] = {}
        for table_name in table_names:
            parts = table_name.split("_")
            prefix = ""
            for part in parts[: min(3, len(parts) - 1)]:
                prefix += part + "_"
                if len(prefix) >= 3:
                    counts[prefix] = counts.get(prefix, 0) + 1
        prefixes = {prefix for prefix, count in counts.items() if count >= 2} | set(self.table_prefixes)
        return sorted(prefixes, key=len, reverse=True)

    def table_name_variations(self, table_name: str, prefixes: Sequence[str]) -> List[str]:
        clean = table_name
        for prefix in prefixes:
            if table_name.startswith(prefix):
                clean = table_name[len(prefix) :]
                break

        variations = [table_name]
        if clean != table_name:
            variations.append(clean)
        for singular in singular_forms(clean):
            variations.append(singular)
            variations.extend(prefix + singular for prefix in prefixes if table_name.startswith(prefix))
        variations.extend([camel_case(variation) for variation in variations])
        return list(dict.fromkeys(variations))

    def build_table_lookup(self, tables: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        prefixes = self.detect_table_prefixes(tables)
        return {
            name: {
                "table": name,
                "primary_key": (info["primary_key"] or ["id"])[0],
                "variations": self.table_name_variations(name, prefixes),
            }
            for name, info in tables.items()
        }

    def identify_potential_foreign_key(
        self, column_name: str, column: Dict[str, Any], lookup: Dict[str, Dict[str, Any]]
    ) -> Optional[Dict[str, str]]:
        if column["type"] not in INTEGER_TYPES:
            return None
        for pattern in self.naming_patterns:
            match = pattern.match(column_name)
            if not match:
                continue
            for entry in lookup.values():
                if match.group(1) in entry["variations"]:
                    return {"table": entry["table"], "foreign_key": entry["primary_key"]}
        return None

    async def validate_with_sampling(
        self, table: str, column: str, foreign_table: str, foreign_key: str, sample_size: int
    ) -> tuple[bool, float]:
        """Share of sampled values of ``table.column`` present in ``foreign_table.foreign_key``.

        No data means valid with confidence 0.5; a failing query means invalid.
        """
        source = sa.table(table, sa.column(column))
        target = sa.table(foreign_table, sa.column(foreign_key))
        try:
            async with self.engine.connect() as conn:
                sample_query = (
                    sa.select(source.c[column]).where(source.c[column].is_not(None)).distinct().limit(sample_size)
                )
                values = list((await conn.execute(sample_query)).scalars())
                if not values:
                    return True, 0.5
                match_query = sa.select(sa.func.count(sa.distinct(target.c[foreign_key]))).where(
                    target.c[foreign_key].in_(values)
                )
                matches = (await conn.execute(match_query)).scalar_one()
        except SQLAlchemyError as e:
            logger.warning(f"Sampling {table}.{column} -> {foreign_table}.{foreign_key} failed: {e}")
            return False, 0.0

        confidence = matches / len(values)
        return confidence >= self.confidence_threshold, confidence
