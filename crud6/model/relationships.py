"""
Schema relationship queries and pivot maintenance.

Supported ``relationships`` entries:

- ``many_to_many``: ``pivot_table``, ``foreign_key`` (parent side) and
  ``related_key`` (related side)
- ``belongs_to_many_through``: two pivot tables chained through an
  intermediate ``through`` model (e.g. users -> roles -> permissions)

``details`` entries are plain one-to-many links via ``foreign_key``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import debug_log, get_logger

from .crud6_model import CRUD6Model
from .tables import build_pivot_table, pivot_extra_columns

logger = get_logger(__name__)

MANY_TO_MANY = "many_to_many"
BELONGS_TO_MANY_THROUGH = "belongs_to_many_through"

_THROUGH_KEYS = (
    "first_pivot_table",
    "first_foreign_key",
    "first_related_key",
    "second_pivot_table",
    "second_foreign_key",
    "second_related_key",
)


def relationship_type(config: Mapping[str, Any]) -> str:
    if config.get("type") == BELONGS_TO_MANY_THROUGH or "through" in config:
        return BELONGS_TO_MANY_THROUGH
    return config.get("type", MANY_TO_MANY)


def has_many_query(related: CRUD6Model, foreign_key: str, parent_id: Any) -> sa.Select:
    """Children of ``parent_id`` in ``related`` linked through ``foreign_key``."""
    if not related.has_column(foreign_key):
        raise CRUD6Exception(f"Column '{foreign_key}' does not exist in table '{related.table_name}'.")
    return related.select().where(related.column(foreign_key) == parent_id)


class ManyToMany:
    """A ``many_to_many`` relationship of one parent model."""

    def __init__(self, parent: CRUD6Model, name: str, config: Mapping[str, Any]) -> None:
        for key in ("pivot_table", "foreign_key", "related_key"):
            if not config.get(key):
                raise CRUD6Exception(f"Relationship '{name}' is missing '{key}'.")
        self.parent = parent
        self.name = name
        self.config = config
        self.foreign_key: str = config["foreign_key"]
        self.related_key: str = config["related_key"]
        self.pivot = build_pivot_table(
            parent.metadata,
            config["pivot_table"],
            self.foreign_key,
            self.related_key,
            pivot_extra_columns(config),
        )

    def query(self, related: CRUD6Model, parent_id: Any) -> sa.Select:
        """Related rows joined through the pivot table."""
        join = related.table.join(self.pivot, self.pivot.c[self.related_key] == related.pk)
        query = sa.select(related.table).select_from(join).where(self.pivot.c[self.foreign_key] == parent_id)
        return related.where_active(query)

    async def related_ids(self, session: AsyncSession, parent_id: Any) -> List[Any]:
        result = await session.execute(
            sa.select(self.pivot.c[self.related_key]).where(self.pivot.c[self.foreign_key] == parent_id)
        )
        return list(result.scalars().all())

    async def attach(
        self,
        session: AsyncSession,
        parent_id: Any,
        ids: Iterable[Any],
        pivot_data: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Insert pivot rows, ignoring pairs that already exist.

        Returns:
            Number of rows inserted
        """
        existing = set(await self.related_ids(session, parent_id))
        extra = {key: value for key, value in (pivot_data or {}).items() if key in self.pivot.c}
        rows = []
        for related_id in dict.fromkeys(ids):
            if related_id in existing:
                continue
            rows.append({self.foreign_key: parent_id, self.related_key: related_id, **extra})

        if rows:
            await session.execute(sa.insert(self.pivot), rows)
        debug_log(
            logger,
            "Relationship attached",
            {"relationship": self.name, "parent_id": parent_id, "inserted": len(rows)},
        )
        return len(rows)

    async def detach(self, session: AsyncSession, parent_id: Any, ids: Optional[Iterable[Any]] = None) -> int:
        """Delete pivot rows for ``ids``, or every row of the parent when ``ids`` is None."""
        statement = sa.delete(self.pivot).where(self.pivot.c[self.foreign_key] == parent_id)
        if ids is not None:
            statement = statement.where(self.pivot.c[self.related_key].in_(list(ids)))
        result = await session.execute(statement)
        debug_log(
            logger,
            "Relationship detached",
            {"relationship": self.name, "parent_id": parent_id, "deleted": result.rowcount},
        )
        return result.rowcount

    async def sync(self, session: AsyncSession, parent_id: Any, ids: Iterable[Any]) -> Dict[str, List[Any]]:
        """Make the related set equal to ``ids``."""
        wanted = list(dict.fromkeys(ids))
        current = await self.related_ids(session, parent_id)
        detached = [related_id for related_id in current if related_id not in wanted]
        attached = [related_id for related_id in wanted if related_id not in current]
        if detached:
            await self.detach(session, parent_id, detached)
        if attached:
            await self.attach(session, parent_id, attached)
        return {"attached": attached, "detached": detached}


class BelongsToManyThrough:
    """Related rows reached through two pivot tables and an intermediate model."""

    def __init__(self, name: str, config: Mapping[str, Any], through: Optional[CRUD6Model]) -> None:
        if through is None:
            raise CRUD6Exception(
                f"belongs_to_many_through relationship '{name}' requires a configured through model "
                f"('{config.get('through')}')."
            )
        for key in _THROUGH_KEYS:
            if not config.get(key):
                raise CRUD6Exception(f"Relationship '{name}' is missing '{key}'.")
        self.name = name
        self.config = config
        self.through = through
        self.first_pivot = build_pivot_table(
            through.metadata, config["first_pivot_table"], config["first_foreign_key"], config["first_related_key"]
        )
        self.second_pivot = build_pivot_table(
            through.metadata, config["second_pivot_table"], config["second_foreign_key"], config["second_related_key"]
        )

    def query(self, related: CRUD6Model, parent_id: Any) -> sa.Select:
        config = self.config
        first, second = self.first_pivot, self.second_pivot
        join = (
            related.table.join(second, second.c[config["second_related_key"]] == related.pk)
            .join(self.through.table, self.through.pk == second.c[config["second_foreign_key"]])
            .join(first, first.c[config["first_related_key"]] == self.through.pk)
        )
        query = (
            sa.select(related.table)
            .select_from(join)
            .where(first.c[config["first_foreign_key"]] == parent_id)
            .distinct()
        )
        return related.where_active(query)
