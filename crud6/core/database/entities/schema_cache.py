"""
Persistent schema cache entity.

Backs the second tier of the schema cache so that processed schemas survive
process restarts and are shared between workers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime
from sqlmodel import JSON, Field

from ..base import Base
from ..utils import as_utc, utc_now


class SchemaCacheEntry(Base, table=True):
    """Entity for a cached, fully processed schema.

    Table: crud6_schema_cache

    Timestamps are timezone-aware UTC. SQLite returns them without an offset,
    so comparisons go through ``as_utc``.
    """

    __tablename__ = "crud6_schema_cache"

    key: str = Field(primary_key=True, max_length=255)
    payload: Dict[str, Any] = Field(sa_type=JSON)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True), index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def is_expired(self, now: datetime) -> bool:
        return as_utc(self.expires_at) <= as_utc(now)

    def __repr__(self) -> str:
        return f"SchemaCacheEntry(key={self.key}, expires_at={self.expires_at})"
