"""
Two-tier schema cache.

Processed schemas are kept in a per-process dictionary. When a session
factory is given, they are also stored in the ``crud6_schema_cache`` table
with a time-to-live, so that other workers and restarted processes can skip
the load/normalize pipeline.

Failures of the persistent tier are logged and never break a request.
"""

from __future__ import annotations

import copy
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crud6.core.database.entities import SchemaCacheEntry
from crud6.core.database.utils import utc_now
from crud6.core.logging_config import debug_log, get_logger

logger = get_logger(__name__)

CACHE_PREFIX = "crud6_schema_"


def cache_key(model: str, connection: Optional[str] = None) -> str:
    return f"{model}:{connection or 'default'}"


class SchemaCache:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        ttl: int = 3600,
    ) -> None:
        self.session_factory = session_factory
        self.ttl = ttl
        self._memory: Dict[str, Dict[str, Any]] = {}

    @property
    def persistent(self) -> bool:
        return self.session_factory is not None

    async def get(self, model: str, connection: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Return a copy of the cached schema, or None on a miss."""
        key = cache_key(model, connection)
        if key in self._memory:
            debug_log(logger, "Using in-memory cached schema", {"model": model, "cache_key": key})
            return copy.deepcopy(self._memory[key])

        if not self.persistent:
            return None

        try:
            async with self.session_factory() as session:
                entry = await session.get(SchemaCacheEntry, CACHE_PREFIX + key)
                if entry is None:
                    return None
                if entry.is_expired(utc_now()):
                    await session.delete(entry)
                    await session.commit()
                    return None
                payload = entry.payload
        except SQLAlchemyError as e:
            logger.warning(f"Persistent schema cache lookup failed for '{key}': {e}")
            return None

        debug_log(logger, "Using persistent cached schema", {"model": model, "cache_key": key})
        self._memory[key] = payload
        return copy.deepcopy(payload)

    async def set(self, model: str, schema: Dict[str, Any], connection: Optional[str] = None) -> None:
        key = cache_key(model, connection)
        self._memory[key] = copy.deepcopy(schema)
        if not self.persistent:
            return

        now = utc_now()
        try:
            async with self.session_factory() as session:
                await session.merge(
                    SchemaCacheEntry(
                        key=CACHE_PREFIX + key,
                        payload=schema,
                        expires_at=now + timedelta(seconds=self.ttl),
                        created_at=now,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to store schema '{key}' in persistent cache: {e}")

    async def clear(self, model: str, connection: Optional[str] = None) -> None:
        key = cache_key(model, connection)
        self._memory.pop(key, None)
        debug_log(logger, "Schema cache cleared", {"model": model, "cache_key": key})
        if not self.persistent:
            return

        try:
            async with self.session_factory() as session:
                await session.execute(delete(SchemaCacheEntry).where(SchemaCacheEntry.key == CACHE_PREFIX + key))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to clear persistent cache entry '{key}': {e}")

    async def clear_all(self) -> None:
        self._memory.clear()
        if not self.persistent:
            return

        try:
            async with self.session_factory() as session:
                await session.execute(delete(SchemaCacheEntry).where(SchemaCacheEntry.key.startswith(CACHE_PREFIX)))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to clear persistent schema cache: {e}")
        logger.info("Schema cache cleared")
