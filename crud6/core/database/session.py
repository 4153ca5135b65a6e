"""
Global database engine and session management.

A schema may live on the default database or on a named connection
(``model@connection`` or the schema's ``connection`` key). ``ConnectionManager``
lazily creates one AsyncEngine and async_sessionmaker per connection name.
"""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import get_logger
from crud6.core.monitoring import instrument_engine
from crud6.server.core.config import settings

from .utils import create_engine, create_sessionmaker

logger = get_logger(__name__)

DEFAULT_CONNECTION = "default"


class ConnectionManager:
    """Registry of engines and session factories keyed by connection name."""

    def __init__(self, default_url: str, connections: Optional[Dict[str, str]] = None) -> None:
        self._urls: Dict[str, str] = {DEFAULT_CONNECTION: default_url, **(connections or {})}
        self._engines: Dict[str, AsyncEngine] = {}
        self._sessionmakers: Dict[str, async_sessionmaker[AsyncSession]] = {}

    def has_connection(self, name: Optional[str]) -> bool:
        return (name or DEFAULT_CONNECTION) in self._urls

    def engine(self, name: Optional[str] = None) -> AsyncEngine:
        """Get (creating on first use) the engine for a connection.

        Args:
            name: Connection name, ``None`` for the default connection

        Returns:
            AsyncEngine bound to the connection URL

        Raises:
            CRUD6Exception: If the connection name is not configured
        """
        key = name or DEFAULT_CONNECTION
        if key not in self._urls:
            raise CRUD6Exception(f"Database connection '{key}' is not configured.")
        if key not in self._engines:
            logger.info(f"Creating database engine for connection '{key}'")
            self._engines[key] = create_engine(self._urls[key])
            instrument_engine(self._engines[key])
        return self._engines[key]

    def sessionmaker(self, name: Optional[str] = None) -> async_sessionmaker[AsyncSession]:
        key = name or DEFAULT_CONNECTION
        if key not in self._sessionmakers:
            self._sessionmakers[key] = create_sessionmaker(self.engine(key))
        return self._sessionmakers[key]

    def register(self, name: str, engine: AsyncEngine) -> None:
        """Bind an already-created engine to a connection name."""
        self._urls.setdefault(name, str(engine.url))
        self._engines[name] = engine
        self._sessionmakers[name] = create_sessionmaker(engine)

    async def dispose_all(self) -> None:
        for name, engine in self._engines.items():
            logger.debug(f"Disposing database engine for connection '{name}'")
            await engine.dispose()
        self._engines.clear()
        self._sessionmakers.clear()


connection_manager = ConnectionManager(settings.database_url, settings.connections)
