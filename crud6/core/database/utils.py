"""
Database utility functions for engine and session management.

This module provides the core utility functions for creating database engines
and session factories. Built with async SQLAlchemy so schema-backed tables can be
served from the same event loop as the API.

Functions:
- normalize_url: Rewrites database URLs to their async driver variants
- create_engine: Creates async SQLAlchemy engine with URL normalization
- create_sessionmaker: Creates async session factory with safe defaults
- create_all: Creates all tables of a MetaData collection (for tests/dev)
- utc_now / naive_utc_now: Current UTC time for aware and plain DATETIME columns
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def normalize_url(db_url: str) -> str:
    """Rewrite a database URL so that an async driver is used.

    ``postgres://`` and ``postgresql[+driver]://`` become ``postgresql+asyncpg://``
    and a bare ``sqlite://`` becomes ``sqlite+aiosqlite://``.

    Args:
        db_url: Database connection URL

    Returns:
        URL using an async driver
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    return re.sub(r"^sqlite://", "sqlite+aiosqlite://", url, count=1)


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        db_url: Database connection URL

    Returns:
        Configured AsyncEngine instance
    """
    url = normalize_url(db_url)
    if url.startswith("sqlite"):
        return create_async_engine(url, connect_args={"check_same_thread": False})
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Configured async session factory
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine, metadata: MetaData) -> None:
    """Create all tables of ``metadata``.

    This is mainly intended for tests and local development.
    Production databases are expected to be created from the generated DDL.

    Args:
        engine: Async SQLAlchemy engine
        metadata: Table collection to create
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


def utc_now() -> datetime:
    """Get current UTC datetime, timezone-aware.

    Returns:
        Current UTC datetime with ``tzinfo=timezone.utc``
    """
    return datetime.now(timezone.utc)


def naive_utc_now() -> datetime:
    """Get current UTC datetime without timezone info.

    Schema-backed tables use plain ``DATETIME`` columns, which hold UTC
    wall-clock values.

    Returns:
        Current UTC datetime without timezone info
    """
    return utc_now().replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read back from a database without timezone support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
