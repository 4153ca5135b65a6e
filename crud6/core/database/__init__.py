"""
Database layer for CRUD6.

Structure:
- entities/: Fixed SQLModel entities (persistent schema cache)
- session.py: Engine and session factory registry per connection
- utils.py: Database utility functions (engine, session factory, create_all)

Schema-driven tables are built at runtime by ``crud6.model``.
"""

from .base import Base
from .session import DEFAULT_CONNECTION, ConnectionManager, connection_manager
from .utils import (
    as_utc,
    create_all,
    create_engine,
    create_sessionmaker,
    naive_utc_now,
    normalize_url,
    utc_now,
)

__all__ = [
    "Base",
    "ConnectionManager",
    "DEFAULT_CONNECTION",
    "connection_manager",
    "as_utc",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "naive_utc_now",
    "normalize_url",
    "utc_now",
]
