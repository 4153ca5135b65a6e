"""
Base database models and utilities.

This module provides the foundational SQLModel base used by the fixed
(non-schema-driven) entities of the service.
"""

from __future__ import annotations

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)
