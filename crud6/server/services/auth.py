"""
Access control.

The service does not authenticate users itself. ``get_current_user`` is a
FastAPI dependency a host application overrides
(``app.dependency_overrides[get_current_user] = ...``) to supply its own
user; the default is an anonymous master user that may do everything.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from crud6.core.exceptions import ForbiddenException
from crud6.core.logging_config import get_logger

logger = get_logger(__name__)


class CurrentUser(BaseModel):
    """Authenticated user as seen by CRUD6 access checks."""

    id: Optional[int] = Field(default=None, description="User identifier, used for the current_user pivot value.")
    user_name: str = Field(default="anonymous")
    is_master: bool = Field(default=False, description="Master users pass every permission check.")
    permissions: FrozenSet[str] = Field(default_factory=frozenset, description="Granted permission slugs.")

    def can(self, permission: str) -> bool:
        return self.is_master or permission in self.permissions


async def get_current_user() -> CurrentUser:
    return CurrentUser(is_master=True)


def permission_for(schema: Dict[str, Any], operation: str) -> str:
    """Permission slug guarding ``operation`` on a schema's model."""
    permissions = schema.get("permissions") or {}
    return permissions.get(operation) or f"crud6.{schema['model']}.{operation}"


def authorize(user: CurrentUser, schema: Dict[str, Any], operation: str, permission: Optional[Any] = None) -> None:
    """Check access to an operation.

    Args:
        user: Current user
        schema: Target schema
        operation: One of read/create/update/delete
        permission: Explicit permission slug overriding the schema lookup

    Raises:
        ForbiddenException: If the user lacks the permission
    """
    slug = permission or permission_for(schema, operation)
    if not user.can(slug):
        logger.warning(f"Access denied: user '{user.user_name}' lacks '{slug}' for {operation} on {schema['model']}")
        raise ForbiddenException()
