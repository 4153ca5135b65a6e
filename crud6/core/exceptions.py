"""
CRUD6 exception hierarchy.

Every exception carries the HTTP status it maps to, a short title and a
user-facing description. The server exception handlers turn them into JSON
responses; everything else falls through to the global 500 handler.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CRUD6Exception(Exception):
    """Base class for user-facing CRUD6 errors."""

    status_code: int = 400
    title: str = "CRUD6.EXCEPTION"

    def __init__(self, description: str = "", *, title: Optional[str] = None) -> None:
        super().__init__(description)
        self.description = description
        if title is not None:
            self.title = title

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "description": self.description, "status": self.status_code}


class CRUD6NotFoundException(CRUD6Exception):
    """Raised when a record cannot be found in a schema-backed table."""

    status_code = 404
    title = "CRUD6.NOT_FOUND"

    def __init__(self, record_id: Any = None, table: Optional[str] = None, *, description: Optional[str] = None) -> None:
        if description is None:
            description = f"No record found with ID '{record_id}' in table '{table}'."
        super().__init__(description)
        self.record_id = record_id
        self.table = table


class SchemaNotFoundException(CRUD6Exception):
    """Raised when no schema file exists for the requested model."""

    status_code = 404
    title = "CRUD6.SCHEMA_NOT_FOUND"

    def __init__(self, model: str) -> None:
        super().__init__(f"Schema file not found for model: {model}")
        self.model = model


class SchemaValidationException(CRUD6Exception):
    """Raised when a schema file is structurally invalid."""

    status_code = 500
    title = "CRUD6.SCHEMA_INVALID"


class ForbiddenException(CRUD6Exception):
    status_code = 403
    title = "ACCESS_DENIED"

    def __init__(self, description: str = "You do not have permission to perform this action.") -> None:
        super().__init__(description)


class ValidationException(CRUD6Exception):
    """Raised when request data fails the schema's field validation rules."""

    status_code = 400
    title = "VALIDATION.ERROR"

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload
