"""
Field type handler interface.

A field type handler converts values between the API representation and the
stored representation of one schema field ``type``. Handlers are registered
with ``FieldTypeRegistry``; unregistered types fall back to the registry's
default conversions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class FieldType(ABC):
    """Base class for custom field type handlers.

    Only ``type`` is mandatory; the other hooks default to pass-through
    behaviour, a ``str`` Python type, no extra validation and a real column.

    Example:
        class PhoneFieldType(FieldType):
            type = "phone"

            def validation_rules(self):
                return {"regex": {"pattern": r"^\\d{3}-\\d{3}-\\d{4}$"}}
    """

    @property
    @abstractmethod
    def type(self) -> str:
        """Schema ``type`` value handled by this class."""

    def transform(self, value: Any) -> Any:
        """Convert an incoming API value to its stored form."""
        return value

    def cast(self, value: Any) -> Any:
        """Convert a stored value to its API form."""
        return value

    @property
    def python_type(self) -> str:
        return "str"

    def validation_rules(self) -> Dict[str, Any]:
        return {}

    @property
    def is_virtual(self) -> bool:
        """Virtual types are UI-only and have no database column."""
        return False
