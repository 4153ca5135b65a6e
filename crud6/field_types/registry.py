"""
Field type registry.

Central lookup for field type handlers. Registered handlers win; otherwise the
registry applies the built-in conversions for the standard schema types.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from crud6.core.logging_config import get_logger

from .base import FieldType

logger = get_logger(__name__)

TEXTAREA_PATTERN = re.compile(r"^(?:text|textarea)(?:-r\d+)?(?:c\d+)?$")

BOOLEAN_TYPES = ("boolean", "bool", "boolean-yn", "boolean-toggle", "boolean-tgl", "boolean-chk", "boolean-sel")

DEFAULT_PYTHON_TYPES: Dict[str, str] = {
    "string": "str",
    "integer": "int",
    "int": "int",
    "float": "float",
    "decimal": "float",
    "boolean": "bool",
    "bool": "bool",
    "boolean-yn": "bool",
    "boolean-toggle": "bool",
    "boolean-tgl": "bool",
    "array": "list",
    "json": "dict",
    "date": "date",
    "datetime": "datetime",
    "timestamp": "datetime",
    "email": "str",
    "url": "str",
    "phone": "str",
    "zip": "str",
    "text": "str",
    "textarea": "str",
    "password": "str",
    "smartlookup": "int",
    "multiselect": "list",
    "address": "str",
}

VIRTUAL_TYPES = ("multiselect", "computed")

# bcrypt only hashes the first 72 bytes and rejects longer input
PASSWORD_MAX_BYTES = 72


class FieldTypeRegistry:
    """Registry of field type handlers.

    Example:
        registry = FieldTypeRegistry()
        registry.register(CurrencyFieldType())
        registry.transform("currency", 99.99)  # 9999
        registry.cast("currency", 9999)  # 99.99
    """

    def __init__(self) -> None:
        self._types: Dict[str, FieldType] = {}

    def register(self, handler: FieldType) -> None:
        logger.debug(f"Registering field type handler '{handler.type}'")
        self._types[handler.type] = handler

    def has(self, field_type: str) -> bool:
        return field_type in self._types

    def get(self, field_type: str) -> Optional[FieldType]:
        return self._types.get(field_type)

    def transform(self, field_type: str, value: Any) -> Any:
        """Transform a value for database storage.

        Args:
            field_type: Schema field type
            value: Incoming value

        Returns:
            Value in its stored representation
        """
        if field_type in self._types:
            return self._types[field_type].transform(value)
        if TEXTAREA_PATTERN.match(field_type):
            return "" if value is None else str(value)
        return self._default_transform(field_type, value)

    def cast(self, field_type: str, value: Any) -> Any:
        """Cast a stored value for API output."""
        if field_type in self._types:
            return self._types[field_type].cast(value)
        if field_type in ("json", "array") and isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        if field_type in BOOLEAN_TYPES and value is not None:
            return bool(value)
        return value

    def get_python_type(self, field_type: str) -> str:
        if field_type in self._types:
            return self._types[field_type].python_type
        if TEXTAREA_PATTERN.match(field_type):
            return "str"
        return DEFAULT_PYTHON_TYPES.get(field_type, "str")

    def get_validation_rules(self, field_type: str) -> Dict[str, Any]:
        if field_type in self._types:
            return self._types[field_type].validation_rules()
        if field_type == "email":
            return {"email": True}
        if field_type == "url":
            return {"url": True}
        if field_type in ("integer", "int", "smartlookup"):
            return {"integer": True}
        if field_type in ("float", "decimal"):
            return {"numeric": True}
        if field_type == "date":
            return {"date": True}
        if field_type in ("datetime", "timestamp"):
            return {"datetime": True}
        if field_type == "password":
            return {"max_bytes": PASSWORD_MAX_BYTES}
        return {}

    def is_virtual(self, field_type: str) -> bool:
        if field_type in self._types:
            return self._types[field_type].is_virtual
        return field_type in VIRTUAL_TYPES

    def registered_types(self) -> List[str]:
        return list(self._types)

    def all_types(self) -> List[str]:
        return list(dict.fromkeys([*self._types, *DEFAULT_PYTHON_TYPES]))

    @staticmethod
    def _default_transform(field_type: str, value: Any) -> Any:
        if field_type in ("integer", "int"):
            return int(value)
        if field_type in ("float", "decimal"):
            return float(value)
        if field_type in BOOLEAN_TYPES:
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on", "y")
            return bool(value)
        if field_type in ("json", "array"):
            if isinstance(value, str):
                # Already-encoded JSON is stored as-is to avoid double encoding
                try:
                    json.loads(value)
                    return value
                except ValueError:
                    return json.dumps(value)
            return json.dumps(value)
        if field_type in ("date", "datetime", "timestamp"):
            return value
        if field_type == "smartlookup":
            return int(value) if value not in (None, "") else None
        return "" if value is None else str(value)
