"""
Pluggable field type handlers.

``default_registry()`` returns a registry with the built-in custom types
(currently ``currency``) registered.
"""

from .base import FieldType
from .registry import BOOLEAN_TYPES, PASSWORD_MAX_BYTES, TEXTAREA_PATTERN, FieldTypeRegistry
from .types import CurrencyFieldType


def default_registry() -> FieldTypeRegistry:
    registry = FieldTypeRegistry()
    registry.register(CurrencyFieldType())
    return registry


__all__ = [
    "BOOLEAN_TYPES",
    "CurrencyFieldType",
    "FieldType",
    "FieldTypeRegistry",
    "PASSWORD_MAX_BYTES",
    "TEXTAREA_PATTERN",
    "default_registry",
]
