"""Structural validation of loaded schemas."""

from __future__ import annotations

from typing import Any, Dict

from crud6.core.exceptions import SchemaValidationException

REQUIRED_KEYS = ("model", "table", "fields")


class SchemaValidator:
    def validate(self, schema: Dict[str, Any], model: str) -> None:
        """Check that a schema can back the requested model.

        Raises:
            SchemaValidationException: On a missing required key, a model name
                mismatch or an empty ``fields`` object
        """
        for key in REQUIRED_KEYS:
            if key not in schema or schema[key] is None:
                raise SchemaValidationException(f"Schema for model '{model}' is missing required field: {key}")

        if schema["model"] != model:
            raise SchemaValidationException(
                f"Schema model name '{schema['model']}' does not match requested model '{model}'"
            )

        if not isinstance(schema["fields"], dict) or not schema["fields"]:
            raise SchemaValidationException(f"Schema for model '{model}' must have a non-empty 'fields' array")

    @staticmethod
    def has_permission(schema: Dict[str, Any], operation: str) -> bool:
        return bool((schema.get("permissions") or {}).get(operation))
