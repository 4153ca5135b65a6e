"""
Schema file loading.

Schemas are JSON files named after their model. A schema requested for a
named connection is looked up in ``{schema_path}/{connection}/`` first and
falls back to ``{schema_path}/``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from crud6.core.exceptions import SchemaValidationException
from crud6.core.logging_config import get_logger

logger = get_logger(__name__)


class SchemaLoader:
    """Reads raw schema dictionaries from the schema directory."""

    def __init__(self, schema_path: str | Path) -> None:
        self.schema_path = Path(schema_path)

    def get_schema_file_path(self, model: str, connection: Optional[str] = None) -> Path:
        if connection is not None:
            return self.schema_path / connection / f"{model}.json"
        return self.schema_path / f"{model}.json"

    def load_schema(self, model: str, connection: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Load the raw schema for a model.

        Args:
            model: Model name
            connection: Optional connection name to search first

        Returns:
            Parsed schema dictionary, or None when no file exists

        Raises:
            SchemaValidationException: If the file is not a JSON object
        """
        candidates = []
        if connection is not None:
            candidates.append(self.get_schema_file_path(model, connection))
        candidates.append(self.get_schema_file_path(model))

        for path in candidates:
            if not path.is_file():
                continue
            logger.debug(f"Loading schema for model '{model}' from {path}")
            return self._read(path, model)
        return None

    @staticmethod
    def _read(path: Path, model: str) -> Dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise SchemaValidationException(f"Schema for model '{model}' is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SchemaValidationException(f"Schema for model '{model}' must be a JSON object")
        return data

    @staticmethod
    def apply_defaults(schema: Dict[str, Any]) -> Dict[str, Any]:
        schema.setdefault("primary_key", "id")
        schema.setdefault("timestamps", True)
        schema.setdefault("soft_delete", False)
        return schema
