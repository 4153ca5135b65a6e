"""Raw schema file access for the generators."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from crud6.core.logging_config import get_logger

logger = get_logger(__name__)


def iter_schema_files(schema_dir: str | Path) -> Iterator[Path]:
    """Yield the ``*.json`` files of a directory in name order.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(schema_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Schema directory not found: {directory}")
    yield from sorted(directory.glob("*.json"))


def load_schema_files(schema_dir: str | Path) -> List[Tuple[Path, Dict[str, Any]]]:
    """Load every schema file of a directory.

    Files that are not valid JSON objects are logged and skipped.
    """
    schemas: List[Tuple[Path, Dict[str, Any]]] = []
    for path in iter_schema_files(schema_dir):
        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read schema {path.name}: {e}")
            continue
        if not isinstance(schema, dict):
            logger.error(f"Schema {path.name} is not a JSON object, skipping")
            continue
        schema.setdefault("model", path.stem)
        schema.setdefault("table", schema["model"])
        schemas.append((path, schema))
    logger.info(f"Loaded {len(schemas)} schema files from {schema_dir}")
    return schemas


def singularize(name: str) -> str:
    """Naive English singular: ``categories`` -> ``category``, ``users`` -> ``user``, ``address`` unchanged."""
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def pivot_keys(schema: Dict[str, Any], relationship: Dict[str, Any]) -> Tuple[str, str]:
    """Foreign and related key columns of a many_to_many pivot table."""
    foreign_key = relationship.get("foreign_key") or f"{singularize(schema['model'])}_id"
    related_key = relationship.get("related_key") or f"{singularize(relationship['name'])}_id"
    return foreign_key, related_key
