"""
Schema service.

Entry point of the schema pipeline: cache lookup, load, validate, apply
defaults, normalize, add default actions and cache store. Also hands out
configured ``CRUD6Model`` instances, one ``MetaData`` collection per
database connection.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine

from crud6.core.database.session import DEFAULT_CONNECTION
from crud6.core.database.utils import create_all
from crud6.core.exceptions import CRUD6Exception, SchemaNotFoundException
from crud6.core.logging_config import debug_log, get_logger
from crud6.field_types import FieldTypeRegistry, default_registry
from crud6.model import MANY_TO_MANY, CRUD6Model, ManyToMany, relationship_type

from .actions import SchemaActionManager
from .cache import SchemaCache
from .filter import SchemaFilter
from .loader import SchemaLoader
from .normalizer import SchemaNormalizer
from .translator import SchemaTranslator, Translator
from .validator import SchemaValidator

logger = get_logger(__name__)

MODEL_NAME = re.compile(r"^[a-zA-Z0-9_]+$")


def parse_model_reference(reference: str) -> Tuple[str, Optional[str]]:
    """Split ``model`` or ``model@connection`` into its parts.

    Raises:
        CRUD6Exception: If the model or connection name is not alphanumeric/underscore
    """
    model, separator, connection = reference.partition("@")
    if not MODEL_NAME.match(model):
        raise CRUD6Exception(f"Invalid model name: '{model}'.")
    if separator and not MODEL_NAME.match(connection):
        raise CRUD6Exception(f"Invalid connection name: '{connection}'.")
    return model, connection or None


class SchemaService:
    def __init__(
        self,
        schema_path: str | Path,
        cache: Optional[SchemaCache] = None,
        translator: Optional[Translator] = None,
        field_types: Optional[FieldTypeRegistry] = None,
    ) -> None:
        self.loader = SchemaLoader(schema_path)
        self.validator = SchemaValidator()
        self.normalizer = SchemaNormalizer()
        self.action_manager = SchemaActionManager(self.validator)
        self.filter = SchemaFilter()
        self.translator = translator or Translator()
        self.schema_translator = SchemaTranslator(self.translator)
        self.cache = cache or SchemaCache()
        self.field_types = field_types or default_registry()
        self._metadata: Dict[str, sa.MetaData] = {}

    async def get_schema(self, model: str, connection: Optional[str] = None) -> Dict[str, Any]:
        """Get the fully processed schema of a model.

        Args:
            model: Model name
            connection: Optional connection name (schema lookup path and database)

        Returns:
            Validated, normalized schema with default actions

        Raises:
            SchemaNotFoundException: If no schema file exists for the model
            SchemaValidationException: If the schema file is invalid
        """
        cached = await self.cache.get(model, connection)
        if cached is not None:
            return cached

        schema = self.loader.load_schema(model, connection)
        if schema is None:
            logger.warning(f"Schema not found for model '{model}' (connection: {connection or DEFAULT_CONNECTION})")
            raise SchemaNotFoundException(model)

        self.validator.validate(schema, model)
        schema = self.loader.apply_defaults(schema)
        schema = self.normalizer.normalize(schema)
        schema = self.action_manager.add_default_actions(schema)

        if connection is not None and "connection" not in schema:
            schema["connection"] = connection

        await self.cache.set(model, schema, connection)
        debug_log(
            logger,
            "Schema loaded",
            {"model": model, "connection": connection, "field_count": len(schema["fields"])},
        )
        return schema

    def filter_schema_for_context(self, schema: Dict[str, Any], context: Optional[str] = None) -> Dict[str, Any]:
        """Reduce a schema to what ``context`` needs and translate its message keys."""
        return self.schema_translator.translate(self.filter.filter_for_context(schema, context))

    def metadata_for(self, connection: Optional[str] = None) -> sa.MetaData:
        key = connection or DEFAULT_CONNECTION
        if key not in self._metadata:
            self._metadata[key] = sa.MetaData()
        return self._metadata[key]

    def get_model(self, schema: Dict[str, Any]) -> CRUD6Model:
        """Build a model configured from an already processed schema."""
        model = CRUD6Model(self.metadata_for(schema.get("connection")), self.field_types)
        return model.configure_from_schema(schema)

    async def get_model_instance(self, model: str, connection: Optional[str] = None) -> CRUD6Model:
        return self.get_model(await self.get_schema(model, connection))

    async def clear_cache(self, model: str, connection: Optional[str] = None) -> None:
        await self.cache.clear(model, connection)

    async def clear_all_cache(self) -> None:
        await self.cache.clear_all()

    def list_models(self, connection: Optional[str] = None) -> List[str]:
        """Model names with a schema file in the (connection) schema directory."""
        directory = self.loader.schema_path / connection if connection else self.loader.schema_path
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob("*.json") if MODEL_NAME.match(path.stem))

    async def create_tables(self, engine: AsyncEngine, connection: Optional[str] = None) -> List[str]:
        """Create the tables (and many_to_many pivot tables) of every schema on a connection.

        Schemas that fail to load are logged and skipped.

        Returns:
            Names of the tables known to the connection's metadata
        """
        for name in self.list_models(connection) + (self.list_models() if connection else []):
            try:
                model = await self.get_model_instance(name, connection)
            except CRUD6Exception as e:
                logger.warning(f"Skipping table creation for '{name}': {e.description}")
                continue
            for relation_name, config in model.relationships.items():
                if relationship_type(config) == MANY_TO_MANY:
                    ManyToMany(model, relation_name, config)

        metadata = self.metadata_for(connection)
        await create_all(engine, metadata)
        logger.info(f"Created {len(metadata.tables)} tables on connection '{connection or DEFAULT_CONNECTION}'")
        return list(metadata.tables)
