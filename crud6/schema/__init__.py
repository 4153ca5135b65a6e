"""
JSON schema pipeline.

Structure:
- loader.py: Reads schema files (connection-specific path first)
- validator.py: Required keys and permission checks
- normalizer.py: Canonical field attributes
- actions.py: Default and toggle actions
- filter.py: Context-specific schema views
- translator.py: Message catalogs and schema translation
- cache.py: In-memory and persistent schema cache
- service.py: The pipeline entry point
"""

from .actions import SchemaActionManager
from .cache import CACHE_PREFIX, SchemaCache, cache_key
from .filter import KNOWN_CONTEXTS, SchemaFilter
from .loader import SchemaLoader
from .normalizer import SchemaNormalizer
from .service import MODEL_NAME, SchemaService, parse_model_reference
from .translator import SchemaTranslator, Translator
from .validator import SchemaValidator

__all__ = [
    "CACHE_PREFIX",
    "KNOWN_CONTEXTS",
    "MODEL_NAME",
    "SchemaActionManager",
    "SchemaCache",
    "SchemaFilter",
    "SchemaLoader",
    "SchemaNormalizer",
    "SchemaService",
    "SchemaTranslator",
    "SchemaValidator",
    "Translator",
    "cache_key",
    "parse_model_reference",
]
