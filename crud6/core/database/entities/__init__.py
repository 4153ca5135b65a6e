from .schema_cache import SchemaCacheEntry

__all__ = ["SchemaCacheEntry"]
