"""
Dynamic, schema-configured models.

Structure:
- tables.py: Column type mapping and Table/pivot Table construction
- crud6_model.py: CRUD6Model, the generic model configured from a schema
- relationships.py: many_to_many, belongs_to_many_through and details queries
"""

from .crud6_model import CRUD6Model, parse_date, parse_datetime
from .relationships import (
    BELONGS_TO_MANY_THROUGH,
    MANY_TO_MANY,
    BelongsToManyThrough,
    ManyToMany,
    has_many_query,
    relationship_type,
)
from .tables import JSONText, build_pivot_table, build_table, column_type, pivot_extra_columns

__all__ = [
    "BELONGS_TO_MANY_THROUGH",
    "BelongsToManyThrough",
    "CRUD6Model",
    "JSONText",
    "MANY_TO_MANY",
    "ManyToMany",
    "build_pivot_table",
    "build_table",
    "column_type",
    "has_many_query",
    "parse_date",
    "parse_datetime",
    "pivot_extra_columns",
    "relationship_type",
]
