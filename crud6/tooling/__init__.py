"""
Schema-driven tooling.

Structure:
- schemas.py: Reading raw schema files from a directory
- ddl.py: CREATE TABLE statements per SQL dialect
- seed.py: Idempotent INSERT statements with deterministic test data
- test_paths.py: Integration test path configuration for the REST API
- scanner.py: Live database introspection and relationship detection
- schema_generator.py: Schema files generated from scanned tables
- test_generator.py: Pytest modules checking each served schema
- cli.py: The ``crud6`` command line entry point
"""

from .ddl import DDLGenerator
from .scanner import DatabaseScanner
from .schema_generator import SchemaGenerator
from .schemas import iter_schema_files, load_schema_files, singularize
from .seed import SeedGenerator
from .test_generator import SchemaTestGenerator
from .test_paths import TestPathGenerator

__all__ = [
    "DDLGenerator",
    "DatabaseScanner",
    "SchemaGenerator",
    "SchemaTestGenerator",
    "SeedGenerator",
    "TestPathGenerator",
    "iter_schema_files",
    "load_schema_files",
    "singularize",
]
