"""
CRUD6: JSON-schema-driven CRUD scaffolding.

One JSON schema file describes one model and its table. The package loads and
normalizes those schemas, builds dynamic SQLAlchemy tables from them, serves
a generic REST API over them and generates SQL and integration test paths
from the same files.
"""

__version__ = "0.1.0"
