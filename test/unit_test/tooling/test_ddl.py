"""Unit tests for CREATE TABLE generation."""

import json

import pytest

from crud6.tooling import DDLGenerator
from crud6.tooling.ddl import MAX_INDEXES, get_dialect


class TestGenerate:
    def test_sqlite_script(self, schema_dir):
        sql = DDLGenerator(schema_dir, dialect="sqlite").generate()

        assert "-- Dialect: sqlite" in sql
        assert "CREATE TABLE IF NOT EXISTS users (" in sql
        assert "CREATE TABLE IF NOT EXISTS products (" in sql
        assert "FOREIGN_KEY_CHECKS" not in sql
        assert "-- Successfully generated 6 table definitions" in sql
        assert "-- and 2 pivot tables" in sql

    def test_shared_pivot_emitted_once_with_pivot_data(self, schema_dir):
        sql = DDLGenerator(schema_dir, dialect="sqlite").generate()

        assert sql.count("CREATE TABLE IF NOT EXISTS role_users (") == 1
        assert sql.count("CREATE TABLE IF NOT EXISTS permission_roles (") == 1
        role_users = sql.split("CREATE TABLE IF NOT EXISTS role_users (")[1].split(";")[0]
        assert "created_at DATETIME" in role_users
        assert "PRIMARY KEY (role_id, user_id)" in role_users or "PRIMARY KEY (user_id, role_id)" in role_users

    def test_virtual_fields_have_no_column(self, schema_dir):
        sql = DDLGenerator(schema_dir, dialect="sqlite").generate()

        users = sql.split("CREATE TABLE IF NOT EXISTS users (")[1].split(";")[0]
        assert "role_ids" not in users
        assert "flag_enabled BOOLEAN" in users

    def test_mysql_options(self, schema_dir):
        sql = DDLGenerator(schema_dir, dialect="mysql").generate()

        assert sql.index("SET FOREIGN_KEY_CHECKS=0;") < sql.index("SET FOREIGN_KEY_CHECKS=1;")
        assert "ENGINE=InnoDB" in sql
        assert "CHARSET=utf8mb4" in sql
        assert "CREATE INDEX IF NOT EXISTS" not in sql

    def test_duplicate_tables_skipped(self, tmp_path):
        schema = {"model": "a", "table": "things", "fields": {"id": {"type": "integer"}, "name": {"type": "string"}}}
        (tmp_path / "a.json").write_text(json.dumps(schema))
        (tmp_path / "b.json").write_text(json.dumps({**schema, "model": "b"}))
        (tmp_path / "broken.json").write_text("{not json")

        generator = DDLGenerator(tmp_path, dialect="postgresql")
        sql = generator.generate()

        assert sql.count("CREATE TABLE IF NOT EXISTS things") == 1
        assert generator.tables == {"things"}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DDLGenerator(tmp_path / "missing", dialect="sqlite").generate()


class TestIndexes:
    def test_index_columns(self):
        schema = {
            "fields": {
                "id": {"type": "integer", "auto_increment": True, "sortable": True},
                "email": {"type": "email", "sortable": True, "validation": {"unique": True}},
                "name": {"type": "string", "filterable": True},
                "bio": {"type": "text", "filterable": True},
                "notes": {"type": "string"},
                "role_ids": {"type": "multiselect", "computed": True, "filterable": True},
            }
        }

        generator = DDLGenerator("unused", dialect="sqlite")

        assert generator.index_columns(schema) == ["name"]

    def test_index_limit(self):
        fields = {f"col{i}": {"type": "string", "sortable": True} for i in range(MAX_INDEXES + 3)}

        columns = DDLGenerator("unused", dialect="sqlite").index_columns({"fields": fields})

        assert len(columns) == MAX_INDEXES

    def test_indexes_compiled(self, schema_dir):
        sql = DDLGenerator(schema_dir, dialect="sqlite").generate()

        assert "CREATE INDEX IF NOT EXISTS products_name_idx ON products (name);" in sql


def test_unknown_dialect():
    with pytest.raises(ValueError, match="Unsupported dialect"):
        get_dialect("oracle")
