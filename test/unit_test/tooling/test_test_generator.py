"""Unit tests for schema test module generation."""

import ast

from crud6.tooling import SchemaTestGenerator
from crud6.tooling.test_generator import analyze_features, class_name

SCHEMA = {
    "model": "product_categories",
    "table": "product_categories",
    "permissions": {"read": "uri_categories", "delete": "delete_category"},
    "default_sort": {"name": "asc"},
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "name": {"type": "string", "validation": {"required": True}},
        "launch_date": {"type": "date"},
    },
    "relationships": [{"name": "products", "type": "many_to_many"}, {"type": "belongs_to"}],
    "actions": [{"key": "archive", "type": "field_update"}, {"label": "no key"}],
    "detail": {"model": "products", "foreign_key": "category_id"},
}


def test_class_name():
    assert class_name("product_categories") == "TestProductCategoriesSchema"
    assert class_name("users") == "TestUsersSchema"


class TestAnalyzeFeatures:
    def test_collects_checked_parts(self):
        features = analyze_features(SCHEMA)

        assert features["fields"] == ["id", "name", "launch_date"]
        assert features["field_types"] == ["date", "integer", "string"]
        assert features["validated"] == ["name"]
        assert features["readonly"] == ["id"]
        assert features["relationships"] == ["products"]
        assert features["actions"] == ["archive"]
        assert features["details"] == ["products"]

    def test_empty_schema(self):
        features = analyze_features({"model": "notes"})

        assert features["fields"] == []
        assert features["permissions"] == {}
        assert features["default_sort"] is None


class TestRender:
    def test_module_is_valid_python(self):
        source = SchemaTestGenerator("unused").render(SCHEMA)

        tree = ast.parse(source)
        (test_class,) = [node for node in tree.body if isinstance(node, ast.ClassDef)]
        assert test_class.name == "TestProductCategoriesSchema"
        assert [node.name for node in test_class.body] == [
            "test_schema_loads",
            "test_all_fields_present",
            "test_validated_fields",
            "test_relationships",
            "test_actions",
            "test_permissions",
            "test_default_sort",
            "test_details",
        ]

    def test_embeds_schema_values(self):
        source = SchemaTestGenerator("unused", api_prefix="/crud").render(SCHEMA, "product_categories.json")

        assert 'SCHEMA_URL = "/crud/product_categories/schema"' in source
        assert "Source: product_categories.json" in source
        assert "{'read': 'uri_categories', 'delete': 'delete_category'}" in source
        assert "{'name': 'asc'}" in source

    def test_minimal_schema_only_checks_loading(self):
        source = SchemaTestGenerator("unused").render({"model": "notes", "fields": {"body": {"type": "text"}}})

        assert "test_schema_loads" in source
        assert "test_all_fields_present" in source
        assert "test_permissions" not in source
        assert "test_relationships" not in source


class TestWrite:
    def test_one_module_per_schema(self, schema_dir, tmp_path):
        written = SchemaTestGenerator(schema_dir).write(tmp_path / "generated")

        names = sorted(path.name for path in written)
        assert names == sorted(f"test_{path.stem}_schema.py" for path in schema_dir.glob("*.json"))
        users = (tmp_path / "generated" / "test_users_schema.py").read_text()
        assert "class TestUsersSchema:" in users
        assert "'toggle_enabled'" in users
        assert "{'user_name': 'asc'}" in users
        for path in written:
            ast.parse(path.read_text())
