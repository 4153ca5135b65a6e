"""Unit tests for schema file loading and structural validation."""

import json

import pytest

from crud6.core.exceptions import SchemaValidationException
from crud6.schema import SchemaLoader, SchemaValidator


@pytest.fixture
def schema_root(tmp_path):
    (tmp_path / "widgets.json").write_text(
        json.dumps({"model": "widgets", "table": "widgets", "fields": {"name": {"type": "string"}}})
    )
    (tmp_path / "analytics").mkdir()
    (tmp_path / "analytics" / "widgets.json").write_text(
        json.dumps({"model": "widgets", "table": "widget_stats", "fields": {"hits": {"type": "integer"}}})
    )
    return tmp_path


class TestSchemaLoader:
    def test_loads_default_schema(self, schema_root):
        schema = SchemaLoader(schema_root).load_schema("widgets")

        assert schema["table"] == "widgets"

    def test_connection_schema_takes_precedence(self, schema_root):
        schema = SchemaLoader(schema_root).load_schema("widgets", "analytics")

        assert schema["table"] == "widget_stats"

    def test_falls_back_to_default_path_for_connection(self, schema_root):
        schema = SchemaLoader(schema_root).load_schema("widgets", "reporting")

        assert schema["table"] == "widgets"

    def test_missing_schema_returns_none(self, schema_root):
        assert SchemaLoader(schema_root).load_schema("gadgets") is None

    def test_invalid_json_raises(self, schema_root):
        (schema_root / "broken.json").write_text("{not json")

        with pytest.raises(SchemaValidationException, match="not valid JSON"):
            SchemaLoader(schema_root).load_schema("broken")

    def test_non_object_raises(self, schema_root):
        (schema_root / "listing.json").write_text("[1, 2]")

        with pytest.raises(SchemaValidationException, match="JSON object"):
            SchemaLoader(schema_root).load_schema("listing")

    def test_apply_defaults_keeps_explicit_values(self):
        schema = SchemaLoader.apply_defaults({"primary_key": "uuid", "soft_delete": True})

        assert schema == {"primary_key": "uuid", "soft_delete": True, "timestamps": True}


class TestSchemaValidator:
    def test_valid_schema_passes(self):
        SchemaValidator().validate({"model": "widgets", "table": "widgets", "fields": {"id": {}}}, "widgets")

    @pytest.mark.parametrize("missing", ["model", "table", "fields"])
    def test_missing_required_key(self, missing):
        schema = {"model": "widgets", "table": "widgets", "fields": {"id": {}}}
        del schema[missing]

        with pytest.raises(SchemaValidationException, match=f"missing required field: {missing}"):
            SchemaValidator().validate(schema, "widgets")

    def test_model_name_mismatch(self):
        with pytest.raises(SchemaValidationException, match="does not match"):
            SchemaValidator().validate({"model": "gadgets", "table": "gadgets", "fields": {"id": {}}}, "widgets")

    def test_empty_fields_rejected(self):
        with pytest.raises(SchemaValidationException, match="non-empty"):
            SchemaValidator().validate({"model": "widgets", "table": "widgets", "fields": {}}, "widgets")

    def test_has_permission(self):
        schema = {"permissions": {"read": "uri_widgets", "delete": ""}}

        assert SchemaValidator.has_permission(schema, "read")
        assert not SchemaValidator.has_permission(schema, "delete")
        assert not SchemaValidator.has_permission({}, "create")
