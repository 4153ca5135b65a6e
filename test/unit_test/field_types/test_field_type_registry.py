"""Unit tests for field type handlers and the registry."""

import pytest

from crud6.field_types import CurrencyFieldType, FieldType, FieldTypeRegistry, default_registry


class PhoneFieldType(FieldType):
    type = "phone"

    def transform(self, value):
        return "".join(ch for ch in str(value) if ch.isdigit())

    def validation_rules(self):
        return {"regex": {"pattern": r"^\d{10}$"}}


class TagsFieldType(FieldType):
    type = "tags"

    @property
    def is_virtual(self):
        return True


class TestCurrencyFieldType:
    @pytest.mark.parametrize(
        "value,cents",
        [(19.99, 1999), ("19.99", 1999), ("$1,234.50", 123450), ("5", 500), ("0.999", 99), ("-2.5", -250), (None, 0), ("", 0)],
    )
    def test_transform_to_cents(self, value, cents):
        assert CurrencyFieldType().transform(value) == cents

    def test_cast_to_units(self):
        assert CurrencyFieldType().cast(1999) == 19.99
        assert CurrencyFieldType().cast(None) == 0.0

    def test_metadata(self):
        handler = CurrencyFieldType()

        assert handler.python_type == "int"
        assert handler.validation_rules() == {"numeric": True}
        assert handler.is_virtual is False


class TestRegistry:
    def test_default_registry_has_currency(self):
        registry = default_registry()

        assert registry.has("currency")
        assert registry.transform("currency", "10.00") == 1000
        assert registry.cast("currency", 1000) == 10.0

    def test_custom_handler_wins(self):
        registry = FieldTypeRegistry()
        registry.register(PhoneFieldType())

        assert registry.transform("phone", "(555) 123-4567") == "5551234567"
        assert registry.get_validation_rules("phone") == {"regex": {"pattern": r"^\d{10}$"}}
        assert registry.get("phone").type == "phone"
        assert registry.registered_types() == ["phone"]

    def test_virtual_types(self):
        registry = FieldTypeRegistry()
        registry.register(TagsFieldType())

        assert registry.is_virtual("tags")
        assert registry.is_virtual("multiselect")
        assert registry.is_virtual("computed")
        assert not registry.is_virtual("string")

    @pytest.mark.parametrize(
        "field_type,value,expected",
        [
            ("integer", "42", 42),
            ("decimal", "2.5", 2.5),
            ("boolean", "yes", True),
            ("boolean-tgl", "0", False),
            ("bool", 1, True),
            ("json", {"a": 1}, '{"a": 1}'),
            ("json", '{"a": 1}', '{"a": 1}'),
            ("array", "not json", '"not json"'),
            ("smartlookup", "7", 7),
            ("smartlookup", "", None),
            ("date", "2024-01-02", "2024-01-02"),
            ("textarea-r5c60", None, ""),
            ("string", 12, "12"),
            ("string", None, ""),
        ],
    )
    def test_default_transform(self, field_type, value, expected):
        assert FieldTypeRegistry().transform(field_type, value) == expected

    def test_default_cast(self):
        registry = FieldTypeRegistry()

        assert registry.cast("json", '{"a": 1}') == {"a": 1}
        assert registry.cast("json", "not json") == "not json"
        assert registry.cast("boolean", 0) is False
        assert registry.cast("string", "x") == "x"

    @pytest.mark.parametrize(
        "field_type,rules",
        [
            ("email", {"email": True}),
            ("url", {"url": True}),
            ("int", {"integer": True}),
            ("smartlookup", {"integer": True}),
            ("float", {"numeric": True}),
            ("date", {"date": True}),
            ("timestamp", {"datetime": True}),
            ("password", {"max_bytes": 72}),
            ("string", {}),
        ],
    )
    def test_validation_rules(self, field_type, rules):
        assert FieldTypeRegistry().get_validation_rules(field_type) == rules

    def test_python_types(self):
        registry = default_registry()

        assert registry.get_python_type("currency") == "int"
        assert registry.get_python_type("text-r3") == "str"
        assert registry.get_python_type("multiselect") == "list"
        assert registry.get_python_type("mystery") == "str"
        assert "currency" in registry.all_types()
        assert "string" in registry.all_types()
