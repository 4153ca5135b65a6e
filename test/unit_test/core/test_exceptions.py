"""Unit tests for the CRUD6 exception hierarchy."""

import pytest

from crud6.core.exceptions import (
    CRUD6Exception,
    CRUD6NotFoundException,
    ForbiddenException,
    SchemaNotFoundException,
    SchemaValidationException,
    ValidationException,
)


class TestStatusCodes:
    @pytest.mark.parametrize(
        "exc,status",
        [
            (CRUD6Exception("bad"), 400),
            (CRUD6NotFoundException(5, "users"), 404),
            (SchemaNotFoundException("users"), 404),
            (SchemaValidationException("broken"), 500),
            (ForbiddenException(), 403),
            (ValidationException(["Name is required"]), 400),
        ],
    )
    def test_status_code(self, exc, status):
        assert exc.status_code == status
        assert exc.to_dict()["status"] == status


class TestMessages:
    def test_not_found_default_description(self):
        exc = CRUD6NotFoundException(42, "products")

        assert exc.description == "No record found with ID '42' in table 'products'."
        assert exc.record_id == 42
        assert exc.table == "products"

    def test_not_found_custom_description(self):
        exc = CRUD6NotFoundException(description="Action 'x' is not defined")

        assert exc.description == "Action 'x' is not defined"

    def test_schema_not_found_names_model(self):
        exc = SchemaNotFoundException("widgets")

        assert "widgets" in exc.description
        assert exc.title == "CRUD6.SCHEMA_NOT_FOUND"

    def test_title_override(self):
        exc = CRUD6Exception("oops", title="CUSTOM.TITLE")

        assert exc.to_dict() == {"title": "CUSTOM.TITLE", "description": "oops", "status": 400}

    def test_validation_exception_lists_errors(self):
        exc = ValidationException(["Name is required", "Email must be a valid email address"])

        payload = exc.to_dict()
        assert payload["errors"] == ["Name is required", "Email must be a valid email address"]
        assert payload["description"] == "Name is required; Email must be a valid email address"
