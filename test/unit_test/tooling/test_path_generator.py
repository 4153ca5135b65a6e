"""Unit tests for integration test path generation."""

from crud6.tooling import TestPathGenerator
from crud6.tooling.test_paths import DEFAULT_TEMPLATES, PASSWORD_HASH, TEST_ID, field_value, fill


class TestFieldValue:
    def test_values(self):
        assert field_value("flag_verified", {"type": "boolean", "default": False}) is False
        assert field_value("group_id", {"type": "integer"}) == 1
        assert field_value("email", {"type": "email"}) == f"test{TEST_ID}@example.com"
        assert field_value("name", {"type": "string"}) == f"Name{TEST_ID}"
        assert field_value("password", {"type": "password"}) == PASSWORD_HASH
        assert field_value("is_active", {"type": "boolean-tgl"}) is True
        assert field_value("launch_date", {"type": "date"}) is None

    def test_unique_string_respects_max_length(self):
        field = {"type": "string", "validation": {"unique": True, "length": {"max": 8}}}

        assert field_value("code", field) == "test_cod"


def test_fill_substitutes_string_values():
    config = fill(DEFAULT_TEMPLATES["single"], {"api_prefix": "/api/crud6", "model": "groups", "singular": "group", "test_id": 5})

    assert config["path"] == "/api/crud6/groups/5"
    assert config["description"] == "Get single group by ID via CRUD6 API"
    assert DEFAULT_TEMPLATES["single"]["path"] == "{api_prefix}/{model}/{test_id}"


class TestPathGeneration:
    def test_user_paths(self, schema_dir):
        paths = TestPathGenerator(schema_dir).generate()["paths"]["authenticated"]["api"]

        for key in ("schema", "list", "create", "single", "update", "delete"):
            assert f"users_{key}" in paths
        assert paths["users_list"]["path"] == "/api/crud6/users"
        assert paths["users_create"]["requires_permission"] == "create_user"
        assert "users_update_field_user_name" in paths
        assert "users_update_field_email" in paths
        assert "users_update_field_first_name" not in paths
        assert paths["users_custom_action_toggle_enabled"]["path"] == f"/api/crud6/users/{TEST_ID}/a/toggle_enabled"
        assert paths["users_relationship_attach_roles"]["payload"] == {"ids": [TEST_ID, TEST_ID + 1]}
        assert paths["users_relationship_detach_roles"]["method"] == "DELETE"
        assert "users_nested_relationship_permissions" in paths
        assert "users_relationship_attach_permissions" not in paths

    def test_payloads(self, schema_dir):
        paths = TestPathGenerator(schema_dir).generate()["paths"]["authenticated"]["api"]

        create = paths["users_create"]["payload"]
        assert create["user_name"] == f"test_user_name_{TEST_ID}"
        assert create["email"] == f"test{TEST_ID}@example.com"
        assert create["password"] == PASSWORD_HASH
        assert create["flag_verified"] is False
        assert "id" not in create
        assert "role_ids" not in create
        assert list(paths["users_update"]["payload"]) == ["user_name", "first_name"]
        assert paths["users_update_field_user_name"]["payload"] == {"user_name": f"test_user_name_{TEST_ID}"}

    def test_unauthenticated_paths_expect_rejection(self, schema_dir):
        generated = TestPathGenerator(schema_dir).generate()
        authenticated = generated["paths"]["authenticated"]["api"]
        unauthenticated = generated["paths"]["unauthenticated"]["api"]

        assert set(unauthenticated) == set(authenticated)
        rejected = unauthenticated["products_create"]
        assert rejected["expected_status"] == 401
        assert rejected["acceptable_statuses"] == [401, 403]
        assert rejected["description"].endswith("(unauthenticated)")
        assert rejected["payload"] == authenticated["products_create"]["payload"]

    def test_config_section(self, schema_dir):
        generated = TestPathGenerator(schema_dir, base_url="http://crud6.test").generate()

        assert generated["config"]["base_url"] == "http://crud6.test"
        assert generated["config"]["api_patterns"]["schema_api"] == "/api/crud6/{model}/schema"

    def test_custom_templates(self, schema_dir):
        templates = {**DEFAULT_TEMPLATES, "list": {**DEFAULT_TEMPLATES["list"], "expected_status": 204}}

        paths = TestPathGenerator(schema_dir, templates=templates).generate()["paths"]["authenticated"]["api"]

        assert paths["groups_list"]["expected_status"] == 204
