"""Unit tests for the schema service pipeline."""

import json

import pytest
import sqlalchemy as sa

from crud6.core.exceptions import CRUD6Exception, SchemaNotFoundException, SchemaValidationException
from crud6.model import CRUD6Model
from crud6.schema import SchemaCache, SchemaService, parse_model_reference


class TestParseModelReference:
    @pytest.mark.parametrize(
        "reference,expected",
        [("users", ("users", None)), ("users@analytics", ("users", "analytics")), ("user_roles", ("user_roles", None))],
    )
    def test_valid(self, reference, expected):
        assert parse_model_reference(reference) == expected

    @pytest.mark.parametrize("reference", ["users;drop", "../users", "users@bad-conn", ""])
    def test_invalid(self, reference):
        with pytest.raises(CRUD6Exception):
            parse_model_reference(reference)


@pytest.mark.asyncio
class TestGetSchema:
    async def test_full_pipeline(self, schema_service):
        schema = await schema_service.get_schema("users")

        assert schema["primary_key"] == "id"
        assert schema["timestamps"] is True
        assert schema["soft_delete"] is False
        # Normalized boolean type and default actions
        assert schema["fields"]["flag_verified"]["type"] == "boolean"
        assert [a["key"] for a in schema["actions"]][:3] == ["create_action", "edit_action", "delete_action"]
        toggle = next(a for a in schema["actions"] if a["key"] == "toggle_enabled")
        assert toggle["confirm"] == "CRUD6.TOGGLE_CONFIRM"

    async def test_cached_after_first_load(self, schema_dir):
        cache = SchemaCache()
        service = SchemaService(schema_dir, cache=cache)

        await service.get_schema("groups")

        assert await cache.get("groups") is not None

    async def test_cache_hit_skips_loader(self, schema_dir):
        cache = SchemaCache()
        await cache.set("ghosts", {"model": "ghosts", "table": "ghosts", "fields": {"id": {}}})

        schema = await SchemaService(schema_dir, cache=cache).get_schema("ghosts")

        assert schema["table"] == "ghosts"

    async def test_missing_schema(self, schema_service):
        with pytest.raises(SchemaNotFoundException):
            await schema_service.get_schema("ghosts")

    async def test_invalid_schema(self, tmp_path):
        (tmp_path / "broken.json").write_text(json.dumps({"model": "broken", "fields": {"id": {}}}))

        with pytest.raises(SchemaValidationException, match="table"):
            await SchemaService(tmp_path).get_schema("broken")

    async def test_connection_recorded(self, tmp_path):
        (tmp_path / "analytics").mkdir()
        (tmp_path / "analytics" / "hits.json").write_text(
            json.dumps({"model": "hits", "table": "hits", "fields": {"id": {"type": "integer"}}})
        )

        schema = await SchemaService(tmp_path).get_schema("hits", "analytics")

        assert schema["connection"] == "analytics"

    async def test_filter_for_context_translates(self, schema_service):
        schema = await schema_service.get_schema("groups")

        filtered = schema_service.filter_schema_for_context(schema, "list")

        assert set(filtered["fields"]) == {"slug", "name"}
        create = next(a for a in filtered["actions"] if a["key"] == "create_action")
        assert create["label"] == "Create {{model}}"


@pytest.mark.asyncio
class TestModels:
    async def test_get_model_instance(self, schema_service):
        model = await schema_service.get_model_instance("products")

        assert isinstance(model, CRUD6Model)
        assert model.table_name == "products"
        assert model.soft_delete is True

    async def test_models_share_connection_metadata(self, schema_service):
        first = await schema_service.get_model_instance("products")
        second = await schema_service.get_model_instance("products")

        assert first.table is second.table
        assert schema_service.metadata_for(None) is schema_service.metadata_for("default")

    async def test_clear_cache(self, schema_service):
        await schema_service.get_schema("groups")
        await schema_service.clear_cache("groups")

        assert await schema_service.cache.get("groups") is None

        await schema_service.get_schema("groups")
        await schema_service.clear_all_cache()
        assert await schema_service.cache.get("groups") is None

    async def test_list_models(self, schema_service, tmp_path):
        assert schema_service.list_models() == ["categories", "groups", "permissions", "products", "roles", "users"]
        assert SchemaService(tmp_path).list_models("missing") == []

    async def test_create_tables(self, engine, schema_service):
        tables = await schema_service.create_tables(engine)

        assert {"users", "groups", "roles", "permissions", "categories", "products"} <= set(tables)
        assert {"role_users", "permission_roles"} <= set(tables)

        async with engine.connect() as conn:
            columns = await conn.run_sync(
                lambda sync_conn: {c["name"] for c in sa.inspect(sync_conn).get_columns("role_users")}
            )
        assert columns == {"user_id", "role_id", "created_at", "updated_at"}

    async def test_create_tables_skips_broken_schema(self, engine, tmp_path):
        (tmp_path / "good.json").write_text(json.dumps({"model": "good", "table": "good", "fields": {"id": {}}}))
        (tmp_path / "bad.json").write_text(json.dumps({"model": "other", "table": "bad", "fields": {"id": {}}}))

        tables = await SchemaService(tmp_path).create_tables(engine)

        assert tables == ["good"]
