"""
Unit tests for the schema and client configuration endpoints.
"""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

BASE = "/api/crud6"


class TestConfigEndpoint:
    async def test_debug_mode_off(self, client: AsyncClient):
        response = await client.get(f"{BASE}/config")

        assert response.status_code == 200
        assert response.json() == {"debug_mode": False}

    async def test_debug_mode_on(self, client: AsyncClient):
        with patch("crud6.server.api.v1.config.settings") as mock_settings:
            mock_settings.debug_mode = True
            response = await client.get(f"{BASE}/config")

        assert response.json() == {"debug_mode": True}


class TestSchemaEndpoint:
    async def test_full_schema(self, client: AsyncClient):
        response = await client.get(f"{BASE}/users/schema")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Retrieved User schema successfully"
        assert data["model"] == "users"
        assert data["modelDisplayName"] == "User"
        assert data["schema"]["table"] == "users"
        assert "password" in data["schema"]["fields"]

    async def test_list_context(self, client: AsyncClient):
        response = await client.get(f"{BASE}/groups/schema", params={"context": "list"})

        schema = response.json()["schema"]
        assert set(schema["fields"]) == {"slug", "name"}
        assert "table" not in schema

    async def test_multiple_contexts(self, client: AsyncClient):
        response = await client.get(f"{BASE}/groups/schema", params={"context": "list,detail"})

        schema = response.json()["schema"]
        assert set(schema["contexts"]) == {"list", "detail"}

    async def test_translated_action_labels(self, client: AsyncClient):
        response = await client.get(f"{BASE}/groups/schema", params={"context": "list"})

        actions = {action["key"]: action for action in response.json()["schema"]["actions"]}
        assert actions["create_action"]["label"] == "Create {{model}}"

    async def test_unknown_model(self, client: AsyncClient):
        response = await client.get(f"{BASE}/ghosts/schema")

        assert response.status_code == 404
        assert response.json()["status"] == 404
