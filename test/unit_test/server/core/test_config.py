"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables and that the
grouped configuration models are derived from them.
"""

import pytest

from crud6.server.core.config import CORSConfig, CRUD6Config, MonitoringConfig, Settings


@pytest.fixture
def clean_env(monkeypatch):
    """Remove the variables the test session sets globally."""
    for name in ("CRUD6_SCHEMA_PATH", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.server_host == "0.0.0.0"
        assert settings.server_port == 8000
        assert settings.default_page_size == 25
        assert settings.max_page_size == 100
        assert settings.schema_path == "schema/crud6"
        assert settings.database_url == "sqlite+aiosqlite:///./crud6.db"
        assert settings.connections == {}
        assert settings.auto_create_tables is False
        assert settings.log_format == "detailed"
        assert settings.log_to_file is False

    def test_server_binding(self, monkeypatch):
        """Test CRUD6_SERVER_* and CRUD6_LOG_LEVEL binding."""
        monkeypatch.setenv("CRUD6_SERVER_HOST", "127.0.0.1")
        monkeypatch.setenv("CRUD6_SERVER_PORT", "9000")
        monkeypatch.setenv("CRUD6_LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 9000
        assert settings.log_level == "DEBUG"

    def test_crud6_binding(self, monkeypatch):
        """Test CRUD6_* behaviour flags binding."""
        monkeypatch.setenv("CRUD6_DEBUG_MODE", "true")
        monkeypatch.setenv("CRUD6_DEFAULT_PAGE_SIZE", "10")
        monkeypatch.setenv("CRUD6_MAX_PAGE_SIZE", "50")
        monkeypatch.setenv("CRUD6_SCHEMA_PATH", "/srv/schemas")
        monkeypatch.setenv("CRUD6_CACHE_ENABLED", "1")
        monkeypatch.setenv("CRUD6_CACHE_TTL", "60")
        monkeypatch.setenv("CRUD6_LOCALE", "fr_FR")

        settings = Settings(_env_file=None)

        assert settings.debug_mode is True
        assert settings.default_page_size == 10
        assert settings.max_page_size == 50
        assert settings.schema_path == "/srv/schemas"
        assert settings.cache_enabled is True
        assert settings.cache_ttl == 60
        assert settings.locale == "fr_FR"

    def test_database_binding(self, monkeypatch):
        """Test DATABASE_URL and CRUD6_CONNECTIONS binding."""
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://crud6:pw@localhost/crud6")
        monkeypatch.setenv("CRUD6_CONNECTIONS", '{"analytics": "sqlite+aiosqlite:///./analytics.db"}')

        settings = Settings(_env_file=None)

        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.connections == {"analytics": "sqlite+aiosqlite:///./analytics.db"}

    def test_cors_binding(self, monkeypatch):
        """Test CORS_* binding of JSON lists."""
        monkeypatch.setenv("CORS_ORIGINS", '["https://admin.example.com"]')
        monkeypatch.setenv("CORS_ALLOW_CREDENTIALS", "false")

        settings = Settings(_env_file=None)

        assert settings.cors_origins == ["https://admin.example.com"]
        assert settings.cors_allow_credentials is False

    def test_invalid_port(self, monkeypatch):
        monkeypatch.setenv("CRUD6_SERVER_PORT", "not-a-port")

        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestGroupedConfig:
    """Test the computed grouped configuration properties."""

    def test_crud6_group(self, monkeypatch):
        monkeypatch.setenv("CRUD6_MAX_PAGE_SIZE", "42")
        monkeypatch.setenv("CRUD6_AUTO_CREATE_TABLES", "true")

        crud6 = Settings(_env_file=None).crud6

        assert isinstance(crud6, CRUD6Config)
        assert crud6.max_page_size == 42
        assert crud6.auto_create_tables is True

    def test_cors_group(self, monkeypatch):
        monkeypatch.setenv("CORS_ALLOW_METHODS", '["GET", "POST"]')

        cors = Settings(_env_file=None).cors

        assert isinstance(cors, CORSConfig)
        assert cors.allow_methods == ["GET", "POST"]
        assert cors.origins == ["*"]

    def test_monitoring_group(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_ENABLED", "true")
        monkeypatch.setenv("LOGFIRE_TOKEN", "tok")
        monkeypatch.setenv("LOGFIRE_SAMPLE_RATE", "0.5")

        monitoring = Settings(_env_file=None).monitoring

        assert isinstance(monitoring, MonitoringConfig)
        assert monitoring.enabled is True
        assert monitoring.token == "tok"
        assert monitoring.sample_rate == 0.5
        assert monitoring.service_name == "crud6-server"
        assert monitoring.trace_sqlalchemy is True

    def test_monitoring_off_by_default(self, clean_env):
        for name in ("LOGFIRE_ENABLED", "LOGFIRE_TOKEN"):
            clean_env.delenv(name, raising=False)

        assert Settings(_env_file=None).monitoring.enabled is False

    def test_models_accept_field_names(self):
        assert CRUD6Config(locale="fr_FR").locale == "fr_FR"
        assert CORSConfig(origins=["x"]).origins == ["x"]
