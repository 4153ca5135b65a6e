"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Dict

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class CRUD6Config(BaseModel):
    """Schema-driven CRUD behaviour configuration."""

    debug_mode: bool = Field(
        default=False, alias="CRUD6_DEBUG_MODE", description="Emit verbose debug tracing for CRUD6 operations"
    )
    default_page_size: int = Field(
        default=25, alias="CRUD6_DEFAULT_PAGE_SIZE", description="Rows per page when a listing request omits size"
    )
    max_page_size: int = Field(
        default=100, alias="CRUD6_MAX_PAGE_SIZE", description="Upper bound for the requested page size"
    )
    schema_path: str = Field(
        default="schema/crud6", alias="CRUD6_SCHEMA_PATH", description="Directory holding the JSON schema files"
    )
    cache_enabled: bool = Field(
        default=False, alias="CRUD6_CACHE_ENABLED", description="Enable the persistent (database) schema cache tier"
    )
    cache_ttl: int = Field(
        default=3600, alias="CRUD6_CACHE_TTL", description="Persistent schema cache time-to-live in seconds"
    )
    locale: str = Field(default="en_US", alias="CRUD6_LOCALE", description="Locale used to translate schema keys")
    auto_create_tables: bool = Field(
        default=False,
        alias="CRUD6_AUTO_CREATE_TABLES",
        description="Create tables for every schema on startup (development only)",
    )

    model_config = {"populate_by_name": True}


class MonitoringConfig(BaseModel):
    """Logfire tracing configuration."""

    enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED", description="Send traces to Logfire")
    token: str = Field(default="", alias="LOGFIRE_TOKEN", description="Logfire project write token")
    service_name: str = Field(default="crud6-server", alias="LOGFIRE_SERVICE_NAME")
    service_version: str = Field(default="0.1.0", alias="LOGFIRE_SERVICE_VERSION")
    environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    sample_rate: float = Field(
        default=1.0, ge=0.0, le=1.0, alias="LOGFIRE_SAMPLE_RATE", description="Head sampling rate of traces"
    )
    trace_sqlalchemy: bool = Field(
        default=True, alias="LOGFIRE_TRACE_SQLALCHEMY", description="Instrument database engines"
    )
    trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI", description="Instrument the FastAPI app")

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =====================================================================
    # Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="CRUD6 server host address to bind to",
        alias="CRUD6_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="CRUD6 server port number",
        alias="CRUD6_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="CRUD6_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="CRUD6_LOG_FORMAT")
    log_dir: str = Field(default="logs", description="Directory of crud6.log", alias="CRUD6_LOG_DIR")
    log_to_file: bool = Field(default=False, alias="CRUD6_LOG_TO_FILE")

    # =====================================================================
    # CRUD6 Configuration
    # =====================================================================
    debug_mode: bool = Field(default=False, alias="CRUD6_DEBUG_MODE")
    default_page_size: int = Field(default=25, alias="CRUD6_DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="CRUD6_MAX_PAGE_SIZE")
    schema_path: str = Field(default="schema/crud6", alias="CRUD6_SCHEMA_PATH")
    cache_enabled: bool = Field(default=False, alias="CRUD6_CACHE_ENABLED")
    cache_ttl: int = Field(default=3600, alias="CRUD6_CACHE_TTL")
    locale: str = Field(default="en_US", alias="CRUD6_LOCALE")
    auto_create_tables: bool = Field(default=False, alias="CRUD6_AUTO_CREATE_TABLES")

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./crud6.db",
        description="Async connection URL for the default database connection",
        alias="DATABASE_URL",
    )
    connections: Dict[str, str] = Field(
        default_factory=dict,
        description="Named database connections (JSON object of name to URL) used by model@connection",
        alias="CRUD6_CONNECTIONS",
    )

    # =====================================================================
    # Monitoring Configuration (Logfire)
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: str = Field(default="", alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="crud6-server", alias="LOGFIRE_SERVICE_NAME")
    logfire_service_version: str = Field(default="0.1.0", alias="LOGFIRE_SERVICE_VERSION")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_sample_rate: float = Field(default=1.0, alias="LOGFIRE_SAMPLE_RATE")
    logfire_trace_sqlalchemy: bool = Field(default=True, alias="LOGFIRE_TRACE_SQLALCHEMY")
    logfire_trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def crud6(self) -> CRUD6Config:
        """Get CRUD6 configuration from environment variables."""
        return CRUD6Config.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def monitoring(self) -> MonitoringConfig:
        """Get Logfire monitoring configuration from environment variables."""
        return MonitoringConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
