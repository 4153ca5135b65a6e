"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing) and optional Logfire tracing, registers the exception handlers
and includes all API routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crud6.core.database.session import connection_manager
from crud6.core.logging_config import get_logger, setup_logging
from crud6.core.monitoring import initialize_logfire

from .api.v1 import actions, config, records, relationships, schema
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestTimingMiddleware
from .services.deps import get_schema_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    On startup, optionally creates the tables of every schema on the default
    connection. On shutdown, disposes all database engines.
    """
    logger.info("Starting up CRUD6 Server...")
    if settings.auto_create_tables:
        try:
            service = get_schema_service()
            tables = await service.create_tables(connection_manager.engine())
            logger.info(f"Schema tables created: {', '.join(tables) or 'none'}")
        except Exception as e:
            logger.error(f"Table creation failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down CRUD6 Server...")
    await connection_manager.dispose_all()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    CRUD6 Server API

    Generic create, read, update and delete endpoints for every model described
    by a JSON schema file, plus relationship management and custom actions.
    """,
    version="1.0.0",
    openapi_url=f"{constant.API_PREFIX}/openapi.json",
    docs_url=f"{constant.API_PREFIX}/docs",
    redoc_url=f"{constant.API_PREFIX}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestTimingMiddleware)

initialize_logfire(app)

setup_exception_handlers(app)

# Fixed paths first: "/config" and "/{model}/schema" would otherwise match "/{model}" and "/{model}/{id}"
app.include_router(config.router, prefix=constant.API_PREFIX, tags=["config"])
app.include_router(schema.router, prefix=constant.API_PREFIX, tags=["schema"])
app.include_router(actions.router, prefix=constant.API_PREFIX, tags=["actions"])
app.include_router(relationships.router, prefix=constant.API_PREFIX, tags=["relationships"])
app.include_router(records.router, prefix=constant.API_PREFIX, tags=["records"])
