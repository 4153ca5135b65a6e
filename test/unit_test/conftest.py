from typing import Any, AsyncGenerator, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from crud6.core.database.utils import create_sessionmaker
from crud6.schema import SchemaCache, SchemaService

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(name="engine")
async def engine_fixture() -> AsyncGenerator[AsyncEngine, None]:
    """Empty in-memory database, one per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    await engine.dispose()


@pytest.fixture(name="schema_service")
def schema_service_fixture(schema_dir) -> SchemaService:
    return SchemaService(schema_dir, cache=SchemaCache())


@pytest_asyncio.fixture(name="db")
async def db_fixture(engine: AsyncEngine, schema_service: SchemaService) -> AsyncEngine:
    """Engine with the tables of every sample schema created."""
    await schema_service.create_tables(engine)
    return engine


@pytest_asyncio.fixture(name="session")
async def session_fixture(db: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(db)() as session:
        yield session


@pytest_asyncio.fixture(name="insert")
async def insert_fixture(db: AsyncEngine, schema_service: SchemaService):
    """Insert rows into a model's table and return their primary keys."""

    async def _insert(model_name: str, *rows: Dict[str, Any]):
        model = await schema_service.get_model_instance(model_name)
        ids = []
        async with create_sessionmaker(db)() as session:
            for row in rows:
                ids.append(await model.insert(session, row))
            await session.commit()
        return ids

    return _insert


@pytest_asyncio.fixture(name="client")
async def client_fixture(db: AsyncEngine, schema_service: SchemaService) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from crud6.server.main import app
    from crud6.server.services.deps import get_schema_service, get_session

    test_async_session_maker = create_sessionmaker(db)

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with test_async_session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_schema_service] = lambda: schema_service

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("crud6.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()
