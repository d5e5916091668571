"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory database and session factory, seeded workspace rows,
local dataset storage, pipeline settings, principals and bearer tokens.
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.boundary.db.base import Base
from backend.boundary.storage import LocalDatasetStorage
from backend.configs.pipeline import PipelineSettings
from backend.models.auth import Principal, Role
from tests.factories import Workspace, make_token, seed_workspace


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine shared by every session in the test
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    """Session factory bound to the test engine (same options as production)."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a test database session.

    Yields:
        AsyncSession: Session rolled back after the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage(tmp_path) -> LocalDatasetStorage:
    """Local dataset storage rooted in a per-test temp directory."""
    return LocalDatasetStorage(tmp_path / "storage")


@pytest.fixture
def pipeline_settings() -> PipelineSettings:
    """Pipeline settings with small progress intervals."""
    return PipelineSettings(
        dispatch_mode="background",
        hash_salt="test-salt",
        hash_length=16,
        progress_report_every=2,
    )


@pytest.fixture
def organisation_id() -> uuid.UUID:
    """Generate a test organisation ID."""
    return uuid.uuid4()


@pytest.fixture
async def workspace(test_async_db, storage, organisation_id) -> Workspace:
    """Seeded project, ready data source and active mapping."""
    return await seed_workspace(test_async_db, storage, organisation_id)


@pytest.fixture
def principal(organisation_id) -> Principal:
    """Editor in the test organisation."""
    return Principal(
        user_id=uuid.uuid4(),
        email="editor@example.com",
        organisation_id=organisation_id,
        role=Role.EDITOR,
    )


@pytest.fixture
def outsider() -> Principal:
    """Admin of a different organisation."""
    return Principal(
        user_id=uuid.uuid4(),
        email="admin@other.example.com",
        organisation_id=uuid.uuid4(),
        role=Role.ADMIN,
    )


@pytest.fixture
def mock_dispatcher() -> AsyncMock:
    """Dispatcher that records dispatched job ids without running them."""
    dispatcher = AsyncMock()
    dispatcher.dispatch = AsyncMock(return_value=None)
    return dispatcher


@pytest.fixture
def auth_headers(organisation_id) -> dict[str, str]:
    """Authorization header for an editor."""
    return {"Authorization": f"Bearer {make_token(organisation_id)}"}


@pytest.fixture
def job_id() -> uuid.UUID:
    """Generate a test job ID."""
    return uuid.uuid4()
