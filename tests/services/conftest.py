"""Service test fixtures — async DB, a small engine and the FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so readiness checks hit the test DB
    - get_engine and get_logical_time overridden: tests control state and the clock

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - Small supply numbers (1_000_000 cap, 100-second window) keep assertions readable
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import twist_registry.api.dependencies as deps
import twist_registry.infrastructure.database as db_module
import twist_registry.models  # noqa: F401
from twist_registry.api.dependencies import get_engine, get_logical_time
from twist_registry.core.domain_types import Identity
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.db.base import Base
from twist_registry.infrastructure.database import get_db, DatabaseSessionManager
from twist_registry.main import app

ADMIN = Identity("0xadmin")


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def platform():
    """Engine with ADMIN holding every capability and 100_000 pre-minted."""
    return PlatformEngine.create(
        admin=ADMIN, max_supply=1_000_000, initial_supply=100_000,
        vesting_start=0, vesting_duration=100,
    )


@pytest.fixture
def clock():
    """Mutable logical clock read by every request: clock["now"] = 50."""
    return {"now": 0}


@pytest.fixture
async def client(test_engine, test_session_factory, platform, clock):
    """FastAPI test client with DB, engine and clock dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: platform
    app.dependency_overrides[get_logical_time] = lambda: clock["now"]

    # Patch db_manager for the readiness probe, which uses it directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    deps.install_engine(platform)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    deps.install_engine(None)
