"""Database Session Manager — async engine, rollback-on-error sessions, schema bootstrap.

Invariants:
    - Every session rolls back on exception: a failed persist never leaves half
      an operation's events without its snapshot
    - Driver exceptions leave this module only as DatabaseError (core/errors.py),
      classified by the first matching entry in _DRIVER_ERRORS
    - create_schema is idempotent (checkfirst) and only runs when configured

Design Decisions:
    - Module-level db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: rows stay readable after persist_operation commits
    - SQLite (aiosqlite) gets no pool sizing arguments: its pool class rejects them
    - Alembic owns the production schema; create_schema serves single-file
      SQLite deployments and local runs
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

import twist_registry.models  # noqa: F401
from twist_registry.core.errors import DatabaseError
from twist_registry.db.base import Base

logger = logging.getLogger(__name__)

# (exception type, log label, DatabaseError message, operation); first match wins
_DRIVER_ERRORS = (
    (IntegrityError, "integrity", "Event sequence or constraint conflict", "commit"),
    (OperationalError, "operational", "Connection or operational error", "execute"),
    (DBAPIError, "driver", "Database driver error", "query"),
)


def to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, label, message, operation in _DRIVER_ERRORS:
        if isinstance(exc, exc_type):
            logger.error(f"DB {label} error: {exc}")
            return DatabaseError(message, operation)
    logger.error(f"SQLAlchemy error: {exc}")
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine and hands out rollback-on-error sessions."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.is_sqlite = database_url.startswith("sqlite")
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            raise to_database_error(e) from e
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create ledger_events and state_snapshots if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        logger.info("Database schema ensured")

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
