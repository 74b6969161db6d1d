"""Twist Registry API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TwistError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Engine restored from the newest snapshot on startup, else built from settings
      and persisted at once, so the resolved vesting window survives restarts

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Single process owns the engine: run with one uvicorn worker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from twist_registry.api.dependencies import get_logical_time, install_engine
from twist_registry.api.error_handlers import register_error_handlers
from twist_registry.api.routes import events, health, nodes, roles, tokens, vesting
from twist_registry.config import Settings, get_settings
from twist_registry.core.domain_types import Identity
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.infrastructure.database import init_db
from twist_registry.infrastructure.observability import setup_logging
from twist_registry.services.state_persistence import load_latest_engine, persist_operation

logger = logging.getLogger(__name__)


def build_engine(settings: Settings, now: int | None = None) -> PlatformEngine:
    """Fresh deployment from configuration.

    An unset vesting_start opens the window at deployment time (`now`, else the
    current logical time).
    """
    vesting_start = settings.vesting_start
    if vesting_start is None:
        vesting_start = now if now is not None else get_logical_time()
    return PlatformEngine.create(
        admin=Identity(settings.admin_identity),
        max_supply=settings.max_supply,
        initial_supply=settings.initial_supply,
        vesting_start=vesting_start,
        vesting_duration=settings.vesting_duration_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await manager.create_schema()
    async with manager.session() as db:
        engine = await load_latest_engine(db)
        if engine is None:
            engine = build_engine(settings)
            await persist_operation(db, engine)
            logger.info(
                "No snapshot found, started fresh deployment",
                extra={"sequence": engine.events.last_sequence},
            )
    install_engine(engine)
    logger.info("Twist Registry API started")
    yield
    install_engine(None)
    await manager.dispose()
    logger.info("Twist Registry API shutting down")


app = FastAPI(
    title="Twist Registry API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(nodes.router)
app.include_router(vesting.router)
app.include_router(tokens.router)
app.include_router(roles.router)
app.include_router(events.router)

register_error_handlers(app)
