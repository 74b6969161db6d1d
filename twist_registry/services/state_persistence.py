"""State Persistence — writes the engine's event log and snapshots, restores on startup.

Invariants:
    - Events are inserted exactly once, in sequence order (append-only table)
    - Each persist writes the new events and one snapshot in the same transaction
    - An operation run through committed_operation is either committed to the DB
      or rolled back in memory; a failed commit never leaves it in the engine
    - Restore always uses the newest snapshot; events are an audit trail, not replayed

Design Decisions:
    - The last persisted sequence is read from the DB, not cached: a failed commit
      leaves nothing to reconcile
    - Module-level asyncio.Lock: concurrent requests in one process never race on
      sequence, and no other operation runs between a mutation and its commit
    - Rollback restores the pre-operation snapshot rather than undoing step by step
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.core.state_snapshot import engine_from_snapshot, engine_to_snapshot
from twist_registry.infrastructure.database import to_database_error
from twist_registry.models.ledger_event import LedgerEventRow
from twist_registry.models.state_snapshot import StateSnapshotRow

logger = logging.getLogger(__name__)

_persist_lock = asyncio.Lock()


async def last_persisted_sequence(db: AsyncSession) -> int:
    result = await db.execute(select(func.max(LedgerEventRow.sequence)))
    return result.scalar() or 0


async def _write_new_events(db: AsyncSession, engine: PlatformEngine) -> int:
    persisted = await last_persisted_sequence(db)
    with engine.lock:
        new_events = engine.events.since(persisted)
        snapshot = engine_to_snapshot(engine)
    if not new_events:
        return persisted

    for event in new_events:
        db.add(LedgerEventRow(
            sequence=event.sequence,
            kind=event.kind.value,
            logical_time=event.logical_time,
            payload=dict(event.payload),
        ))
    last = new_events[-1].sequence
    db.add(StateSnapshotRow(last_sequence=last, snapshot=snapshot))
    await db.commit()
    logger.info(
        f"Persisted {len(new_events)} event(s)", extra={"sequence": last},
    )
    return last


async def persist_operation(db: AsyncSession, engine: PlatformEngine) -> int:
    """Persist events committed since the last call plus a fresh snapshot.

    Returns the highest persisted sequence.
    """
    async with _persist_lock:
        return await _write_new_events(db, engine)


@asynccontextmanager
async def committed_operation(
    db: AsyncSession, engine: PlatformEngine,
) -> AsyncGenerator[None, None]:
    """Run the body's engine mutation, then persist it or roll it back.

    Rejected mutations (TwistError from the core) propagate untouched: the core
    leaves state unchanged on failure, so there is nothing to persist or undo.
    """
    async with _persist_lock:
        with engine.lock:
            before = engine_to_snapshot(engine)
        yield
        try:
            await _write_new_events(db, engine)
        except Exception as e:
            await db.rollback()
            engine.restore_state(engine_from_snapshot(before))
            logger.error(
                f"Persist failed, operation rolled back: {e}",
                extra={"sequence": before["last_sequence"]},
            )
            if isinstance(e, SQLAlchemyError):
                raise to_database_error(e) from e
            raise


async def load_latest_engine(db: AsyncSession) -> PlatformEngine | None:
    """Restore the engine from the newest snapshot, or None if there is none."""
    result = await db.execute(
        select(StateSnapshotRow).order_by(StateSnapshotRow.id.desc()).limit(1),
    )
    row = result.scalar_one_or_none()
    if row is None:
        return None
    engine = engine_from_snapshot(row.snapshot)
    logger.info(
        "Restored engine from snapshot", extra={"sequence": row.last_sequence},
    )
    return engine


async def list_events(
    db: AsyncSession, after: int = 0, limit: int = 100,
) -> list[LedgerEventRow]:
    result = await db.execute(
        select(LedgerEventRow)
        .where(LedgerEventRow.sequence > after)
        .order_by(LedgerEventRow.sequence)
        .limit(limit),
    )
    return list(result.scalars().all())
