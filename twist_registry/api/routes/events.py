"""Event Routes — read-only view of the persisted append-only event log."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.infrastructure.database import get_db
from twist_registry.services.state_persistence import list_events

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("")
async def get_events(
    after: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Events with sequence > `after`, oldest first."""
    rows = await list_events(db, after=after, limit=limit)
    return {
        "events": [
            {
                "sequence": r.sequence,
                "kind": r.kind,
                "logical_time": r.logical_time,
                "payload": r.payload,
            }
            for r in rows
        ],
        "pagination": {"after": after, "limit": limit},
    }
