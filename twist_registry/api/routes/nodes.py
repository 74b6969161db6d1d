"""Node Routes — register, report status, deregister and query blockchain nodes.

Invariants:
    - Every mutation runs inside committed_operation: persisted, or rolled back
    - Ownership and lifecycle rules live in the core; routes only translate
    - TwistError propagates to the global handler (no per-route try/except)

Design Decisions:
    - /stats declared before /{node_id} so it is not captured as an id
    - DELETE is a soft delete and returns the now-inactive record
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.api.dependencies import get_caller, get_engine, get_logical_time
from twist_registry.core.domain_types import ChainType, Identity, NodeId
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.infrastructure.database import get_db
from twist_registry.schemas.node import (
    NodeIdResponse, NodeRegister, NodeResponse, NodeStats,
    NodeStatusChange, NodeStatusUpdate,
)
from twist_registry.services.state_persistence import committed_operation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/nodes", tags=["nodes"])


@router.post(
    "", response_model=NodeIdResponse, status_code=status.HTTP_201_CREATED,
)
async def register_node(
    body: NodeRegister,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    """Register a node owned by the caller."""
    async with committed_operation(db, engine):
        node_id = engine.register_node(
            caller, body.name, body.chain_type, body.endpoint_url,
            body.version, body.region, body.provider, now,
        )
    logger.info(
        "Node registered",
        extra={"node_id": node_id, "caller": caller, "chain_type": body.chain_type.value},
    )
    return NodeIdResponse(id=node_id)


@router.get("", response_model=list[str])
async def list_nodes_by_owner(
    owner: str = Query(..., min_length=1),
    engine: PlatformEngine = Depends(get_engine),
):
    """Node ids owned by `owner`, in registration order (inactive included)."""
    return engine.nodes_by_owner(Identity(owner))


@router.get("/stats", response_model=NodeStats)
async def node_stats(engine: PlatformEngine = Depends(get_engine)):
    with engine.lock:
        return NodeStats(
            total=engine.node_count(),
            by_chain={c: engine.node_count_by_chain(c) for c in ChainType},
        )


@router.get("/{node_id}", response_model=NodeResponse)
async def get_node(node_id: str, engine: PlatformEngine = Depends(get_engine)):
    return NodeResponse.from_record(engine.get_node(NodeId(node_id)))


@router.patch("/{node_id}/status", response_model=NodeStatusChange)
async def update_node_status(
    node_id: str,
    body: NodeStatusUpdate,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    """Owner-only status and block-height report."""
    async with committed_operation(db, engine):
        changed = engine.update_node_status(
            caller, NodeId(node_id), body.status,
            body.current_block, body.highest_block, now,
        )
        record = engine.get_node(NodeId(node_id))
    if changed:
        logger.info(
            f"Node status changed to {record.status.value}",
            extra={"node_id": node_id, "caller": caller},
        )
    return NodeStatusChange(
        id=record.id,
        status=record.status,
        status_changed=changed,
        sync_percentage=record.sync_percentage,
    )


@router.delete("/{node_id}", response_model=NodeResponse)
async def deregister_node(
    node_id: str,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    """Owner-only soft delete. A second call fails with ALREADY_INACTIVE."""
    async with committed_operation(db, engine):
        engine.deregister_node(caller, NodeId(node_id), now)
        record = engine.get_node(NodeId(node_id))
    logger.info("Node deregistered", extra={"node_id": node_id, "caller": caller})
    return NodeResponse.from_record(record)
