"""Role Routes — grant, revoke and list capability holders.

Invariants:
    - Only ADMIN holders may grant/revoke (core-enforced, 403 otherwise)
    - Repeated grant/revoke is an idempotent 200
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.api.dependencies import get_caller, get_engine, get_logical_time
from twist_registry.core.domain_types import Capability, Identity
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.infrastructure.database import get_db
from twist_registry.schemas.ledger import RoleChange, RoleHolders
from twist_registry.services.state_persistence import committed_operation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/roles", tags=["roles"])


def _holders(engine: PlatformEngine, capability: Capability) -> RoleHolders:
    with engine.lock:
        return RoleHolders(
            capability=capability, holders=engine.roles.holders(capability),
        )


@router.get("/{capability}", response_model=RoleHolders)
async def list_holders(
    capability: Capability, engine: PlatformEngine = Depends(get_engine),
):
    return _holders(engine, capability)


@router.post("/grant", response_model=RoleHolders)
async def grant_role(
    body: RoleChange,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        engine.grant_role(caller, Identity(body.identity), body.capability, now)
    logger.info(
        f"Granted {body.capability.value} to {body.identity}",
        extra={"caller": caller, "capability": body.capability.value},
    )
    return _holders(engine, body.capability)


@router.post("/revoke", response_model=RoleHolders)
async def revoke_role(
    body: RoleChange,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        engine.revoke_role(caller, Identity(body.identity), body.capability, now)
    logger.info(
        f"Revoked {body.capability.value} from {body.identity}",
        extra={"caller": caller, "capability": body.capability.value},
    )
    return _holders(engine, body.capability)
