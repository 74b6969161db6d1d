"""Vesting Routes — admin grants, per-beneficiary status and self-service claims.

Invariants:
    - Grants require ADMIN (checked in the core, surfaced as 403)
    - A claim is made by the beneficiary for themselves; claim + mint commit together
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.api.dependencies import get_caller, get_engine, get_logical_time
from twist_registry.core.domain_types import Identity
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.infrastructure.database import get_db
from twist_registry.schemas.ledger import ClaimResult, VestingGrant, VestingStatus
from twist_registry.services.state_persistence import committed_operation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/vesting", tags=["vesting"])


def _vesting_status(
    engine: PlatformEngine, beneficiary: Identity, now: int,
) -> VestingStatus:
    with engine.lock:
        entry = engine.vesting_entry(beneficiary)
        return VestingStatus(
            beneficiary=beneficiary,
            vested_total=entry.vested_total,
            claimed_total=entry.claimed_total,
            claimable=engine.claimable(beneficiary, now),
            window_start=engine.vesting.window_start,
            window_end=engine.vesting.window_end,
        )


@router.post(
    "", response_model=VestingStatus, status_code=status.HTTP_201_CREATED,
)
async def add_vesting(
    body: VestingGrant,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    beneficiary = Identity(body.beneficiary)
    async with committed_operation(db, engine):
        engine.add_vesting(caller, beneficiary, body.amount, now)
    logger.info(
        "Vesting added",
        extra={"caller": caller, "beneficiary": beneficiary, "amount": body.amount},
    )
    return _vesting_status(engine, beneficiary, now)


@router.post("/claim", response_model=ClaimResult)
async def claim_vested(
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        instruction = engine.claim_vested(caller, now)
        balance = engine.balance_of(caller)
    logger.info(
        "Vested tokens claimed",
        extra={"beneficiary": caller, "amount": instruction.amount},
    )
    return ClaimResult(
        beneficiary=instruction.beneficiary,
        amount=instruction.amount,
        balance=balance,
    )


@router.get("/{beneficiary}", response_model=VestingStatus)
async def get_vesting(
    beneficiary: str,
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
):
    return _vesting_status(engine, Identity(beneficiary), now)
