"""Token Routes — supply, balances, mint, burn, transfer and pause switch.

Invariants:
    - mint requires MINTER, pause/unpause require PAUSER (core-enforced)
    - Transfers fail with LEDGER_PAUSED (409) while paused
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from twist_registry.api.dependencies import get_caller, get_engine, get_logical_time
from twist_registry.core.domain_types import Identity
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.infrastructure.database import get_db
from twist_registry.schemas.ledger import (
    BalanceResponse, BurnRequest, MintRequest, SupplyResponse, TransferRequest,
)
from twist_registry.services.state_persistence import committed_operation

router = APIRouter(prefix="/api/v1/tokens", tags=["tokens"])


def _supply(engine: PlatformEngine) -> SupplyResponse:
    with engine.lock:
        return SupplyResponse(
            total_supply=engine.tokens.total_supply,
            max_supply=engine.tokens.max_supply,
            total_vested=engine.vesting.total_vested,
            paused=engine.tokens.paused,
        )


@router.get("/supply", response_model=SupplyResponse)
async def get_supply(engine: PlatformEngine = Depends(get_engine)):
    return _supply(engine)


@router.get("/balances/{identity}", response_model=BalanceResponse)
async def get_balance(identity: str, engine: PlatformEngine = Depends(get_engine)):
    return BalanceResponse(
        identity=identity, balance=engine.balance_of(Identity(identity)),
    )


@router.post("/mint", response_model=BalanceResponse)
async def mint(
    body: MintRequest,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    to = Identity(body.to)
    async with committed_operation(db, engine):
        engine.mint(caller, to, body.amount, now)
        balance = engine.balance_of(to)
    return BalanceResponse(identity=to, balance=balance)


@router.post("/burn", response_model=BalanceResponse)
async def burn(
    body: BurnRequest,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        engine.burn(caller, body.amount, now)
        balance = engine.balance_of(caller)
    return BalanceResponse(identity=caller, balance=balance)


@router.post("/transfer", response_model=BalanceResponse)
async def transfer(
    body: TransferRequest,
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    """Returns the sender's remaining balance."""
    async with committed_operation(db, engine):
        engine.transfer(caller, Identity(body.to), body.amount, now)
        balance = engine.balance_of(caller)
    return BalanceResponse(identity=caller, balance=balance)


@router.post("/pause", response_model=SupplyResponse)
async def pause(
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        engine.pause(caller, now)
    return _supply(engine)


@router.post("/unpause", response_model=SupplyResponse)
async def unpause(
    caller: Identity = Depends(get_caller),
    now: int = Depends(get_logical_time),
    engine: PlatformEngine = Depends(get_engine),
    db: AsyncSession = Depends(get_db),
):
    async with committed_operation(db, engine):
        engine.unpause(caller, now)
    return _supply(engine)
