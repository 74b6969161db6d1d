"""Ledger Schemas — request/response models for vesting, token and role endpoints.

Invariants:
    - Amounts are positive ints in the smallest unit (gt=0); no floats anywhere
    - Identities are non-empty strings; null-identity checks stay in the core

Design Decisions:
    - Amounts serialized as JSON numbers: Python ints are exact at any size
"""

from pydantic import BaseModel, Field

from twist_registry.core.domain_types import Capability


class VestingGrant(BaseModel):
    beneficiary: str = Field(min_length=1, max_length=100)
    amount: int = Field(gt=0)


class VestingStatus(BaseModel):
    beneficiary: str
    vested_total: int
    claimed_total: int
    claimable: int
    window_start: int
    window_end: int


class ClaimResult(BaseModel):
    beneficiary: str
    amount: int
    balance: int


class MintRequest(BaseModel):
    to: str = Field(min_length=1, max_length=100)
    amount: int = Field(gt=0)


class BurnRequest(BaseModel):
    amount: int = Field(gt=0)


class TransferRequest(BaseModel):
    to: str = Field(min_length=1, max_length=100)
    amount: int = Field(gt=0)


class SupplyResponse(BaseModel):
    total_supply: int
    max_supply: int
    total_vested: int
    paused: bool


class BalanceResponse(BaseModel):
    identity: str
    balance: int


class RoleChange(BaseModel):
    identity: str = Field(min_length=1, max_length=100)
    capability: Capability


class RoleHolders(BaseModel):
    capability: Capability
    holders: list[str]
