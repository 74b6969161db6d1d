"""Node Schemas — Pydantic models with field-level validation for node endpoints.

Invariants:
    - NodeRegister.name: 1-100 chars, stripped, non-empty
    - Block counters are non-negative ints (ge=0) before they reach the core
    - Enum fields accept the str values used by the core enums

Design Decisions:
    - Reuse core enums directly: str Enums validate and serialize natively in Pydantic
"""

from pydantic import BaseModel, Field, field_validator

from twist_registry.core.domain_types import ChainType, CloudProvider, NodeStatus
from twist_registry.core.node_record import NodeRecord


class NodeRegister(BaseModel):
    """Node registration request."""
    name: str = Field(min_length=1, max_length=100)
    chain_type: ChainType
    endpoint_url: str = Field(min_length=1, max_length=500)
    version: str = Field("", max_length=100)
    region: str = Field(min_length=1, max_length=50)
    provider: CloudProvider

    @field_validator("name", "endpoint_url")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class NodeStatusUpdate(BaseModel):
    """Status report from the node operator."""
    status: NodeStatus
    current_block: int = Field(ge=0)
    highest_block: int = Field(ge=0)


class NodeIdResponse(BaseModel):
    id: str


class NodeResponse(BaseModel):
    """Public-facing node record."""
    id: str
    name: str
    chain_type: ChainType
    endpoint_url: str
    status: NodeStatus
    version: str
    current_block: int
    highest_block: int
    sync_percentage: int
    region: str
    provider: CloudProvider
    owner: str
    registered_at: int
    updated_at: int
    is_active: bool

    @classmethod
    def from_record(cls, record: NodeRecord) -> "NodeResponse":
        return cls(
            **record.to_dict(), sync_percentage=record.sync_percentage,
        )


class NodeStatusChange(BaseModel):
    id: str
    status: NodeStatus
    status_changed: bool
    sync_percentage: int


class NodeStats(BaseModel):
    total: int
    by_chain: dict[ChainType, int]
