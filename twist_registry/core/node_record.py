"""Node Record — the per-node aggregate held by NodeLifecycleStore.

Invariants:
    - id is assigned once at registration and never changes
    - current_block / highest_block are non-negative but NOT monotonic
    - is_active=False is terminal
    - sync_percentage is integer-only and always in [0, 100]
"""

from dataclasses import dataclass

from twist_registry.core.domain_types import (
    ChainType, CloudProvider, Identity, NodeId, NodeStatus,
)


@dataclass
class NodeRecord:
    """Pure dataclass, no IO. The store hands out copies, never this instance."""

    id: NodeId
    name: str
    chain_type: ChainType
    endpoint_url: str
    version: str
    region: str
    provider: CloudProvider
    owner: Identity
    registered_at: int
    updated_at: int
    status: NodeStatus = NodeStatus.STARTING
    current_block: int = 0
    highest_block: int = 0
    is_active: bool = True

    @property
    def sync_percentage(self) -> int:
        return compute_sync_percentage(self.current_block, self.highest_block)

    def to_dict(self) -> dict:
        """JSON-safe representation (enum values, plain ints)."""
        return {
            "id": self.id,
            "name": self.name,
            "chain_type": self.chain_type.value,
            "endpoint_url": self.endpoint_url,
            "version": self.version,
            "region": self.region,
            "provider": self.provider.value,
            "owner": self.owner,
            "registered_at": self.registered_at,
            "updated_at": self.updated_at,
            "status": self.status.value,
            "current_block": self.current_block,
            "highest_block": self.highest_block,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NodeRecord":
        return cls(
            id=NodeId(data["id"]),
            name=data["name"],
            chain_type=ChainType(data["chain_type"]),
            endpoint_url=data["endpoint_url"],
            version=data["version"],
            region=data["region"],
            provider=CloudProvider(data["provider"]),
            owner=Identity(data["owner"]),
            registered_at=data["registered_at"],
            updated_at=data["updated_at"],
            status=NodeStatus(data["status"]),
            current_block=data["current_block"],
            highest_block=data["highest_block"],
            is_active=data["is_active"],
        )


def compute_sync_percentage(current_block: int, highest_block: int) -> int:
    """Floor of current/highest as a percentage.

    highest_block == 0 and current_block > highest_block both count as caught up.
    """
    if highest_block == 0 or current_block > highest_block:
        return 100
    return (current_block * 100) // highest_block
