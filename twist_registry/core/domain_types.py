"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - NodeId is a 64-char lowercase hex SHA-256 digest — never a bare str in domain logic
    - Identity is an already-authenticated caller value; NULL_IDENTITY is never a valid beneficiary
    - LogicalTime is caller-supplied and non-decreasing; the core never reads a clock
    - All valid states encoded as Enums — no raw numeric flags

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (snapshots and REST share values)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

NodeId = NewType("NodeId", str)
Identity = NewType("Identity", str)

NULL_IDENTITY = Identity("0x0000000000000000000000000000000000000000")


# ─── Value Types ─────────────────────────────────────────────────

LogicalTime = NewType("LogicalTime", int)   # seconds, caller-supplied
TokenAmount = NewType("TokenAmount", int)   # smallest unit, unbounded int


# ─── Enums ───────────────────────────────────────────────────────

class ChainType(str, Enum):
    """Target network a node serves."""
    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    ARBITRUM = "arbitrum"
    BSC = "bsc"
    CUSTOM = "custom"


class NodeStatus(str, Enum):
    """Reported node health. New registrations start in STARTING."""
    RUNNING = "running"
    STOPPED = "stopped"
    STARTING = "starting"
    SYNCING = "syncing"
    ERROR = "error"
    MAINTENANCE = "maintenance"


class CloudProvider(str, Enum):
    """Where the node is hosted."""
    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"
    DIGITAL_OCEAN = "digitalocean"
    ON_PREMISE = "onpremise"


class Capability(str, Enum):
    """Named permissions held in the RoleRegistry."""
    ADMIN = "admin"
    MINTER = "minter"
    PAUSER = "pauser"


class EventKind(str, Enum):
    """Append-only event log entry kinds."""
    NODE_REGISTERED = "node_registered"
    NODE_STATUS_CHANGED = "node_status_changed"
    NODE_DEREGISTERED = "node_deregistered"
    ROLE_GRANTED = "role_granted"
    ROLE_REVOKED = "role_revoked"
    VESTING_ADDED = "vesting_added"
    TOKENS_CLAIMED = "tokens_claimed"
    TOKENS_MINTED = "tokens_minted"
    TOKENS_BURNED = "tokens_burned"
    TOKENS_TRANSFERRED = "tokens_transferred"
    LEDGER_PAUSED = "ledger_paused"
    LEDGER_UNPAUSED = "ledger_unpaused"


def is_null_identity(identity: str | None) -> bool:
    """True for the empty value and the all-zero address."""
    return not identity or identity.lower() == NULL_IDENTITY
