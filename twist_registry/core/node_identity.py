"""Node Identity — deterministic identifier derivation for new node records.

Invariants:
    - generate_node_id is PURE: same (caller, name, logical_time) → same NodeId
    - Output is always 64 lowercase hex chars (SHA-256)
    - Distinct (caller, name) pairs never share a preimage: every variable-length
      field is length-prefixed
    - Collisions are NOT handled here — the store rejects duplicates explicitly

Design Decisions:
    - Encoding: u32be(len caller) || caller || u32be(len name) || name || uint256 time.
      Identities are free-form strings here, not fixed 20-byte addresses, so
      plain concatenation would let ("0xab", "N") and ("0xa", "bN") collide
    - Logical time is an argument, never read from a clock (keeps tests reproducible)
"""

import hashlib

from twist_registry.core.domain_types import Identity, LogicalTime, NodeId


_LENGTH_PREFIX_BYTES = 4
_TIME_WIDTH_BYTES = 32


def _length_prefixed(value: str) -> bytes:
    raw = value.encode("utf-8")
    return len(raw).to_bytes(_LENGTH_PREFIX_BYTES, "big") + raw


def generate_node_id(
    caller: Identity, name: str, logical_time: LogicalTime | int,
) -> NodeId:
    """Derive a node identifier. Pure, no IO."""
    if logical_time < 0:
        raise ValueError(f"logical_time must be non-negative, got {logical_time}")
    packed = (
        _length_prefixed(caller)
        + _length_prefixed(name)
        + int(logical_time).to_bytes(_TIME_WIDTH_BYTES, "big")
    )
    return NodeId(hashlib.sha256(packed).hexdigest())
