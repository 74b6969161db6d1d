"""Node Identity — tests for deterministic identifier derivation.

Tests cover:
    - Same inputs produce the same id
    - Any input change produces a different id
    - Output shape (64 lowercase hex chars)
    - Packed layout (length-prefixed caller and name, uint256 time)
    - Shifting bytes between caller and name never reuses an id
"""

import hashlib

import pytest

from twist_registry.core.domain_types import Identity
from twist_registry.core.node_identity import generate_node_id


def test_same_inputs_same_id():
    a = generate_node_id(Identity("alice"), "N1", 0)
    b = generate_node_id(Identity("alice"), "N1", 0)
    assert a == b


def test_id_is_64_lowercase_hex():
    node_id = generate_node_id(Identity("alice"), "N1", 1_700_000_000)
    assert len(node_id) == 64
    assert node_id == node_id.lower()
    int(node_id, 16)


def test_time_changes_id():
    assert generate_node_id(Identity("alice"), "N1", 1) != generate_node_id(
        Identity("alice"), "N1", 2,
    )


def test_caller_changes_id():
    assert generate_node_id(Identity("alice"), "N1", 1) != generate_node_id(
        Identity("bob"), "N1", 1,
    )


def test_name_changes_id():
    assert generate_node_id(Identity("alice"), "N1", 1) != generate_node_id(
        Identity("alice"), "N2", 1,
    )


def test_packed_layout():
    expected = hashlib.sha256(
        (5).to_bytes(4, "big") + b"alice"
        + (2).to_bytes(4, "big") + b"N1"
        + (42).to_bytes(32, "big"),
    ).hexdigest()
    assert generate_node_id(Identity("alice"), "N1", 42) == expected


def test_negative_time_rejected():
    with pytest.raises(ValueError):
        generate_node_id(Identity("alice"), "N1", -1)


def test_caller_name_boundary_is_unambiguous():
    assert generate_node_id(Identity("0xab"), "N", 5) != generate_node_id(
        Identity("0xa"), "bN", 5,
    )
