"""Node Lifecycle Store — tests for registration, status updates and soft deletion.

Tests cover:
    - Registration defaults and counters
    - Duplicate identifier rejection
    - Owner-only update/deregister with untouched state on failure
    - Edge-triggered status-change events
    - Terminal inactive state and single counter decrement
    - sync_percentage bounds and integer truncation
"""

import pytest

from twist_registry.core.domain_types import (
    ChainType, CloudProvider, EventKind, Identity, NodeId, NodeStatus,
)
from twist_registry.core.errors import (
    AlreadyInactiveError, DuplicateIdentifierError, InvalidBlockNumberError,
    NodeNotFoundError, UnauthorizedError,
)
from twist_registry.core.event_log import EventLog
from twist_registry.core.node_record import compute_sync_percentage
from twist_registry.core.node_store import NodeLifecycleStore

ALICE = Identity("alice")
CAROL = Identity("carol")


def _register(
    store: NodeLifecycleStore,
    owner: Identity = ALICE,
    name: str = "N1",
    chain: ChainType = ChainType.ETHEREUM,
    now: int = 0,
) -> NodeId:
    return store.register(
        owner, name, chain, "https://eth.example.com", "Geth/v1.11.6",
        "us-east-1", CloudProvider.AWS, now,
    )


# ─── register ────────────────────────────────────────────────────

def test_register_initial_record():
    store = NodeLifecycleStore()
    node_id = _register(store)

    node = store.get(node_id)
    assert node.id == node_id
    assert node.status == NodeStatus.STARTING
    assert node.is_active
    assert node.current_block == 0
    assert node.highest_block == 0
    assert node.owner == ALICE
    assert node.registered_at == node.updated_at == 0
    assert store.count() == 1
    assert store.count_by_chain(ChainType.ETHEREUM) == 1


def test_register_increments_counts_by_one():
    store = NodeLifecycleStore()
    _register(store, name="eth", chain=ChainType.ETHEREUM)
    _register(store, name="poly", chain=ChainType.POLYGON)
    _register(store, name="arb", chain=ChainType.ARBITRUM)

    assert store.count() == 3
    assert store.count_by_chain(ChainType.ETHEREUM) == 1
    assert store.count_by_chain(ChainType.POLYGON) == 1
    assert store.count_by_chain(ChainType.ARBITRUM) == 1
    assert store.count_by_chain(ChainType.BSC) == 0


def test_register_duplicate_identifier_rejected():
    store = NodeLifecycleStore()
    _register(store, now=10)
    with pytest.raises(DuplicateIdentifierError):
        _register(store, now=10)
    assert store.count() == 1
    assert store.count_by_chain(ChainType.ETHEREUM) == 1
    assert len(store.list_by_owner(ALICE)) == 1


def test_other_owner_cannot_preempt_by_shifting_name():
    store = NodeLifecycleStore()
    theirs = _register(store, owner=Identity("0xa"), name="bN", now=5)
    mine = _register(store, owner=Identity("0xab"), name="N", now=5)
    assert theirs != mine
    assert store.list_by_owner(Identity("0xab")) == [mine]


def test_same_name_later_time_is_new_node():
    store = NodeLifecycleStore()
    a = _register(store, now=10)
    b = _register(store, now=11)
    assert a != b
    assert store.list_by_owner(ALICE) == [a, b]


def test_register_appends_event():
    events = EventLog()
    store = NodeLifecycleStore(events)
    node_id = _register(store, now=7)
    (event,) = list(events)
    assert event.kind == EventKind.NODE_REGISTERED
    assert event.logical_time == 7
    assert event.payload["node_id"] == node_id
    assert event.payload["chain_type"] == "ethereum"


def test_get_returns_copy():
    store = NodeLifecycleStore()
    node_id = _register(store)
    copy = store.get(node_id)
    copy.status = NodeStatus.ERROR
    copy.is_active = False
    assert store.get(node_id).status == NodeStatus.STARTING
    assert store.get(node_id).is_active


def test_get_unknown_raises_not_found():
    with pytest.raises(NodeNotFoundError):
        NodeLifecycleStore().get(NodeId("0" * 64))


# ─── update_status ───────────────────────────────────────────────

def test_update_status_writes_blocks_and_status():
    store = NodeLifecycleStore()
    node_id = _register(store)
    changed = store.update_status(
        ALICE, node_id, NodeStatus.SYNCING, 750_000, 1_000_000, now=5,
    )
    node = store.get(node_id)
    assert changed
    assert node.status == NodeStatus.SYNCING
    assert node.current_block == 750_000
    assert node.highest_block == 1_000_000
    assert node.updated_at == 5
    assert store.sync_percentage(node_id) == 75


def test_update_same_status_writes_blocks_without_event():
    events = EventLog()
    store = NodeLifecycleStore(events)
    node_id = _register(store)
    store.update_status(ALICE, node_id, NodeStatus.SYNCING, 1, 10, now=1)
    changed = store.update_status(ALICE, node_id, NodeStatus.SYNCING, 5, 10, now=2)

    assert not changed
    assert store.get(node_id).current_block == 5
    assert store.get(node_id).updated_at == 2
    kinds = [e.kind for e in events]
    assert kinds.count(EventKind.NODE_STATUS_CHANGED) == 1


def test_update_status_allows_block_regression():
    store = NodeLifecycleStore()
    node_id = _register(store)
    store.update_status(ALICE, node_id, NodeStatus.RUNNING, 900, 1000, now=1)
    store.update_status(ALICE, node_id, NodeStatus.RUNNING, 100, 500, now=2)
    assert store.get(node_id).current_block == 100
    assert store.get(node_id).highest_block == 500


def test_update_status_by_non_owner_unauthorized_and_unchanged():
    store = NodeLifecycleStore()
    node_id = _register(store)
    before = store.get(node_id)
    with pytest.raises(UnauthorizedError):
        store.update_status(CAROL, node_id, NodeStatus.RUNNING, 10, 20, now=3)
    assert store.get(node_id) == before


def test_update_status_unknown_node():
    with pytest.raises(NodeNotFoundError):
        NodeLifecycleStore().update_status(
            ALICE, NodeId("f" * 64), NodeStatus.RUNNING, 0, 0, now=0,
        )


def test_update_status_negative_block_rejected_before_mutation():
    store = NodeLifecycleStore()
    node_id = _register(store)
    with pytest.raises(InvalidBlockNumberError):
        store.update_status(ALICE, node_id, NodeStatus.RUNNING, 10, -1, now=3)
    node = store.get(node_id)
    assert node.status == NodeStatus.STARTING
    assert node.current_block == 0
    assert node.updated_at == 0


def test_update_status_after_deregister_fails():
    store = NodeLifecycleStore()
    node_id = _register(store)
    store.deregister(ALICE, node_id)
    with pytest.raises(AlreadyInactiveError):
        store.update_status(ALICE, node_id, NodeStatus.RUNNING, 1, 1, now=1)


# ─── deregister ──────────────────────────────────────────────────

def test_deregister_soft_deletes_and_decrements_once():
    store = NodeLifecycleStore()
    node_id = _register(store)
    store.deregister(ALICE, node_id, now=9)

    node = store.get(node_id)
    assert not node.is_active
    assert node.updated_at == 9
    assert store.count() == 1
    assert store.count_by_chain(ChainType.ETHEREUM) == 0
    assert store.list_by_owner(ALICE) == [node_id]


def test_second_deregister_fails_without_double_decrement():
    store = NodeLifecycleStore()
    keep = _register(store, name="keep")
    gone = _register(store, name="gone")
    store.deregister(ALICE, gone)

    with pytest.raises(AlreadyInactiveError):
        store.deregister(ALICE, gone)
    assert store.count_by_chain(ChainType.ETHEREUM) == 1
    assert store.get(keep).is_active


def test_deregister_by_non_owner_unauthorized():
    store = NodeLifecycleStore()
    node_id = _register(store)
    with pytest.raises(UnauthorizedError):
        store.deregister(CAROL, node_id)
    assert store.get(node_id).is_active
    assert store.count_by_chain(ChainType.ETHEREUM) == 1


def test_deregister_unknown_node():
    with pytest.raises(NodeNotFoundError):
        NodeLifecycleStore().deregister(ALICE, NodeId("a" * 64))


def test_deregister_without_time_keeps_updated_at():
    store = NodeLifecycleStore()
    node_id = _register(store, now=4)
    store.deregister(ALICE, node_id)
    assert store.get(node_id).updated_at == 4


# ─── queries ─────────────────────────────────────────────────────

def test_list_by_owner_scoped_and_ordered():
    store = NodeLifecycleStore()
    a1 = _register(store, owner=ALICE, name="a1")
    c1 = _register(store, owner=CAROL, name="c1")
    a2 = _register(store, owner=ALICE, name="a2")
    assert store.list_by_owner(ALICE) == [a1, a2]
    assert store.list_by_owner(CAROL) == [c1]
    assert store.list_by_owner(Identity("nobody")) == []


def test_sync_percentage_unknown_node():
    with pytest.raises(NodeNotFoundError):
        NodeLifecycleStore().sync_percentage(NodeId("b" * 64))


@pytest.mark.parametrize(
    ("current", "highest", "expected"),
    [
        (0, 0, 100),
        (12345, 0, 100),
        (750_000, 1_000_000, 75),
        (1_000_000, 1_000_000, 100),
        (1_000_001, 1_000_000, 100),
        (0, 1_000_000, 0),
        (999, 1000, 99),
        (1, 3, 33),
        (2**64 - 1, 2**64, 99),
    ],
)
def test_compute_sync_percentage(current, highest, expected):
    assert compute_sync_percentage(current, highest) == expected
