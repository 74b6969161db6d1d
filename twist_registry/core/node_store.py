"""Node Lifecycle Store — registry of node records with owner-scoped transitions.

Invariants:
    - Node ids are unique; a colliding derivation raises DuplicateIdentifierError
    - Only the owner may update or deregister a node
    - Deregistration is a one-way soft delete; the chain counter drops exactly once
    - Every check runs before any mutation (all-or-nothing per operation)
    - count() counts every record ever registered; count_by_chain() counts active ones

Design Decisions:
    - Plain single-threaded object: PlatformEngine owns the lock
    - get() returns a copy so callers cannot mutate stored records
    - Status-change events are edge-triggered; block counters are written unconditionally
"""

from dataclasses import replace

from twist_registry.core.domain_types import (
    ChainType, CloudProvider, EventKind, Identity, NodeId, NodeStatus,
)
from twist_registry.core.errors import (
    AlreadyInactiveError, DuplicateIdentifierError, ErrorContext,
    InvalidBlockNumberError, NodeNotFoundError, UnauthorizedError,
)
from twist_registry.core.event_log import EventLog
from twist_registry.core.node_identity import generate_node_id
from twist_registry.core.node_record import NodeRecord


class NodeLifecycleStore:
    """Node map, per-owner index and per-chain counters."""

    def __init__(self, events: EventLog | None = None):
        self._events = events if events is not None else EventLog()
        self._nodes: dict[NodeId, NodeRecord] = {}
        self._by_owner: dict[Identity, list[NodeId]] = {}
        self._chain_counts: dict[ChainType, int] = {c: 0 for c in ChainType}

    # --- Mutations -------------------------------------------------------------

    def register(
        self,
        caller: Identity,
        name: str,
        chain_type: ChainType,
        endpoint_url: str,
        version: str,
        region: str,
        provider: CloudProvider,
        now: int,
    ) -> NodeId:
        """Create a node owned by caller. No role check."""
        node_id = generate_node_id(caller, name, now)
        if node_id in self._nodes:
            raise DuplicateIdentifierError(
                node_id, ErrorContext(caller=caller, node_id=node_id),
            )

        self._nodes[node_id] = NodeRecord(
            id=node_id,
            name=name,
            chain_type=chain_type,
            endpoint_url=endpoint_url,
            version=version,
            region=region,
            provider=provider,
            owner=caller,
            registered_at=now,
            updated_at=now,
        )
        self._by_owner.setdefault(caller, []).append(node_id)
        self._chain_counts[chain_type] += 1
        self._events.append(
            EventKind.NODE_REGISTERED, now,
            node_id=node_id, name=name, chain_type=chain_type.value, owner=caller,
        )
        return node_id

    def update_status(
        self,
        caller: Identity,
        node_id: NodeId,
        new_status: NodeStatus,
        current_block: int,
        highest_block: int,
        now: int,
    ) -> bool:
        """Write block counters; change status only if it differs.

        Returns True when the status changed.
        """
        record = self._owned_active(caller, node_id)
        for field_name, value in (
            ("current_block", current_block), ("highest_block", highest_block),
        ):
            if value < 0:
                raise InvalidBlockNumberError(
                    field_name, value, ErrorContext(caller=caller, node_id=node_id),
                )

        record.current_block = current_block
        record.highest_block = highest_block
        record.updated_at = now

        if record.status == new_status:
            return False
        old_status = record.status
        record.status = new_status
        self._events.append(
            EventKind.NODE_STATUS_CHANGED, now,
            node_id=node_id, old_status=old_status.value,
            new_status=new_status.value,
        )
        return True

    def deregister(
        self, caller: Identity, node_id: NodeId, now: int | None = None,
    ) -> None:
        record = self._owned_active(caller, node_id)
        record.is_active = False
        if now is not None:
            record.updated_at = now
        self._chain_counts[record.chain_type] -= 1
        self._events.append(
            EventKind.NODE_DEREGISTERED, now,
            node_id=node_id, chain_type=record.chain_type.value,
        )

    # --- Queries ---------------------------------------------------------------

    def get(self, node_id: NodeId) -> NodeRecord:
        return replace(self._require(node_id))

    def list_by_owner(self, owner: Identity) -> list[NodeId]:
        return list(self._by_owner.get(owner, []))

    def count(self) -> int:
        return len(self._nodes)

    def count_by_chain(self, chain_type: ChainType) -> int:
        return self._chain_counts[chain_type]

    def sync_percentage(self, node_id: NodeId) -> int:
        return self._require(node_id).sync_percentage

    def records(self) -> list[NodeRecord]:
        """Copies of every record in registration order."""
        return [replace(r) for r in self._nodes.values()]

    # --- Restore ---------------------------------------------------------------

    @classmethod
    def restore(
        cls,
        records: list[NodeRecord],
        by_owner: dict[Identity, list[NodeId]],
        chain_counts: dict[ChainType, int],
        events: EventLog | None = None,
    ) -> "NodeLifecycleStore":
        """Rebuild from persisted state without emitting events."""
        store = cls(events)
        store._nodes = {r.id: replace(r) for r in records}
        store._by_owner = {o: list(ids) for o, ids in by_owner.items()}
        store._chain_counts.update(chain_counts)
        return store

    def owner_index(self) -> dict[Identity, list[NodeId]]:
        return {o: list(ids) for o, ids in self._by_owner.items()}

    def chain_counts(self) -> dict[ChainType, int]:
        return dict(self._chain_counts)

    # --- Internals -------------------------------------------------------------

    def _require(self, node_id: NodeId) -> NodeRecord:
        record = self._nodes.get(node_id)
        if record is None:
            raise NodeNotFoundError(node_id)
        return record

    def _owned_active(self, caller: Identity, node_id: NodeId) -> NodeRecord:
        record = self._require(node_id)
        if record.owner != caller:
            raise UnauthorizedError(
                "Not the node owner", ErrorContext(caller=caller, node_id=node_id),
            )
        if not record.is_active:
            raise AlreadyInactiveError(
                node_id, ErrorContext(caller=caller, node_id=node_id),
            )
        return record
