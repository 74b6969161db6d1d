"""Engine Snapshot — serialization / deserialization for PlatformEngine.

Invariants:
    - engine_to_snapshot produces a JSON-safe dict (no sets, no Enums, no tuples)
    - engine_from_snapshot(engine_to_snapshot(e)) preserves node map, owner index,
      chain counters, vesting map, role set and balances exactly, and the event
      sequence continues from last_sequence
    - Restore re-checks every persisted invariant and raises ValueError on corruption
    - Restoring emits no events

Design Decisions:
    - Extracted from platform_engine.py: persistence layout is a separate concern
    - Chain counters are stored, not recomputed, then cross-checked against active records
    - Events are NOT embedded: they are persisted row by row in ledger_events, and
      a snapshot records only the last sequence it covers, so its size tracks
      live state rather than history
"""

from twist_registry.core.domain_types import Capability, ChainType, Identity, NodeId
from twist_registry.core.event_log import EventLog
from twist_registry.core.node_record import NodeRecord
from twist_registry.core.node_store import NodeLifecycleStore
from twist_registry.core.platform_engine import PlatformEngine
from twist_registry.core.role_registry import RoleRegistry
from twist_registry.core.token_ledger import TokenLedger
from twist_registry.core.vesting_ledger import VestingEntry, VestingLedger

SNAPSHOT_VERSION = 2


def engine_to_snapshot(engine: PlatformEngine) -> dict:
    """Serialize PlatformEngine to JSON-safe dict. Pure, no IO."""
    with engine.lock:
        return {
            "version": SNAPSHOT_VERSION,
            "admin": engine.admin,
            "max_supply": engine.tokens.max_supply,
            "window_start": engine.vesting.window_start,
            "window_end": engine.vesting.window_end,
            "roles": sorted(
                [identity, capability.value]
                for identity, capability in engine.roles.grants
            ),
            "nodes": [r.to_dict() for r in engine.nodes.records()],
            "owner_index": engine.nodes.owner_index(),
            "chain_counts": {
                c.value: n for c, n in engine.nodes.chain_counts().items()
            },
            "total_vested": engine.vesting.total_vested,
            "vesting": [
                {
                    "beneficiary": e.beneficiary,
                    "vested_total": e.vested_total,
                    "claimed_total": e.claimed_total,
                }
                for e in engine.vesting.entries()
            ],
            "total_supply": engine.tokens.total_supply,
            "paused": engine.tokens.paused,
            "balances": engine.tokens.balances(),
            "last_sequence": engine.events.last_sequence,
        }


def engine_from_snapshot(data: dict) -> PlatformEngine:
    """Reconstruct PlatformEngine from snapshot dict. Pure, no IO."""
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version}")

    admin = Identity(data["admin"])
    max_supply = data["max_supply"]
    events = EventLog(offset=data["last_sequence"])

    roles = RoleRegistry(
        admin, events,
        grants={(Identity(i), Capability(c)) for i, c in data["roles"]},
    )

    records = [NodeRecord.from_dict(r) for r in data["nodes"]]
    chain_counts = {ChainType(c): n for c, n in data["chain_counts"].items()}
    _check_chain_counts(records, chain_counts)
    nodes = NodeLifecycleStore.restore(
        records,
        {
            Identity(o): [NodeId(i) for i in ids]
            for o, ids in data["owner_index"].items()
        },
        chain_counts,
        events,
    )

    window_start = data["window_start"]
    vesting = VestingLedger(
        roles, window_start, data["window_end"] - window_start, max_supply, events,
    )
    vesting.load_entries(
        [
            VestingEntry(
                Identity(e["beneficiary"]), e["vested_total"], e["claimed_total"],
            )
            for e in data["vesting"]
        ],
        data["total_vested"],
    )

    tokens = TokenLedger(roles, max_supply, events)
    tokens.load_balances(
        {Identity(k): v for k, v in data["balances"].items()}, data["paused"],
    )
    if tokens.total_supply != data["total_supply"]:
        raise ValueError(
            f"Corrupt snapshot: balances sum to {tokens.total_supply}, "
            f"recorded supply {data['total_supply']}"
        )

    return PlatformEngine(admin, roles, nodes, vesting, tokens, events)


def _check_chain_counts(
    records: list[NodeRecord], chain_counts: dict[ChainType, int],
) -> None:
    for chain in ChainType:
        active = sum(1 for r in records if r.is_active and r.chain_type == chain)
        if chain_counts.get(chain, 0) != active:
            raise ValueError(
                f"Corrupt snapshot: {chain.value} counter "
                f"{chain_counts.get(chain, 0)} != {active} active nodes"
            )
