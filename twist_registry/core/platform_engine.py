"""Platform Engine — one explicit deployment object owning every store behind one lock.

Invariants:
    - Every mutation and every read runs under the same RLock (single writer,
      reads never see a half-applied operation)
    - Two claims for one beneficiary are linearized: the second sees the first's claimed_total
    - claim_vested checks the supply cap BEFORE recording the claim, so the claim
      and its mint commit together or not at all
    - total_supply + vesting.outstanding never exceeds max_supply: grants count
      circulating supply and MINTER mints count outstanding grants
    - The initial admin also holds MINTER and PAUSER and receives the initial supply

Design Decisions:
    - Stores stay plain single-threaded objects; locking lives only here
    - RLock (not Lock) so snapshotting can hold the lock while calling query methods
    - create() is the only constructor callers need; state_snapshot restores via __init__
"""

import threading

from twist_registry.core.domain_types import (
    Capability, ChainType, CloudProvider, Identity, NodeId, NodeStatus,
)
from twist_registry.core.event_log import EventLog, LedgerEvent
from twist_registry.core.node_record import NodeRecord
from twist_registry.core.node_store import NodeLifecycleStore
from twist_registry.core.role_registry import RoleRegistry
from twist_registry.core.token_ledger import TokenLedger
from twist_registry.core.vesting_ledger import (
    MintInstruction, VestingEntry, VestingLedger,
)


class PlatformEngine:
    """Registry + vesting + balances for a single deployment."""

    def __init__(
        self,
        admin: Identity,
        roles: RoleRegistry,
        nodes: NodeLifecycleStore,
        vesting: VestingLedger,
        tokens: TokenLedger,
        events: EventLog,
    ):
        self.admin = admin
        self.roles = roles
        self.nodes = nodes
        self.vesting = vesting
        self.tokens = tokens
        self.events = events
        self.lock = threading.RLock()

    def restore_state(self, other: "PlatformEngine") -> None:
        """Adopt every store of `other` in place, keeping this object and its lock."""
        with self.lock:
            self.admin = other.admin
            self.roles = other.roles
            self.nodes = other.nodes
            self.vesting = other.vesting
            self.tokens = other.tokens
            self.events = other.events

    @classmethod
    def create(
        cls,
        admin: Identity,
        max_supply: int,
        initial_supply: int,
        vesting_start: int,
        vesting_duration: int,
    ) -> "PlatformEngine":
        """Build a fresh deployment from injected configuration."""
        if initial_supply > max_supply:
            raise ValueError("initial_supply cannot exceed max_supply")
        events = EventLog()
        roles = RoleRegistry(admin, events)
        roles.grant(admin, admin, Capability.MINTER)
        roles.grant(admin, admin, Capability.PAUSER)
        tokens = TokenLedger(roles, max_supply, events)
        if initial_supply > 0:
            tokens.mint(admin, admin, initial_supply)
        vesting = VestingLedger(
            roles, vesting_start, vesting_duration, max_supply, events,
        )
        nodes = NodeLifecycleStore(events)
        return cls(admin, roles, nodes, vesting, tokens, events)

    # --- Nodes -----------------------------------------------------------------

    def register_node(
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
        with self.lock:
            return self.nodes.register(
                caller, name, chain_type, endpoint_url, version, region, provider, now,
            )

    def update_node_status(
        self,
        caller: Identity,
        node_id: NodeId,
        new_status: NodeStatus,
        current_block: int,
        highest_block: int,
        now: int,
    ) -> bool:
        with self.lock:
            return self.nodes.update_status(
                caller, node_id, new_status, current_block, highest_block, now,
            )

    def deregister_node(
        self, caller: Identity, node_id: NodeId, now: int | None = None,
    ) -> None:
        with self.lock:
            self.nodes.deregister(caller, node_id, now)

    def get_node(self, node_id: NodeId) -> NodeRecord:
        with self.lock:
            return self.nodes.get(node_id)

    def nodes_by_owner(self, owner: Identity) -> list[NodeId]:
        with self.lock:
            return self.nodes.list_by_owner(owner)

    def node_count(self) -> int:
        with self.lock:
            return self.nodes.count()

    def node_count_by_chain(self, chain_type: ChainType) -> int:
        with self.lock:
            return self.nodes.count_by_chain(chain_type)

    def sync_percentage(self, node_id: NodeId) -> int:
        with self.lock:
            return self.nodes.sync_percentage(node_id)

    # --- Roles -----------------------------------------------------------------

    def grant_role(
        self, caller: Identity, identity: Identity, capability: Capability,
        now: int | None = None,
    ) -> None:
        with self.lock:
            self.roles.grant(caller, identity, capability, now)

    def revoke_role(
        self, caller: Identity, identity: Identity, capability: Capability,
        now: int | None = None,
    ) -> None:
        with self.lock:
            self.roles.revoke(caller, identity, capability, now)

    def has_role(self, identity: Identity, capability: Capability) -> bool:
        with self.lock:
            return self.roles.has(identity, capability)

    # --- Vesting ---------------------------------------------------------------

    def add_vesting(
        self, caller: Identity, beneficiary: Identity, amount: int,
        now: int | None = None,
    ) -> VestingEntry:
        """Grant against the cap using the live circulating supply."""
        with self.lock:
            return self.vesting.add_vesting(
                caller, beneficiary, amount, self.tokens.total_supply, now,
            )

    def claimable(self, beneficiary: Identity, now: int) -> int:
        with self.lock:
            return self.vesting.claimable(beneficiary, now)

    def claim_vested(self, beneficiary: Identity, now: int) -> MintInstruction:
        """Claim and mint in one step."""
        with self.lock:
            instruction = self.vesting.claim(
                beneficiary, now, current_supply=self.tokens.total_supply,
            )
            self.tokens.apply_mint(instruction, now)
            return instruction

    def vesting_entry(self, beneficiary: Identity) -> VestingEntry:
        with self.lock:
            return self.vesting.entry(beneficiary)

    # --- Tokens ----------------------------------------------------------------

    def mint(
        self, caller: Identity, to: Identity, amount: int, now: int | None = None,
    ) -> None:
        """MINTER mint that keeps room for every outstanding vesting grant."""
        with self.lock:
            self.tokens.mint(
                caller, to, amount, now, reserved=self.vesting.outstanding,
            )

    def burn(self, caller: Identity, amount: int, now: int | None = None) -> None:
        with self.lock:
            self.tokens.burn(caller, amount, now)

    def transfer(
        self, caller: Identity, to: Identity, amount: int, now: int | None = None,
    ) -> None:
        with self.lock:
            self.tokens.transfer(caller, to, amount, now)

    def pause(self, caller: Identity, now: int | None = None) -> None:
        with self.lock:
            self.tokens.pause(caller, now)

    def unpause(self, caller: Identity, now: int | None = None) -> None:
        with self.lock:
            self.tokens.unpause(caller, now)

    def balance_of(self, identity: Identity) -> int:
        with self.lock:
            return self.tokens.balance_of(identity)

    def total_supply(self) -> int:
        with self.lock:
            return self.tokens.total_supply

    # --- Events ----------------------------------------------------------------

    def events_since(self, sequence: int) -> list[LedgerEvent]:
        with self.lock:
            return self.events.since(sequence)
