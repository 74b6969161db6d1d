"""Role Registry — set-membership access control for admin, minter and pauser.

Invariants:
    - Grants are (identity, Capability) pairs in a set — no numeric role flags
    - Only ADMIN holders may grant or revoke, including ADMIN itself
    - Granting a held capability / revoking an unheld one is an idempotent success
    - An event is appended only when membership actually changes

Design Decisions:
    - Last-admin revocation is NOT blocked here; callers own that invariant
    - has() is the oracle consumed by the vesting and token ledgers
"""

from twist_registry.core.domain_types import Capability, EventKind, Identity
from twist_registry.core.errors import ErrorContext, UnauthorizedError
from twist_registry.core.event_log import EventLog


class RoleRegistry:
    """Tracks which identities hold which capabilities."""

    def __init__(
        self,
        initial_admin: Identity,
        events: EventLog | None = None,
        grants: set[tuple[Identity, Capability]] | None = None,
    ):
        self._events = events if events is not None else EventLog()
        if grants is not None:
            self._grants = set(grants)
        else:
            self._grants = {(initial_admin, Capability.ADMIN)}

    def has(self, identity: Identity, capability: Capability) -> bool:
        return (identity, capability) in self._grants

    def require(self, identity: Identity, capability: Capability) -> None:
        """Raise UnauthorizedError unless identity holds capability."""
        if not self.has(identity, capability):
            raise UnauthorizedError(
                f"Caller lacks the {capability.value} capability",
                ErrorContext(caller=identity),
            )

    def grant(
        self, caller: Identity, identity: Identity, capability: Capability,
        now: int | None = None,
    ) -> None:
        self.require(caller, Capability.ADMIN)
        key = (identity, capability)
        if key in self._grants:
            return
        self._grants.add(key)
        self._events.append(
            EventKind.ROLE_GRANTED, now,
            identity=identity, capability=capability.value, granted_by=caller,
        )

    def revoke(
        self, caller: Identity, identity: Identity, capability: Capability,
        now: int | None = None,
    ) -> None:
        self.require(caller, Capability.ADMIN)
        key = (identity, capability)
        if key not in self._grants:
            return
        self._grants.discard(key)
        self._events.append(
            EventKind.ROLE_REVOKED, now,
            identity=identity, capability=capability.value, revoked_by=caller,
        )

    def holders(self, capability: Capability) -> list[Identity]:
        return sorted(i for i, c in self._grants if c == capability)

    @property
    def grants(self) -> frozenset[tuple[Identity, Capability]]:
        return frozenset(self._grants)
