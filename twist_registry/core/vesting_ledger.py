"""Vesting Ledger — linear release of granted balances over one global window.

Invariants:
    - claimed_total <= vested_total for every entry, after every operation
    - vested_total and claimed_total never decrease
    - current_supply + total_vested never exceeds max_supply after a grant
    - total_claimed == sum of claimed_total; outstanding = total_vested - total_claimed
      is the supply reserved for future claims
    - Integer arithmetic only, multiply before divide (truncation toward zero)
    - claim() returns a MintInstruction; the ledger never touches circulating supply

Design Decisions:
    - window_end = window_start + duration, fixed at construction
    - Entries created zero-initialized on first grant; grants accumulate
    - The RoleRegistry is consulted through has()/require() only
"""

from dataclasses import dataclass

from twist_registry.core.domain_types import (
    Capability, EventKind, Identity, is_null_identity,
)
from twist_registry.core.errors import (
    ErrorContext, ExceedsMaxSupplyError, InvalidAmountError,
    InvalidBeneficiaryError, NothingToClaimError,
)
from twist_registry.core.event_log import EventLog
from twist_registry.core.role_registry import RoleRegistry


@dataclass
class VestingEntry:
    beneficiary: Identity
    vested_total: int = 0
    claimed_total: int = 0

    @property
    def unclaimed(self) -> int:
        return self.vested_total - self.claimed_total


@dataclass(frozen=True)
class MintInstruction:
    """Amount the balance ledger must mint to the beneficiary."""
    beneficiary: Identity
    amount: int


class VestingLedger:
    """Per-beneficiary vested/claimed totals plus the global window."""

    def __init__(
        self,
        roles: RoleRegistry,
        window_start: int,
        duration: int,
        max_supply: int,
        events: EventLog | None = None,
    ):
        if duration <= 0:
            raise ValueError(f"vesting duration must be positive, got {duration}")
        if max_supply <= 0:
            raise ValueError(f"max_supply must be positive, got {max_supply}")
        self._roles = roles
        self._events = events if events is not None else EventLog()
        self.window_start = window_start
        self.window_end = window_start + duration
        self.max_supply = max_supply
        self.total_vested = 0
        self.total_claimed = 0
        self._entries: dict[Identity, VestingEntry] = {}

    # --- Mutations -------------------------------------------------------------

    def add_vesting(
        self,
        caller: Identity,
        beneficiary: Identity,
        amount: int,
        current_supply: int,
        now: int | None = None,
    ) -> VestingEntry:
        self._roles.require(caller, Capability.ADMIN)
        ctx = ErrorContext(caller=caller, beneficiary=beneficiary)
        if is_null_identity(beneficiary):
            raise InvalidBeneficiaryError(ctx)
        if amount <= 0:
            raise InvalidAmountError(amount, ctx)
        if current_supply + self.total_vested + amount > self.max_supply:
            raise ExceedsMaxSupplyError(
                current_supply + self.total_vested + amount, self.max_supply, ctx,
            )

        entry = self._entries.setdefault(beneficiary, VestingEntry(beneficiary))
        entry.vested_total += amount
        self.total_vested += amount
        self._events.append(
            EventKind.VESTING_ADDED, now,
            beneficiary=beneficiary, amount=amount, granted_by=caller,
        )
        return VestingEntry(**vars(entry))

    def claim(
        self, beneficiary: Identity, now: int, current_supply: int | None = None,
    ) -> MintInstruction:
        """Record a claim of everything currently releasable."""
        amount = self.claimable(beneficiary, now)
        if amount <= 0:
            raise NothingToClaimError(beneficiary)
        if current_supply is not None and current_supply + amount > self.max_supply:
            raise ExceedsMaxSupplyError(
                current_supply + amount, self.max_supply,
                ErrorContext(beneficiary=beneficiary),
            )

        self._entries[beneficiary].claimed_total += amount
        self.total_claimed += amount
        self._events.append(
            EventKind.TOKENS_CLAIMED, now, beneficiary=beneficiary, amount=amount,
        )
        return MintInstruction(beneficiary, amount)

    # --- Queries ---------------------------------------------------------------

    @property
    def outstanding(self) -> int:
        """Granted but not yet claimed; minting must leave room for it."""
        return self.total_vested - self.total_claimed

    def claimable(self, beneficiary: Identity, now: int) -> int:
        entry = self._entries.get(beneficiary)
        if entry is None or entry.vested_total == 0 or entry.unclaimed == 0:
            return 0
        if now >= self.window_end:
            return entry.unclaimed
        elapsed = max(now - self.window_start, 0)
        released = (entry.vested_total * elapsed) // (self.window_end - self.window_start)
        return max(released - entry.claimed_total, 0)

    def vested_amount(self, beneficiary: Identity) -> int:
        entry = self._entries.get(beneficiary)
        return entry.vested_total if entry else 0

    def claimed_amount(self, beneficiary: Identity) -> int:
        entry = self._entries.get(beneficiary)
        return entry.claimed_total if entry else 0

    def entry(self, beneficiary: Identity) -> VestingEntry:
        """Copy of the entry; zero-valued when none exists."""
        entry = self._entries.get(beneficiary)
        if entry is None:
            return VestingEntry(beneficiary)
        return VestingEntry(**vars(entry))

    def entries(self) -> list[VestingEntry]:
        return [VestingEntry(**vars(e)) for e in self._entries.values()]

    # --- Restore ---------------------------------------------------------------

    def load_entries(self, entries: list[VestingEntry], total_vested: int) -> None:
        """Replace all entries from persisted state. No events emitted."""
        for e in entries:
            if not 0 <= e.claimed_total <= e.vested_total:
                raise ValueError(
                    f"Corrupt vesting entry for {e.beneficiary}: "
                    f"claimed {e.claimed_total} > vested {e.vested_total}"
                )
        claimed = sum(e.claimed_total for e in entries)
        if claimed > total_vested:
            raise ValueError(
                f"Corrupt vesting totals: claimed {claimed} > vested {total_vested}"
            )
        self._entries = {e.beneficiary: VestingEntry(**vars(e)) for e in entries}
        self.total_vested = total_vested
        self.total_claimed = claimed
