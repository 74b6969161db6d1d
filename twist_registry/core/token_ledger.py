"""Token Ledger — minted balances, circulating supply and the pause switch.

Invariants:
    - total_supply == sum of all balances, and never exceeds max_supply
    - A MINTER mint also leaves room for `reserved` (vesting granted, not yet claimed)
    - Balances never go negative
    - mint requires MINTER, pause/unpause require PAUSER
    - Transfers are rejected while paused; mint and burn are not

Design Decisions:
    - apply_mint() takes a vesting MintInstruction without a role check:
      the claim itself is the authorization
    - Zero balances are dropped from the map to keep snapshots small
"""

from twist_registry.core.domain_types import (
    Capability, EventKind, Identity, is_null_identity,
)
from twist_registry.core.errors import (
    ErrorContext, ExceedsMaxSupplyError, InsufficientBalanceError,
    InvalidAmountError, InvalidBeneficiaryError, LedgerPausedError,
)
from twist_registry.core.event_log import EventLog
from twist_registry.core.role_registry import RoleRegistry
from twist_registry.core.vesting_ledger import MintInstruction


class TokenLedger:
    """Balance map with a hard supply cap."""

    def __init__(
        self,
        roles: RoleRegistry,
        max_supply: int,
        events: EventLog | None = None,
    ):
        self._roles = roles
        self._events = events if events is not None else EventLog()
        self.max_supply = max_supply
        self.total_supply = 0
        self.paused = False
        self._balances: dict[Identity, int] = {}

    def balance_of(self, identity: Identity) -> int:
        return self._balances.get(identity, 0)

    def balances(self) -> dict[Identity, int]:
        return dict(self._balances)

    # --- Supply ----------------------------------------------------------------

    def mint(
        self,
        caller: Identity,
        to: Identity,
        amount: int,
        now: int | None = None,
        reserved: int = 0,
    ) -> None:
        self._roles.require(caller, Capability.MINTER)
        self._mint(
            to, amount, now, ErrorContext(caller=caller, beneficiary=to), reserved,
        )

    def apply_mint(self, instruction: MintInstruction, now: int | None = None) -> None:
        self._mint(
            instruction.beneficiary, instruction.amount, now,
            ErrorContext(beneficiary=instruction.beneficiary),
        )

    def burn(self, caller: Identity, amount: int, now: int | None = None) -> None:
        ctx = ErrorContext(caller=caller)
        if amount <= 0:
            raise InvalidAmountError(amount, ctx)
        balance = self.balance_of(caller)
        if balance < amount:
            raise InsufficientBalanceError(balance, amount, ctx)
        self._set_balance(caller, balance - amount)
        self.total_supply -= amount
        self._events.append(EventKind.TOKENS_BURNED, now, account=caller, amount=amount)

    def check_mint(
        self, amount: int, context: ErrorContext | None = None, reserved: int = 0,
    ) -> None:
        """Raise ExceedsMaxSupplyError if minting amount would breach the cap."""
        requested = self.total_supply + reserved + amount
        if requested > self.max_supply:
            raise ExceedsMaxSupplyError(requested, self.max_supply, context)

    # --- Transfers -------------------------------------------------------------

    def transfer(
        self, caller: Identity, to: Identity, amount: int, now: int | None = None,
    ) -> None:
        ctx = ErrorContext(caller=caller, beneficiary=to)
        if self.paused:
            raise LedgerPausedError(ctx)
        if is_null_identity(to):
            raise InvalidBeneficiaryError(ctx)
        if amount <= 0:
            raise InvalidAmountError(amount, ctx)
        balance = self.balance_of(caller)
        if balance < amount:
            raise InsufficientBalanceError(balance, amount, ctx)
        self._set_balance(caller, balance - amount)
        self._set_balance(to, self.balance_of(to) + amount)
        self._events.append(
            EventKind.TOKENS_TRANSFERRED, now,
            sender=caller, recipient=to, amount=amount,
        )

    # --- Pause -----------------------------------------------------------------

    def pause(self, caller: Identity, now: int | None = None) -> None:
        self._roles.require(caller, Capability.PAUSER)
        if self.paused:
            return
        self.paused = True
        self._events.append(EventKind.LEDGER_PAUSED, now, account=caller)

    def unpause(self, caller: Identity, now: int | None = None) -> None:
        self._roles.require(caller, Capability.PAUSER)
        if not self.paused:
            return
        self.paused = False
        self._events.append(EventKind.LEDGER_UNPAUSED, now, account=caller)

    # --- Restore ---------------------------------------------------------------

    def load_balances(self, balances: dict[Identity, int], paused: bool) -> None:
        """Replace balances from persisted state. No events emitted."""
        if any(v < 0 for v in balances.values()):
            raise ValueError("Corrupt balances: negative value")
        total = sum(balances.values())
        if total > self.max_supply:
            raise ValueError(f"Corrupt balances: supply {total} exceeds cap")
        self._balances = {k: v for k, v in balances.items() if v}
        self.total_supply = total
        self.paused = paused

    # --- Internals -------------------------------------------------------------

    def _mint(
        self,
        to: Identity,
        amount: int,
        now: int | None,
        ctx: ErrorContext,
        reserved: int = 0,
    ) -> None:
        if is_null_identity(to):
            raise InvalidBeneficiaryError(ctx)
        if amount <= 0:
            raise InvalidAmountError(amount, ctx)
        self.check_mint(amount, ctx, reserved)
        self._set_balance(to, self.balance_of(to) + amount)
        self.total_supply += amount
        self._events.append(EventKind.TOKENS_MINTED, now, recipient=to, amount=amount)

    def _set_balance(self, identity: Identity, value: int) -> None:
        if value:
            self._balances[identity] = value
        else:
            self._balances.pop(identity, None)
