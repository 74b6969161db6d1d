"""Vesting Ledger — tests for grants, linear release and claims.

Tests cover:
    - add_vesting authorization and input validation
    - Supply cap: current_supply + total_vested + amount <= max_supply
    - claimable at/before start, mid-window (truncation), at/after end
    - claim bookkeeping, NothingToClaim, MintInstruction shape
    - claimed_total <= vested_total across grant/claim interleavings
"""

import pytest

from twist_registry.core.domain_types import (
    Capability, EventKind, Identity, NULL_IDENTITY,
)
from twist_registry.core.errors import (
    ExceedsMaxSupplyError, InvalidAmountError, InvalidBeneficiaryError,
    NothingToClaimError, UnauthorizedError,
)
from twist_registry.core.event_log import EventLog
from twist_registry.core.role_registry import RoleRegistry
from twist_registry.core.vesting_ledger import (
    MintInstruction, VestingEntry, VestingLedger,
)

ADMIN = Identity("admin")
BOB = Identity("bob")
CAROL = Identity("carol")


def _ledger(
    start: int = 0, duration: int = 100, max_supply: int = 1_000_000,
) -> tuple[VestingLedger, EventLog]:
    events = EventLog()
    roles = RoleRegistry(ADMIN, events)
    return VestingLedger(roles, start, duration, max_supply, events), events


# ─── add_vesting ─────────────────────────────────────────────────

def test_add_vesting_accumulates():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 1_000, current_supply=0)
    entry = ledger.add_vesting(ADMIN, BOB, 500, current_supply=0)
    assert entry.vested_total == 1_500
    assert entry.claimed_total == 0
    assert ledger.total_vested == 1_500


def test_add_vesting_requires_admin():
    ledger, events = _ledger()
    with pytest.raises(UnauthorizedError):
        ledger.add_vesting(CAROL, BOB, 1_000, current_supply=0)
    assert ledger.total_vested == 0
    assert len(events) == 0


def test_minter_is_not_enough_to_vest():
    ledger, _ = _ledger()
    ledger._roles.grant(ADMIN, CAROL, Capability.MINTER)
    with pytest.raises(UnauthorizedError):
        ledger.add_vesting(CAROL, BOB, 1_000, current_supply=0)


@pytest.mark.parametrize("beneficiary", ["", NULL_IDENTITY, NULL_IDENTITY.upper()])
def test_add_vesting_rejects_null_beneficiary(beneficiary):
    ledger, _ = _ledger()
    with pytest.raises(InvalidBeneficiaryError):
        ledger.add_vesting(ADMIN, Identity(beneficiary), 1_000, current_supply=0)


@pytest.mark.parametrize("amount", [0, -5])
def test_add_vesting_rejects_non_positive_amount(amount):
    ledger, _ = _ledger()
    with pytest.raises(InvalidAmountError):
        ledger.add_vesting(ADMIN, BOB, amount, current_supply=0)


def test_add_vesting_cap_allows_exact_fit():
    ledger, _ = _ledger(max_supply=10_000)
    ledger.add_vesting(ADMIN, BOB, 6_000, current_supply=4_000)
    assert ledger.total_vested == 6_000


def test_add_vesting_over_cap_rejected_and_total_unchanged():
    ledger, _ = _ledger(max_supply=10_000)
    ledger.add_vesting(ADMIN, BOB, 6_000, current_supply=4_000)
    with pytest.raises(ExceedsMaxSupplyError):
        ledger.add_vesting(ADMIN, CAROL, 1, current_supply=4_000)
    assert ledger.total_vested == 6_000
    assert ledger.vested_amount(CAROL) == 0


# ─── claimable ───────────────────────────────────────────────────

def test_claimable_without_entry_is_zero():
    ledger, _ = _ledger()
    assert ledger.claimable(BOB, 50) == 0


def test_claimable_at_window_start_is_zero():
    ledger, _ = _ledger(start=1_000, duration=100)
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0)
    assert ledger.claimable(BOB, 1_000) == 0
    assert ledger.claimable(BOB, 500) == 0


def test_claimable_linear_midpoint():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0)
    assert ledger.claimable(BOB, 50) == 5_000
    assert ledger.claimable(BOB, 25) == 2_500


def test_claimable_truncates_toward_zero():
    ledger, _ = _ledger(duration=3)
    ledger.add_vesting(ADMIN, BOB, 10, current_supply=0)
    assert ledger.claimable(BOB, 1) == 3
    assert ledger.claimable(BOB, 2) == 6


def test_claimable_multiplies_before_dividing():
    ledger, _ = _ledger(duration=1_000)
    ledger.add_vesting(ADMIN, BOB, 999, current_supply=0)
    # 999 * 1 // 1000 == 0 ; 999 * 999 // 1000 == 998
    assert ledger.claimable(BOB, 1) == 0
    assert ledger.claimable(BOB, 999) == 998


def test_claimable_at_and_after_window_end_is_remaining():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0)
    ledger.claim(BOB, 30)
    remaining = ledger.vested_amount(BOB) - ledger.claimed_amount(BOB)
    assert ledger.claimable(BOB, 100) == remaining
    assert ledger.claimable(BOB, 10_000) == remaining


def test_claimable_clamped_when_queried_before_last_claim():
    """Interpolated release below claimed_total is clamped to zero."""
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 100, current_supply=0)
    ledger.claim(BOB, 90)
    assert ledger.claimable(BOB, 10) == 0


# ─── claim ───────────────────────────────────────────────────────

def test_claim_scenario_half_then_rest():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0, now=0)

    first = ledger.claim(BOB, 50)
    assert first == MintInstruction(BOB, 5_000)

    with pytest.raises(NothingToClaimError):
        ledger.claim(BOB, 50)

    second = ledger.claim(BOB, 100)
    assert second.amount == 5_000
    assert ledger.claimed_amount(BOB) == ledger.vested_amount(BOB) == 10_000


def test_claim_fully_claimed_raises():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0)
    ledger.claim(BOB, 200)
    with pytest.raises(NothingToClaimError):
        ledger.claim(BOB, 300)


def test_claim_without_entry_raises():
    ledger, _ = _ledger()
    with pytest.raises(NothingToClaimError):
        ledger.claim(CAROL, 100)


def test_claim_respects_supply_cap_before_mutating():
    ledger, events = _ledger(max_supply=10_000)
    ledger.add_vesting(ADMIN, BOB, 6_000, current_supply=0)
    before = len(events)
    with pytest.raises(ExceedsMaxSupplyError):
        ledger.claim(BOB, 100, current_supply=5_000)
    assert ledger.claimed_amount(BOB) == 0
    assert len(events) == before


def test_claim_emits_event():
    ledger, events = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10_000, current_supply=0, now=0)
    ledger.claim(BOB, 50)
    kinds = [e.kind for e in events]
    assert kinds == [EventKind.VESTING_ADDED, EventKind.TOKENS_CLAIMED]
    assert list(events)[-1].payload == {"beneficiary": BOB, "amount": 5_000}


def test_claimed_never_exceeds_vested_across_interleavings():
    ledger, _ = _ledger(duration=10)
    schedule = [
        ("grant", 0, 1_000), ("claim", 1, 0), ("claim", 3, 0),
        ("grant", 4, 333), ("claim", 4, 0), ("claim", 7, 0),
        ("grant", 8, 1), ("claim", 9, 0), ("claim", 10, 0), ("claim", 11, 0),
    ]
    for op, now, amount in schedule:
        if op == "grant":
            ledger.add_vesting(ADMIN, BOB, amount, current_supply=0, now=now)
        else:
            try:
                ledger.claim(BOB, now)
            except NothingToClaimError:
                pass
        entry = ledger.entry(BOB)
        assert 0 <= entry.claimed_total <= entry.vested_total
    assert ledger.claimed_amount(BOB) == 1_334


def test_entry_is_copy():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 10, current_supply=0)
    entry = ledger.entry(BOB)
    entry.claimed_total = 10
    assert ledger.claimed_amount(BOB) == 0


def test_invalid_window_rejected():
    roles = RoleRegistry(ADMIN)
    with pytest.raises(ValueError):
        VestingLedger(roles, 0, 0, 1_000)


def test_outstanding_tracks_claims():
    ledger, _ = _ledger()
    ledger.add_vesting(ADMIN, BOB, 1_000, current_supply=0)
    ledger.add_vesting(ADMIN, CAROL, 500, current_supply=0)
    ledger.claim(BOB, 50)
    assert ledger.total_claimed == 500
    assert ledger.outstanding == 1_000
    ledger.claim(CAROL, 100)
    assert ledger.outstanding == 500


def test_load_entries_recomputes_total_claimed():
    ledger, _ = _ledger()
    ledger.load_entries([VestingEntry(BOB, 100, 40), VestingEntry(CAROL, 10, 10)], 110)
    assert ledger.total_claimed == 50
    assert ledger.outstanding == 60
