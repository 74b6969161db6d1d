"""Event Log — tests for the append-only transition record."""

from twist_registry.core.domain_types import EventKind
from twist_registry.core.event_log import EventLog, LedgerEvent


def test_sequences_dense_from_one():
    log = EventLog()
    a = log.append(EventKind.LEDGER_PAUSED, 1, account="x")
    b = log.append(EventKind.LEDGER_UNPAUSED, 2, account="x")
    assert (a.sequence, b.sequence) == (1, 2)
    assert log.last_sequence == 2


def test_since_returns_strictly_newer():
    log = EventLog()
    for t in range(5):
        log.append(EventKind.TOKENS_BURNED, t, amount=t)
    assert [e.sequence for e in log.since(3)] == [4, 5]
    assert len(log.since(0)) == 5
    assert log.since(5) == []


def test_iteration_is_a_copy():
    log = EventLog()
    log.append(EventKind.TOKENS_BURNED, 0)
    events = list(log)
    events.clear()
    assert len(log) == 1


def test_event_dict_roundtrip():
    event = LedgerEvent(7, EventKind.VESTING_ADDED, None, {"amount": 10**30})
    assert LedgerEvent.from_dict(event.to_dict()) == event
    assert event.to_dict()["kind"] == "vesting_added"


def test_offset_log_continues_sequence():
    log = EventLog(offset=41)
    assert log.last_sequence == 41
    event = log.append(EventKind.LEDGER_PAUSED, 9, account="x")
    assert event.sequence == 42
    assert log.since(41) == [event]
    assert log.since(0) == [event]
    assert log.since(42) == []
    assert len(log) == 1
