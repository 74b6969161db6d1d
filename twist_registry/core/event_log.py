"""Event Log — append-only record of every committed state transition.

Invariants:
    - Sequence numbers are dense and start at 1 (or at offset + 1 after a restore)
    - Events are frozen; nothing is ever removed or rewritten
    - Payloads are JSON-safe (enum values, not Enum members)

Design Decisions:
    - One log per engine, handed to each store at construction: stores append,
      the persistence shell reads since() its last persisted sequence
    - A restored log holds only the tail after `offset`; older events live in the
      ledger_events table, so snapshots never carry history
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

from twist_registry.core.domain_types import EventKind


@dataclass(frozen=True)
class LedgerEvent:
    """A single committed transition."""
    sequence: int
    kind: EventKind
    logical_time: int | None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "kind": self.kind.value,
            "logical_time": self.logical_time,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerEvent":
        return cls(
            sequence=data["sequence"],
            kind=EventKind(data["kind"]),
            logical_time=data.get("logical_time"),
            payload=dict(data.get("payload", {})),
        )


class EventLog:
    """Append-only list of LedgerEvent."""

    def __init__(self, events: list[LedgerEvent] | None = None, offset: int = 0):
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        self._offset = offset
        self._events: list[LedgerEvent] = list(events or [])

    def append(
        self, kind: EventKind, logical_time: int | None, **payload: Any,
    ) -> LedgerEvent:
        event = LedgerEvent(
            sequence=self.last_sequence + 1,
            kind=kind,
            logical_time=logical_time,
            payload=payload,
        )
        self._events.append(event)
        return event

    def since(self, sequence: int) -> list[LedgerEvent]:
        """Events with sequence strictly greater than `sequence`."""
        return self._events[max(sequence - self._offset, 0):]

    @property
    def last_sequence(self) -> int:
        return self._offset + len(self._events)

    def __len__(self) -> int:
        """Events held in memory (the tail after offset)."""
        return len(self._events)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(list(self._events))
