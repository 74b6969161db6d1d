"""ORM Models — SQLAlchemy declarative models for the persisted engine state.

Invariants:
    - All models inherit from Base (db/base.py)
    - ledger_events is append-only; state_snapshots is insert-only

Design Decisions:
    - One file per table for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from twist_registry.models.ledger_event import LedgerEventRow  # noqa: F401
from twist_registry.models.state_snapshot import StateSnapshotRow  # noqa: F401
