"""StateSnapshot ORM — full engine snapshots keyed by last event sequence.

Invariants:
    - last_sequence is the highest event sequence the snapshot includes
    - The newest row (highest id) is the restore point on startup

Design Decisions:
    - Whole-engine JSON document: the snapshot layout lives in core/state_snapshot.py,
      the table only stores it
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from twist_registry.db.base import Base


class StateSnapshotRow(Base):
    """Serialized PlatformEngine."""
    __tablename__ = "state_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
