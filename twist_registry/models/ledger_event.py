"""LedgerEvent ORM — append-only table mirroring the engine's event log.

Invariants:
    - sequence is the primary key and equals LedgerEvent.sequence in the core
    - Rows are inserted, never updated or deleted

Design Decisions:
    - JSON payload column: amounts exceed BIGINT, JSON keeps them exact
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, BigInteger, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from twist_registry.db.base import Base


class LedgerEventRow(Base):
    """One committed state transition."""
    __tablename__ = "ledger_events"

    sequence: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False,
    )
    kind: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    logical_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
