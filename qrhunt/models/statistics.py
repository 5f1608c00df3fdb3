from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import dt_iso


class StatisticsSnapshot(Base):
    """Saved copy of a derived statistics view.

    Rows are only written by the explicit "recalculate and save" action; the
    live dashboard always recomputes from users and locations.
    """

    __tablename__ = "statistics_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("kind", "key", name="uq_statistics_snapshots_kind_key"),
    )

    KIND_SUMMARY = "summary"
    KIND_LOCATION = "location"
    KIND_DISCOVERY = "discovery"

    def __init__(
        self,
        *,
        kind: str,
        key: str,
        payload: dict[str, Any],
        computed_at: Optional[datetime] = None,
    ) -> None:
        self.kind = kind
        self.key = key
        self.payload = payload
        if computed_at is not None:
            self.computed_at = computed_at

    @classmethod
    def get(
        cls, session: Session, kind: str, key: str
    ) -> Optional["StatisticsSnapshot"]:
        return session.scalar(select(cls).where(cls.kind == kind, cls.key == key))

    @classmethod
    def list_kind(cls, session: Session, kind: str) -> list["StatisticsSnapshot"]:
        return list(
            session.scalars(select(cls).where(cls.kind == kind).order_by(cls.key)).all()
        )

    @classmethod
    def save(
        cls,
        session: Session,
        kind: str,
        key: str,
        payload: dict[str, Any],
        *,
        computed_at: Optional[datetime] = None,
    ) -> "StatisticsSnapshot":
        """Insert or overwrite the snapshot identified by ``(kind, key)``."""

        now = computed_at or datetime.now(timezone.utc)
        snapshot = cls.get(session, kind, key)
        if snapshot is None:
            snapshot = cls(kind=kind, key=key, payload=payload, computed_at=now)
            session.add(snapshot)
        else:
            snapshot.payload = payload
            snapshot.computed_at = now
        return snapshot

    def to_json(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "key": self.key,
            "payload": self.payload,
            "computed_at": dt_iso(self.computed_at),
        }
