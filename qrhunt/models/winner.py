"""Database models for the winner drawing subsystem."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, Index, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import dt_iso


class WinnerRecord(Base):
    """Append-only record of one winner selected by a drawing.

    Contact fields are a snapshot taken at draw time and are never refreshed
    from the user afterwards.
    """

    __tablename__ = "winner_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    drawing_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    """Identifier shared by all winners selected in the same round."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp of the drawing."""

    draw_date: Mapped[str] = mapped_column(String(32), nullable=False)
    """Calendar label of the drawing, e.g. ``"Sat Oct 17 2026"``."""

    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    """Winning user. Not a foreign key so history survives user deletion."""

    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    """``"Scan"`` or ``"Bonus"``."""

    entry_number: Mapped[int] = mapped_column(Integer, nullable=False)
    """1-based number of the winning ticket in the pool."""

    total_entries_at_draw: Mapped[int] = mapped_column(Integer, nullable=False)
    """Size of the ticket pool before eligibility filtering."""

    winner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    winner_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    winner_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    winner_external_id: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )

    __table_args__ = (Index("ix_winner_records_drawn_at_id", "drawn_at", "id"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<WinnerRecord(id={self.id}, user_id='{self.user_id}', "
            f"entry_type='{self.entry_type}', drawn_at='{self.drawn_at}')>"
        )

    @classmethod
    def list_recent(
        cls, session: Session, limit: Optional[int] = None
    ) -> list["WinnerRecord"]:
        """Return winner records newest first, optionally capped at ``limit``."""

        stmt = select(cls).order_by(cls.drawn_at.desc(), cls.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of the record."""
        return {
            "id": self.id,
            "drawing_id": self.drawing_id,
            "drawn_at": dt_iso(self.drawn_at),
            "draw_date": self.draw_date,
            "user_id": self.user_id,
            "entry_type": self.entry_type,
            "entry_number": self.entry_number,
            "total_entries_at_draw": self.total_entries_at_draw,
            "winner": {
                "name": self.winner_name,
                "email": self.winner_email,
                "phone": self.winner_phone,
                "external_id": self.winner_external_id,
            },
        }


class DrawingMarker(Base):
    """Concurrency token guarding a named drawing.

    ``version`` is bumped with a conditional update when a round commits; a
    round that read an older version fails instead of committing winners that
    were selected against stale history.
    """

    __tablename__ = "drawing_markers"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_drawn_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __init__(self, *, name: str, version: int = 0) -> None:
        self.name = name
        self.version = version

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<DrawingMarker(name='{self.name}', version={self.version})>"
