from datetime import datetime, timezone
import json
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import dt_iso


class User(Base):
    """A participant of the scavenger hunt.

    Scan history is stored exactly as it was received (bare code strings or
    ``{"code": ..., "timestamp": ...}`` objects). Interpretation happens in
    :mod:`qrhunt.analytics.normalize`.
    """

    def __init__(
        self,
        id: str,
        scanned_codes: Optional[list[Any]] = None,
        drawing_entries: int = 0,
        bonus_entries: int = 0,
        redemption_status: Optional[dict[str, Any]] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        external_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        completion_time: Optional[datetime] = None,
        first_scan_at: Optional[datetime] = None,
    ):
        """Create a new :class:`User` record.

        Parameters
        ----------
        id : str
            Document-style identifier of the participant.
        scanned_codes : list, optional
            Raw scan entries in scan order.
        drawing_entries : int, default: 0
            Lottery tickets earned by scanning.
        bonus_entries : int, default: 0
            Lottery tickets granted as bonuses.
        redemption_status : dict, optional
            Mapping of tier id to ``{"redeemed": bool, "redeemedAt": ...}``.
        first_name, last_name, display_name : str, optional
            Name fields used for the winner snapshot.
        email, phone, external_id : str, optional
            Contact fields.
        created_at, updated_at, completion_time, first_scan_at : datetime, optional
            Lifecycle timestamps.
        """

        self.id = id
        self.scanned_codes = list(scanned_codes or [])
        self.drawing_entries = drawing_entries
        self.bonus_entries = bonus_entries
        self.redemption_status = dict(redemption_status or {})
        self.first_name = first_name
        self.last_name = last_name
        self.display_name = display_name
        self.email = email
        self.phone = phone
        self.external_id = external_id
        self.completion_time = completion_time
        self.first_scan_at = first_scan_at
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    scanned_codes: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    drawing_entries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bonus_entries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    redemption_status: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    external_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completion_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    first_scan_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<User(id='{self.id}', scans={len(self.scanned_codes or [])}, "
            f"drawing_entries={self.drawing_entries}, "
            f"bonus_entries={self.bonus_entries}, updated_at='{self.updated_at}')>"
        )

    @classmethod
    def get_by_id(cls, session: Session, user_id: str) -> Optional["User"]:
        """Retrieve a user by id."""

        return session.get(cls, user_id)

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["User"]:
        """Retrieve the first user registered with ``email``."""

        return session.scalars(select(cls).where(cls.email == email)).first()

    @property
    def display_label(self) -> str:
        """Human readable name used on winner snapshots."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.display_name or self.first_name or "Anonymous User"

    def reset_progress(self, *, now: Optional[datetime] = None) -> None:
        """Clear all hunt progress for this user.

        Scan history, both entry counters, tier redemptions, the completion
        time and the first-scan time are wiped. Contact fields are kept.
        """
        self.scanned_codes = []
        self.drawing_entries = 0
        self.bonus_entries = 0
        self.redemption_status = {}
        self.completion_time = None
        self.first_scan_at = None
        self.updated_at = now or datetime.now(timezone.utc)

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of the user."""
        return {
            "id": self.id,
            "name": self.display_label,
            "email": self.email,
            "phone": self.phone,
            "external_id": self.external_id,
            "scanned_codes": list(self.scanned_codes or []),
            "drawing_entries": self.drawing_entries,
            "bonus_entries": self.bonus_entries,
            "redemption_status": dict(self.redemption_status or {}),
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
            "completion_time": dt_iso(self.completion_time),
            "first_scan_at": dt_iso(self.first_scan_at),
        }

    def to_json_str(self) -> str:
        """Serialize this user to a JSON string."""
        return json.dumps(self.to_json(), ensure_ascii=False, default=str)
