from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, String, Text, select, text
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import dt_iso

logger = logging.getLogger(__name__)


class Location(Base):
    """A valid QR code placed at a physical location of the hunt."""

    __tablename__ = "locations"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    """Value encoded in the QR code; unique identifier of the location."""

    location_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    """Number printed on the location sign (e.g. ``"01"``)."""

    location_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Display name of the location."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Free-text notes about the location."""

    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    """Inactive codes stay valid for statistics but are hidden from the hunt."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __init__(
        self,
        *,
        code: str,
        location_number: Optional[str] = None,
        location_name: Optional[str] = None,
        description: Optional[str] = None,
        active: bool = True,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.code = code
        self.location_number = location_number
        self.location_name = location_name
        self.description = description
        self.active = active
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Location(code={code}, number={number}, active={active})>".format(
            code=self.code,
            number=self.location_number,
            active=self.active,
        )

    @property
    def label(self) -> str:
        """Name shown on reports, falling back to the description."""
        return self.location_name or self.description or "Unnamed"

    @classmethod
    def get_by_code(cls, session: Session, code: str) -> Optional["Location"]:
        """Return the location registered under ``code`` if it exists."""

        return session.get(cls, code)

    @classmethod
    def list_all(cls, session: Session) -> list["Location"]:
        """Return all locations in insertion order of their codes' creation."""

        stmt = select(cls).order_by(cls.created_at.asc(), cls.code.asc())
        return list(session.scalars(stmt).all())

    @classmethod
    def upsert(
        cls,
        session: Session,
        code: str,
        *,
        location_number: Optional[str] = None,
        location_name: Optional[str] = None,
        description: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> "Location":
        """Create the location for ``code`` or merge the supplied fields into it.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        code : str
            QR code value. Surrounding whitespace is stripped.
        location_number, location_name, description : Optional[str]
            Fields to set. ``None`` leaves an existing value untouched.
        active : Optional[bool]
            New active flag. ``None`` keeps the current flag (``True`` for
            new locations).

        Returns
        -------
        Location
            The created or updated location, flushed to the session.

        Raises
        ------
        ValueError
            If ``code`` is empty.
        """

        normalized = (code or "").strip()
        if not normalized:
            raise ValueError("QR code value is required")

        location = session.get(cls, normalized)
        if location is None:
            location = cls(
                code=normalized,
                location_number=location_number,
                location_name=location_name,
                description=description,
                active=True if active is None else active,
            )
            session.add(location)
            logger.info("Created location %s", normalized)
        else:
            if location_number is not None:
                location.location_number = location_number
            if location_name is not None:
                location.location_name = location_name
            if description is not None:
                location.description = description
            if active is not None:
                location.active = active
            location.updated_at = datetime.now(timezone.utc)
            logger.info("Updated location %s", normalized)

        session.flush()
        return location

    @classmethod
    def delete_by_code(cls, session: Session, code: str) -> bool:
        """Delete the location for ``code``; return whether a row existed."""

        normalized = (code or "").strip()
        if not normalized:
            raise ValueError("QR code value is required")
        location = session.get(cls, normalized)
        if location is None:
            return False
        session.delete(location)
        session.flush()
        logger.info("Deleted location %s", normalized)
        return True

    def to_json(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "location_number": self.location_number,
            "location_name": self.location_name,
            "description": self.description,
            "active": self.active,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }
