"""Access to the append-only winner history."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..models import WinnerRecord


class WinnerHistoryStore(Protocol):
    """Narrow contract the drawing engine needs from the history store."""

    def list_recent(self, limit: Optional[int] = None) -> list[WinnerRecord]:
        """Return records newest first, at most ``limit`` of them."""
        ...

    def append_batch(self, records: Sequence[WinnerRecord]) -> None:
        """Stage ``records`` for the caller's transaction."""
        ...

    def clear_all(self) -> int:
        """Delete every record and return how many were removed."""
        ...


class SqlAlchemyWinnerHistoryStore:
    """:class:`WinnerHistoryStore` backed by the ``winner_records`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_recent(self, limit: Optional[int] = None) -> list[WinnerRecord]:
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative when provided")
        return WinnerRecord.list_recent(self._session, limit)

    def append_batch(self, records: Sequence[WinnerRecord]) -> None:
        self._session.add_all(list(records))
        self._session.flush()

    def clear_all(self) -> int:
        result = self._session.execute(delete(WinnerRecord))
        return result.rowcount or 0


__all__ = ["SqlAlchemyWinnerHistoryStore", "WinnerHistoryStore"]
