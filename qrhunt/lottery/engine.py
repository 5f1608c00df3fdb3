"""Workflow engine running a winner drawing end to end."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import random
from typing import Any, Optional, Sequence
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..analytics.normalize import ParticipantRecord
from ..config import HuntSettings
from ..errors import (
    ConcurrentDrawingError,
    DataUnavailableError,
    PersistenceFailureError,
)
from ..models import DrawingMarker, WinnerRecord
from .entries import LotteryTicket, build_lottery_tickets
from .history import SqlAlchemyWinnerHistoryStore, WinnerHistoryStore
from .selector import DrawingState, WinnerSelector

logger = logging.getLogger(__name__)


@dataclass
class DrawingResult:
    """Outcome of one drawing request.

    Attributes
    ----------
    state : DrawingState
        ``COMMITTED`` when winners were persisted, ``NO_ELIGIBLE`` when no
        ticket could be drawn, ``IDLE`` when zero winners were requested.
    requested : int
        Number of winners asked for.
    winners : list[WinnerRecord]
        Persisted winner records in draw order.
    total_entries : int
        Size of the ticket pool before eligibility filtering.
    excluded_user_ids : frozenset[str]
        Recent winners who were not eligible.
    drawing_id : Optional[str]
        Identifier shared by the winner records of this round.
    notice : Optional[str]
        Informational message when fewer winners than requested were drawn.
    """

    state: DrawingState
    requested: int
    winners: list[WinnerRecord] = field(default_factory=list)
    total_entries: int = 0
    excluded_user_ids: frozenset[str] = frozenset()
    drawing_id: Optional[str] = None
    notice: Optional[str] = None

    @property
    def selected(self) -> int:
        return len(self.winners)

    def to_json(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "requested": self.requested,
            "selected": self.selected,
            "total_entries": self.total_entries,
            "drawing_id": self.drawing_id,
            "notice": self.notice,
            "winners": [winner.to_json() for winner in self.winners],
        }


class LotteryDrawEngine:
    """Engine that builds the ticket pool, draws winners and persists them."""

    def __init__(
        self,
        session: Session,
        *,
        history: Optional[WinnerHistoryStore] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[HuntSettings] = None,
    ) -> None:
        """Create a drawing engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for history reads and writes.
        history : Optional[WinnerHistoryStore], default: None
            History store; defaults to the ``winner_records`` table of
            ``session``.
        rng : Optional[random.Random], default: None
            Random generator handed to the :class:`WinnerSelector`.
        settings : Optional[HuntSettings], default: None
            Exclusion window and marker name. Defaults to
            :meth:`HuntSettings.from_env`.
        """

        self._session = session
        self._history = history or SqlAlchemyWinnerHistoryStore(session)
        self._rng = rng
        self._settings = settings or HuntSettings.from_env()

    def recent_winner_ids(self) -> frozenset[str]:
        """User ids among the newest ``winner_exclusion_window`` history records."""

        try:
            recent = self._history.list_recent(self._settings.winner_exclusion_window)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read winner history")
            raise DataUnavailableError("Winner history could not be read") from exc
        return frozenset(record.user_id for record in recent)

    def draw(
        self,
        participants: Sequence[ParticipantRecord],
        count: int,
        *,
        now: Optional[datetime] = None,
    ) -> DrawingResult:
        """Draw up to ``count`` distinct winners and persist them atomically.

        Parameters
        ----------
        participants : Sequence[ParticipantRecord]
            Users whose entries form the ticket pool.
        count : int
            Number of winners requested.
        now : Optional[datetime], default: None
            Drawing time recorded on the winner records.

        Returns
        -------
        DrawingResult
            The persisted winners. Fewer than ``count`` winners is a valid
            outcome when the eligible pool runs out.

        Notes
        -----
        The round performs the following steps:

        1. Read the drawing marker's version token.
        2. Read the recent-winner exclusion set.
        3. Select winners with :class:`WinnerSelector`.
        4. In one savepoint, add every winner record and advance the token
           only if it still holds the version read in step 1.

        Nothing is written before step 4, so an abandoned or failed round
        leaves no trace.

        Raises
        ------
        ValueError
            If ``count`` is negative.
        DataUnavailableError
            If the drawing marker or winner history cannot be read.
        ConcurrentDrawingError
            If another drawing committed after step 1.
        PersistenceFailureError
            If the batch could not be written.
        """

        if count < 0:
            raise ValueError("count must be non-negative")

        tickets = build_lottery_tickets(participants)
        selector = WinnerSelector(self._rng)
        if count == 0:
            return DrawingResult(
                state=DrawingState.IDLE, requested=0, total_entries=len(tickets)
            )

        token = self._read_token()
        excluded = self.recent_winner_ids()
        outcome = selector.select(tickets, count, excluded)

        if not outcome.picks:
            logger.warning(
                "No eligible participants: %d tickets, %d recent winners excluded",
                len(tickets),
                len(excluded),
            )
            return DrawingResult(
                state=selector.state,
                requested=count,
                total_entries=len(tickets),
                excluded_user_ids=excluded,
                notice="No eligible participants with entries are available.",
            )

        now = now or datetime.now(timezone.utc)
        drawing_id = uuid.uuid4().hex
        records = [
            self._build_record(ticket, drawing_id, now, len(tickets))
            for ticket in outcome.picks
        ]

        try:
            with self._session.begin_nested():
                self._history.append_batch(records)
                self._advance_token(token, now)
        except ConcurrentDrawingError:
            logger.warning("Drawing %s lost a race with another drawing", drawing_id)
            raise
        except SQLAlchemyError as exc:
            logger.exception("Failed to persist drawing %s", drawing_id)
            raise PersistenceFailureError(
                f"Failed to save {len(records)} winner(s); no winners were recorded"
            ) from exc

        selector.mark_committed()
        notice = None
        if outcome.exhausted:
            logger.warning(
                "Drawing %s stopped early: %d of %d winner(s), pool exhausted",
                drawing_id,
                outcome.selected,
                count,
            )
            notice = (
                f"Selected {outcome.selected} winner(s). No more unique eligible "
                "participants with entries."
            )
        logger.info(
            "Drawing %s committed %d of %d requested winner(s)",
            drawing_id,
            outcome.selected,
            count,
        )
        return DrawingResult(
            state=selector.state,
            requested=count,
            winners=records,
            total_entries=len(tickets),
            excluded_user_ids=excluded,
            drawing_id=drawing_id,
            notice=notice,
        )

    def _build_record(
        self,
        ticket: LotteryTicket,
        drawing_id: str,
        drawn_at: datetime,
        total_entries: int,
    ) -> WinnerRecord:
        return WinnerRecord(
            drawing_id=drawing_id,
            drawn_at=drawn_at,
            draw_date=drawn_at.strftime("%a %b %d %Y"),
            user_id=ticket.user_id,
            entry_type=ticket.entry_type.value,
            entry_number=ticket.entry_number,
            total_entries_at_draw=total_entries,
            winner_name=ticket.contact.name,
            winner_email=ticket.contact.email,
            winner_phone=ticket.contact.phone,
            winner_external_id=ticket.contact.external_id,
        )

    def _read_token(self) -> Optional[int]:
        """Return the marker version, or ``None`` if no drawing ever committed."""

        try:
            return self._session.execute(
                select(DrawingMarker.version).where(
                    DrawingMarker.name == self._settings.drawing_name
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Failed to read drawing marker")
            raise DataUnavailableError("Drawing marker could not be read") from exc

    def _advance_token(self, token: Optional[int], now: datetime) -> None:
        name = self._settings.drawing_name
        if token is None:
            marker = DrawingMarker(name=name, version=1)
            marker.last_drawn_at = now
            self._session.add(marker)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise ConcurrentDrawingError(
                    f"Drawing '{name}' was started concurrently"
                ) from exc
            return

        result = self._session.execute(
            update(DrawingMarker)
            .where(DrawingMarker.name == name, DrawingMarker.version == token)
            .values(version=token + 1, last_drawn_at=now)
        )
        if result.rowcount != 1:
            raise ConcurrentDrawingError(
                f"Drawing '{name}' changed since version {token}; retry the drawing"
            )


__all__ = ["DrawingResult", "LotteryDrawEngine"]
