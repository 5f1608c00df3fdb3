from typing import Optional
from datetime import datetime, timezone
import logging
import random

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .analytics.dashboard import DashboardReport, build_dashboard_report
from .analytics.normalize import (
    LocationRecord,
    ParticipantRecord,
    location_from_model,
    participant_from_user,
)
from .analytics.progress import UserProgress, filter_participants, summarize_all
from .config import HuntSettings
from .errors import DataUnavailableError, PersistenceFailureError
from .lottery.engine import DrawingResult, LotteryDrawEngine
from .lottery.entries import EntryPoolStats, build_lottery_tickets, summarize_entry_pool
from .lottery.history import SqlAlchemyWinnerHistoryStore
from .models import Location, StatisticsSnapshot, User, WinnerRecord

logger = logging.getLogger(__name__)

SUMMARY_SNAPSHOT_KEY = "campaign"


def load_participants(session: Session) -> list[ParticipantRecord]:
    """Read every user and normalize it for the aggregators.

    Users are returned in registration order (ties broken by id), which is
    also the order their tickets take in the drawing pool.

    Raises
    ------
    DataUnavailableError
        If the users table cannot be read.
    """

    try:
        users = session.scalars(
            select(User).order_by(User.created_at.asc(), User.id.asc())
        ).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load users")
        raise DataUnavailableError("Could not read users from the store") from exc
    return [participant_from_user(user) for user in users]


def load_locations(session: Session) -> list[LocationRecord]:
    """Read every configured QR code location.

    Raises
    ------
    DataUnavailableError
        If the locations table cannot be read.
    """

    try:
        locations = Location.list_all(session)
    except SQLAlchemyError as exc:
        logger.exception("Failed to load locations")
        raise DataUnavailableError("Could not read locations from the store") from exc
    return [location_from_model(location) for location in locations]


def compute_dashboard(
    session: Session, settings: Optional[HuntSettings] = None
) -> DashboardReport:
    """Recompute every dashboard view from the current users and locations."""

    participants = load_participants(session)
    locations = load_locations(session)
    return build_dashboard_report(participants, locations, settings=settings)


def list_user_progress(
    session: Session, status: str = "all"
) -> list[UserProgress]:
    """Return per-user progress filtered by ``status``.

    See :func:`~qrhunt.analytics.progress.filter_participants` for the
    accepted statuses.
    """

    return filter_participants(summarize_all(load_participants(session)), status)


def recalculate_and_save_statistics(
    session: Session, settings: Optional[HuntSettings] = None
) -> DashboardReport:
    """Recompute the dashboard and store it as statistics snapshots.

    One snapshot is written for the campaign summary, one per location and
    one per discovery category. All rows are written in a single savepoint.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    settings : Optional[HuntSettings], default: None
        Settings forwarded to :func:`build_dashboard_report`.

    Returns
    -------
    DashboardReport
        The recomputed report. When there are no users or no locations the
        report is returned with its notice and nothing is written.

    Raises
    ------
    DataUnavailableError
        If users or locations cannot be read.
    PersistenceFailureError
        If the snapshots could not be written.
    """

    report = compute_dashboard(session, settings)
    if not report.has_data or not report.locations.locations:
        logger.warning(
            "Statistics not saved: %s", report.notice or "no locations configured"
        )
        return report

    computed_at = report.computed_at
    try:
        with session.begin_nested():
            StatisticsSnapshot.save(
                session,
                StatisticsSnapshot.KIND_SUMMARY,
                SUMMARY_SNAPSHOT_KEY,
                report.campaign.to_json(),
                computed_at=computed_at,
            )
            for location in report.locations.locations:
                StatisticsSnapshot.save(
                    session,
                    StatisticsSnapshot.KIND_LOCATION,
                    location.code,
                    location.to_json(),
                    computed_at=computed_at,
                )
            for category in report.discovery.categories:
                StatisticsSnapshot.save(
                    session,
                    StatisticsSnapshot.KIND_DISCOVERY,
                    category.key,
                    category.to_json(),
                    computed_at=computed_at,
                )
            session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Failed to save statistics snapshots")
        raise PersistenceFailureError("Statistics snapshots were not saved") from exc

    logger.info(
        "Saved statistics for %d users and %d locations",
        report.campaign.total_users,
        len(report.locations.locations),
    )
    return report


def summarize_drawing_pool(session: Session) -> EntryPoolStats:
    """Return the size of the current ticket pool and how many users hold it."""

    return summarize_entry_pool(build_lottery_tickets(load_participants(session)))


def run_winner_drawing(
    session: Session,
    count: int,
    *,
    rng: Optional[random.Random] = None,
    settings: Optional[HuntSettings] = None,
    now: Optional[datetime] = None,
) -> DrawingResult:
    """Draw up to ``count`` winners from all users' entries.

    This function essentially wraps :class:`LotteryDrawEngine`: it loads the
    participants, then draws and persists the winners as one batch.

    Parameters
    ----------
    session : Session
        Active session used for queries and persistence.
    count : int
        Number of winners requested.
    rng : Optional[random.Random], default: None
        Random generator; pass a seeded one for a reproducible draw.
    settings : Optional[HuntSettings], default: None
        Exclusion window and drawing marker name.
    now : Optional[datetime], default: None
        Drawing time; defaults to the current UTC time.

    Returns
    -------
    DrawingResult
        Winners and the final state of the round.

    Raises
    ------
    ValueError
        If ``count`` is negative.
    DataUnavailableError
        If users cannot be read.
    ConcurrentDrawingError
        If another drawing committed in the meantime.
    PersistenceFailureError
        If the winners could not be saved.
    """

    if count < 0:
        raise ValueError("count must be non-negative")
    participants = load_participants(session)
    engine = LotteryDrawEngine(session, rng=rng, settings=settings)
    return engine.draw(participants, count, now=now)


def list_winner_history(
    session: Session, limit: Optional[int] = None
) -> list[WinnerRecord]:
    """Return past winners, most recent first."""

    return SqlAlchemyWinnerHistoryStore(session).list_recent(limit)


def clear_winner_history(session: Session) -> int:
    """Delete all winner records and return how many were removed."""

    try:
        removed = SqlAlchemyWinnerHistoryStore(session).clear_all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to clear winner history")
        raise PersistenceFailureError("Winner history was not cleared") from exc
    logger.info("Cleared %d winner record(s)", removed)
    return removed


def reset_user_progress(
    session: Session, user_id: str, *, now: Optional[datetime] = None
) -> User:
    """Wipe the hunt progress of ``user_id`` and return the user.

    Raises
    ------
    LookupError
        If no user has ``user_id``.
    """

    user = User.get_by_id(session, user_id)
    if user is None:
        raise LookupError(f"User '{user_id}' not found")
    user.reset_progress(now=now or datetime.now(timezone.utc))
    session.flush()
    logger.info("Reset progress of user %s", user_id)
    return user


def upsert_location(
    session: Session,
    code: str,
    *,
    location_number: Optional[str] = None,
    location_name: Optional[str] = None,
    description: Optional[str] = None,
    active: Optional[bool] = None,
) -> Location:
    """Create or update the location for ``code``."""

    return Location.upsert(
        session,
        code,
        location_number=location_number,
        location_name=location_name,
        description=description,
        active=active,
    )


def delete_location(session: Session, code: str) -> bool:
    """Delete the location for ``code``; return whether it existed."""

    return Location.delete_by_code(session, code)
