"""Caller-driven periodic recomputation of the dashboard report."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .analytics.dashboard import DashboardReport
from .config import HuntSettings
from .workflows import compute_dashboard

logger = logging.getLogger(__name__)


class DashboardRefresher:
    """Keep the latest dashboard report and recompute it on demand.

    The refresher owns no thread or timer. A caller polls
    :meth:`refresh_if_due` at whatever cadence it likes, and the report is
    rebuilt only once ``refresh_interval_seconds`` have passed since the last
    successful refresh.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: Optional[HuntSettings] = None,
    ) -> None:
        """Create a refresher.

        Parameters
        ----------
        session_factory : Callable[[], Session]
            Factory returning a new session, typically the sessionmaker from
            :func:`qrhunt.db.get_sessionmaker`. Each refresh opens and closes
            its own session.
        settings : Optional[HuntSettings], default: None
            Provides the refresh interval. Defaults to
            :meth:`HuntSettings.from_env`.
        """

        self._session_factory = session_factory
        self._settings = settings or HuntSettings.from_env()
        self.last_report: Optional[DashboardReport] = None
        self.last_refreshed_at: Optional[datetime] = None

    @property
    def interval(self) -> timedelta:
        return timedelta(seconds=self._settings.refresh_interval_seconds)

    def is_due(self, now: Optional[datetime] = None) -> bool:
        if self.last_refreshed_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - self.last_refreshed_at >= self.interval

    def refresh(self, now: Optional[datetime] = None) -> DashboardReport:
        """Recompute the report now, regardless of the interval."""

        with self._session_factory() as session:
            report = compute_dashboard(session, self._settings)
        self.last_report = report
        self.last_refreshed_at = now or datetime.now(timezone.utc)
        logger.debug("Dashboard refreshed at %s", self.last_refreshed_at.isoformat())
        return report

    def refresh_if_due(self, now: Optional[datetime] = None) -> DashboardReport:
        """Return the cached report, recomputing it first when the interval elapsed."""

        now = now or datetime.now(timezone.utc)
        if self.last_report is None or self.is_due(now):
            return self.refresh(now)
        return self.last_report


__all__ = ["DashboardRefresher"]
