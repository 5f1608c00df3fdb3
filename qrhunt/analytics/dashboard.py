"""One aggregation pass producing every view the admin dashboard shows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Optional, Sequence

from ..config import HuntSettings
from ..db.utils import dt_iso
from .campaign import CampaignStatistics, compute_campaign_statistics
from .discovery import (
    DEFAULT_DISCOVERY_CATEGORIES,
    DiscoveryCategory,
    DiscoveryReport,
    compute_discovery_statistics,
)
from .locations import LocationReport, aggregate_location_statistics
from .normalize import LocationRecord, ParticipantRecord
from .progress import UserProgress, summarize_all

logger = logging.getLogger(__name__)


@dataclass
class DashboardReport:
    """All derived statistics of one aggregation pass.

    ``has_data`` is ``False`` when there was nothing to aggregate; the
    statistics are then empty and ``notice`` explains why.
    """

    has_data: bool
    campaign: CampaignStatistics = field(default_factory=CampaignStatistics)
    locations: LocationReport = field(default_factory=LocationReport)
    discovery: DiscoveryReport = field(default_factory=DiscoveryReport)
    progress: list[UserProgress] = field(default_factory=list)
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notice: Optional[str] = None

    @classmethod
    def no_data(cls, notice: str) -> "DashboardReport":
        return cls(has_data=False, notice=notice)

    @property
    def reconciles(self) -> bool:
        """Known plus unknown location scans equal the users' scan total."""
        user_total = sum(user.scanned_count for user in self.progress)
        return self.locations.known_scans + self.locations.unknown_scans == user_total

    def to_json(self) -> dict[str, Any]:
        return {
            "has_data": self.has_data,
            "notice": self.notice,
            "computed_at": dt_iso(self.computed_at),
            "campaign": self.campaign.to_json(),
            "locations": self.locations.to_json(),
            "discovery": self.discovery.to_json(),
        }


def build_dashboard_report(
    participants: Sequence[ParticipantRecord],
    locations: Sequence[LocationRecord],
    *,
    settings: Optional[HuntSettings] = None,
    categories: Sequence[DiscoveryCategory] = DEFAULT_DISCOVERY_CATEGORIES,
) -> DashboardReport:
    """Run every aggregator over the same snapshot of users and locations.

    Parameters
    ----------
    participants : Sequence[ParticipantRecord]
        Normalized users.
    locations : Sequence[LocationRecord]
        Normalized locations.
    settings : Optional[HuntSettings], default: None
        Settings for the suspicious-activity threshold and activity timezone.
        Defaults to :meth:`HuntSettings.from_env`.
    categories : Sequence[DiscoveryCategory]
        Discovery categories in priority order.

    Returns
    -------
    DashboardReport
        A report with ``has_data=False`` when there are no users.
    """

    settings = settings or HuntSettings.from_env()
    if not participants:
        logger.warning("No users found; dashboard statistics are empty")
        return DashboardReport.no_data("No users found in the database.")

    progress = summarize_all(participants)
    report = DashboardReport(
        has_data=True,
        campaign=compute_campaign_statistics(
            progress,
            suspicious_minutes=settings.suspicious_completion_minutes,
            activity_timezone=settings.activity_timezone,
        ),
        locations=aggregate_location_statistics(locations, participants),
        discovery=compute_discovery_statistics(locations, participants, categories),
        progress=progress,
    )
    if not locations:
        report.notice = "No valid QR codes configured; location statistics are empty."
    return report


__all__ = ["DashboardReport", "build_dashboard_report"]
