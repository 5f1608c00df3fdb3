"""Per-location scan statistics and relative performance ranking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Iterable, Optional, Sequence

from ..db.utils import dt_iso
from .normalize import LocationRecord, ParticipantRecord
from .rounding import percent, ratio

logger = logging.getLogger(__name__)

HIGH_PERFORMANCE_FACTOR = 1.5
MEDIUM_PERFORMANCE_FACTOR = 0.8


@dataclass
class LocationStatistics:
    """Aggregated scan statistics of one location.

    ``rank``, ``performance``, ``category`` and ``rank_class`` are relative to
    the other locations of the same aggregation pass.
    """

    code: str
    location_number: Optional[str]
    location_name: str
    is_active: bool
    total_scans: int = 0
    unique_users: int = 0
    last_scanned: Optional[datetime] = None
    discovery_scans: int = 0
    discovery_rate: int = 0
    rank: int = 0
    performance: int = 0
    efficiency: float = 0.0
    category: str = "low"
    rank_class: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "location_number": self.location_number,
            "location_name": self.location_name,
            "is_active": self.is_active,
            "total_scans": self.total_scans,
            "unique_users": self.unique_users,
            "last_scanned": dt_iso(self.last_scanned),
            "discovery_scans": self.discovery_scans,
            "discovery_rate": self.discovery_rate,
            "rank": self.rank,
            "performance": self.performance,
            "efficiency": self.efficiency,
            "category": self.category,
            "rank_class": self.rank_class,
        }


@dataclass
class LocationReport:
    """Result of a location aggregation pass.

    Attributes
    ----------
    locations : list[LocationStatistics]
        Statistics sorted by rank.
    unknown_scans : int
        Scans whose code is unreadable or not a known location.
    scanning_users : int
        Users with at least one scan.
    mean_scans : float
        Mean ``total_scans`` over all locations.
    """

    locations: list[LocationStatistics] = field(default_factory=list)
    unknown_scans: int = 0
    scanning_users: int = 0
    mean_scans: float = 0.0

    @property
    def known_scans(self) -> int:
        return sum(location.total_scans for location in self.locations)

    @property
    def top_performer(self) -> Optional[LocationStatistics]:
        return self.locations[0] if self.locations else None

    def by_code(self, code: str) -> LocationStatistics:
        for location in self.locations:
            if location.code == code:
                return location
        raise KeyError(f"Unknown location '{code}'")

    def to_json(self) -> dict[str, Any]:
        return {
            "locations": [location.to_json() for location in self.locations],
            "unknown_scans": self.unknown_scans,
            "known_scans": self.known_scans,
            "scanning_users": self.scanning_users,
            "mean_scans": self.mean_scans,
        }


def categorize(total_scans: int, mean_scans: float) -> str:
    """Classify a location against the mean scan count of all locations.

    With a mean of 0 every location rates ``"high"``, since 0 >= 0.
    """

    if total_scans >= mean_scans * HIGH_PERFORMANCE_FACTOR:
        return "high"
    if total_scans >= mean_scans * MEDIUM_PERFORMANCE_FACTOR:
        return "medium"
    return "low"


def _is_usable(timestamp: Optional[datetime]) -> bool:
    return timestamp is not None and timestamp.timestamp() > 0


def aggregate_location_statistics(
    locations: Sequence[LocationRecord],
    participants: Iterable[ParticipantRecord],
) -> LocationReport:
    """Tally scans per location and rank the locations.

    Parameters
    ----------
    locations : Sequence[LocationRecord]
        Known locations in store order. Ties in scan count keep this order.
    participants : Iterable[ParticipantRecord]
        Users whose scan histories are tallied.

    Returns
    -------
    LocationReport
        Ranked statistics plus the count of scans that matched no location.

    Notes
    -----
    A scan without its own timestamp falls back to the user's ``updated_at``
    when updating ``last_scanned``; that is only an approximation of the
    scan time. Missing or epoch-zero timestamps never move ``last_scanned``.
    """

    stats: dict[str, LocationStatistics] = {}
    users_per_code: dict[str, set[str]] = {}
    for location in locations:
        if location.code in stats:
            logger.debug("Ignoring duplicate location code %s", location.code)
            continue
        stats[location.code] = LocationStatistics(
            code=location.code,
            location_number=location.location_number,
            location_name=location.location_name,
            is_active=location.active,
        )
        users_per_code[location.code] = set()

    unknown_scans = 0
    scanning_users = 0
    for participant in participants:
        if not participant.scans:
            continue
        scanning_users += 1

        first_code = participant.scans[0].code
        if first_code is not None and first_code in stats:
            stats[first_code].discovery_scans += 1

        for event in participant.scans:
            entry = stats.get(event.code) if event.code is not None else None
            if entry is None:
                unknown_scans += 1
                continue
            entry.total_scans += 1
            users_per_code[event.code].add(participant.user_id)

            timestamp = event.timestamp or participant.updated_at
            if _is_usable(timestamp) and (
                entry.last_scanned is None or timestamp > entry.last_scanned
            ):
                entry.last_scanned = timestamp

    ordered = list(stats.values())
    for entry in ordered:
        entry.unique_users = len(users_per_code[entry.code])
        entry.efficiency = ratio(entry.total_scans, entry.unique_users)
        entry.discovery_rate = percent(entry.discovery_scans, scanning_users)

    # ``sorted`` is stable, so equal totals keep store order.
    ordered = sorted(ordered, key=lambda entry: -entry.total_scans)
    max_scans = max((entry.total_scans for entry in ordered), default=0)
    mean_scans = (
        sum(entry.total_scans for entry in ordered) / len(ordered) if ordered else 0.0
    )
    last_index = len(ordered) - 1
    for index, entry in enumerate(ordered):
        entry.rank = index + 1
        entry.performance = percent(entry.total_scans, max(1, max_scans))
        entry.category = categorize(entry.total_scans, mean_scans)
        if index < 2:
            entry.rank_class = "top"
        elif index >= last_index - 1:
            entry.rank_class = "bottom"

    return LocationReport(
        locations=ordered,
        unknown_scans=unknown_scans,
        scanning_users=scanning_users,
        mean_scans=mean_scans,
    )


__all__ = [
    "LocationReport",
    "LocationStatistics",
    "aggregate_location_statistics",
    "categorize",
]
