"""Attribution of users to discovery categories by their first scan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from .normalize import LocationRecord, ParticipantRecord
from .rounding import percent


@dataclass(frozen=True)
class DiscoveryCategory:
    """A named group of locations through which users enter the hunt.

    A location belongs to the category when its lower-cased code contains
    any of ``code_keywords``, its lower-cased name contains any of
    ``name_keywords``, or its location number equals one of
    ``location_numbers``.
    """

    key: str
    label: str
    code_keywords: tuple[str, ...] = ()
    name_keywords: tuple[str, ...] = ()
    location_numbers: tuple[str, ...] = ()

    def matches(self, location: LocationRecord) -> bool:
        code = location.code.lower()
        if any(keyword in code for keyword in self.code_keywords):
            return True
        name = (location.location_name or "").lower()
        if any(keyword in name for keyword in self.name_keywords):
            return True
        return (
            location.location_number is not None
            and location.location_number in self.location_numbers
        )


DEFAULT_DISCOVERY_CATEGORIES: tuple[DiscoveryCategory, ...] = (
    DiscoveryCategory(
        key="booth",
        label="Booth",
        code_keywords=("bth",),
        name_keywords=("booth",),
    ),
    DiscoveryCategory(
        key="floor01",
        label="Floor 01",
        code_keywords=("flr-01",),
        name_keywords=("floor 01",),
        location_numbers=("01",),
    ),
)
"""Categories in priority order; the first match wins."""


@dataclass
class CategoryDiscovery:
    """Visitors attributed to one discovery category."""

    key: str
    label: str
    location_codes: list[str] = field(default_factory=list)
    visitor_count: int = 0
    discovery_rate: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "location_codes": list(self.location_codes),
            "visitor_count": self.visitor_count,
            "discovery_rate": self.discovery_rate,
        }


@dataclass
class DiscoveryReport:
    categories: list[CategoryDiscovery] = field(default_factory=list)
    total_scanning_users: int = 0
    unattributed_users: int = 0

    def category(self, key: str) -> CategoryDiscovery:
        for category in self.categories:
            if category.key == key:
                return category
        raise KeyError(f"Unknown discovery category '{key}'")

    def to_json(self) -> dict[str, Any]:
        return {
            "categories": [category.to_json() for category in self.categories],
            "total_scanning_users": self.total_scanning_users,
            "unattributed_users": self.unattributed_users,
        }


def classify_locations(
    locations: Iterable[LocationRecord],
    categories: Sequence[DiscoveryCategory] = DEFAULT_DISCOVERY_CATEGORIES,
) -> dict[str, str]:
    """Map each location code to the key of its first matching category.

    Locations matching no category are left out of the mapping.
    """

    assignment: dict[str, str] = {}
    for location in locations:
        for category in categories:
            if category.matches(location):
                assignment.setdefault(location.code, category.key)
                break
    return assignment


def compute_discovery_statistics(
    locations: Sequence[LocationRecord],
    participants: Iterable[ParticipantRecord],
    categories: Sequence[DiscoveryCategory] = DEFAULT_DISCOVERY_CATEGORIES,
) -> DiscoveryReport:
    """Attribute every scanning user to the category of their first scan.

    Parameters
    ----------
    locations : Sequence[LocationRecord]
        Known locations to classify.
    participants : Iterable[ParticipantRecord]
        Users to attribute; users without scans are ignored.
    categories : Sequence[DiscoveryCategory]
        Categories in priority order.

    Returns
    -------
    DiscoveryReport
        One entry per category, in priority order. ``discovery_rate`` is
        relative to all scanning users, not only the attributed ones.
    """

    assignment = classify_locations(locations, categories)
    results = {
        category.key: CategoryDiscovery(key=category.key, label=category.label)
        for category in categories
    }
    for code, key in assignment.items():
        results[key].location_codes.append(code)

    total_scanning = 0
    unattributed = 0
    for participant in participants:
        if not participant.scans:
            continue
        total_scanning += 1
        first_code: Optional[str] = participant.scans[0].code
        key = assignment.get(first_code) if first_code is not None else None
        if key is None:
            unattributed += 1
            continue
        results[key].visitor_count += 1

    for result in results.values():
        result.discovery_rate = percent(result.visitor_count, total_scanning)

    return DiscoveryReport(
        categories=[results[category.key] for category in categories],
        total_scanning_users=total_scanning,
        unattributed_users=unattributed,
    )


__all__ = [
    "CategoryDiscovery",
    "DEFAULT_DISCOVERY_CATEGORIES",
    "DiscoveryCategory",
    "DiscoveryReport",
    "classify_locations",
    "compute_discovery_statistics",
]
