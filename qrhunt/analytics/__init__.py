"""Aggregation of raw scan histories into dashboard statistics."""

from .campaign import CampaignStatistics, compute_campaign_statistics
from .dashboard import DashboardReport, build_dashboard_report
from .discovery import (
    DEFAULT_DISCOVERY_CATEGORIES,
    DiscoveryCategory,
    DiscoveryReport,
    classify_locations,
    compute_discovery_statistics,
)
from .locations import LocationReport, LocationStatistics, aggregate_location_statistics
from .normalize import (
    LocationRecord,
    ParticipantRecord,
    ScanEvent,
    normalize_scan,
    normalize_scans,
    parse_instant,
    participant_from_mapping,
    participant_from_user,
)
from .progress import (
    UserProgress,
    filter_participants,
    summarize_all,
    summarize_progress,
)
from .tiers import TIERS, TOTAL_CODES, Tier

__all__ = [
    "CampaignStatistics",
    "DEFAULT_DISCOVERY_CATEGORIES",
    "DashboardReport",
    "DiscoveryCategory",
    "DiscoveryReport",
    "LocationRecord",
    "LocationReport",
    "LocationStatistics",
    "ParticipantRecord",
    "ScanEvent",
    "TIERS",
    "TOTAL_CODES",
    "Tier",
    "UserProgress",
    "aggregate_location_statistics",
    "build_dashboard_report",
    "classify_locations",
    "compute_campaign_statistics",
    "compute_discovery_statistics",
    "filter_participants",
    "normalize_scan",
    "normalize_scans",
    "parse_instant",
    "participant_from_mapping",
    "participant_from_user",
    "summarize_all",
    "summarize_progress",
]
