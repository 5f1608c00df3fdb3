"""Campaign-wide metrics rolled up from per-user progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
import logging
from typing import Any, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .progress import UserProgress
from .rounding import percent, ratio, round_half_up
from .tiers import TIERS, Tier

logger = logging.getLogger(__name__)

DEFAULT_SUSPICIOUS_MINUTES = 2.0

# Upper bounds (inclusive) of the completion-time buckets, in minutes.
COMPLETION_TIME_THRESHOLDS = (
    ("under_5_minutes", 5),
    ("under_30_minutes", 30),
    ("under_1_hour", 60),
    ("under_6_hours", 360),
)


@dataclass
class EngagementBuckets:
    """Users partitioned by how far they got."""

    bounced: int = 0
    early_dropoff: int = 0
    moderate: int = 0
    near_complete: int = 0
    completed: int = 0

    def add(self, scanned_count: int) -> None:
        if scanned_count <= 0:
            self.bounced += 1
        elif scanned_count <= 5:
            self.early_dropoff += 1
        elif scanned_count <= 12:
            self.moderate += 1
        elif scanned_count <= 17:
            self.near_complete += 1
        else:
            self.completed += 1

    @property
    def total(self) -> int:
        return (
            self.bounced
            + self.early_dropoff
            + self.moderate
            + self.near_complete
            + self.completed
        )

    def to_json(self) -> dict[str, int]:
        return {
            "bounced": self.bounced,
            "early_dropoff": self.early_dropoff,
            "moderate": self.moderate,
            "near_complete": self.near_complete,
            "completed": self.completed,
        }


@dataclass
class CompletionTimeBuckets:
    under_5_minutes: int = 0
    under_30_minutes: int = 0
    under_1_hour: int = 0
    under_6_hours: int = 0
    over_6_hours: int = 0

    def add(self, minutes: float) -> None:
        for name, limit in COMPLETION_TIME_THRESHOLDS:
            if minutes <= limit:
                setattr(self, name, getattr(self, name) + 1)
                return
        self.over_6_hours += 1

    @property
    def total(self) -> int:
        return (
            self.under_5_minutes
            + self.under_30_minutes
            + self.under_1_hour
            + self.under_6_hours
            + self.over_6_hours
        )

    def to_json(self) -> dict[str, int]:
        return {
            "under_5_minutes": self.under_5_minutes,
            "under_30_minutes": self.under_30_minutes,
            "under_1_hour": self.under_1_hour,
            "under_6_hours": self.under_6_hours,
            "over_6_hours": self.over_6_hours,
        }


@dataclass(frozen=True)
class SuspiciousUser:
    user_id: str
    name: str
    completion_minutes: float


@dataclass
class SuspiciousActivity:
    """Completions fast enough to deserve a manual fraud review."""

    threshold_minutes: float = DEFAULT_SUSPICIOUS_MINUTES
    users: list[SuspiciousUser] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.users)

    def to_json(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "threshold_minutes": self.threshold_minutes,
            "users": [
                {
                    "user_id": user.user_id,
                    "name": user.name,
                    "completion_minutes": user.completion_minutes,
                }
                for user in self.users
            ],
        }


@dataclass
class DataQuality:
    missing_email: int = 0
    missing_phone: int = 0
    missing_external_id: int = 0
    incomplete_profiles: int = 0

    def to_json(self) -> dict[str, int]:
        return {
            "missing_email": self.missing_email,
            "missing_phone": self.missing_phone,
            "missing_external_id": self.missing_external_id,
            "incomplete_profiles": self.incomplete_profiles,
        }


@dataclass
class TierAnalytics:
    """Unlock and redemption counts of one tier across all users."""

    tier: Tier
    eligible: int = 0
    redeemed: int = 0
    eligibility_rate: int = 0
    redemption_rate: int = 0

    @property
    def pending(self) -> int:
        return max(self.eligible - self.redeemed, 0)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.tier.id,
            "name": self.tier.name,
            "required_scans": self.tier.required_scans,
            "eligible": self.eligible,
            "redeemed": self.redeemed,
            "pending": self.pending,
            "eligibility_rate": self.eligibility_rate,
            "redemption_rate": self.redemption_rate,
        }


@dataclass
class ScanSummary:
    """Totals restricted to users who scanned at least once."""

    total_scans: int = 0
    unique_users: int = 0
    completion_rate: int = 0
    avg_scans_per_user: float = 0.0

    def to_json(self) -> dict[str, Any]:
        return {
            "total_scans": self.total_scans,
            "unique_users": self.unique_users,
            "completion_rate": self.completion_rate,
            "avg_scans_per_user": self.avg_scans_per_user,
        }


@dataclass
class CampaignStatistics:
    """Snapshot of campaign-wide metrics.

    ``users_with_redemptions`` follows the loose business rule of the admin
    dashboard (any user with at least one scan). The stricter count of users
    who actually redeemed a tier is ``users_with_tier_redemptions``.
    """

    total_users: int = 0
    active_users: int = 0
    completed_users: int = 0
    total_entries: int = 0
    users_with_redemptions: int = 0
    users_with_tier_redemptions: int = 0
    total_redemptions: int = 0
    all_redemptions_users_count: int = 0
    completion_rate: int = 0
    average_progress: int = 0
    bounce_rate: int = 0
    completed_in_5_minutes: int = 0
    engagement: EngagementBuckets = field(default_factory=EngagementBuckets)
    completion_times: CompletionTimeBuckets = field(
        default_factory=CompletionTimeBuckets
    )
    suspicious_activity: SuspiciousActivity = field(
        default_factory=SuspiciousActivity
    )
    data_quality: DataQuality = field(default_factory=DataQuality)
    hourly_activity: list[int] = field(default_factory=lambda: [0] * 24)
    peak_hour: int = 0
    peak_hour_count: int = 0
    tier_analytics: list[TierAnalytics] = field(default_factory=list)
    scan_summary: ScanSummary = field(default_factory=ScanSummary)

    @property
    def total_pending(self) -> int:
        return sum(tier.pending for tier in self.tier_analytics)

    def to_json(self) -> dict[str, Any]:
        return {
            "total_users": self.total_users,
            "active_users": self.active_users,
            "completed_users": self.completed_users,
            "total_entries": self.total_entries,
            "users_with_redemptions": self.users_with_redemptions,
            "users_with_tier_redemptions": self.users_with_tier_redemptions,
            "total_redemptions": self.total_redemptions,
            "total_pending": self.total_pending,
            "all_redemptions_users_count": self.all_redemptions_users_count,
            "completion_rate": self.completion_rate,
            "average_progress": self.average_progress,
            "bounce_rate": self.bounce_rate,
            "completed_in_5_minutes": self.completed_in_5_minutes,
            "engagement": self.engagement.to_json(),
            "completion_times": self.completion_times.to_json(),
            "suspicious_activity": self.suspicious_activity.to_json(),
            "data_quality": self.data_quality.to_json(),
            "hourly_activity": list(self.hourly_activity),
            "peak_hour": self.peak_hour,
            "peak_hour_count": self.peak_hour_count,
            "tier_analytics": [tier.to_json() for tier in self.tier_analytics],
            "scan_summary": self.scan_summary.to_json(),
        }


def _resolve_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown activity timezone %r; using UTC", name)
        return timezone.utc


def compute_campaign_statistics(
    progress: Sequence[UserProgress],
    *,
    tiers: Sequence[Tier] = TIERS,
    suspicious_minutes: float = DEFAULT_SUSPICIOUS_MINUTES,
    activity_timezone: str = "UTC",
) -> CampaignStatistics:
    """Roll per-user progress into a :class:`CampaignStatistics` snapshot.

    Parameters
    ----------
    progress : Sequence[UserProgress]
        Progress of every user, as produced by
        :func:`~qrhunt.analytics.progress.summarize_all`.
    tiers : Sequence[Tier], default: TIERS
        Tiers reported in ``tier_analytics``.
    suspicious_minutes : float, default: 2.0
        Completed users faster than this are listed in
        ``suspicious_activity``.
    activity_timezone : str, default: "UTC"
        Timezone used to bucket ``created_at`` into hours of day.

    Returns
    -------
    CampaignStatistics
        Fully recomputed metrics. All percentages are rounded half up and
        are ``0`` when their denominator is ``0``.
    """

    stats = CampaignStatistics(
        suspicious_activity=SuspiciousActivity(threshold_minutes=suspicious_minutes),
        tier_analytics=[TierAnalytics(tier=tier) for tier in tiers],
    )
    zone = _resolve_zone(activity_timezone)
    tier_index = {analytics.tier.id: analytics for analytics in stats.tier_analytics}
    progress_sum = 0

    for user in progress:
        participant = user.participant
        stats.total_users += 1
        stats.total_entries += participant.total_entries
        stats.total_redemptions += user.total_redemptions
        progress_sum += user.progress_percent
        stats.engagement.add(user.scanned_count)

        if user.scanned_count > 0:
            stats.active_users += 1
            stats.users_with_redemptions += 1
            stats.scan_summary.unique_users += 1
            stats.scan_summary.total_scans += user.scanned_count
        if user.total_redemptions > 0:
            stats.users_with_tier_redemptions += 1
        if user.all_tiers_redeemed:
            stats.all_redemptions_users_count += 1

        for tier_state in user.tiers:
            analytics = tier_index.get(tier_state.tier.id)
            if analytics is None:
                continue
            if tier_state.unlocked:
                analytics.eligible += 1
            if tier_state.redeemed:
                analytics.redeemed += 1

        if user.is_completed:
            stats.completed_users += 1
            minutes = user.completion_minutes
            if minutes is not None:
                stats.completion_times.add(minutes)
                if minutes <= 5:
                    stats.completed_in_5_minutes += 1
                if minutes < suspicious_minutes:
                    stats.suspicious_activity.users.append(
                        SuspiciousUser(
                            user_id=user.user_id,
                            name=participant.name,
                            completion_minutes=minutes,
                        )
                    )

        quality = stats.data_quality
        if participant.email is None:
            quality.missing_email += 1
        if participant.phone is None:
            quality.missing_phone += 1
        if participant.external_id is None:
            quality.missing_external_id += 1
        if participant.email is None or participant.phone is None:
            quality.incomplete_profiles += 1

        if participant.created_at is not None:
            stats.hourly_activity[participant.created_at.astimezone(zone).hour] += 1

    total = stats.total_users
    stats.completion_rate = percent(stats.completed_users, total)
    stats.bounce_rate = percent(stats.engagement.bounced, total)
    stats.average_progress = int(round_half_up(progress_sum / total)) if total else 0

    # ``index`` returns the first occurrence, so ties go to the earliest hour.
    stats.peak_hour_count = max(stats.hourly_activity)
    stats.peak_hour = stats.hourly_activity.index(stats.peak_hour_count)

    for analytics in stats.tier_analytics:
        analytics.eligibility_rate = percent(analytics.eligible, total)
        analytics.redemption_rate = percent(analytics.redeemed, analytics.eligible)

    summary = stats.scan_summary
    summary.completion_rate = percent(stats.completed_users, summary.unique_users)
    summary.avg_scans_per_user = ratio(summary.total_scans, summary.unique_users)

    return stats


__all__ = [
    "CampaignStatistics",
    "CompletionTimeBuckets",
    "DataQuality",
    "EngagementBuckets",
    "ScanSummary",
    "SuspiciousActivity",
    "SuspiciousUser",
    "TierAnalytics",
    "compute_campaign_statistics",
]
