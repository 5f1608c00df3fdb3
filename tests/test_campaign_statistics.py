from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from qrhunt.analytics.campaign import compute_campaign_statistics
from qrhunt.analytics.normalize import ParticipantRecord, ScanEvent, TierRedemption
from qrhunt.analytics.progress import summarize_all
from qrhunt.analytics.rounding import percent, ratio

T0 = datetime(2025, 7, 1, 10, 0, tzinfo=timezone.utc)


def _user(user_id: str, scans: int, **kwargs) -> ParticipantRecord:
    events = tuple(ScanEvent(code=f"QR-{i:02d}") for i in range(scans))
    return ParticipantRecord(user_id=user_id, scans=events, **kwargs)


class CampaignStatisticsTests(unittest.TestCase):
    def test_documented_two_user_scenario(self) -> None:
        users = [
            _user(
                "A",
                18,
                drawing_entries=1,
                created_at=T0,
                completion_time=T0 + timedelta(minutes=3),
            ),
            _user("B", 0),
        ]
        stats = compute_campaign_statistics(summarize_all(users))

        self.assertEqual(stats.total_users, 2)
        self.assertEqual(stats.completed_users, 1)
        self.assertEqual(stats.completed_in_5_minutes, 1)
        self.assertEqual(stats.suspicious_activity.count, 0)
        self.assertEqual(stats.bounce_rate, 50)
        self.assertEqual(stats.completion_rate, 50)
        self.assertEqual(stats.average_progress, 50)
        self.assertEqual(stats.total_entries, 1)

    def test_fast_completion_is_suspicious(self) -> None:
        fast = _user(
            "fast",
            18,
            name="Speedy",
            created_at=T0,
            completion_time=T0 + timedelta(seconds=90),
        )
        stats = compute_campaign_statistics(summarize_all([fast]))
        self.assertEqual(stats.suspicious_activity.count, 1)
        self.assertEqual(stats.suspicious_activity.users[0].name, "Speedy")
        self.assertEqual(stats.completion_times.under_5_minutes, 1)

    def test_suspicious_threshold_is_configurable(self) -> None:
        user = _user(
            "u", 18, created_at=T0, completion_time=T0 + timedelta(minutes=3)
        )
        stats = compute_campaign_statistics(
            summarize_all([user]), suspicious_minutes=5
        )
        self.assertEqual(stats.suspicious_activity.count, 1)

    def test_engagement_buckets_partition_users(self) -> None:
        counts = [0, 1, 5, 6, 12, 13, 17, 18, 25]
        users = [_user(f"u{n}", n) for n in counts]
        stats = compute_campaign_statistics(summarize_all(users))

        engagement = stats.engagement
        self.assertEqual(engagement.bounced, 1)
        self.assertEqual(engagement.early_dropoff, 2)
        self.assertEqual(engagement.moderate, 2)
        self.assertEqual(engagement.near_complete, 2)
        self.assertEqual(engagement.completed, 2)
        self.assertEqual(engagement.total, stats.total_users)

    def test_completion_time_buckets(self) -> None:
        minutes = [4, 29, 45, 300, 1000]
        users = [
            _user(
                f"u{m}", 18, created_at=T0, completion_time=T0 + timedelta(minutes=m)
            )
            for m in minutes
        ]
        stats = compute_campaign_statistics(summarize_all(users))
        self.assertEqual(
            stats.completion_times.to_json(),
            {
                "under_5_minutes": 1,
                "under_30_minutes": 1,
                "under_1_hour": 1,
                "under_6_hours": 1,
                "over_6_hours": 1,
            },
        )

    def test_completed_without_times_is_not_bucketed(self) -> None:
        stats = compute_campaign_statistics(summarize_all([_user("u", 18)]))
        self.assertEqual(stats.completed_users, 1)
        self.assertEqual(stats.completion_times.total, 0)
        self.assertEqual(stats.completed_in_5_minutes, 0)

    def test_redemption_counts(self) -> None:
        all_redeemed = {
            tier: TierRedemption(redeemed=True)
            for tier in ("tier1", "tier3", "tier6", "tier12", "tier18")
        }
        users = [
            _user("all", 18, redemptions=all_redeemed),
            _user("one", 4, redemptions={"tier1": TierRedemption(redeemed=True)}),
            _user("none", 2),
            _user("idle", 0),
        ]
        stats = compute_campaign_statistics(summarize_all(users))

        self.assertEqual(stats.users_with_redemptions, 3)
        self.assertEqual(stats.users_with_tier_redemptions, 2)
        self.assertEqual(stats.total_redemptions, 6)
        self.assertEqual(stats.all_redemptions_users_count, 1)

        tier1 = stats.tier_analytics[0]
        self.assertEqual(tier1.tier.id, "tier1")
        self.assertEqual((tier1.eligible, tier1.redeemed, tier1.pending), (3, 2, 1))
        self.assertEqual(tier1.eligibility_rate, 75)
        self.assertEqual(tier1.redemption_rate, 67)
        # Pending per tier: tier1 1, tier3 1, tier6..tier18 0.
        self.assertEqual(stats.total_pending, 2)

    def test_data_quality(self) -> None:
        users = [
            _user("full", 1, email="a@x", phone="1", external_id="s1"),
            _user("no-phone", 1, email="b@x"),
            _user("bare", 1),
        ]
        quality = compute_campaign_statistics(summarize_all(users)).data_quality
        self.assertEqual(quality.missing_email, 1)
        self.assertEqual(quality.missing_phone, 2)
        self.assertEqual(quality.missing_external_id, 2)
        self.assertEqual(quality.incomplete_profiles, 2)

    def test_peak_hour_prefers_earliest_tie(self) -> None:
        users = [
            _user("a", 1, created_at=T0.replace(hour=14)),
            _user("b", 1, created_at=T0.replace(hour=9)),
            _user("c", 1, created_at=T0.replace(hour=14, minute=30)),
            _user("d", 1, created_at=T0.replace(hour=9, minute=59)),
            _user("e", 1),
        ]
        stats = compute_campaign_statistics(summarize_all(users))
        self.assertEqual(stats.peak_hour, 9)
        self.assertEqual(stats.peak_hour_count, 2)
        self.assertEqual(sum(stats.hourly_activity), 4)

    def test_peak_hour_uses_activity_timezone(self) -> None:
        users = [_user("a", 1, created_at=T0.replace(hour=1))]
        stats = compute_campaign_statistics(
            summarize_all(users), activity_timezone="Asia/Tokyo"
        )
        self.assertEqual(stats.peak_hour, 10)

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        users = [_user("a", 1, created_at=T0.replace(hour=1))]
        with self.assertLogs("qrhunt.analytics.campaign", level="WARNING"):
            stats = compute_campaign_statistics(
                summarize_all(users), activity_timezone="Mars/Olympus"
            )
        self.assertEqual(stats.peak_hour, 1)

    def test_scan_summary(self) -> None:
        users = [_user("a", 18), _user("b", 3), _user("c", 0)]
        summary = compute_campaign_statistics(summarize_all(users)).scan_summary
        self.assertEqual(summary.total_scans, 21)
        self.assertEqual(summary.unique_users, 2)
        self.assertEqual(summary.completion_rate, 50)
        self.assertEqual(summary.avg_scans_per_user, 10.5)

    def test_every_user_completed(self) -> None:
        stats = compute_campaign_statistics(
            summarize_all([_user("a", 18), _user("b", 20)])
        )
        self.assertEqual(stats.completion_rate, 100)
        self.assertEqual(stats.bounce_rate, 0)

    def test_empty_input_has_zero_rates(self) -> None:
        stats = compute_campaign_statistics([])
        self.assertEqual(stats.total_users, 0)
        self.assertEqual(stats.completion_rate, 0)
        self.assertEqual(stats.bounce_rate, 0)
        self.assertEqual(stats.average_progress, 0)
        self.assertEqual(stats.peak_hour, 0)
        self.assertEqual(stats.scan_summary.avg_scans_per_user, 0.0)


class RoundingTests(unittest.TestCase):
    def test_halves_round_up(self) -> None:
        self.assertEqual(percent(1, 8), 13)
        self.assertEqual(ratio(1, 4), 0.3)

    def test_zero_denominator(self) -> None:
        self.assertEqual(percent(3, 0), 0)
        self.assertEqual(ratio(3, 0), 0.0)


if __name__ == "__main__":
    unittest.main()
