from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from qrhunt.analytics.normalize import (
    ParticipantRecord,
    ScanEvent,
    TierRedemption,
)
from qrhunt.analytics.progress import (
    filter_participants,
    summarize_all,
    summarize_progress,
)
from qrhunt.analytics.tiers import TIERS, TOTAL_CODES, get_tier


def _participant(user_id: str, scans: int, **kwargs) -> ParticipantRecord:
    events = tuple(ScanEvent(code=f"QR-{i:02d}") for i in range(scans))
    return ParticipantRecord(user_id=user_id, scans=events, **kwargs)


class TierTableTests(unittest.TestCase):
    def test_thresholds(self) -> None:
        self.assertEqual(TOTAL_CODES, 18)
        self.assertEqual(
            [tier.required_scans for tier in TIERS], [1, 3, 6, 12, 18]
        )
        self.assertEqual(get_tier("tier6").name, "OV Pack")


class SummarizeProgressTests(unittest.TestCase):
    def test_partial_progress(self) -> None:
        progress = summarize_progress(_participant("u1", 7))
        self.assertEqual(progress.scanned_count, 7)
        self.assertEqual(progress.progress_percent, 39)  # 38.88 rounds up
        self.assertFalse(progress.is_completed)
        self.assertTrue(progress.tier("tier6").unlocked)
        self.assertFalse(progress.tier("tier12").unlocked)
        self.assertIsNone(progress.completion_minutes)

    def test_half_percent_rounds_up(self) -> None:
        # 1 / 8 = 12.5%
        progress = summarize_progress(_participant("u1", 1), total_codes=8)
        self.assertEqual(progress.progress_percent, 13)

    def test_more_scans_than_codes_still_completes(self) -> None:
        progress = summarize_progress(_participant("u1", 20))
        self.assertTrue(progress.is_completed)
        self.assertEqual(progress.progress_percent, 111)

    def test_redemptions_only_count_redeemed_tiers(self) -> None:
        participant = _participant(
            "u1",
            3,
            redemptions={
                "tier1": TierRedemption(redeemed=True),
                "tier3": TierRedemption(redeemed=False),
                "unknown": TierRedemption(redeemed=True),
            },
        )
        progress = summarize_progress(participant)
        self.assertEqual(progress.total_redemptions, 1)
        self.assertTrue(progress.tier("tier3").pending)
        self.assertFalse(progress.all_tiers_redeemed)

    def test_completion_minutes_measured_from_creation(self) -> None:
        start = datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc)
        participant = _participant(
            "u1",
            18,
            created_at=start,
            completion_time=start + timedelta(minutes=3),
        )
        progress = summarize_progress(participant)
        self.assertEqual(progress.first_scan_at, start)
        self.assertAlmostEqual(progress.completion_minutes, 3.0)

    def test_recorded_first_scan_takes_precedence(self) -> None:
        created = datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc)
        first_scan = created + timedelta(days=1)
        participant = _participant(
            "u1",
            18,
            created_at=created,
            first_scan_at=first_scan,
            completion_time=first_scan + timedelta(minutes=1),
        )
        progress = summarize_progress(participant)
        self.assertEqual(progress.first_scan_at, first_scan)
        self.assertAlmostEqual(progress.completion_minutes, 1.0)

    def test_unknown_tier_lookup(self) -> None:
        progress = summarize_progress(_participant("u1", 0))
        with self.assertRaises(KeyError):
            progress.tier("tier99")


class FilterParticipantsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.progress = summarize_all(
            [
                _participant("none", 0),
                _participant("some", 4),
                _participant("done", 18),
            ]
        )

    def _ids(self, status: str) -> list[str]:
        return [p.user_id for p in filter_participants(self.progress, status)]

    def test_statuses(self) -> None:
        self.assertEqual(self._ids("all"), ["none", "some", "done"])
        self.assertEqual(self._ids("active"), ["some", "done"])
        self.assertEqual(self._ids("completed"), ["done"])
        self.assertEqual(self._ids("redeemed"), ["some", "done"])
        self.assertEqual(self._ids("inactive"), ["none"])

    def test_unknown_status(self) -> None:
        with self.assertRaises(ValueError):
            filter_participants(self.progress, "vip")


if __name__ == "__main__":
    unittest.main()
