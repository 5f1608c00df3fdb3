from __future__ import annotations

import unittest

from qrhunt.analytics.discovery import (
    DiscoveryCategory,
    classify_locations,
    compute_discovery_statistics,
)
from qrhunt.analytics.normalize import LocationRecord, ParticipantRecord, ScanEvent


def _user(user_id: str, *codes: str) -> ParticipantRecord:
    return ParticipantRecord(
        user_id=user_id, scans=tuple(ScanEvent(code=code) for code in codes)
    )


class DiscoveryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.locations = [
            LocationRecord(code="QR-BTH-A", location_name="Welcome"),
            LocationRecord(code="QR-X", location_name="Info Booth"),
            LocationRecord(code="QR-FLR-01", location_name="Lobby"),
            LocationRecord(code="QR-Y", location_number="01"),
            LocationRecord(code="QR-Z", location_number="02", location_name="Cafe"),
        ]

    def test_classification_rules(self) -> None:
        assignment = classify_locations(self.locations)
        self.assertEqual(
            assignment,
            {
                "QR-BTH-A": "booth",
                "QR-X": "booth",
                "QR-FLR-01": "floor01",
                "QR-Y": "floor01",
            },
        )

    def test_first_matching_category_wins(self) -> None:
        both = LocationRecord(
            code="QR-BTH-9", location_number="01", location_name="Floor 01 Booth"
        )
        self.assertEqual(classify_locations([both]), {"QR-BTH-9": "booth"})

        reordered = [
            DiscoveryCategory(key="floor", label="Floor", location_numbers=("01",)),
            DiscoveryCategory(key="booth", label="Booth", code_keywords=("bth",)),
        ]
        self.assertEqual(classify_locations([both], reordered), {"QR-BTH-9": "floor"})

    def test_attribution_uses_first_scan_only(self) -> None:
        users = [
            _user("a", "QR-BTH-A", "QR-Y"),
            _user("b", "QR-Y", "QR-BTH-A"),
            _user("c", "QR-Z", "QR-BTH-A"),
            _user("d", "unknown-code"),
            _user("e"),
        ]
        report = compute_discovery_statistics(self.locations, users)

        self.assertEqual(report.total_scanning_users, 4)
        self.assertEqual(report.unattributed_users, 2)
        booth = report.category("booth")
        floor = report.category("floor01")
        self.assertEqual((booth.visitor_count, booth.discovery_rate), (1, 25))
        self.assertEqual((floor.visitor_count, floor.discovery_rate), (1, 25))
        self.assertEqual(booth.location_codes, ["QR-BTH-A", "QR-X"])

    def test_no_scanning_users(self) -> None:
        report = compute_discovery_statistics(self.locations, [_user("a")])
        self.assertEqual(report.total_scanning_users, 0)
        self.assertEqual(
            [c.discovery_rate for c in report.categories], [0, 0]
        )

    def test_unknown_category_lookup(self) -> None:
        report = compute_discovery_statistics([], [])
        with self.assertRaises(KeyError):
            report.category("rooftop")


if __name__ == "__main__":
    unittest.main()
