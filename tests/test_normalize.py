from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone

from qrhunt.analytics.normalize import (
    location_from_mapping,
    normalize_scan,
    normalize_scans,
    parse_instant,
    participant_from_mapping,
    participants_from_mappings,
)
from qrhunt.errors import MalformedRecordError


class _FakeTimestamp:
    def __init__(self, value: datetime) -> None:
        self._value = value

    def to_datetime(self) -> datetime:
        return self._value


class _PendingTimestamp:
    def to_datetime(self) -> datetime:
        raise ValueError("pending server timestamp")


class _SecondsOnly:
    seconds = 86400
    nanoseconds = 500_000_000


class ParseInstantTests(unittest.TestCase):
    def test_naive_datetime_is_assumed_utc(self) -> None:
        parsed = parse_instant(datetime(2025, 3, 1, 12, 0))
        self.assertEqual(parsed, datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))

    def test_aware_datetime_is_converted_to_utc(self) -> None:
        jst = timezone(timedelta(hours=9))
        parsed = parse_instant(datetime(2025, 3, 1, 21, 0, tzinfo=jst))
        self.assertEqual(parsed, datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))
        self.assertEqual(parsed.utcoffset(), timedelta(0))

    def test_iso_string_with_trailing_z(self) -> None:
        parsed = parse_instant("2025-03-01T12:30:00Z")
        self.assertEqual(parsed, datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc))

    def test_plain_date(self) -> None:
        parsed = parse_instant(date(2025, 3, 1))
        self.assertEqual(parsed, datetime(2025, 3, 1, tzinfo=timezone.utc))

    def test_seconds_mapping(self) -> None:
        parsed = parse_instant({"seconds": 60, "nanoseconds": 0})
        self.assertEqual(parsed, datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc))
        underscored = parse_instant({"_seconds": 60, "_nanoseconds": 0})
        self.assertEqual(underscored, parsed)

    def test_object_with_conversion_method(self) -> None:
        raw = _FakeTimestamp(datetime(2025, 1, 1, 8, 0))
        self.assertEqual(
            parse_instant(raw), datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
        )

    def test_object_with_seconds_attribute(self) -> None:
        parsed = parse_instant(_SecondsOnly())
        self.assertEqual(
            parsed,
            datetime(1970, 1, 2, 0, 0, 0, 500_000, tzinfo=timezone.utc),
        )

    def test_failing_conversion_method_becomes_none(self) -> None:
        self.assertIsNone(parse_instant(_PendingTimestamp()))

    def test_unreadable_values_become_none(self) -> None:
        for raw in (None, "", "not a date", {"seconds": "x"}, object(), 12):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_instant(raw))


class NormalizeScanTests(unittest.TestCase):
    def test_bare_code_string(self) -> None:
        event = normalize_scan("QR-01")
        self.assertEqual(event.code, "QR-01")
        self.assertIsNone(event.timestamp)

    def test_object_entry_keeps_timestamp(self) -> None:
        event = normalize_scan({"code": "QR-02", "timestamp": "2025-01-01T00:00:00Z"})
        self.assertEqual(event.code, "QR-02")
        self.assertEqual(event.timestamp, datetime(2025, 1, 1, tzinfo=timezone.utc))

    def test_unreadable_entry_still_counts(self) -> None:
        events = normalize_scans(["QR-01", {"timestamp": 5}, 42, {"code": "QR-03"}])
        self.assertEqual(len(events), 4)
        self.assertEqual([e.code for e in events], ["QR-01", None, None, "QR-03"])

    def test_non_list_history_is_empty(self) -> None:
        self.assertEqual(normalize_scans(None), ())
        self.assertEqual(normalize_scans("QR-01"), ())
        self.assertEqual(normalize_scans({"code": "QR-01"}), ())


class ParticipantFromMappingTests(unittest.TestCase):
    def test_camel_case_document(self) -> None:
        record = participant_from_mapping(
            {
                "id": "user-1",
                "scannedCodes": ["A", {"code": "B", "timestamp": None}],
                "drawingEntries": 2,
                "drawingBonusEntries": 1,
                "redemptionStatus": {
                    "tier1": {"redeemed": True, "redeemedAt": "2025-01-01T00:00:00Z"},
                    "tier3": {"redeemed": 1},
                    "tier12": {"redeemed": 0},
                    "tier6": "garbage",
                },
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "  ",
                "shopifyCustomerId": "shop-9",
                "createdAt": {"seconds": 0},
                "firstScanAt": "2025-01-01T00:05:00Z",
            }
        )
        self.assertEqual(record.user_id, "user-1")
        self.assertEqual(record.scanned_count, 2)
        self.assertEqual(record.total_entries, 3)
        self.assertEqual(record.name, "Ada Lovelace")
        self.assertIsNone(record.email)
        self.assertEqual(record.external_id, "shop-9")
        self.assertTrue(record.redemptions["tier1"].redeemed)
        self.assertTrue(record.redemptions["tier3"].redeemed)
        self.assertFalse(record.redemptions["tier12"].redeemed)
        self.assertNotIn("tier6", record.redemptions)
        self.assertEqual(record.created_at, datetime(1970, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(
            record.first_scan_at, datetime(2025, 1, 1, 0, 5, tzinfo=timezone.utc)
        )

    def test_invalid_counts_are_zeroed(self) -> None:
        record = participant_from_mapping(
            {"id": 7, "drawingEntries": -4, "bonusEntries": "3"}
        )
        self.assertEqual(record.user_id, "7")
        self.assertEqual(record.drawing_entries, 0)
        self.assertEqual(record.bonus_entries, 0)
        self.assertEqual(record.name, "Anonymous User")

    def test_missing_id_is_malformed(self) -> None:
        with self.assertRaises(MalformedRecordError):
            participant_from_mapping({"scannedCodes": ["A"]})
        with self.assertRaises(MalformedRecordError):
            participant_from_mapping(["not", "a", "mapping"])  # type: ignore[arg-type]

    def test_batch_skips_malformed_records(self) -> None:
        records = participants_from_mappings(
            [{"id": "a"}, {"id": ""}, "junk", {"id": "b"}]  # type: ignore[list-item]
        )
        self.assertEqual([r.user_id for r in records], ["a", "b"])

    def test_batch_keeps_record_with_pending_timestamp(self) -> None:
        records = participants_from_mappings(
            [
                {"id": "ok", "scannedCodes": ["A"]},
                {
                    "id": "pending",
                    "scannedCodes": [{"code": "A", "timestamp": _PendingTimestamp()}],
                },
            ]
        )
        self.assertEqual([r.user_id for r in records], ["ok", "pending"])
        self.assertEqual(records[1].scans[0].code, "A")
        self.assertIsNone(records[1].scans[0].timestamp)


class LocationFromMappingTests(unittest.TestCase):
    def test_name_falls_back_to_description(self) -> None:
        location = location_from_mapping(
            {"code": "QR-7", "locationNumber": 7, "description": "Side hall"}
        )
        self.assertEqual(location.location_name, "Side hall")
        self.assertEqual(location.location_number, "7")
        self.assertTrue(location.active)

    def test_inactive_flag(self) -> None:
        location = location_from_mapping({"code": "QR-8", "active": False})
        self.assertFalse(location.active)
        self.assertEqual(location.location_name, "Unnamed")

    def test_missing_code(self) -> None:
        with self.assertRaises(MalformedRecordError):
            location_from_mapping({"locationName": "Nowhere"})


if __name__ == "__main__":
    unittest.main()
