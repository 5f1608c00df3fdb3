from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from qrhunt.config import HuntSettings
from qrhunt.models import Base, Location, User
from qrhunt.refresh import DashboardRefresher

T0 = datetime(2025, 7, 1, 10, 0, tzinfo=timezone.utc)


class DashboardRefresherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        with self.Session.begin() as session:
            session.add(Location(code="QR-01"))
            session.add(User(id="A", scanned_codes=["QR-01"]))
        self.refresher = DashboardRefresher(
            self.Session, HuntSettings(refresh_interval_seconds=120)
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _add_user(self, user_id: str) -> None:
        with self.Session.begin() as session:
            session.add(User(id=user_id))

    def test_first_poll_always_refreshes(self) -> None:
        self.assertTrue(self.refresher.is_due(T0))
        report = self.refresher.refresh_if_due(T0)
        self.assertEqual(report.campaign.total_users, 1)
        self.assertEqual(self.refresher.last_refreshed_at, T0)

    def test_cached_report_within_interval(self) -> None:
        first = self.refresher.refresh_if_due(T0)
        self._add_user("B")
        second = self.refresher.refresh_if_due(T0 + timedelta(seconds=119))
        self.assertIs(first, second)
        self.assertEqual(second.campaign.total_users, 1)

    def test_recomputes_once_interval_elapsed(self) -> None:
        self.refresher.refresh_if_due(T0)
        self._add_user("B")
        report = self.refresher.refresh_if_due(T0 + timedelta(seconds=120))
        self.assertEqual(report.campaign.total_users, 2)
        self.assertEqual(
            self.refresher.last_refreshed_at, T0 + timedelta(seconds=120)
        )

    def test_manual_refresh_ignores_interval(self) -> None:
        self.refresher.refresh(T0)
        self._add_user("B")
        report = self.refresher.refresh(T0 + timedelta(seconds=1))
        self.assertEqual(report.campaign.total_users, 2)


if __name__ == "__main__":
    unittest.main()
