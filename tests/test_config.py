import os
import unittest
from unittest import mock

from qrhunt.config import HuntSettings


class HuntSettingsTests(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = HuntSettings.from_env()
        self.assertEqual(settings.winner_exclusion_window, 30)
        self.assertEqual(settings.activity_timezone, "UTC")
        self.assertEqual(settings.suspicious_completion_minutes, 2.0)
        self.assertEqual(settings.refresh_interval_seconds, 120)
        self.assertEqual(settings.drawing_name, "grand_prize")

    def test_environment_overrides(self):
        env = {
            "QRHUNT_WINNER_EXCLUSION_WINDOW": "5",
            "QRHUNT_ACTIVITY_TIMEZONE": " Asia/Tokyo ",
            "QRHUNT_SUSPICIOUS_COMPLETION_MINUTES": "1.5",
            "QRHUNT_REFRESH_INTERVAL_SECONDS": "60",
            "QRHUNT_DRAWING_NAME": "daily",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = HuntSettings.from_env()
        self.assertEqual(
            settings,
            HuntSettings(
                winner_exclusion_window=5,
                activity_timezone="Asia/Tokyo",
                suspicious_completion_minutes=1.5,
                refresh_interval_seconds=60,
                drawing_name="daily",
            ),
        )

    def test_invalid_values_fall_back(self):
        env = {
            "QRHUNT_WINNER_EXCLUSION_WINDOW": "-3",
            "QRHUNT_REFRESH_INTERVAL_SECONDS": "soon",
            "QRHUNT_SUSPICIOUS_COMPLETION_MINUTES": "fast",
            "QRHUNT_DRAWING_NAME": "   ",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = HuntSettings.from_env()
        self.assertEqual(settings.winner_exclusion_window, 30)
        self.assertEqual(settings.refresh_interval_seconds, 120)
        self.assertEqual(settings.suspicious_completion_minutes, 2.0)
        self.assertEqual(settings.drawing_name, "grand_prize")


if __name__ == "__main__":
    unittest.main()
