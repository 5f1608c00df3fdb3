"""Runtime settings for the analytics and drawing services.

Values are read from environment variables (optionally via a ``.env`` file)
with defaults matching the live campaign.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


DEFAULT_WINNER_EXCLUSION_WINDOW = 30
DEFAULT_ACTIVITY_TIMEZONE = "UTC"
DEFAULT_SUSPICIOUS_COMPLETION_MINUTES = 2.0
DEFAULT_REFRESH_INTERVAL_SECONDS = 120
DEFAULT_DRAWING_NAME = "grand_prize"


def _get_int(name: str, default: int) -> int:
    """Get a non-negative integer from the environment with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class HuntSettings:
    """Tunable values shared by the aggregation and drawing workflows.

    Attributes
    ----------
    winner_exclusion_window : int
        Number of most recent winner-history records consulted when building
        the past-winner exclusion set. Users who won longer ago than this
        window become eligible again.
    activity_timezone : str
        IANA timezone used to bucket registration times into hours of day.
    suspicious_completion_minutes : float
        Completions faster than this many minutes are flagged for review.
    refresh_interval_seconds : int
        Polling interval used by :class:`~qrhunt.refresh.DashboardRefresher`.
    drawing_name : str
        Name of the drawing marker row carrying the concurrency token.
    """

    winner_exclusion_window: int = DEFAULT_WINNER_EXCLUSION_WINDOW
    activity_timezone: str = DEFAULT_ACTIVITY_TIMEZONE
    suspicious_completion_minutes: float = DEFAULT_SUSPICIOUS_COMPLETION_MINUTES
    refresh_interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS
    drawing_name: str = DEFAULT_DRAWING_NAME

    @classmethod
    def from_env(cls) -> "HuntSettings":
        """Build settings from ``QRHUNT_*`` environment variables."""
        return cls(
            winner_exclusion_window=_get_int(
                "QRHUNT_WINNER_EXCLUSION_WINDOW", DEFAULT_WINNER_EXCLUSION_WINDOW
            ),
            activity_timezone=_get_str(
                "QRHUNT_ACTIVITY_TIMEZONE", DEFAULT_ACTIVITY_TIMEZONE
            ),
            suspicious_completion_minutes=_get_float(
                "QRHUNT_SUSPICIOUS_COMPLETION_MINUTES",
                DEFAULT_SUSPICIOUS_COMPLETION_MINUTES,
            ),
            refresh_interval_seconds=_get_int(
                "QRHUNT_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS
            ),
            drawing_name=_get_str("QRHUNT_DRAWING_NAME", DEFAULT_DRAWING_NAME),
        )


__all__ = ["HuntSettings"]
