"""Per-user progress derived from scan history and tier redemptions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .normalize import ParticipantRecord
from .rounding import percent
from .tiers import TIERS, TOTAL_CODES, Tier


@dataclass(frozen=True)
class TierProgress:
    """State of one reward tier for one user."""

    tier: Tier
    unlocked: bool
    redeemed: bool
    redeemed_at: Optional[datetime] = None

    @property
    def pending(self) -> bool:
        """Unlocked but not yet redeemed."""
        return self.unlocked and not self.redeemed


@dataclass(frozen=True)
class UserProgress:
    """Derived progress of a participant.

    Attributes
    ----------
    participant : ParticipantRecord
        The normalized record the progress was computed from.
    scanned_count : int
        Number of scans, readable or not.
    total_codes : int
        Scans needed to complete the hunt.
    progress_percent : int
        ``scanned_count / total_codes`` as a rounded percentage.
    is_completed : bool
        ``scanned_count >= total_codes``.
    tiers : tuple[TierProgress, ...]
        Per-tier unlock and redemption state, in tier order.
    total_redemptions : int
        Number of tiers actually redeemed.
    """

    participant: ParticipantRecord
    scanned_count: int
    total_codes: int
    progress_percent: int
    is_completed: bool
    tiers: tuple[TierProgress, ...]
    total_redemptions: int

    @property
    def user_id(self) -> str:
        return self.participant.user_id

    @property
    def first_scan_at(self) -> Optional[datetime]:
        """Start of the user's hunt.

        Uses the recorded first scan when present. Otherwise registration
        happens on the first scan, so the account creation time stands in.
        """
        return self.participant.first_scan_at or self.participant.created_at

    @property
    def completion_minutes(self) -> Optional[float]:
        """Minutes from first scan to completion for completed users, else ``None``."""
        if not self.is_completed:
            return None
        started = self.first_scan_at
        finished = self.participant.completion_time
        if started is None or finished is None:
            return None
        return (finished - started).total_seconds() / 60

    @property
    def has_any_scan(self) -> bool:
        """Loose "redeemed" rule of the users table: at least one scan."""
        return self.scanned_count > 0

    @property
    def all_tiers_redeemed(self) -> bool:
        return bool(self.tiers) and all(tier.redeemed for tier in self.tiers)

    def tier(self, tier_id: str) -> TierProgress:
        for tier_progress in self.tiers:
            if tier_progress.tier.id == tier_id:
                return tier_progress
        raise KeyError(f"Unknown tier '{tier_id}'")


def summarize_progress(
    participant: ParticipantRecord,
    *,
    total_codes: int = TOTAL_CODES,
    tiers: Sequence[Tier] = TIERS,
) -> UserProgress:
    """Compute the :class:`UserProgress` of one participant."""

    scanned = participant.scanned_count
    tier_states = []
    for tier in tiers:
        redemption = participant.redemptions.get(tier.id)
        tier_states.append(
            TierProgress(
                tier=tier,
                unlocked=scanned >= tier.required_scans,
                redeemed=bool(redemption and redemption.redeemed),
                redeemed_at=redemption.redeemed_at if redemption else None,
            )
        )

    return UserProgress(
        participant=participant,
        scanned_count=scanned,
        total_codes=total_codes,
        progress_percent=percent(scanned, total_codes),
        is_completed=scanned >= total_codes,
        tiers=tuple(tier_states),
        total_redemptions=sum(1 for state in tier_states if state.redeemed),
    )


def summarize_all(
    participants: Iterable[ParticipantRecord],
    *,
    total_codes: int = TOTAL_CODES,
    tiers: Sequence[Tier] = TIERS,
) -> list[UserProgress]:
    """Compute progress for every participant, preserving input order."""

    return [
        summarize_progress(participant, total_codes=total_codes, tiers=tiers)
        for participant in participants
    ]


USER_STATUS_FILTERS = ("all", "active", "completed", "redeemed", "inactive")


def filter_participants(
    progress: Iterable[UserProgress], status: str = "all"
) -> list[UserProgress]:
    """Filter users the way the admin users table does.

    ``"redeemed"`` keeps users with at least one scan; it does not look at
    tier redemptions.
    """

    if status not in USER_STATUS_FILTERS:
        raise ValueError(f"Unknown status filter '{status}'")
    if status == "active":
        return [p for p in progress if p.scanned_count > 0]
    if status == "completed":
        return [p for p in progress if p.is_completed]
    if status == "redeemed":
        return [p for p in progress if p.has_any_scan]
    if status == "inactive":
        return [p for p in progress if p.scanned_count == 0]
    return list(progress)


__all__ = [
    "TierProgress",
    "USER_STATUS_FILTERS",
    "UserProgress",
    "filter_participants",
    "summarize_all",
    "summarize_progress",
]
