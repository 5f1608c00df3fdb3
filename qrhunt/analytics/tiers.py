"""Reward tiers unlocked by scanning locations."""

from __future__ import annotations

from dataclasses import dataclass

TOTAL_CODES = 18
"""Number of scans that completes the hunt."""


@dataclass(frozen=True)
class Tier:
    """A reward unlocked after ``required_scans`` scans."""

    id: str
    name: str
    required_scans: int


TIERS: tuple[Tier, ...] = (
    Tier(id="tier1", name="Wheel Spin", required_scans=1),
    Tier(id="tier3", name="Holofoil", required_scans=3),
    Tier(id="tier6", name="OV Pack", required_scans=6),
    Tier(id="tier12", name="IE Pack", required_scans=12),
    Tier(id="tier18", name="Custom Card", required_scans=18),
)


def get_tier(tier_id: str) -> Tier:
    """Return the tier registered under ``tier_id``."""
    for tier in TIERS:
        if tier.id == tier_id:
            return tier
    raise KeyError(f"Unknown tier '{tier_id}'")


__all__ = ["TIERS", "TOTAL_CODES", "Tier", "get_tier"]
