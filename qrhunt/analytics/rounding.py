"""Rounding helpers shared by every percentage and ratio in the reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round ``value`` to ``digits`` decimals, halves away from zero.

    Python's :func:`round` uses banker's rounding (``round(2.5) == 2``); the
    dashboards have always shown ``3`` for that case.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent(numerator: float, denominator: float) -> int:
    """Return ``numerator / denominator`` as a rounded integer percentage.

    Returns ``0`` when ``denominator`` is zero.
    """
    if not denominator:
        return 0
    return int(round_half_up(numerator / denominator * 100))


def ratio(numerator: float, denominator: float, digits: int = 1) -> float:
    """Return ``numerator / denominator`` rounded to ``digits`` decimals, or 0."""
    if not denominator:
        return 0.0
    return round_half_up(numerator / denominator, digits)


__all__ = ["percent", "ratio", "round_half_up"]
