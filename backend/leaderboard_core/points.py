from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# Traditional ladder: 100 for first place, 5 fewer for each place after.
TRADITIONAL_FIRST_PLACE = 100
TRADITIONAL_STEP = 5

DEFAULT_POINTS_MULTIPLIER = 100


def calculate_traditional_points(rank: int) -> int:
    """Return ladder points for a place, floored at zero.

    Ranks below 1 only occur for malformed input and score as first place.
    """
    if rank <= 0:
        return TRADITIONAL_FIRST_PLACE
    return max(0, TRADITIONAL_FIRST_PLACE - (rank - 1) * TRADITIONAL_STEP)


def event_weight(points_multiplier: int | float | None) -> float:
    if points_multiplier is None:
        points_multiplier = DEFAULT_POINTS_MULTIPLIER
    return points_multiplier / 100


def points_for_rank(rank: int, points_multiplier: int | float | None = None) -> int:
    """Weighted ladder points, rounded half up to a whole number."""
    if points_multiplier is None:
        points_multiplier = DEFAULT_POINTS_MULTIPLIER
    weighted = Decimal(calculate_traditional_points(rank)) * Decimal(str(points_multiplier)) / 100
    return int(weighted.quantize(Decimal(1), rounding=ROUND_HALF_UP))
