"""
Level computation for the SaveRaks points system.
Points and XP are the same counter; the level is always derived from it
through LEVEL_THRESHOLDS and never stored on its own.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Optional, Sequence

# Index + 1 = level. Must start at 0 and be strictly ascending.
LEVEL_THRESHOLDS = (0, 500, 1500, 3000, 5000, 8000, 12000, 20000)


@dataclass(frozen=True)
class LevelProgress:
    level: int
    current_threshold: int
    next_threshold: Optional[int]
    points_to_next: int
    percent: float

    def to_dict(self):
        return {
            "level": self.level,
            "currentThreshold": self.current_threshold,
            "nextThreshold": self.next_threshold,
            "pointsToNext": self.points_to_next,
            "percent": self.percent,
        }


def validate_thresholds(thresholds: Sequence[int]) -> None:
    if not thresholds:
        raise ValueError("Threshold table must not be empty")
    if thresholds[0] != 0:
        raise ValueError("Threshold table must start at 0")
    for lower, upper in zip(thresholds, thresholds[1:]):
        if upper <= lower:
            raise ValueError(f"Threshold table must be strictly ascending ({lower} >= {upper})")


def level_for_points(points: int, thresholds: Sequence[int] = LEVEL_THRESHOLDS) -> int:
    """
    Returns the largest level L with thresholds[L-1] <= points.
    Clamped to [1, len(thresholds)], so negative totals stay at level 1 and
    anything past the last threshold is pinned to the table length.
    """
    level = bisect_right(thresholds, points)
    return min(max(level, 1), len(thresholds))


def level_progress(points: int, thresholds: Sequence[int] = LEVEL_THRESHOLDS) -> LevelProgress:
    """Progress through the current level, for the profile progress bar."""
    level = level_for_points(points, thresholds)
    current = thresholds[level - 1]
    if level >= len(thresholds):
        return LevelProgress(level, current, None, 0, 100.0)

    upcoming = thresholds[level]
    span = upcoming - current
    percent = min(100.0, max(0.0, (points - current) / span * 100))
    return LevelProgress(
        level=level,
        current_threshold=current,
        next_threshold=upcoming,
        points_to_next=max(0, upcoming - points),
        percent=round(percent, 1),
    )
