from typing import NamedTuple, Sequence

from .points_config import LEVEL_BADGES, LEVEL_THRESHOLDS, LEVEL_TITLES


class LevelInfo(NamedTuple):
    badge: str
    title: str
    next_threshold: int


def level_of(total_points: int, thresholds: Sequence[int] = LEVEL_THRESHOLDS) -> int:
    """Highest level whose threshold `total_points` has reached.

    Points past the last threshold stay at the top level; negative totals are level 0.
    """
    for level in range(len(thresholds) - 1, -1, -1):
        if total_points >= thresholds[level]:
            return level
    return 0


def level_info(level: int) -> LevelInfo:
    """Badge, title and next threshold for a level, clamped to the last tier when out of range."""
    last = len(LEVEL_TITLES) - 1
    if level < 0 or level > last:
        level = last
    next_index = min(level + 1, len(LEVEL_THRESHOLDS) - 1)
    return LevelInfo(
        badge=LEVEL_BADGES[level],
        title=LEVEL_TITLES[level],
        next_threshold=LEVEL_THRESHOLDS[next_index],
    )


def points_to_next_level(total_points: int) -> int:
    info = level_info(level_of(total_points))
    return max(0, info.next_threshold - total_points)
