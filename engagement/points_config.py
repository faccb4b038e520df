# Points awarded per activity and level tiers
import os
from dataclasses import dataclass, field
from typing import Tuple

EVENT_PARTICIPATION = 100
COMMUNITY_REQUEST_BASE = 50
COMMUNITY_REQUEST_MAX = 500
DONATION_PER_UNIT = 1

# Streak bonuses (consecutive days -> bonus points)
STREAK_BONUS_7_DAYS = 50
STREAK_BONUS_30_DAYS = 100

LEVEL_THRESHOLDS: Tuple[int, ...] = (0, 100, 250, 500, 1000, 2000, 5000, 10000)
LEVEL_TITLES: Tuple[str, ...] = (
    "Seed",
    "Sprout",
    "Bloom",
    "Growth",
    "Flourish",
    "Harvest",
    "Champion",
    "Legend",
)
LEVEL_BADGES: Tuple[str, ...] = ("🌱", "🌿", "🌸", "🌳", "🌺", "🌾", "🏆", "👑")

ACTIVITY_TYPES: Tuple[str, ...] = ("event", "donation", "community_request", "streak_bonus")

# Interest-board counters kept on every user record
REQUEST_CATEGORIES: Tuple[str, ...] = ("help", "food", "items", "skills", "other")
URGENCY_LEVELS: Tuple[str, ...] = ("high", "medium", "low")

DEFAULT_POINTS_FILE = "data/userPoints.json"


@dataclass(frozen=True)
class PointsConfig:
    event_participation: int = EVENT_PARTICIPATION
    community_request_base: int = COMMUNITY_REQUEST_BASE
    community_request_max: int = COMMUNITY_REQUEST_MAX
    donation_rate: float = DONATION_PER_UNIT
    streak_bonuses: Tuple[Tuple[int, int], ...] = field(
        default=((7, STREAK_BONUS_7_DAYS), (30, STREAK_BONUS_30_DAYS))
    )

    def streak_bonus_for(self, streak_days: int) -> int:
        """Bonus points for reaching exactly `streak_days`, 0 if none applies."""
        for days, bonus in self.streak_bonuses:
            if streak_days == days:
                return bonus
        return 0


def load_points_config() -> PointsConfig:
    """Build a PointsConfig, letting EIGHTVENTS_* environment variables override defaults."""
    return PointsConfig(
        event_participation=int(os.environ.get("EIGHTVENTS_EVENT_POINTS", EVENT_PARTICIPATION)),
        community_request_base=int(os.environ.get("EIGHTVENTS_REQUEST_POINTS", COMMUNITY_REQUEST_BASE)),
        donation_rate=float(os.environ.get("EIGHTVENTS_DONATION_RATE", DONATION_PER_UNIT)),
    )


def default_points_file() -> str:
    return os.environ.get("EIGHTVENTS_POINTS_FILE", DEFAULT_POINTS_FILE)
