"""
Consecutive-day streak tracking.

Transitions, evaluated on calendar days:

- no previous activity  -> streak starts at 1
- same day              -> unchanged
- next day              -> streak + 1, with a bonus activity on reaching 7 or 30 days
- gap of 2+ days        -> streak resets to 1

`best_streak` never drops below `current_streak`.
"""
from datetime import date, datetime
from typing import Optional

from .data_models import PointsActivity, UserPointsRecord
from .points_config import PointsConfig

BONUS_DESCRIPTIONS = {
    7: "7-day streak bonus! 🔥",
    30: "30-day streak bonus! 🏆",
}


def days_between(last: date, today: date) -> int:
    return (today - last).days


def update_streak(
    record: UserPointsRecord,
    activity_time: datetime,
    config: Optional[PointsConfig] = None,
) -> UserPointsRecord:
    """Return a copy of `record` with streak state advanced to `activity_time`'s day.

    A bonus is appended as a `streak_bonus` activity and added to `total_points`.
    The caller is responsible for refreshing `level` afterwards.
    """
    if config is None:
        config = PointsConfig()

    out = record.model_copy(deep=True)
    today = activity_time.date()

    if out.last_activity_date is None:
        out.current_streak = 1
        out.best_streak = max(out.best_streak, out.current_streak)
        out.last_activity_date = today
        return out

    diff = days_between(out.last_activity_date, today)
    if diff <= 0:
        # same day (or a clock behind the last recorded day): nothing to advance
        return out

    if diff == 1:
        out.current_streak += 1
        bonus = config.streak_bonus_for(out.current_streak)
        if bonus:
            out.activities.append(
                PointsActivity(
                    type="streak_bonus",
                    points=bonus,
                    timestamp=activity_time,
                    description=BONUS_DESCRIPTIONS.get(
                        out.current_streak, f"{out.current_streak}-day streak bonus!"
                    ),
                    metadata={"streak_days": out.current_streak},
                )
            )
            out.total_points += bonus
    else:
        out.current_streak = 1

    out.best_streak = max(out.best_streak, out.current_streak)
    out.last_activity_date = today
    return out
