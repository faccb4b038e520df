from datetime import date, datetime

from engagement.data_models import UserPointsRecord
from engagement.points_config import PointsConfig
from engagement.streaks import update_streak


def _record(streak: int, best: int = 0, last: date = date(2024, 1, 1)) -> UserPointsRecord:
    return UserPointsRecord(
        user_id="u1",
        current_streak=streak,
        best_streak=max(best, streak),
        last_activity_date=last,
    )


def test_first_activity_starts_streak():
    rec = update_streak(UserPointsRecord(user_id="u1"), datetime(2024, 1, 1, 9))
    assert rec.current_streak == 1
    assert rec.best_streak == 1
    assert rec.last_activity_date == date(2024, 1, 1)


def test_next_day_increments_by_one():
    rec = update_streak(_record(3), datetime(2024, 1, 2, 18))
    assert rec.current_streak == 4
    assert rec.best_streak == 4
    assert rec.last_activity_date == date(2024, 1, 2)


def test_same_day_leaves_streak_unchanged():
    rec = update_streak(_record(3), datetime(2024, 1, 1, 23, 59))
    assert rec.current_streak == 3
    assert rec.activities == []


def test_gap_resets_to_one_and_keeps_best():
    rec = update_streak(_record(5, best=9), datetime(2024, 1, 5))
    assert rec.current_streak == 1
    assert rec.best_streak == 9
    assert rec.last_activity_date == date(2024, 1, 5)


def test_clock_behind_last_activity_is_ignored():
    rec = update_streak(_record(2), datetime(2023, 12, 30))
    assert rec.current_streak == 2
    assert rec.last_activity_date == date(2024, 1, 1)


def test_input_record_is_not_mutated():
    original = _record(6)
    update_streak(original, datetime(2024, 1, 2))
    assert original.current_streak == 6
    assert original.activities == []


def test_reaching_seven_days_awards_one_bonus():
    rec = update_streak(_record(6), datetime(2024, 1, 2))
    assert rec.current_streak == 7
    bonuses = [a for a in rec.activities if a.type == "streak_bonus"]
    assert len(bonuses) == 1
    assert bonuses[0].points == 50
    assert bonuses[0].metadata["streak_days"] == 7
    assert rec.total_points == 50


def test_reaching_thirty_days_awards_one_bonus():
    rec = update_streak(_record(29), datetime(2024, 1, 2))
    assert rec.current_streak == 30
    assert [a.points for a in rec.activities] == [100]


def test_no_bonus_on_other_days():
    for streak in (1, 7, 8, 30, 31):
        rec = update_streak(_record(streak), datetime(2024, 1, 2))
        assert rec.activities == []


def test_custom_bonus_schedule():
    config = PointsConfig(streak_bonuses=((3, 5),))
    rec = update_streak(_record(2), datetime(2024, 1, 2), config)
    assert rec.total_points == 5
