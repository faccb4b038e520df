from datetime import datetime, timedelta

import pytest

from engagement.data_models import CommunityRequest, UserPointsRecord
from engagement.insights import (
    category_diversity,
    consistency_score,
    growth_opportunities,
    preference_profile,
    rank_requests,
    rank_tier,
)
from engagement.ledger import PointsLedger
from engagement.store import InMemoryPointsStore


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


REQUESTS = [
    CommunityRequest(request_id="A", title="Soup run", category="food", urgency="high", location="Aston Hall", points_reward=50),
    CommunityRequest(request_id="B", title="CV clinic", category="skills", urgency="low", location="Erdington", points_reward=200),
    CommunityRequest(request_id="C", title="Lift to GP", category="help", urgency="high", location="", points_reward=45),
    CommunityRequest(request_id="D", title="Spare chairs", category="other", urgency="medium", location="Selly Oak", points_reward=10),
]


def _ledger_with_history():
    clock = FakeClock(datetime(2024, 1, 1, 9))
    ledger = PointsLedger(InMemoryPointsStore(), clock=clock)
    ledger.record_interest("u1", "r1", 50, category="food", urgency="high", location="Aston")
    ledger.record_interest("u1", "r2", 50, category="food", urgency="low", location="Digbeth")
    ledger.record_interest("u1", "r3", 50, category="skills", urgency="high", location="Aston")
    return ledger, clock


def test_preference_profile_from_interest_history():
    ledger, _ = _ledger_with_history()
    profile = preference_profile(ledger.get_record("u1"))
    assert profile.preferred_categories == ["food", "skills"]
    assert profile.preferred_locations == ["Aston", "Digbeth"]
    assert profile.urgency_preference == "high"
    assert profile.engagement_level == "low"
    assert profile.average_points_per_interest == pytest.approx(50)


def test_preference_profile_for_a_fresh_record():
    profile = preference_profile(UserPointsRecord.new("u9"))
    assert profile.preferred_categories == []
    assert profile.urgency_preference == "medium"
    assert profile.average_points_per_interest == 0


def test_requests_are_ranked_by_preferences():
    ledger, _ = _ledger_with_history()
    recs = ledger.request_recommendations("u1", REQUESTS)
    assert [r.request_id for r in recs] == ["A", "B", "C", "D"]
    assert [r.recommendation_score for r in recs] == [100, 30, 30, 0]
    assert recs[0].match_reasons == [
        "Matches your interest in food",
        "In your preferred area",
        "high urgency matches your preference",
    ]
    assert recs[1].match_reasons == ["Matches your interest in skills", "High reward: 200 points"]


def test_unknown_user_gets_requests_by_reward():
    ledger, _ = _ledger_with_history()
    recs = ledger.request_recommendations("ghost", REQUESTS, limit=3)
    assert [r.request_id for r in recs] == ["B", "A", "C"]
    assert all(r.recommendation_score == 0 and r.match_reasons == [] for r in recs)


def test_high_engagement_boosts_urgent_requests():
    record = UserPointsRecord(user_id="u2", current_streak=8, best_streak=10)
    urgent = CommunityRequest(request_id="X", urgency="high")
    calm = CommunityRequest(request_id="Y", urgency="low")
    recs = rank_requests(record, [calm, urgent])
    assert [(r.request_id, r.recommendation_score) for r in recs] == [("X", 15), ("Y", 0)]
    assert recs[0].match_reasons == ["Keep your 8-day streak going!"]


def test_rank_requests_limit():
    assert rank_requests(None, REQUESTS, limit=0) == []


@pytest.mark.parametrize(
    "points, average, percentile, tier, to_next",
    [
        (0, 0, 0, "Bronze", 100),
        (130, 50, 26, "Silver", 120),
        (600, 100, 60, "Gold", 400),
        (800, 100, 80, "Platinum", 200),
        (500, 50, 100, "Diamond", 500),
    ],
)
def test_rank_tier(points, average, percentile, tier, to_next):
    ranking = rank_tier(points, average)
    assert ranking.percentile == percentile
    assert ranking.tier == tier
    assert ranking.points_until_next_tier == to_next


def test_category_diversity():
    assert category_diversity({"help": 0, "food": 0}) == 0
    assert category_diversity({"food": 4}) == 0
    assert category_diversity({"help": 1, "food": 1, "items": 0, "skills": 0, "other": 0}) == 43
    assert category_diversity({"help": 2, "food": 2, "items": 2, "skills": 2, "other": 2}) == 100


def test_consistency_score():
    assert consistency_score(3, 4) == 75
    assert consistency_score(0, 0) == 0


def test_growth_opportunities():
    fresh = UserPointsRecord.new("u3")
    assert growth_opportunities(fresh, "food") == [
        "Try help requests for new experiences",
        "Start a streak by being active daily!",
        "food is trending - check it out!",
    ]

    nearly = UserPointsRecord(
        user_id="u4",
        current_streak=6,
        best_streak=6,
        category_preferences={"help": 1, "food": 2, "items": 1, "skills": 1, "other": 1},
    )
    assert growth_opportunities(nearly, "help") == ["One more day to earn your 7-day streak bonus!"]


def test_user_analytics_dashboard():
    clock = FakeClock(datetime(2024, 1, 1, 9))
    ledger = PointsLedger(InMemoryPointsStore(), clock=clock)
    ledger.record_interest("u1", "r1", 50, category="food", urgency="low")
    clock.now += timedelta(days=1)
    ledger.record_activity("u1", "event", 10)
    clock.now += timedelta(days=2)

    report = ledger.user_analytics("u1")
    assert report.total_points == 60
    assert report.total_activities == 2
    assert report.current_streak == 2
    assert report.ranking.percentile == 12
    assert report.ranking.tier == "Bronze"
    assert report.ranking.points_until_next_tier == 40
    assert report.engagement.activities_per_day == pytest.approx(0.67)
    assert report.engagement.consistency_score == 100
    assert report.engagement.diversity_score == 0
    assert [(c.category, c.count) for c in report.top_categories] == [("food", 1)]
    assert report.growth_opportunities == ["Try help requests for new experiences"]
