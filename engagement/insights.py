"""
Per-user insights built from the interest-board counters on a points record.

- Preference profile: top categories, recent locations, urgency and engagement
- Request ranking: score open community requests against that profile
- User analytics: rank tier, growth hints, diversity and consistency scores
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from .data_models import CommunityRequest, UserPointsRecord
from .levels import points_to_next_level
from .matching_models import (
    CategoryCount,
    EngagementMetrics,
    PreferenceProfile,
    RequestRecommendation,
    UserAnalytics,
    UserRanking,
)
from .recommender import round_half_up

HIGH_REWARD_POINTS = 150
REWARD_TOLERANCE = 0.3
DEFAULT_AVERAGE_POINTS = 100

# (minimum percentile, tier), highest first
RANK_TIERS = ((90, "Diamond"), (75, "Platinum"), (50, "Gold"), (25, "Silver"), (0, "Bronze"))


def engagement_level(current_streak: int) -> str:
    if current_streak >= 7:
        return "high"
    if current_streak >= 3:
        return "medium"
    return "low"


def _top_counts(counts: Dict[str, int], n: int) -> List[CategoryCount]:
    ranked = sorted(
        ((key, count) for key, count in counts.items() if count > 0),
        key=lambda kv: kv[1],
        reverse=True,
    )
    return [CategoryCount(category=key, count=count) for key, count in ranked[:n]]


def preference_profile(record: UserPointsRecord) -> PreferenceProfile:
    urgencies = _top_counts(record.urgency_response, 1)
    interests = len(record.interested_requests)
    return PreferenceProfile(
        user_id=record.user_id,
        preferred_categories=[c.category for c in _top_counts(record.category_preferences, 3)],
        preferred_locations=record.location_preferences[-5:],
        urgency_preference=urgencies[0].category if urgencies else "medium",
        engagement_level=engagement_level(record.current_streak),
        total_points=record.total_points,
        level=record.level,
        current_streak=record.current_streak,
        average_points_per_interest=record.total_points / interests if interests else 0.0,
    )


def _location_matches(location: str, preferred: Iterable[str]) -> bool:
    location = location.strip().lower()
    if not location:
        return False
    return any(location in p.lower() or p.lower() in location for p in preferred if p.strip())


def _request_score(request: CommunityRequest, profile: PreferenceProfile) -> int:
    score = 0
    if request.category in profile.preferred_categories:
        # first preference 40, second 30, third 20
        score += 40 - profile.preferred_categories.index(request.category) * 10
    if _location_matches(request.location, profile.preferred_locations):
        score += 30
    if request.urgency == profile.urgency_preference:
        score += 20
    average = profile.average_points_per_interest
    if average > 0 and abs(request.points_reward - average) < average * REWARD_TOLERANCE:
        score += 10
    if profile.engagement_level == "high" and request.urgency == "high":
        score += 15
    return score


def _request_reasons(request: CommunityRequest, profile: PreferenceProfile) -> List[str]:
    reasons: List[str] = []
    if request.category in profile.preferred_categories:
        reasons.append(f"Matches your interest in {request.category}")
    if _location_matches(request.location, profile.preferred_locations):
        reasons.append("In your preferred area")
    if request.urgency == profile.urgency_preference:
        reasons.append(f"{request.urgency} urgency matches your preference")
    if profile.current_streak >= 7:
        reasons.append(f"Keep your {profile.current_streak}-day streak going!")
    if request.points_reward >= HIGH_REWARD_POINTS:
        reasons.append(f"High reward: {request.points_reward} points")
    return reasons


def _as_recommendation(request: CommunityRequest, score: int = 0, reasons: Optional[List[str]] = None) -> RequestRecommendation:
    return RequestRecommendation(
        **request.model_dump(),
        recommendation_score=score,
        match_reasons=reasons or [],
    )


def rank_requests(
    record: Optional[UserPointsRecord],
    requests: Iterable[CommunityRequest],
    limit: int = 10,
) -> List[RequestRecommendation]:
    """
    Open community requests ranked for one user, best first.

    Without a points record there is nothing to personalize on, so requests
    are ordered by reward instead. Ties keep their input order.
    """
    requests = list(requests)
    if limit <= 0:
        return []
    if record is None:
        ordered = sorted(requests, key=lambda r: r.points_reward, reverse=True)
        return [_as_recommendation(r) for r in ordered[:limit]]

    profile = preference_profile(record)
    scored = [
        _as_recommendation(r, _request_score(r, profile), _request_reasons(r, profile))
        for r in requests
    ]
    scored.sort(key=lambda r: r.recommendation_score, reverse=True)
    return scored[:limit]


# ---- user analytics ----

def rank_tier(total_points: int, average_points_per_interest: float) -> UserRanking:
    """Percentile against ten times the platform's average points per interest."""
    average = average_points_per_interest or DEFAULT_AVERAGE_POINTS
    percentile = min(100, max(0, round_half_up(total_points / (average * 10) * 100)))
    tier = next(name for minimum, name in RANK_TIERS if percentile >= minimum)
    return UserRanking(
        percentile=percentile,
        tier=tier,
        points_until_next_tier=points_to_next_level(total_points),
    )


def category_diversity(category_counts: Dict[str, int]) -> int:
    """Shannon entropy of category interest, scaled to 0-100."""
    counts = np.asarray(list(category_counts.values()), dtype=float)
    if len(counts) < 2 or counts.sum() == 0:
        return 0
    p = counts[counts > 0] / counts.sum()
    entropy = float(-(p * np.log2(p)).sum())
    return round_half_up(entropy / np.log2(len(counts)) * 100)


def consistency_score(current_streak: int, best_streak: int) -> int:
    if best_streak == 0:
        return 0
    return round_half_up(current_streak / best_streak * 100)


def activities_per_day(record: UserPointsRecord, now: datetime) -> float:
    if not record.activities:
        return 0.0
    first = min(a.timestamp for a in record.activities)
    days = (now.date() - first.date()).days
    return round(len(record.activities) / days, 2) if days > 0 else 0.0


def growth_opportunities(record: UserPointsRecord, most_popular_category: Optional[str] = None) -> List[str]:
    opportunities: List[str] = []
    unexplored = [category for category, count in record.category_preferences.items() if count == 0]
    if unexplored:
        opportunities.append(f"Try {unexplored[0]} requests for new experiences")

    if record.current_streak <= 1:
        opportunities.append("Start a streak by being active daily!")
    elif record.current_streak == 6:
        opportunities.append("One more day to earn your 7-day streak bonus!")

    if most_popular_category and record.category_preferences.get(most_popular_category, 0) == 0:
        opportunities.append(f"{most_popular_category} is trending - check it out!")
    return opportunities


def build_user_analytics(record: UserPointsRecord, summary: Dict[str, Any], now: datetime) -> UserAnalytics:
    """Combine one record with the platform summary from `PointsLedger.analytics_summary`."""
    return UserAnalytics(
        user_id=record.user_id,
        total_points=record.total_points,
        level=record.level,
        current_streak=record.current_streak,
        best_streak=record.best_streak,
        total_activities=len(record.activities),
        ranking=rank_tier(record.total_points, summary.get("average_points_per_interest", 0)),
        preferences=preference_profile(record),
        growth_opportunities=growth_opportunities(record, summary.get("most_popular_category")),
        engagement=EngagementMetrics(
            activities_per_day=activities_per_day(record, now),
            diversity_score=category_diversity(record.category_preferences),
            consistency_score=consistency_score(record.current_streak, record.best_streak),
        ),
        top_categories=_top_counts(record.category_preferences, 3),
    )
