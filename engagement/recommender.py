from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from .data_models import CulturalProfile, EventRecord
from .feature_engineering import ProfileDirectory, extract_keywords
from .matching_models import EventRecommendation, MatchReason, MatchResult, UserRecommendation


@dataclass(frozen=True)
class ScoreWeights:
    """Canonical pairwise similarity weights."""

    w_language: float = 0.30
    w_interest: float = 0.40
    w_location: float = 0.20
    w_cultural: float = 0.10


# Ranking boost for bridge potential when cross-cultural matches are prioritized
CROSS_CULTURAL_BRIDGE_FACTOR = 0.5


@dataclass(frozen=True)
class RecommendationConfig:
    """Settings for the recommendation-list builders.

    These weights label match reasons and scale event relevance; they are never
    used for pairwise similarity, which always uses ScoreWeights.
    """

    weights: Dict[str, float] = field(
        default_factory=lambda: {
            "language": 0.25,
            "interest": 0.30,
            "location": 0.20,
            "history": 0.15,
            "cultural": 0.10,
        }
    )
    minimum_match_score: int = 40
    max_recommendations: int = 10
    diversity_bonus: bool = True


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _shared(a: Sequence[str], b: Sequence[str]) -> List[str]:
    """Case-insensitive intersection in `a`'s order and spelling."""
    b_lower = {item.lower() for item in b}
    return [item for item in a if item.lower() in b_lower]


def _overlap(shared: Sequence[str], a: Sequence[str], b: Sequence[str]) -> float:
    if not shared:
        return 0.0
    return len(shared) / max(len(a), len(b))


def _bridge_potential(different_cultures: bool, shared_interests: List[str], shared_languages: List[str]) -> float:
    if different_cultures and shared_interests:
        return min(1.0, len(shared_interests) * 0.3 + len(shared_languages) * 0.2)
    if len(shared_languages) > 1:
        # multilingual pairs
        return 0.7
    return 0.0


def _recommendation_reason(
    different_cultures: bool,
    shared_interests: List[str],
    shared_languages: List[str],
    shared_locations: List[str],
) -> str:
    if shared_interests and different_cultures:
        return (
            f"Despite different cultural backgrounds, you share interests in "
            f"{', '.join(shared_interests[:3])}. This is a great opportunity for cross-cultural collaboration!"
        )
    if len(shared_languages) > 1:
        return (
            f"You both speak {' and '.join(shared_languages)}, making communication easy "
            f"and creating opportunities to bridge communities."
        )
    if len(shared_interests) > 2:
        return (
            f"You share strong interests in {', '.join(shared_interests[:3])}, "
            f"suggesting great collaboration potential."
        )
    if shared_locations:
        return f"You both engage in events at {shared_locations[0]}, making it easy to connect in person."
    return "Complementary skills and backgrounds could lead to unique partnerships."


def similarity(
    profile_a: CulturalProfile,
    profile_b: CulturalProfile,
    weights: Optional[ScoreWeights] = None,
) -> MatchResult:
    """Score how well `profile_b` matches `profile_a`.

    Language, interest and location scores are |shared| / max(|a|, |b|). The
    bridge potential rewards different cultural backgrounds that still share
    interests, or several shared languages. Not symmetric in its text output.
    """
    if weights is None:
        weights = ScoreWeights()

    shared_languages = _shared(profile_a.languages, profile_b.languages)
    shared_interests = _shared(profile_a.interests, profile_b.interests)
    shared_locations = _shared(profile_a.location_preferences, profile_b.location_preferences)

    language_score = _overlap(shared_languages, profile_a.languages, profile_b.languages)
    interest_score = _overlap(shared_interests, profile_a.interests, profile_b.interests)
    location_score = _overlap(
        shared_locations, profile_a.location_preferences, profile_b.location_preferences
    )

    different_cultures = not any(
        background in profile_b.cultural_background for background in profile_a.cultural_background
    )
    bridge = _bridge_potential(different_cultures, shared_interests, shared_languages)

    score = (
        weights.w_language * language_score
        + weights.w_interest * interest_score
        + weights.w_location * location_score
        + weights.w_cultural * bridge
    )

    return MatchResult(
        user_id_1=profile_a.user_id,
        user_id_2=profile_b.user_id,
        similarity_score=min(1.0, max(0.0, score)),
        shared_languages=shared_languages,
        shared_interests=shared_interests,
        cultural_bridge_potential=bridge,
        recommendation_reason=_recommendation_reason(
            different_cultures, shared_interests, shared_languages, shared_locations
        ),
    )


def rank_matches(
    target: CulturalProfile,
    candidates: Iterable[CulturalProfile],
    k: int = 10,
    prioritize_cross_cultural: bool = False,
    weights: Optional[ScoreWeights] = None,
    max_workers: Optional[int] = None,
) -> List[MatchResult]:
    """Return the top-k candidates for `target`, best first.

    Each pairwise score is independent, so `max_workers > 1` spreads them over
    a thread pool; result order does not depend on it.
    """
    pool = [c for c in candidates if c.user_id != target.user_id]
    if max_workers and max_workers > 1 and len(pool) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            scored = list(executor.map(lambda c: similarity(target, c, weights), pool))
    else:
        scored = [similarity(target, c, weights) for c in pool]

    scored.sort(
        key=lambda m: m.ranking_score(prioritize_cross_cultural, CROSS_CULTURAL_BRIDGE_FACTOR),
        reverse=True,
    )
    return scored[: max(0, k)]


def find_matches(
    user_id: str,
    directory: ProfileDirectory,
    k: int = 10,
    prioritize_cross_cultural: bool = True,
    weights: Optional[ScoreWeights] = None,
    max_workers: Optional[int] = None,
) -> List[MatchResult]:
    """Cultural matches for a known user. Raises ProfileNotFoundError for unknown users."""
    target = directory.get(user_id)
    return rank_matches(
        target,
        directory.others(target.user_id),
        k=k,
        prioritize_cross_cultural=prioritize_cross_cultural,
        weights=weights,
        max_workers=max_workers,
    )


# ---- recommendation lists ----

def user_recommendations(
    user_id: str,
    directory: ProfileDirectory,
    config: Optional[RecommendationConfig] = None,
) -> List[UserRecommendation]:
    """People worth connecting with, scored 0-100 with human-readable reasons."""
    if config is None:
        config = RecommendationConfig()

    matches = find_matches(
        user_id,
        directory,
        k=config.max_recommendations * 2,
        prioritize_cross_cultural=config.diversity_bonus,
    )

    recommendations: List[UserRecommendation] = []
    for match in matches:
        base = match.similarity_score * 100
        bonus = match.cultural_bridge_potential * 20 if config.diversity_bonus else 0
        match_score = min(100, round_half_up(base + bonus))
        if match_score < config.minimum_match_score:
            continue

        reasons: List[MatchReason] = []
        if match.shared_languages:
            reasons.append(
                MatchReason(
                    type="language",
                    description=f"Both speak {', '.join(match.shared_languages)}",
                    weight=config.weights["language"],
                )
            )
        if match.shared_interests:
            reasons.append(
                MatchReason(
                    type="interest",
                    description=f"Share interests in {', '.join(match.shared_interests[:3])}",
                    weight=config.weights["interest"],
                )
            )
        if match.cultural_bridge_potential > 0.5:
            reasons.append(
                MatchReason(
                    type="cultural",
                    description="Strong potential for cross-cultural connection",
                    weight=config.weights["cultural"],
                )
            )

        if match.shared_interests:
            activities = [f"{interest} events or projects" for interest in match.shared_interests]
        else:
            activities = ["General community volunteering", "Cultural exchange events"]

        other = directory.get(match.user_id_2)
        recommendations.append(
            UserRecommendation(
                recommended_user_id=match.user_id_2,
                recommended_user_name=other.name or "User",
                match_score=match_score,
                match_reasons=reasons,
                shared_interests=match.shared_interests,
                cultural_connection=match.recommendation_reason,
                suggested_activities=activities[:3],
            )
        )

    recommendations.sort(key=lambda r: r.match_score, reverse=True)
    return recommendations[: config.max_recommendations]


def _compatible_users(event: EventRecord, directory: ProfileDirectory, exclude: str, limit: int = 5) -> List[str]:
    keywords = extract_keywords(event.name)
    if not keywords:
        return []
    keyword = keywords[0]
    found: List[str] = []
    for profile in directory:
        if profile.user_id == exclude:
            continue
        if any(keyword in h.event_name.lower() for h in profile.participation_history):
            found.append(f"{profile.name or profile.user_id} ({profile.user_type.title()})")
            if len(found) >= limit:
                break
    return found


def event_recommendations(
    user_id: str,
    directory: ProfileDirectory,
    events: Iterable[EventRecord],
    config: Optional[RecommendationConfig] = None,
    today: Optional[date] = None,
) -> List[EventRecommendation]:
    """
    Upcoming events ranked for a user by interest, location and history fit.

    Point values (40 interest, 30 location, 20 history) are scaled by the
    configured weights relative to the defaults, so default settings score
    them as-is. Events below `minimum_match_score` are dropped.
    """
    if config is None:
        config = RecommendationConfig()
    defaults = RecommendationConfig().weights
    profile = directory.get(user_id)
    today = today or date.today()

    recommendations: List[EventRecommendation] = []
    for event in events:
        if event.event_date is not None and event.event_date < today:
            continue

        score = 0.0
        reasons: List[str] = []
        name_lower = event.name.lower()
        matching = [interest for interest in profile.interests if interest.lower() in name_lower]
        if matching:
            score += 40 * config.weights["interest"] / defaults["interest"]
            reasons.append(f"Matches your interests in {', '.join(matching)}")

        if event.location and event.location in profile.location_preferences:
            score += 30 * config.weights["location"] / defaults["location"]
            reasons.append(f"In your preferred area: {event.location}")

        if matching and any(
            matching[0].lower() in h.event_name.lower() for h in profile.participation_history
        ):
            score += 20 * config.weights["history"] / defaults["history"]
            reasons.append("Similar to events you enjoyed before")

        if not matching and len(profile.interests) < 3:
            score += 10
            reasons.append("Opportunity to explore new interests")

        if score < config.minimum_match_score:
            continue

        recommendations.append(
            EventRecommendation(
                event_id=event.event_id,
                event_name=event.name,
                match_score=round_half_up(score),
                relevance_reasons=reasons,
                compatible_users=_compatible_users(event, directory, exclude=profile.user_id),
                predicted_satisfaction=min(5.0, round_half_up(score / 20 * 10) / 10),
            )
        )

    recommendations.sort(key=lambda r: r.match_score, reverse=True)
    return recommendations[: config.max_recommendations]
