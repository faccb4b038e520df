# pydantic models for scoring and recommendation results
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class MatchResult(BaseModel):
    """Pairwise cultural similarity between two profiles.

    Fields:
        user_id_1: The target (seeker) user.
        user_id_2: The candidate user.
        similarity_score: Weighted language/interest/location/bridge overlap in [0, 1].
        shared_languages: Languages both speak, in the target's spelling and order.
        shared_interests: Interests both hold, in the target's spelling and order.
        cultural_bridge_potential: Heuristic value of connecting the two backgrounds, in [0, 1].
        recommendation_reason: One human-readable sentence explaining the pairing.
    """

    user_id_1: str
    user_id_2: str
    similarity_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Weighted similarity between 0.0 and 1.0",
    )
    shared_languages: List[str] = Field(default_factory=list)
    shared_interests: List[str] = Field(default_factory=list)
    cultural_bridge_potential: float = Field(default=0.0, ge=0.0, le=1.0)
    recommendation_reason: str = ""

    def ranking_score(self, prioritize_cross_cultural: bool, bridge_factor: float = 0.5) -> float:
        if prioritize_cross_cultural:
            return self.similarity_score + self.cultural_bridge_potential * bridge_factor
        return self.similarity_score


class InterestResult(BaseModel):
    """Outcome of recording interest in a community request.

    A repeat for the same request comes back with `recorded=False` and
    `already_interested=True`; no points are awarded in that case.
    """

    user_id: str
    request_id: str
    recorded: bool
    already_interested: bool = False
    points_earned: int = 0
    total_points: int = 0
    level: int = 0
    current_streak: int = 0
    message: str = ""


class MatchReason(BaseModel):
    type: Literal["language", "interest", "location", "history", "cultural"]
    description: str
    weight: float


class UserRecommendation(BaseModel):
    recommended_user_id: str
    recommended_user_name: str
    match_score: int = Field(ge=0, le=100)
    match_reasons: List[MatchReason] = Field(default_factory=list)
    shared_interests: List[str] = Field(default_factory=list)
    cultural_connection: str = ""
    suggested_activities: List[str] = Field(default_factory=list)


class EventRecommendation(BaseModel):
    event_id: str
    event_name: str
    match_score: int
    relevance_reasons: List[str] = Field(default_factory=list)
    compatible_users: List[str] = Field(default_factory=list)
    predicted_satisfaction: float = Field(default=0.0, ge=0.0, le=5.0)


class PairedUser(BaseModel):
    id: str
    name: str
    type: Literal["volunteer", "attendee"]


class SmartPair(BaseModel):
    """Volunteer/attendee pairing for an event, scored 0-100."""

    user1: PairedUser
    user2: PairedUser
    match_score: int = Field(ge=0, le=100)
    reason: str
    event_id: Optional[str] = None


class PreferenceProfile(BaseModel):
    """What a user's interest-board history says they respond to.

    Fields:
        preferred_categories: Up to three categories with at least one interest, most used first.
        preferred_locations: The five most recently added request locations.
        urgency_preference: Most answered urgency, "medium" when there is none.
        engagement_level: "high" from a 7-day streak, "medium" from 3 days, else "low".
        average_points_per_interest: Total points over recorded interests, 0 with none.
    """

    user_id: str
    preferred_categories: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)
    urgency_preference: Literal["high", "medium", "low"] = "medium"
    engagement_level: Literal["high", "medium", "low"] = "low"
    total_points: int = 0
    level: int = 0
    current_streak: int = 0
    average_points_per_interest: float = 0.0


class RequestRecommendation(BaseModel):
    request_id: str
    title: str = ""
    category: Optional[str] = None
    urgency: Optional[str] = None
    location: str = ""
    points_reward: int = 0
    recommendation_score: int = 0
    match_reasons: List[str] = Field(default_factory=list)


class UserRanking(BaseModel):
    percentile: int = Field(ge=0, le=100)
    tier: Literal["Bronze", "Silver", "Gold", "Platinum", "Diamond"]
    points_until_next_tier: int = Field(ge=0)


class EngagementMetrics(BaseModel):
    activities_per_day: float = 0.0
    diversity_score: int = Field(default=0, ge=0, le=100)
    consistency_score: int = Field(default=0, ge=0)


class CategoryCount(BaseModel):
    category: str
    count: int


class UserAnalytics(BaseModel):
    """Per-user dashboard: stats, tier, growth hints and engagement metrics."""

    user_id: str
    total_points: int
    level: int
    current_streak: int
    best_streak: int
    total_activities: int
    ranking: UserRanking
    preferences: PreferenceProfile
    growth_opportunities: List[str] = Field(default_factory=list)
    engagement: EngagementMetrics
    top_categories: List[CategoryCount] = Field(default_factory=list)


class LocationStats(BaseModel):
    location: str
    total_events: int = 0
    total_participants: int = 0
    average_participants_per_event: int = 0
    volunteer_demand: int = 0
    success_rate: int = Field(default=0, ge=0, le=100)


class LocationPrediction(BaseModel):
    location: str
    predicted_event_demand: int = Field(ge=0, le=100)
    recommended_events_per_month: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    suggested_categories: List[str] = Field(default_factory=list)
    best_time_slots: List[str] = Field(default_factory=list)


class ParticipationForecast(BaseModel):
    location: str
    expected_volunteers: int = Field(ge=0)
    expected_attendees: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    factors: List[str] = Field(default_factory=list)
