from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .points_config import REQUEST_CATEGORIES, URGENCY_LEVELS

ActivityType = Literal["event", "donation", "community_request", "streak_bonus"]


def _unique(values: List[str]) -> List[str]:
    seen = set()
    out = []
    for value in values:
        key = value.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(value.strip())
    return out


class PointsActivity(BaseModel):
    """
    A single point-earning entry in a user's ledger. Entries are only ever appended.
    """

    type: ActivityType
    points: int = Field(ge=0)
    timestamp: datetime
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class InterestedRequest(BaseModel):
    request_id: str
    timestamp: datetime
    points_earned: int = Field(ge=0)
    category: Optional[str] = None
    urgency: Optional[str] = None
    location: Optional[str] = None


class UserPointsRecord(BaseModel):
    """
    Per-user points, streak and level state plus the interest-board counters
    the recommendation side reads.
    """

    user_id: str
    name: str = ""
    total_points: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    level: int = Field(default=0, ge=0, le=7)
    last_activity_date: Optional[date] = None
    interests: List[str] = Field(default_factory=list)
    interested_requests: List[InterestedRequest] = Field(default_factory=list)
    activities: List[PointsActivity] = Field(default_factory=list)
    category_preferences: Dict[str, int] = Field(
        default_factory=lambda: {category: 0 for category in REQUEST_CATEGORIES}
    )
    location_preferences: List[str] = Field(default_factory=list)
    urgency_response: Dict[str, int] = Field(
        default_factory=lambda: {urgency: 0 for urgency in URGENCY_LEVELS}
    )

    @classmethod
    def new(cls, user_id: str, name: Optional[str] = None) -> "UserPointsRecord":
        return cls(user_id=user_id, name=name or f"User {user_id}")

    def activity_points(self) -> int:
        return sum(activity.points for activity in self.activities)


class ParticipationRecord(BaseModel):
    event_id: str
    event_name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    role: str = "volunteer"


class EventRecord(BaseModel):
    event_id: str
    name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    volunteers_needed: int = 0


class CulturalProfile(BaseModel):
    """
    Recommendation input built on demand from a user's languages and
    participation history. Never persisted.
    """

    user_id: str
    name: str = ""
    user_type: Literal["volunteer", "attendee"] = "volunteer"
    languages: List[str] = Field(default_factory=list)
    cultural_background: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    location_preferences: List[str] = Field(default_factory=list)
    participation_history: List[ParticipationRecord] = Field(default_factory=list)

    @field_validator("languages", "cultural_background", "interests", "location_preferences")
    @classmethod
    def _dedupe(cls, values: List[str]) -> List[str]:
        return _unique(values)


class CommunityRequest(BaseModel):
    """An open request on the community board, as offered for recommendation."""

    request_id: str
    title: str = ""
    category: Optional[str] = None
    urgency: Optional[str] = None
    location: str = ""
    points_reward: int = Field(default=0, ge=0)
