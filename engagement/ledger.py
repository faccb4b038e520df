"""
Points ledger: awards points, keeps the append-only activity log, and drives
the streak tracker and level calculator.

Each operation for a user runs under the store's per-user lock, works on a
private copy of the record and commits it with a single `store.put`. If that
write fails the error propagates and nothing is considered recorded.
"""
from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from .data_models import CommunityRequest, InterestedRequest, PointsActivity, UserPointsRecord
from .errors import ActivityValidationError, ProfileNotFoundError
from .insights import build_user_analytics, preference_profile, rank_requests
from .levels import level_of
from .matching_models import InterestResult, RequestRecommendation, UserAnalytics
from .points_config import ACTIVITY_TYPES, REQUEST_CATEGORIES, URGENCY_LEVELS, PointsConfig
from .store import PointsStore
from .streaks import update_streak

INTEREST_TAG_PREFIX = "community_request:"


def interest_tag(request_id: str) -> str:
    return f"{INTEREST_TAG_PREFIX}{request_id}"


def _require_user_id(user_id: Any) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ActivityValidationError("userId is required")
    return user_id.strip()


def _require_points(points: Any) -> int:
    if points is None:
        raise ActivityValidationError("points is required")
    if isinstance(points, bool) or not isinstance(points, int):
        raise ActivityValidationError(f"points must be an integer, got {points!r}")
    if points < 0:
        raise ActivityValidationError(f"points must be non-negative, got {points}")
    return points


def _require_id(value: Any, field: str) -> str:
    if value is None or not str(value).strip():
        raise ActivityValidationError(f"{field} is required")
    return str(value).strip()


class PointsLedger:
    def __init__(
        self,
        store: PointsStore,
        config: Optional[PointsConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.config = config or PointsConfig()
        self.clock = clock or datetime.now

    # ---- core write path ----

    def _apply(
        self,
        record: UserPointsRecord,
        activity_type: str,
        points: int,
        description: str,
        metadata: Dict[str, Any],
        now: datetime,
    ) -> UserPointsRecord:
        record.activities.append(
            PointsActivity(
                type=activity_type,  # type: ignore[arg-type]
                points=points,
                timestamp=now,
                description=description,
                metadata=metadata,
            )
        )
        record.total_points += points
        record = update_streak(record, now, self.config)
        record.level = level_of(record.total_points)
        return record

    def _load_or_new(self, user_id: str) -> UserPointsRecord:
        record = self.store.get(user_id)
        return record if record is not None else UserPointsRecord.new(user_id)

    def record_activity(
        self,
        user_id: str,
        activity_type: str,
        points: int,
        description: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> UserPointsRecord:
        """Append one activity, update streak and level, and persist the record.

        Not idempotent: recording the same event twice awards it twice.
        """
        user_id = _require_user_id(user_id)
        points = _require_points(points)
        if activity_type not in ACTIVITY_TYPES:
            raise ActivityValidationError(
                f"Unknown activity type '{activity_type}'. Expected one of {list(ACTIVITY_TYPES)}"
            )
        with self.store.lock(user_id):
            record = self._load_or_new(user_id)
            record = self._apply(
                record, activity_type, points, description, dict(metadata or {}), self.clock()
            )
            self.store.put(user_id, record)
            return record

    # ---- award paths ----

    def add_event_points(self, user_id: str, event_id: str) -> UserPointsRecord:
        event_id = _require_id(event_id, "eventId")
        return self.record_activity(
            user_id,
            "event",
            self.config.event_participation,
            description=f"Participated in event {event_id}",
            metadata={"event_id": event_id},
        )

    def add_community_request_points(
        self, user_id: str, request_id: str, points: Optional[int] = None
    ) -> UserPointsRecord:
        request_id = _require_id(request_id, "requestId")
        if points is None:
            points = self.config.community_request_base
        points = min(_require_points(points), self.config.community_request_max)
        return self.record_activity(
            user_id,
            "community_request",
            points,
            description=f"Created community request {request_id}",
            metadata={"request_id": request_id},
        )

    def add_donation_points(self, user_id: str, amount: float) -> UserPointsRecord:
        if amount is None or isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ActivityValidationError(f"donation amount must be a number, got {amount!r}")
        if not math.isfinite(amount) or amount < 0:
            raise ActivityValidationError(f"donation amount must be non-negative, got {amount}")
        points = int(math.floor(amount * self.config.donation_rate))
        return self.record_activity(
            user_id,
            "donation",
            points,
            description=f"Donated £{amount:g}",
            metadata={"donation_amount": amount},
        )

    def record_interest(
        self,
        user_id: str,
        request_id: str,
        points: int,
        title: str = "",
        category: Optional[str] = None,
        urgency: Optional[str] = None,
        location: Optional[str] = None,
    ) -> InterestResult:
        """Record interest in a community request, at most once per (user, request)."""
        user_id = _require_user_id(user_id)
        request_id = _require_id(request_id, "requestId")
        points = _require_points(points)
        tag = interest_tag(request_id)

        with self.store.lock(user_id):
            record = self._load_or_new(user_id)
            if tag in record.interests:
                return InterestResult(
                    user_id=user_id,
                    request_id=request_id,
                    recorded=False,
                    already_interested=True,
                    points_earned=0,
                    total_points=record.total_points,
                    level=record.level,
                    current_streak=record.current_streak,
                    message="User already showed interest in this request",
                )

            now = self.clock()
            record.interests.append(tag)
            record.interested_requests.append(
                InterestedRequest(
                    request_id=request_id,
                    timestamp=now,
                    points_earned=points,
                    category=category,
                    urgency=urgency,
                    location=location,
                )
            )
            if category in REQUEST_CATEGORIES:
                record.category_preferences[category] = record.category_preferences.get(category, 0) + 1
            if urgency in URGENCY_LEVELS:
                record.urgency_response[urgency] = record.urgency_response.get(urgency, 0) + 1
            if location and location not in record.location_preferences:
                record.location_preferences.append(location)

            record = self._apply(
                record,
                "community_request",
                points,
                f"Interested in: {title or request_id}",
                {"request_id": request_id},
                now,
            )
            self.store.put(user_id, record)

        return InterestResult(
            user_id=user_id,
            request_id=request_id,
            recorded=True,
            points_earned=points,
            total_points=record.total_points,
            level=record.level,
            current_streak=record.current_streak,
            message="Interest recorded successfully",
        )

    # ---- queries ----

    def get_record(self, user_id: str) -> UserPointsRecord:
        record = self.store.get(_require_user_id(user_id))
        if record is None:
            raise ProfileNotFoundError(user_id, what="points record")
        return record

    def get_or_create(self, user_id: str, name: Optional[str] = None) -> UserPointsRecord:
        user_id = _require_user_id(user_id)
        with self.store.lock(user_id):
            record = self.store.get(user_id)
            if record is None:
                record = UserPointsRecord.new(user_id, name)
                self.store.put(user_id, record)
            return record

    def recent_activities(self, user_id: str, limit: int = 10) -> List[PointsActivity]:
        activities = self.get_record(user_id).activities
        return list(reversed(activities[-limit:])) if limit > 0 else []

    def points_breakdown(self, user_id: str) -> Dict[str, int]:
        breakdown = {activity_type: 0 for activity_type in ACTIVITY_TYPES}
        for activity in self.get_record(user_id).activities:
            breakdown[activity.type] = breakdown.get(activity.type, 0) + activity.points
        return breakdown

    def weekly_points(self, user_id: str) -> int:
        week_ago = self.clock() - timedelta(days=7)
        return sum(
            activity.points
            for activity in self.get_record(user_id).activities
            if activity.timestamp > week_ago
        )

    def leaderboard(self, limit: int = 10) -> List[UserPointsRecord]:
        records = sorted(self.store.get_all(), key=lambda r: r.total_points, reverse=True)
        return records[:limit]

    def reset_user(self, user_id: str) -> bool:
        user_id = _require_user_id(user_id)
        with self.store.lock(user_id):
            return self.store.delete(user_id)

    def interest_insights(self, user_id: str) -> Dict[str, Any]:
        """Interest-board preferences used to tailor request recommendations."""
        record = self.get_record(user_id)
        profile = preference_profile(record)
        return {
            "preferred_categories": profile.preferred_categories,
            "preferred_locations": profile.preferred_locations,
            "urgency_preference": profile.urgency_preference,
            "recommendation_score": record.total_points / (len(record.interested_requests) or 1),
            "engagement_level": profile.engagement_level,
        }

    def request_recommendations(
        self, user_id: str, requests: Iterable[CommunityRequest], limit: int = 10
    ) -> List[RequestRecommendation]:
        """Rank open requests for a user; users without a record get them by reward."""
        return rank_requests(self.store.get(_require_user_id(user_id)), requests, limit)

    def user_analytics(self, user_id: str) -> UserAnalytics:
        return build_user_analytics(self.get_record(user_id), self.analytics_summary(), self.clock())

    def analytics_summary(self) -> Dict[str, Any]:
        """Platform-wide interest analytics, derived from the stored records."""
        total_points = 0
        total_interests = 0
        categories: Counter = Counter({category: 0 for category in REQUEST_CATEGORIES})
        urgencies: Counter = Counter({urgency: 0 for urgency in URGENCY_LEVELS})
        for record in self.store.get_all():
            for interest in record.interested_requests:
                total_points += interest.points_earned
                total_interests += 1
                if interest.category in REQUEST_CATEGORIES:
                    categories[interest.category] += 1
                if interest.urgency in URGENCY_LEVELS:
                    urgencies[interest.urgency] += 1

        most_popular = "help"
        max_count = 0
        for category in REQUEST_CATEGORIES:
            if categories[category] > max_count:
                max_count = categories[category]
                most_popular = category

        return {
            "total_points_awarded": total_points,
            "total_interests": total_interests,
            "most_popular_category": most_popular,
            "average_points_per_interest": total_points / total_interests if total_interests else 0,
            "category_distribution": dict(categories),
            "urgency_distribution": dict(urgencies),
            "last_updated": self.clock().isoformat(),
        }
