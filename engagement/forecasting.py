"""
Rule-based location analytics and forecasts for event planning.

- Per-location stats from the events table and who took part
- Underserved / oversaturated / balanced split against the mean turnout
- Event demand per location and expected turnout for a new event
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .data_models import EventRecord
from .feature_engineering import ProfileDirectory
from .matching_models import LocationPrediction, LocationStats, ParticipationForecast
from .recommender import round_half_up

UNDERSERVED_RATIO = 0.6
OVERSATURATED_RATIO = 1.5

DEMAND_CONFIDENCE = 0.65
TURNOUT_CONFIDENCE = 0.60
DEFAULT_TURNOUT = 10

SUGGESTED_CATEGORIES = ["Community", "Education", "Health"]
BEST_TIME_SLOTS = ["Weekend mornings", "Weekday evenings"]


def _participant_counts(directory: ProfileDirectory) -> pd.DataFrame:
    rows = [
        {"event_id": h.event_id, "user_type": profile.user_type}
        for profile in directory
        for h in profile.participation_history
        if h.event_id
    ]
    parts = pd.DataFrame(rows, columns=["event_id", "user_type"])
    parts["volunteers"] = (parts["user_type"] == "volunteer").astype(int)
    parts["attendees"] = (parts["user_type"] == "attendee").astype(int)
    return parts.groupby("event_id", as_index=False)[["volunteers", "attendees"]].sum()


def location_stats(events: Iterable[EventRecord], directory: ProfileDirectory) -> List[LocationStats]:
    """
    Aggregate events by location, busiest first.

    Events without a location are left out. Success rate is volunteers who
    took part over volunteers needed, capped at 100; 0 when nothing was needed.
    """
    located = [e.model_dump() for e in events if e.location]
    if not located:
        return []
    events_df = pd.DataFrame(located).drop_duplicates(subset=["event_id"], keep="first")
    events_df = events_df.merge(_participant_counts(directory), how="left", on="event_id")
    events_df[["volunteers", "attendees"]] = events_df[["volunteers", "attendees"]].fillna(0)

    grouped = events_df.groupby("location").agg(
        total_events=("event_id", "nunique"),
        volunteers=("volunteers", "sum"),
        attendees=("attendees", "sum"),
        needed=("volunteers_needed", "sum"),
    )
    grouped["participants"] = grouped["volunteers"] + grouped["attendees"]
    grouped = grouped.sort_values("participants", ascending=False, kind="mergesort")

    stats: List[LocationStats] = []
    for location, row in grouped.iterrows():
        total_events = int(row["total_events"])
        participants = int(row["participants"])
        needed = int(row["needed"])
        success = min(100, round_half_up(row["volunteers"] / needed * 100)) if needed > 0 else 0
        stats.append(
            LocationStats(
                location=str(location),
                total_events=total_events,
                total_participants=participants,
                average_participants_per_event=round_half_up(participants / total_events) if total_events else 0,
                volunteer_demand=needed,
                success_rate=success,
            )
        )
    return stats


def location_gaps(stats: List[LocationStats]) -> Dict[str, List[str]]:
    """Split locations by average turnout relative to the mean across locations."""
    gaps: Dict[str, List[str]] = {"underserved": [], "oversaturated": [], "balanced": []}
    if not stats:
        return gaps
    mean = sum(s.average_participants_per_event for s in stats) / len(stats)
    for s in stats:
        if s.average_participants_per_event < mean * UNDERSERVED_RATIO:
            gaps["underserved"].append(s.location)
        elif s.average_participants_per_event > mean * OVERSATURATED_RATIO:
            gaps["oversaturated"].append(s.location)
        else:
            gaps["balanced"].append(s.location)
    return gaps


def predict_location_demand(stats: List[LocationStats]) -> List[LocationPrediction]:
    gaps = location_gaps(stats)
    predictions: List[LocationPrediction] = []
    for s in stats:
        if s.location in gaps["underserved"]:
            demand, per_month = 75, 4
            reasoning = (
                "This area is underserved and could benefit from more community "
                "events to increase engagement"
            )
        elif s.location in gaps["oversaturated"]:
            demand, per_month = 30, 1
            reasoning = (
                "This area has high event density. Consider diversifying locations "
                "to reach new communities"
            )
        else:
            demand = min(100, round_half_up(s.average_participants_per_event / 50 * 100))
            per_month = math.ceil(s.total_events / 12)
            reasoning = "Balanced event distribution recommended"
        predictions.append(
            LocationPrediction(
                location=s.location,
                predicted_event_demand=demand,
                recommended_events_per_month=per_month,
                confidence=DEMAND_CONFIDENCE,
                reasoning=reasoning,
                suggested_categories=list(SUGGESTED_CATEGORIES),
                best_time_slots=list(BEST_TIME_SLOTS),
            )
        )
    return predictions


def predict_event_participation(location: str, stats: List[LocationStats]) -> ParticipationForecast:
    """Expected turnout for a new event, split 30/70 between volunteers and attendees."""
    known: Optional[LocationStats] = next(
        (s for s in stats if s.location.lower() == location.strip().lower()), None
    )
    base = (known.average_participants_per_event if known else 0) or DEFAULT_TURNOUT
    factors = ["Historical average", "Location performance"] if known else ["No history for this location"]
    return ParticipationForecast(
        location=location,
        expected_volunteers=round_half_up(base * 0.3),
        expected_attendees=round_half_up(base * 0.7),
        confidence=TURNOUT_CONFIDENCE,
        factors=factors,
    )
