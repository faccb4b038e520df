from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .data_models import CommunityRequest, EventRecord


FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["user_id", "Volunteer_ID", "Attendee_ID", "userId", "id"],
    "name": ["name", "Name", "full_name"],
    "first_name": ["first_name", "First_Name"],
    "last_name": ["last_name", "Last_Name"],
    "languages": ["languages", "LanguagesSpoken", "Languages spoken"],
    "user_type": ["user_type", "userType", "type"],
    "role": ["role", "user_type"],
    "event_id": ["event_id", "Events_ID", "eventId"],
    "event_name": ["event_name", "Event_Name", "Name", "name"],
    "event_date": ["event_date", "Date", "date"],
    "location": ["location", "Location"],
    "volunteers_needed": ["volunteers_needed", "NumOfVolunteersneeded"],
    "request_id": ["request_id", "requestId", "Request_ID", "id"],
    "title": ["title", "Title"],
    "category": ["category", "Category"],
    "urgency": ["urgency", "Urgency"],
    "points_reward": ["points_reward", "pointsReward", "points"],
}


def get_alias_column(df: pd.DataFrame, key: str) -> Optional[str]:
    for candidate in FIELD_ALIASES.get(key, []):
        if candidate in df.columns:
            return candidate
    return None


def get_alias_series(df: pd.DataFrame, key: str, default: Optional[str] = "") -> pd.Series:
    col = get_alias_column(df, key)
    if col is not None:
        return df[col]
    return pd.Series([default] * len(df), index=df.index, dtype=object)


def resolve_aliases(df: pd.DataFrame) -> Dict[str, Optional[str]]:
    return {key: get_alias_column(df, key) for key in FIELD_ALIASES}


def clean_df(df: pd.DataFrame) -> pd.DataFrame:
    """Trim headers and string cells; blank-ish strings become None."""

    out = df.copy()
    out.columns = [col.strip() if isinstance(col, str) else col for col in out.columns]
    for col in out.columns:
        if pd.api.types.is_object_dtype(out[col]):
            out[col] = (
                out[col]
                .astype(str)
                .str.replace("\n", " ")
                .str.replace(r"\s+", " ", regex=True)
                .str.strip()
                .replace({"nan": None, "None": None, "": None})
            )
    return out


def load_csv(csv_path: Path) -> pd.DataFrame:
    if not Path(csv_path).exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    return clean_df(pd.read_csv(csv_path))


def load_users(csv_path: Path) -> pd.DataFrame:
    """Users (volunteers and attendees) export: id, name, languages, optional type."""
    df = load_csv(csv_path)
    if get_alias_column(df, "id") is None:
        raise KeyError(f"{csv_path} has no user id column (tried {FIELD_ALIASES['id']})")
    return df


def load_participation(csv_path: Path) -> pd.DataFrame:
    """Participation export: one row per (user, event) with event name, date and location."""
    df = load_csv(csv_path)
    missing = [key for key in ("id", "event_name") if get_alias_column(df, key) is None]
    if missing:
        raise KeyError(f"{csv_path} is missing required columns: {missing}")
    return df


def events_from_frame(df: pd.DataFrame) -> List[EventRecord]:
    """Convert an events table into EventRecords; rows without an id or name are skipped."""
    ids = get_alias_series(df, "event_id", default=None)
    names = get_alias_series(df, "event_name", default=None)
    dates = pd.to_datetime(get_alias_series(df, "event_date", default=None), errors="coerce")
    locations = get_alias_series(df, "location", default=None)
    needed = pd.to_numeric(get_alias_series(df, "volunteers_needed", default=None), errors="coerce")

    events: List[EventRecord] = []
    for idx in df.index:
        event_id, name = ids.at[idx], names.at[idx]
        if event_id is None or pd.isna(event_id) or name is None or pd.isna(name):
            continue
        location = locations.at[idx]
        events.append(
            EventRecord(
                event_id=str(event_id),
                name=str(name),
                event_date=None if pd.isna(dates.at[idx]) else dates.at[idx].date(),
                location=None if location is None or pd.isna(location) else str(location),
                volunteers_needed=0 if pd.isna(needed.at[idx]) else int(needed.at[idx]),
            )
        )
    return events


def load_events(csv_path: Path) -> List[EventRecord]:
    return events_from_frame(load_csv(csv_path))


def requests_from_frame(df: pd.DataFrame) -> List[CommunityRequest]:
    """Open community requests; rows without an id are skipped and a missing reward counts as 0."""
    ids = get_alias_series(df, "request_id", default=None)
    titles = get_alias_series(df, "title", default=None)
    categories = get_alias_series(df, "category", default=None)
    urgencies = get_alias_series(df, "urgency", default=None)
    locations = get_alias_series(df, "location", default=None)
    rewards = pd.to_numeric(get_alias_series(df, "points_reward", default=None), errors="coerce")

    def text(value) -> Optional[str]:
        return None if value is None or pd.isna(value) else str(value)

    requests: List[CommunityRequest] = []
    for idx in df.index:
        request_id = text(ids.at[idx])
        if request_id is None:
            continue
        category, urgency = text(categories.at[idx]), text(urgencies.at[idx])
        requests.append(
            CommunityRequest(
                request_id=request_id,
                title=text(titles.at[idx]) or "",
                category=category.lower() if category else None,
                urgency=urgency.lower() if urgency else None,
                location=text(locations.at[idx]) or "",
                points_reward=0 if pd.isna(rewards.at[idx]) else max(0, int(rewards.at[idx])),
            )
        )
    return requests


def load_requests(csv_path: Path) -> List[CommunityRequest]:
    return requests_from_frame(load_csv(csv_path))
