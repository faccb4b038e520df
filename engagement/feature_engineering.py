from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .data_models import CulturalProfile, ParticipationRecord, UserPointsRecord
from .errors import ProfileNotFoundError
from .ingest import get_alias_column, get_alias_series

language_cultures = {
    "Spanish": "Hispanic/Latino",
    "Chinese": "East Asian",
    "Mandarin": "East Asian",
    "Cantonese": "East Asian",
    "Arabic": "Middle Eastern",
    "Hindi": "South Asian",
    "Urdu": "South Asian",
    "French": "Francophone",
    "Portuguese": "Lusophone",
    "Polish": "Eastern European",
    "Russian": "Eastern European",
    "Japanese": "East Asian",
    "Korean": "East Asian",
    "Vietnamese": "Southeast Asian",
    "Tagalog": "Southeast Asian",
    "Italian": "Mediterranean",
    "Greek": "Mediterranean",
    "German": "Germanic European",
}

interest_patterns = [
    "food", "music", "art", "sports", "education", "health",
    "environment", "community", "technology", "culture", "charity",
    "children", "elderly", "homeless", "animals", "sustainability",
]

STOP_WORDS = {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for"}

DEFAULT_LANGUAGES = ["English"]


def parse_languages(raw: Any) -> List[str]:
    """Split a comma-separated languages field. Missing or empty means English."""
    if raw is None or (not isinstance(raw, (list, tuple, set)) and pd.isna(raw)):
        return list(DEFAULT_LANGUAGES)
    if isinstance(raw, (list, tuple, set)):
        parts = [str(x).strip() for x in raw]
    else:
        parts = [p.strip() for p in str(raw).split(",")]
    parts = [p for p in parts if p and p.lower() not in ("nan", "none")]
    return parts or list(DEFAULT_LANGUAGES)


def infer_cultural_background(languages: Iterable[str]) -> List[str]:
    backgrounds: List[str] = []
    for language in languages:
        background = language_cultures.get(language)
        if background and background not in backgrounds:
            backgrounds.append(background)
    return backgrounds


def extract_interests(event_names: Iterable[str]) -> List[str]:
    """Interest keywords found in event names, in first-seen order."""
    found: List[str] = []
    for name in event_names:
        lower_name = str(name or "").lower()
        for pattern in interest_patterns:
            if pattern in lower_name and pattern not in found:
                found.append(pattern)
    return found


def extract_keywords(event_name: str) -> List[str]:
    return [
        word
        for word in str(event_name or "").lower().split()
        if len(word) > 3 and word not in STOP_WORDS
    ]


def build_cultural_profile(
    user_id: str,
    languages: Any,
    history: Sequence[ParticipationRecord] = (),
    name: str = "",
    user_type: str = "volunteer",
    extra_interests: Sequence[str] = (),
) -> CulturalProfile:
    """
    Build a profile from a user's languages and participation history.

    Interests come from keywords in attended event names (plus any explicit
    extras); location preferences are the distinct event locations.
    """
    langs = parse_languages(languages)
    interests = list(extra_interests) + extract_interests(h.event_name for h in history)
    locations = [h.location for h in history if h.location]
    return CulturalProfile(
        user_id=str(user_id),
        name=name,
        user_type=user_type,  # type: ignore[arg-type]
        languages=langs,
        cultural_background=infer_cultural_background(langs),
        interests=interests,
        location_preferences=locations,
        participation_history=list(history),
    )


def profile_from_points_record(
    record: UserPointsRecord,
    languages: Any = None,
    extra_interests: Sequence[str] = (),
) -> CulturalProfile:
    """Profile from interest-board activity: engaged request categories become interests."""
    categories = [category for category, count in record.category_preferences.items() if count > 0]
    langs = parse_languages(languages)
    return CulturalProfile(
        user_id=record.user_id,
        name=record.name,
        languages=langs,
        cultural_background=infer_cultural_background(langs),
        interests=list(extra_interests) + categories,
        location_preferences=record.location_preferences,
    )


class ProfileDirectory:
    """Profiles by user id. Lookups of unknown users raise ProfileNotFoundError."""

    def __init__(self, profiles: Iterable[CulturalProfile] = ()):
        self._profiles: Dict[str, CulturalProfile] = {}
        for profile in profiles:
            self.add(profile)

    def add(self, profile: CulturalProfile) -> None:
        self._profiles[profile.user_id] = profile

    def get(self, user_id: str) -> CulturalProfile:
        profile = self._profiles.get(str(user_id))
        if profile is None:
            raise ProfileNotFoundError(str(user_id))
        return profile

    def __contains__(self, user_id: object) -> bool:
        return str(user_id) in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self):
        return iter(self._profiles.values())

    def others(self, user_id: str) -> List[CulturalProfile]:
        return [p for uid, p in self._profiles.items() if uid != str(user_id)]

    @classmethod
    def from_frames(
        cls, users_df: pd.DataFrame, participation_df: Optional[pd.DataFrame] = None
    ) -> "ProfileDirectory":
        """
        Build profiles from a users table and an optional participation table.

        Args:
            users_df: One row per user with id, name and languages columns (aliases allowed).
            participation_df: One row per (user, event) with event name, date and location.

        Returns:
            ProfileDirectory: Profiles keyed by stringified user id.
        """
        id_col = get_alias_column(users_df, "id")
        if id_col is None:
            raise ValueError("Users table must contain a user id column.")

        histories: Dict[str, List[ParticipationRecord]] = {}
        if participation_df is not None and not participation_df.empty:
            histories = participation_by_user(participation_df)

        names = get_alias_series(users_df, "name")
        first = get_alias_series(users_df, "first_name")
        last = get_alias_series(users_df, "last_name")
        languages = get_alias_series(users_df, "languages", default=None)
        user_types = get_alias_series(users_df, "user_type", default="volunteer")

        directory = cls()
        for idx in users_df.index:
            user_id = str(users_df.at[idx, id_col])
            name = _clean_str(names.at[idx]) or " ".join(
                part for part in (_clean_str(first.at[idx]), _clean_str(last.at[idx])) if part
            )
            user_type = _clean_str(user_types.at[idx]).lower() or "volunteer"
            if user_type not in ("volunteer", "attendee"):
                user_type = "volunteer"
            directory.add(
                build_cultural_profile(
                    user_id,
                    languages.at[idx],
                    histories.get(user_id, []),
                    name=name,
                    user_type=user_type,
                )
            )
        return directory


def _clean_str(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def participation_by_user(participation_df: pd.DataFrame) -> Dict[str, List[ParticipationRecord]]:
    """Group a participation table into per-user histories, most recent event first."""
    user_col = get_alias_column(participation_df, "id")
    if user_col is None:
        raise ValueError("Participation table must contain a user id column.")
    event_ids = get_alias_series(participation_df, "event_id")
    event_names = get_alias_series(participation_df, "event_name")
    dates = pd.to_datetime(get_alias_series(participation_df, "event_date", default=None), errors="coerce")
    locations = get_alias_series(participation_df, "location", default=None)
    roles = get_alias_series(participation_df, "role", default="volunteer")

    histories: Dict[str, List[ParticipationRecord]] = {}
    for idx in participation_df.index:
        when = dates.at[idx]
        histories.setdefault(str(participation_df.at[idx, user_col]), []).append(
            ParticipationRecord(
                event_id=_clean_str(event_ids.at[idx]),
                event_name=_clean_str(event_names.at[idx]),
                event_date=None if pd.isna(when) else when.date(),
                location=_clean_str(locations.at[idx]) or None,
                role=_clean_str(roles.at[idx]) or "volunteer",
            )
        )
    for history in histories.values():
        history.sort(key=lambda h: h.event_date.toordinal() if h.event_date else 0, reverse=True)
    return histories


# ---- community diversity ----

def _bridging_opportunities(
    languages: List[Dict[str, Any]], cultural_groups: List[Dict[str, Any]]
) -> List[str]:
    opportunities: List[str] = []
    large = [entry for entry in languages if entry["count"] >= 5]
    if len(large) >= 2:
        opportunities.append(
            f"Host multilingual events featuring {large[0]['language']} and "
            f"{large[1]['language']} to bridge communities"
        )
    if len(cultural_groups) >= 3:
        groups = ", ".join(g["group"] for g in cultural_groups[:3])
        opportunities.append(f"Create cultural exchange programs connecting {groups}")
    small = [g["group"] for g in cultural_groups if g["count"] < 3]
    if small:
        opportunities.append(
            f"Increase outreach to underrepresented communities: {', '.join(small)}"
        )
    if len(languages) >= 5:
        opportunities.append("Recruit multilingual volunteers as cultural ambassadors and translators")
    return opportunities


def community_diversity(language_lists: Iterable[Sequence[str]]) -> Dict[str, Any]:
    """
    Summarize language and cultural-group representation across users.

    The diversity score is Simpson's index over cultural-group assignments,
    scaled to 0-100 (higher is more diverse).
    """
    language_counts: Counter = Counter()
    group_counts: Counter = Counter()
    total_users = 0
    for languages in language_lists:
        total_users += 1
        for language in languages:
            language_counts[language] += 1
            group = language_cultures.get(language)
            if group:
                group_counts[group] += 1

    languages = [
        {"language": language, "count": count} for language, count in language_counts.most_common()
    ]
    groups = [{"group": group, "count": count} for group, count in group_counts.most_common()]

    counts = np.asarray(list(group_counts.values()), dtype=float)
    diversity_index = 0.0
    if counts.sum() > 0:
        proportions = counts / counts.sum()
        diversity_index = float(1.0 - np.square(proportions).sum())

    return {
        "total_users": total_users,
        "languages_represented": languages,
        "cultural_groups": groups,
        "diversity_score": int(round(diversity_index * 100)),
        "bridging_opportunities": _bridging_opportunities(languages, groups),
    }
