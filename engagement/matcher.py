"""
Volunteer/attendee pairing for an event.

- Collect the volunteers and attendees who took part in the event
- Score every cross-type pair with the cultural similarity scorer
- Either return the best pairs overall ("all"), or take edges greedily by
  descending score so each person appears in at most one pair ("edge")
"""
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .data_models import CulturalProfile
from .feature_engineering import ProfileDirectory
from .matching_models import PairedUser, SmartPair
from .recommender import ScoreWeights, round_half_up, similarity

PAIRING_STRATEGIES = ("all", "edge")

PAIR_COLUMNS = [
    "event_id",
    "user1_id",
    "user1_name",
    "user1_type",
    "user2_id",
    "user2_name",
    "user2_type",
    "match_score",
    "reason",
]


def event_participants(
    directory: ProfileDirectory, event_id: str
) -> Tuple[List[CulturalProfile], List[CulturalProfile]]:
    """Split the users who took part in `event_id` into (volunteers, attendees)."""
    volunteers: List[CulturalProfile] = []
    attendees: List[CulturalProfile] = []
    for profile in directory:
        if not any(h.event_id == str(event_id) for h in profile.participation_history):
            continue
        if profile.user_type == "attendee":
            attendees.append(profile)
        else:
            volunteers.append(profile)
    return volunteers, attendees


def _paired_user(profile: CulturalProfile, user_type: str) -> PairedUser:
    return PairedUser(id=profile.user_id, name=profile.name or profile.user_id, type=user_type)  # type: ignore[arg-type]


def _score_edges(
    volunteers: Sequence[CulturalProfile],
    attendees: Sequence[CulturalProfile],
    weights: ScoreWeights,
    event_id: Optional[str],
) -> List[SmartPair]:
    edges: List[SmartPair] = []
    for volunteer in volunteers:
        for attendee in attendees:
            if volunteer.user_id == attendee.user_id:
                continue
            match = similarity(volunteer, attendee, weights)
            edges.append(
                SmartPair(
                    user1=_paired_user(volunteer, "volunteer"),
                    user2=_paired_user(attendee, "attendee"),
                    match_score=round_half_up(match.similarity_score * 100),
                    reason=match.recommendation_reason,
                    event_id=event_id,
                )
            )
    edges.sort(key=lambda p: p.match_score, reverse=True)
    return edges


def smart_pairings(
    volunteers: Iterable[CulturalProfile],
    attendees: Iterable[CulturalProfile],
    limit: int = 20,
    strategy: str = "all",
    event_id: Optional[str] = None,
    weights: Optional[ScoreWeights] = None,
) -> List[SmartPair]:
    """Cross-type pairs scored 0-100, best first.

    Strategies:
    - "all" (default): every volunteer/attendee pair, top `limit` by score. A
      person may appear in several pairs.
    - "edge": take the globally best edges greedily, skipping any whose
      endpoints are already used, so pairs are one-to-one.
    """
    if strategy not in PAIRING_STRATEGIES:
        raise ValueError(f"Unknown pairing strategy '{strategy}'. Expected one of {list(PAIRING_STRATEGIES)}")
    if weights is None:
        weights = ScoreWeights()

    if limit <= 0:
        return []

    edges = _score_edges(list(volunteers), list(attendees), weights, event_id)
    if strategy == "all":
        return edges[:limit]

    used = set()
    pairs: List[SmartPair] = []
    for edge in edges:
        if edge.user1.id in used or edge.user2.id in used:
            continue
        pairs.append(edge)
        used.add(edge.user1.id)
        used.add(edge.user2.id)
        if len(pairs) >= limit:
            break
    return pairs


def pair_all_events(
    directory: ProfileDirectory,
    event_ids: Iterable[str],
    limit: int = 20,
    strategy: str = "edge",
    progress_fn: Optional[Callable[[int, int, str, int], None]] = None,
) -> pd.DataFrame:
    """Run `smart_pairings` for each event and flatten the results into one table.

    Events without both volunteers and attendees contribute no rows.
    """
    event_ids = [str(e) for e in event_ids]
    rows: List[dict] = []
    for done, event_id in enumerate(event_ids, start=1):
        volunteers, attendees = event_participants(directory, event_id)
        pairs = smart_pairings(volunteers, attendees, limit=limit, strategy=strategy, event_id=event_id)
        for p in pairs:
            rows.append(
                {
                    "event_id": event_id,
                    "user1_id": p.user1.id,
                    "user1_name": p.user1.name,
                    "user1_type": p.user1.type,
                    "user2_id": p.user2.id,
                    "user2_name": p.user2.name,
                    "user2_type": p.user2.type,
                    "match_score": p.match_score,
                    "reason": p.reason,
                }
            )
        if progress_fn is not None:
            progress_fn(done, len(event_ids), event_id, len(pairs))
    return pd.DataFrame(rows, columns=PAIR_COLUMNS)
