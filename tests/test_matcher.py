import pytest

from engagement.data_models import CulturalProfile, ParticipationRecord
from engagement.feature_engineering import ProfileDirectory
from engagement.matcher import PAIR_COLUMNS, event_participants, pair_all_events, smart_pairings


def _profile(user_id, user_type, languages, interests, backgrounds, events=("e1",)):
    return CulturalProfile(
        user_id=user_id,
        name=user_id.upper(),
        user_type=user_type,
        languages=languages,
        interests=interests,
        cultural_background=backgrounds,
        participation_history=[ParticipationRecord(event_id=e, event_name="Shift") for e in events],
    )


V1 = _profile("v1", "volunteer", ["English", "Spanish"], ["food"], ["Hispanic/Latino"])
V2 = _profile("v2", "volunteer", ["Japanese"], [], ["East Asian"])
A1 = _profile("a1", "attendee", ["English", "Arabic"], ["food"], ["Middle Eastern"])
A2 = _profile("a2", "attendee", ["Japanese"], [], ["East Asian"], events=("e1", "e2"))


def test_all_strategy_scores_every_cross_type_pair():
    pairs = smart_pairings([V1, V2], [A1, A2])
    assert len(pairs) == 4
    assert pairs[0].user1.id == "v1" and pairs[0].user2.id == "a1"
    assert pairs[0].match_score == 60
    assert pairs[0].user1.type == "volunteer"
    assert pairs[0].user2.type == "attendee"
    assert [p.match_score for p in pairs] == sorted((p.match_score for p in pairs), reverse=True)


def test_all_strategy_limit():
    assert [p.match_score for p in smart_pairings([V1, V2], [A1, A2], limit=2)] == [60, 30]


def test_edge_strategy_is_one_to_one():
    pairs = smart_pairings([V1, V2], [A1, A2], strategy="edge", event_id="e1")
    assert [(p.user1.id, p.user2.id) for p in pairs] == [("v1", "a1"), ("v2", "a2")]
    assert all(p.event_id == "e1" for p in pairs)


def test_unknown_strategy():
    with pytest.raises(ValueError):
        smart_pairings([V1], [A1], strategy="random")


def test_event_participants_and_pair_all_events():
    directory = ProfileDirectory([V1, V2, A1, A2])
    volunteers, attendees = event_participants(directory, "e2")
    assert volunteers == []
    assert [p.user_id for p in attendees] == ["a2"]

    seen = []
    df = pair_all_events(directory, ["e1", "e2"], progress_fn=lambda done, total, e, n: seen.append((done, e, n)))
    assert list(df.columns) == PAIR_COLUMNS
    assert len(df) == 2
    assert set(df["event_id"]) == {"e1"}
    assert seen == [(1, "e1", 2), (2, "e2", 0)]
