from engagement.data_models import CulturalProfile, EventRecord, ParticipationRecord
from engagement.feature_engineering import ProfileDirectory
from engagement.forecasting import (
    location_gaps,
    location_stats,
    predict_event_participation,
    predict_location_demand,
)

EVENTS = [
    EventRecord(event_id="e1", name="Food Drive", location="Aston", volunteers_needed=4),
    EventRecord(event_id="e2", name="Park Clean", location="Aston"),
    EventRecord(event_id="e3", name="Festival", location="Digbeth", volunteers_needed=2),
    EventRecord(event_id="e4", name="Book Swap", location="Selly Oak"),
    EventRecord(event_id="e5", name="Online Quiz"),
]


def _person(user_id, user_type, event_ids):
    return CulturalProfile(
        user_id=user_id,
        user_type=user_type,
        participation_history=[ParticipationRecord(event_id=e, event_name=e) for e in event_ids],
    )


DIRECTORY = ProfileDirectory(
    [
        _person("v1", "volunteer", ["e1", "e3"]),
        _person("v2", "volunteer", ["e3"]),
        _person("a1", "attendee", ["e1", "e2", "e3"]),
        _person("a2", "attendee", ["e1", "e3"]),
        _person("a3", "attendee", ["e3", "e4"]),
        _person("a4", "attendee", ["e3"]),
    ]
)


def test_location_stats_busiest_first():
    stats = location_stats(EVENTS, DIRECTORY)
    assert [s.location for s in stats] == ["Digbeth", "Aston", "Selly Oak"]
    digbeth, aston, selly = stats
    assert (digbeth.total_events, digbeth.total_participants, digbeth.average_participants_per_event) == (1, 6, 6)
    assert digbeth.success_rate == 100
    assert (aston.total_events, aston.total_participants, aston.average_participants_per_event) == (2, 4, 2)
    assert aston.volunteer_demand == 4
    assert aston.success_rate == 25
    assert selly.success_rate == 0


def test_location_stats_without_participants_or_locations():
    assert location_stats([EventRecord(event_id="e5", name="Online Quiz")], DIRECTORY) == []
    stats = location_stats(EVENTS[:1], ProfileDirectory())
    assert stats[0].total_participants == 0
    assert stats[0].average_participants_per_event == 0


def test_location_gaps():
    gaps = location_gaps(location_stats(EVENTS, DIRECTORY))
    assert gaps == {"underserved": ["Selly Oak"], "oversaturated": ["Digbeth"], "balanced": ["Aston"]}
    assert location_gaps([]) == {"underserved": [], "oversaturated": [], "balanced": []}


def test_predict_location_demand():
    predictions = {p.location: p for p in predict_location_demand(location_stats(EVENTS, DIRECTORY))}
    assert (predictions["Digbeth"].predicted_event_demand, predictions["Digbeth"].recommended_events_per_month) == (30, 1)
    assert (predictions["Selly Oak"].predicted_event_demand, predictions["Selly Oak"].recommended_events_per_month) == (75, 4)
    assert (predictions["Aston"].predicted_event_demand, predictions["Aston"].recommended_events_per_month) == (4, 1)
    assert predictions["Aston"].reasoning == "Balanced event distribution recommended"


def test_predict_event_participation():
    stats = location_stats(EVENTS, DIRECTORY)
    known = predict_event_participation("digbeth", stats)
    assert (known.expected_volunteers, known.expected_attendees) == (2, 4)

    unknown = predict_event_participation("Moseley", stats)
    assert (unknown.expected_volunteers, unknown.expected_attendees) == (3, 7)
    assert unknown.factors == ["No history for this location"]
