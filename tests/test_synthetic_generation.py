from datetime import date

from engagement.feature_engineering import ProfileDirectory
from engagement.ingest import load_events, load_participation, load_users
from engagement.store import JsonPointsStore
from synthetic_generation.gen_synthetic_members import generate_dataset, seed_points, write_dataset


def test_generated_csvs_load_through_ingest(tmp_path):
    dataset = generate_dataset(8, 4, seed=7, start=date(2024, 6, 1))
    assert len(dataset.users) == 8
    assert len(dataset.events) == 4
    assert len(dataset.participation) == 8 * 3

    write_dataset(dataset, tmp_path)
    directory = ProfileDirectory.from_frames(
        load_users(tmp_path / "users.csv"), load_participation(tmp_path / "participation.csv")
    )
    assert len(directory) == 8
    assert all(p.languages[0] == "English" for p in directory)
    assert all(len(p.participation_history) == 3 for p in directory)
    assert len(load_events(tmp_path / "events.csv")) == 4


def test_seed_points_replays_past_events(tmp_path):
    dataset = generate_dataset(5, 3, seed=3, start=date(2020, 1, 1))
    points_file = tmp_path / "points.json"
    recorded = seed_points(dataset, points_file, seed=3)
    assert recorded >= len(dataset.participation)

    records = JsonPointsStore(points_file).get_all()
    assert {r.user_id for r in records} == {u.user_id for u in dataset.users}
    for record in records:
        assert record.total_points == record.activity_points()
