import gc
import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from engagement.data_models import UserPointsRecord
from engagement.errors import PersistenceError
from engagement.ledger import PointsLedger
from engagement.store import InMemoryPointsStore, JsonPointsStore, KeyedLock


def test_json_store_round_trips_a_ledger_record(tmp_path):
    path = tmp_path / "points.json"
    ledger = PointsLedger(JsonPointsStore(path), clock=lambda: datetime(2024, 3, 1, 12))
    ledger.add_donation_points("u1", 20)
    ledger.record_interest("u1", "r9", 50, category="items", location="Moseley")

    reopened = JsonPointsStore(path).get("u1")
    assert reopened.total_points == 70
    assert reopened.last_activity_date.isoformat() == "2024-03-01"
    assert reopened.interested_requests[0].category == "items"
    assert reopened.location_preferences == ["Moseley"]

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert list(doc["users"]) == ["u1"]


def test_missing_file_reads_as_empty(tmp_path):
    store = JsonPointsStore(tmp_path / "nothing-here.json")
    assert store.get("u1") is None
    assert store.get_all() == []
    assert store.delete("u1") is False


def test_corrupt_file_raises_persistence_error(tmp_path):
    path = tmp_path / "points.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError):
        JsonPointsStore(path).get("u1")


def test_malformed_record_raises_persistence_error(tmp_path):
    path = tmp_path / "points.json"
    path.write_text(json.dumps({"users": {"u1": {"user_id": "u1", "total_points": -4}}}), encoding="utf-8")
    with pytest.raises(PersistenceError):
        JsonPointsStore(path).get("u1")


def test_ledger_propagates_read_failures(tmp_path):
    path = tmp_path / "points.json"
    path.write_text("[]", encoding="utf-8")
    ledger = PointsLedger(JsonPointsStore(path))
    with pytest.raises(PersistenceError):
        ledger.add_event_points("u1", "e1")


def test_writes_for_different_users_do_not_clobber(tmp_path):
    store = JsonPointsStore(tmp_path / "points.json")
    ledger = PointsLedger(store, clock=lambda: datetime(2024, 3, 1))
    users = [f"u{i}" for i in range(12)]
    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(lambda u: ledger.record_activity(u, "event", 10), users))
    assert sorted(r.user_id for r in store.get_all()) == sorted(users)


def test_writes_for_one_user_are_serialized_on_the_json_store(tmp_path):
    store = JsonPointsStore(tmp_path / "points.json")
    ledger = PointsLedger(store, clock=lambda: datetime(2024, 3, 1))
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: ledger.record_activity("u1", "event", 10, f"shift {i}"), range(30)))
    rec = store.get("u1")
    assert len(rec.activities) == 30
    assert rec.total_points == 300


def test_separate_store_instances_on_one_file_share_locks(tmp_path):
    path = tmp_path / "points.json"

    def award(i):
        ledger = PointsLedger(JsonPointsStore(path), clock=lambda: datetime(2024, 3, 1))
        ledger.record_activity("u1", "event", 10, f"shift {i}")

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(award, range(40)))

    rec = JsonPointsStore(path).get("u1")
    assert len(rec.activities) == 40
    assert rec.total_points == 400


def test_store_instances_resolve_relative_and_absolute_paths_to_one_lock(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    relative = JsonPointsStore("points.json")
    absolute = JsonPointsStore(tmp_path / "points.json")
    assert relative._file_lock is absolute._file_lock
    assert relative._locks is absolute._locks


def test_keyed_lock_drops_entries_once_released():
    locks = KeyedLock()
    with locks.hold("u1"):
        assert "u1" in locks._locks
    gc.collect()
    assert "u1" not in locks._locks


def test_in_memory_store_copies_records():
    store = InMemoryPointsStore()
    record = UserPointsRecord.new("u1")
    store.put("u1", record)
    record.total_points = 999
    assert store.get("u1").total_points == 0

    fetched = store.get("u1")
    fetched.total_points = 5
    assert store.get("u1").total_points == 0
