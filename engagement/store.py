"""Key-value persistence for user points records.

The ledger only needs get/put/get_all/delete plus a per-user lock that
serializes read-modify-write cycles for one user.
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from .data_models import UserPointsRecord
from .errors import PersistenceError


class KeyedLock:
    """One mutex per key, created on first use.

    Locks are held weakly, so a key's entry disappears once no caller is
    holding or waiting on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield


class PointsStore(Protocol):
    def get(self, user_id: str) -> Optional[UserPointsRecord]: ...

    def put(self, user_id: str, record: UserPointsRecord) -> None: ...

    def get_all(self) -> List[UserPointsRecord]: ...

    def delete(self, user_id: str) -> bool: ...

    def lock(self, user_id: str): ...


class InMemoryPointsStore:
    """Dict-backed store. Records are copied in and out so callers never share state."""

    def __init__(self) -> None:
        self._records: Dict[str, UserPointsRecord] = {}
        self._mutex = threading.Lock()
        self._locks = KeyedLock()

    def get(self, user_id: str) -> Optional[UserPointsRecord]:
        with self._mutex:
            record = self._records.get(user_id)
            return record.model_copy(deep=True) if record is not None else None

    def put(self, user_id: str, record: UserPointsRecord) -> None:
        with self._mutex:
            self._records[user_id] = record.model_copy(deep=True)

    def get_all(self) -> List[UserPointsRecord]:
        with self._mutex:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def delete(self, user_id: str) -> bool:
        with self._mutex:
            return self._records.pop(user_id, None) is not None

    def lock(self, user_id: str):
        return self._locks.hold(user_id)


# Lock pairs shared by every JsonPointsStore opened on the same file
_FILE_LOCKS: Dict[Path, Tuple[threading.RLock, KeyedLock]] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _locks_for_file(path: Path) -> Tuple[threading.RLock, KeyedLock]:
    key = path.resolve()
    with _FILE_LOCKS_GUARD:
        locks = _FILE_LOCKS.get(key)
        if locks is None:
            locks = _FILE_LOCKS[key] = (threading.RLock(), KeyedLock())
        return locks


class JsonPointsStore:
    """Single JSON document keyed by user id: `{"users": {user_id: record}}`.

    Every write re-reads the document under a file-wide lock and replaces it
    atomically, so writes for different users cannot clobber each other. The
    document lock and the per-user locks belong to the file, not the instance,
    so separate store objects on one path in this process serialize together.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._file_lock, self._locks = _locks_for_file(self.path)

    def _read_document(self) -> Dict[str, Dict]:
        if not self.path.exists():
            return {"users": {}}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read points file {self.path}: {e}") from e
        if not raw.strip():
            return {"users": {}}
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Points file {self.path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict) or not isinstance(doc.get("users", {}), dict):
            raise PersistenceError(f"Points file {self.path} has no 'users' mapping")
        doc.setdefault("users", {})
        return doc

    def _write_document(self, doc: Dict[str, Dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(doc, fh, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Could not write points file {self.path}: {e}") from e

    def _parse(self, user_id: str, payload: Dict) -> UserPointsRecord:
        try:
            return UserPointsRecord.model_validate(payload)
        except ValidationError as e:
            raise PersistenceError(f"Stored record for {user_id} is malformed: {e}") from e

    def get(self, user_id: str) -> Optional[UserPointsRecord]:
        with self._file_lock:
            payload = self._read_document()["users"].get(user_id)
        return self._parse(user_id, payload) if payload is not None else None

    def put(self, user_id: str, record: UserPointsRecord) -> None:
        with self._file_lock:
            doc = self._read_document()
            doc["users"][user_id] = record.model_dump(mode="json")
            self._write_document(doc)

    def get_all(self) -> List[UserPointsRecord]:
        with self._file_lock:
            users = self._read_document()["users"]
        return [self._parse(user_id, payload) for user_id, payload in users.items()]

    def delete(self, user_id: str) -> bool:
        with self._file_lock:
            doc = self._read_document()
            if user_id not in doc["users"]:
                return False
            del doc["users"][user_id]
            self._write_document(doc)
            return True

    def lock(self, user_id: str):
        return self._locks.hold(user_id)
