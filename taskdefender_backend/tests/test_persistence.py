import json
from datetime import timedelta

import pytest

from taskdefender.db import SQLiteKeyValueStore
from taskdefender.models import Task, User
from taskdefender.persistence import (
    TASKS_KEY,
    THEME_KEY,
    USER_KEY,
    PersistenceAdapter,
    deserialize_tasks,
    serialize_tasks,
)
from taskdefender.repositories import InMemoryKeyValueStore, StorageError
from taskdefender.store import AppStore

from helpers import T0


class RecordingKeyValueStore(InMemoryKeyValueStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    def set(self, key, value):
        self.writes.append(key)
        super().set(key, value)


class BrokenKeyValueStore(InMemoryKeyValueStore):
    def get(self, key):
        raise StorageError("disk on fire")

    def set(self, key, value):
        raise StorageError("disk on fire")


def make_user():
    return User(id="u1", name="Ada", email="ada@example.com", created_at=T0)


def bound_store(kv, clock):
    store = AppStore(clock=clock)
    PersistenceAdapter(kv).bind(store)
    return store


class TestTaskSerialization:
    def test_round_trip_keeps_due_and_completion_dates(self):
        task = Task(
            id="1",
            title="Ship it",
            status="done",
            created_at=T0,
            due_date=T0 + timedelta(days=2, hours=3),
            completed_at=T0 + timedelta(days=1, seconds=42),
            tags=("work", "q1"),
        )
        (restored,) = deserialize_tasks(serialize_tasks([task]))
        assert restored.due_date.replace(microsecond=0) == task.due_date.replace(microsecond=0)
        assert restored.completed_at.replace(microsecond=0) == task.completed_at.replace(microsecond=0)
        assert restored == task

    def test_timestamps_stored_as_iso_strings_with_camel_case_keys(self):
        task = Task(id="1", title="x", created_at=T0, due_date=T0 + timedelta(hours=1))
        (record,) = json.loads(serialize_tasks([task]))
        assert record["createdAt"].startswith("2025-01-01T09:00:00")
        assert record["dueDate"].startswith("2025-01-01T10:00:00")

    def test_absent_dates_stay_absent(self):
        raw = json.dumps([{"id": "1", "title": "x", "createdAt": "2025-01-01T09:00:00Z"}])
        (restored,) = deserialize_tasks(raw)
        assert restored.due_date is None
        assert restored.completed_at is None
        assert restored.start_date is None
        assert restored.created_at == T0

    def test_malformed_raises_value_error(self):
        with pytest.raises(ValueError):
            deserialize_tasks("{not json")
        with pytest.raises(ValueError):
            deserialize_tasks(json.dumps([{"id": "1", "title": "x", "createdAt": "yesterday"}]))


class TestLoad:
    def test_empty_storage_keeps_defaults(self, clock):
        store = bound_store(InMemoryKeyValueStore(), clock)
        assert store.state.theme == "light"
        assert store.state.user is None
        assert store.state.tasks == ()
        assert store.state.is_onboarding is True

    def test_restores_theme_user_tasks_and_completes_onboarding(self, clock):
        task = Task(id="1", title="x", created_at=T0, due_date=T0 + timedelta(days=1))
        kv = InMemoryKeyValueStore({
            THEME_KEY: "dark",
            USER_KEY: make_user().model_dump_json(by_alias=True),
            TASKS_KEY: serialize_tasks([task]),
        })
        store = bound_store(kv, clock)
        assert store.state.theme == "dark"
        assert store.state.user == make_user()
        assert store.state.tasks == (task,)
        assert store.state.is_onboarding is False

    def test_corrupt_blob_keeps_default_for_that_key_only(self, clock):
        kv = InMemoryKeyValueStore({
            THEME_KEY: "dark",
            USER_KEY: "{{{",
            TASKS_KEY: "[{\"id\": 1",
        })
        store = bound_store(kv, clock)
        assert store.state.theme == "dark"
        assert store.state.user is None
        assert store.state.is_onboarding is True
        assert store.state.tasks == ()

    def test_unknown_theme_is_ignored(self, clock):
        store = bound_store(InMemoryKeyValueStore({THEME_KEY: "solarized"}), clock)
        assert store.state.theme == "light"

    def test_unreadable_storage_does_not_crash(self, clock):
        store = bound_store(BrokenKeyValueStore(), clock)
        assert store.state.tasks == ()


class TestSave:
    def test_each_key_written_only_on_its_own_change(self, clock):
        kv = RecordingKeyValueStore()
        store = bound_store(kv, clock)

        store.add_task({"title": "x"})
        assert kv.writes == [TASKS_KEY]

        store.set_theme("dark")
        assert kv.writes == [TASKS_KEY, THEME_KEY]

        store.set_user(make_user())
        assert kv.writes == [TASKS_KEY, THEME_KEY, USER_KEY]

    def test_session_scoped_state_is_never_written(self, clock):
        kv = RecordingKeyValueStore()
        store = bound_store(kv, clock)
        store.start_focus_session("a")
        store.end_focus_session()
        store.create_team({"name": "Core"})
        store.join_team("CODE42")
        store.complete_onboarding()
        assert kv.writes == []

    def test_cleared_user_is_not_written(self, clock):
        kv = RecordingKeyValueStore({USER_KEY: make_user().model_dump_json(by_alias=True)})
        store = bound_store(kv, clock)
        store.set_user(None)
        assert kv.writes == []
        assert kv.get(USER_KEY) is not None

    def test_write_failure_is_swallowed(self, clock):
        store = bound_store(BrokenKeyValueStore(), clock)
        task = store.add_task({"title": "still here"})
        assert store.state.tasks == (task,)

    def test_restart_sees_saved_state(self, clock):
        kv = InMemoryKeyValueStore()
        first = bound_store(kv, clock)
        first.set_theme("dark")
        task = first.add_task({"title": "persist me", "due_date": T0 + timedelta(days=3)})
        first.start_focus_session(task.id)

        second = bound_store(kv, clock)
        assert second.state.theme == "dark"
        assert second.state.tasks == (task,)
        assert second.state.focus_session is None
        assert second.state.teams == ()


class TestSQLiteKeyValueStore:
    def test_get_set_delete(self, tmp_path):
        kv = SQLiteKeyValueStore(str(tmp_path / "nested" / "kv.db"))
        assert kv.get("theme") is None
        kv.set("theme", "dark")
        kv.set("theme", "light")
        assert kv.get("theme") == "light"
        assert kv.delete("theme") is True
        assert kv.delete("theme") is False

    def test_survives_reopen(self, tmp_path, clock):
        path = str(tmp_path / "kv.db")
        store = bound_store(SQLiteKeyValueStore(path), clock)
        store.set_user(make_user())
        task = store.add_task({"title": "durable"})

        reopened = bound_store(SQLiteKeyValueStore(path), clock)
        assert reopened.state.user == make_user()
        assert reopened.state.tasks == (task,)
        assert reopened.state.is_onboarding is False

    def test_unopenable_path_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError):
            SQLiteKeyValueStore(str(blocker / "kv.db"))
