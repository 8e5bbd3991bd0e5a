"""
Mirror of the durable parts of the application state.

Only the theme, the user and the task list survive a restart. Each is stored
as JSON text under its own key and rewritten only when that part of the state
changes. Teams, the current team, the focus session and the onboarding flag
are session-scoped and never written.
"""
from __future__ import annotations

from typing import Callable, List, Optional, get_args

import structlog
from pydantic import TypeAdapter

from .models import AppState, Task, Theme, User
from .repositories import KeyValueStore, StorageError
from .store import AppStore

log = structlog.get_logger()

THEME_KEY = "theme"
USER_KEY = "taskdefender_user"
TASKS_KEY = "taskdefender_tasks"

_THEMES = frozenset(get_args(Theme))
_TASKS_ADAPTER = TypeAdapter(List[Task])


def serialize_user(user: User) -> str:
    return user.model_dump_json(by_alias=True)


def deserialize_user(raw: str) -> User:
    return User.model_validate_json(raw)


# PUBLIC_INTERFACE
def serialize_tasks(tasks) -> str:
    """Encode tasks as a JSON array; timestamps become ISO-8601 strings."""
    return _TASKS_ADAPTER.dump_json(list(tasks), by_alias=True).decode("utf-8")


# PUBLIC_INTERFACE
def deserialize_tasks(raw: str) -> List[Task]:
    """
    Decode a JSON array of tasks, restoring every timestamp field.
    Fields absent from the stored record stay None. Raises ValueError
    (pydantic ValidationError) on malformed input.
    """
    return _TASKS_ADAPTER.validate_json(raw)


# PUBLIC_INTERFACE
class PersistenceAdapter:
    """
    Loads persisted state into an AppStore once, then writes back each
    persisted key whenever the matching part of the state changes.

    Storage failures are logged and swallowed: losing persistence degrades to
    state resetting on the next start.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def bind(self, store: AppStore) -> Callable[[], None]:
        """Rehydrate `store` and start saving its changes. Returns the unsubscribe callable."""
        self.load_into(store)
        return store.subscribe(self.on_change)

    # -------------------- load --------------------
    def _read(self, key: str) -> Optional[str]:
        try:
            return self._kv.get(key)
        except StorageError as exc:
            log.warning("persisted_key_read_failed", key=key, error=str(exc))
            return None

    def load_into(self, store: AppStore) -> None:
        raw_theme = self._read(THEME_KEY)
        if raw_theme is not None:
            if raw_theme in _THEMES:
                store.set_theme(raw_theme)  # type: ignore[arg-type]
            else:
                log.warning("persisted_key_load_failed", key=THEME_KEY, error=f"unknown theme {raw_theme!r}")

        raw_user = self._read(USER_KEY)
        if raw_user is not None:
            try:
                user = deserialize_user(raw_user)
            except ValueError as exc:
                log.warning("persisted_key_load_failed", key=USER_KEY, error=str(exc))
            else:
                store.set_user(user)
                # a saved user means onboarding already happened
                store.complete_onboarding()

        raw_tasks = self._read(TASKS_KEY)
        if raw_tasks is not None:
            try:
                tasks = deserialize_tasks(raw_tasks)
            except ValueError as exc:
                log.warning("persisted_key_load_failed", key=TASKS_KEY, error=str(exc))
            else:
                store.replace_tasks(tasks)

        log.info(
            "persisted_state_loaded",
            theme=store.state.theme,
            has_user=store.state.user is not None,
            task_count=len(store.state.tasks),
        )

    # -------------------- save --------------------
    def _write(self, key: str, value: str) -> None:
        try:
            self._kv.set(key, value)
        except StorageError as exc:
            log.warning("persisted_key_write_failed", key=key, error=str(exc))

    def on_change(self, previous: AppState, current: AppState) -> None:
        if current.theme != previous.theme:
            self._write(THEME_KEY, current.theme)
        if current.user is not previous.user and current.user is not None:
            self._write(USER_KEY, serialize_user(current.user))
        if current.tasks is not previous.tasks:
            self._write(TASKS_KEY, serialize_tasks(current.tasks))
