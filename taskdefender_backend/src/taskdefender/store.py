from __future__ import annotations

import secrets
import string
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import structlog

from .intents import (
    AddTask,
    CompleteOnboarding,
    CreateTeam,
    DeleteTask,
    EndFocusSession,
    Intent,
    JoinTeam,
    SetCurrentTeam,
    SetTasks,
    SetTheme,
    SetUser,
    StartFocusSession,
    UpdateTask,
)
from .models import AppState, FocusSession, Task, Team, Theme, User, ensure_utc, utcnow
from .reducer import reduce

log = structlog.get_logger()

Listener = Callable[[AppState, AppState], None]
Clock = Callable[[], datetime]

INVITE_CODE_LENGTH = 6
_INVITE_ALPHABET = string.ascii_uppercase + string.digits

# Fields a partial task update may never change.
_PROTECTED_TASK_FIELDS = frozenset({"id", "created_at", "user_id"})
_TASK_TIMESTAMP_FIELDS = ("due_date", "start_date", "completed_at")


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Short uppercase alphanumeric join token. Not guaranteed to be unique."""
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(length))


def _align_completion(current: Task, updates: Dict[str, Any], now: Clock) -> None:
    """
    Keep completed_at set exactly when the task ends up done.

    A done task keeps (or gets) a completion time even if `updates` tries to
    clear it; a task that is not done never receives one.
    """
    if "status" not in updates and "completed_at" not in updates:
        return
    if updates.get("status", current.status) == "done":
        if updates.get("completed_at") is None:
            updates["completed_at"] = current.completed_at or now()
    elif "status" in updates:
        updates["completed_at"] = None
    else:
        updates.pop("completed_at")


# PUBLIC_INTERFACE
class AppStore:
    """
    Holder of the application aggregate.

    The state is only ever replaced by dispatching an intent; each dispatch is
    reduced and published to listeners while holding the store lock, so no two
    intents interleave. Ids, creation timestamps and invite codes are generated
    here, before the intent reaches the reducer.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        clock: Optional[Clock] = None,
        invite_code_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._lock = RLock()
        self._state = state if state is not None else AppState()
        self._clock = clock or utcnow
        self._invite_code_factory = invite_code_factory or generate_invite_code
        self._listeners: List[Listener] = []
        self._last_id = 0

    @property
    def state(self) -> AppState:
        return self._state

    def now(self) -> datetime:
        return ensure_utc(self._clock())  # type: ignore[return-value]

    def _allocate_id(self) -> str:
        """Millisecond timestamp id, bumped when needed so ids strictly increase."""
        with self._lock:
            candidate = int(self.now().timestamp() * 1000)
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return str(candidate)

    def _current_user_id(self) -> str:
        user = self._state.user
        return user.id if user is not None else ""

    # -------------------- dispatch --------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener(previous, current)`; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, intent: Intent) -> AppState:
        with self._lock:
            previous = self._state
            current = reduce(previous, intent)
            self._state = current
            if current is previous:
                return current
            log.debug("intent_dispatched", intent=type(intent).__name__)
            for listener in list(self._listeners):
                try:
                    listener(previous, current)
                except Exception:
                    log.exception("state_listener_failed", intent=type(intent).__name__)
            return current

    # -------------------- user / preferences --------------------
    def set_user(self, user: Optional[User]) -> None:
        self.dispatch(SetUser(user=user))

    def set_theme(self, theme: Theme) -> None:
        self.dispatch(SetTheme(theme=theme))

    def complete_onboarding(self) -> None:
        self.dispatch(CompleteOnboarding())

    # -------------------- tasks --------------------
    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self._state.tasks:
            if task.id == task_id:
                return task
        return None

    def add_task(self, data: Mapping[str, Any]) -> Task:
        """
        Build a task from caller-supplied fields and append it.
        id, created_at and user_id are always generated here.
        """
        fields: Dict[str, Any] = {k: v for k, v in data.items() if k not in _PROTECTED_TASK_FIELDS}
        with self._lock:
            now = self.now()
            if fields.get("status") == "done" and fields.get("completed_at") is None:
                fields["completed_at"] = now
            elif fields.get("status", "todo") != "done":
                fields["completed_at"] = None
            task = Task.model_validate(
                {**fields, "id": self._allocate_id(), "created_at": now, "user_id": self._current_user_id()}
            )
            self.dispatch(AddTask(task=task))
            return task

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        """Shallow-merge `changes` into the task; returns the updated task, or None when absent."""
        updates: Dict[str, Any] = {k: v for k, v in changes.items() if k not in _PROTECTED_TASK_FIELDS}
        for name in _TASK_TIMESTAMP_FIELDS:
            if name in updates:
                updates[name] = ensure_utc(updates[name])
        if "tags" in updates and updates["tags"] is not None:
            updates["tags"] = tuple(updates["tags"])

        with self._lock:
            current = self.get_task(task_id)
            if current is not None:
                _align_completion(current, updates, self.now)
            self.dispatch(UpdateTask(task_id=task_id, changes=updates))
            return self.get_task(task_id)

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            existed = self.get_task(task_id) is not None
            self.dispatch(DeleteTask(task_id=task_id))
            return existed

    def replace_tasks(self, tasks: Iterable[Task]) -> None:
        self.dispatch(SetTasks(tasks=tuple(tasks)))

    # -------------------- focus --------------------
    def start_focus_session(self, task_id: str) -> FocusSession:
        session = FocusSession(
            id=self._allocate_id(),
            task_id=task_id,
            duration=0,
            completed=False,
            distractions=0,
            user_id=self._current_user_id(),
            created_at=self.now(),
        )
        self.dispatch(StartFocusSession(session=session))
        return session

    def end_focus_session(self) -> None:
        self.dispatch(EndFocusSession())

    # -------------------- teams --------------------
    def get_team(self, team_id: str) -> Optional[Team]:
        for team in self._state.teams:
            if team.id == team_id:
                return team
        return None

    def create_team(self, data: Mapping[str, Any]) -> Team:
        fields = {k: v for k, v in data.items() if k not in {"id", "created_at", "invite_code"}}
        if not fields.get("admin_id"):
            fields["admin_id"] = self._current_user_id()
        team = Team.model_validate(
            {
                **fields,
                "id": self._allocate_id(),
                "created_at": self.now(),
                "invite_code": self._invite_code_factory(),
            }
        )
        self.dispatch(CreateTeam(team=team))
        return team

    def join_team(self, invite_code: str) -> Team:
        """
        Record membership of the team behind `invite_code` and make it current.
        No directory of teams exists, so the membership record is synthesized locally.
        """
        team = Team(
            id=self._allocate_id(),
            name="Sample Team",
            description="Joined via invite code",
            admin_id="admin",
            members=(),
            invite_code=invite_code,
            created_at=self.now(),
        )
        self.dispatch(JoinTeam(team=team))
        return team

    def set_current_team(self, team: Optional[Team]) -> None:
        self.dispatch(SetCurrentTeam(team=team))
