"""
Intents accepted by the application store.

Each intent is a small frozen dataclass; `Intent` is the closed union the
reducer matches on. Payloads carry fully built records: ids and timestamps are
generated by the store before an intent is dispatched, so reducing an intent is
deterministic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from .models import FocusSession, Task, Team, Theme, User


@dataclass(frozen=True)
class SetUser:
    user: Optional[User]


@dataclass(frozen=True)
class SetTheme:
    theme: Theme


@dataclass(frozen=True)
class AddTask:
    task: Task


@dataclass(frozen=True)
class UpdateTask:
    """Shallow-merge `changes` (snake_case field names) into the task with `task_id`."""

    task_id: str
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteTask:
    task_id: str


@dataclass(frozen=True)
class SetTasks:
    """Replace the whole task collection; used when rehydrating persisted tasks."""

    tasks: Tuple[Task, ...]


@dataclass(frozen=True)
class StartFocusSession:
    session: FocusSession


@dataclass(frozen=True)
class EndFocusSession:
    pass


@dataclass(frozen=True)
class CreateTeam:
    team: Team


@dataclass(frozen=True)
class JoinTeam:
    team: Team


@dataclass(frozen=True)
class SetCurrentTeam:
    team: Optional[Team]


@dataclass(frozen=True)
class CompleteOnboarding:
    pass


Intent = Union[
    SetUser,
    SetTheme,
    AddTask,
    UpdateTask,
    DeleteTask,
    SetTasks,
    StartFocusSession,
    EndFocusSession,
    CreateTeam,
    JoinTeam,
    SetCurrentTeam,
    CompleteOnboarding,
]
