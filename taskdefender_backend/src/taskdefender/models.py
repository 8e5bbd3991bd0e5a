from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["low", "medium", "high", "urgent"]
TaskStatus = Literal["todo", "in-progress", "blocked", "done"]
Role = Literal["user", "admin"]
MemberRole = Literal["member", "admin"]
WorkStyle = Literal["focused", "flexible", "collaborative"]
Theme = Literal["light", "dark"]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC. Naive values are taken to already be UTC,
    so that comparisons between stored and caller-supplied timestamps never mix
    naive and aware datetimes.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Record(BaseModel):
    """Base for all domain records: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# PUBLIC_INTERFACE
class Task(_Record):
    """
    A single tracked task.

    Fields:
    - id: opaque identifier generated by the store, stable for the task's lifetime
    - title / description: free text
    - priority: low, medium, high or urgent
    - status: todo, in-progress, blocked or done
    - due_date / start_date: optional timestamps
    - created_at: set once when the store adds the task
    - completed_at: present exactly when status is done
    - tags: ordered labels
    - user_id: owner at creation time ("" when no user was set)
    """

    id: str
    title: str
    description: Optional[str] = None
    priority: Priority = "medium"
    status: TaskStatus = "todo"
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_time: Optional[int] = Field(default=None, ge=0, description="Estimate in minutes")
    actual_time: Optional[int] = Field(default=None, ge=0, description="Time spent in minutes")
    tags: Tuple[str, ...] = ()
    created_at: datetime
    completed_at: Optional[datetime] = None
    user_id: str = ""
    team_id: Optional[str] = None
    honestly_completed: Optional[bool] = None

    @field_validator("due_date", "start_date", "created_at", "completed_at")
    @classmethod
    def _normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


# PUBLIC_INTERFACE
class User(_Record):
    """
    The local user. Identity fields are fixed at onboarding; integrity_score
    (0..100) and streak (>= 0) are the mutable gamification counters.
    """

    id: str
    name: str
    email: str
    username: str = ""
    role: Role = "user"
    goals: Tuple[str, ...] = ()
    work_style: WorkStyle = "focused"
    integrity_score: int = Field(default=100, ge=0, le=100)
    streak: int = Field(default=0, ge=0)
    team_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)  # type: ignore[return-value]


class TeamMember(_Record):
    user_id: str
    name: str
    email: str
    role: MemberRole = "member"
    joined_at: datetime = Field(default_factory=utcnow)


# PUBLIC_INTERFACE
class Team(_Record):
    """A team record; invite_code is the opaque join token."""

    id: str
    name: str
    description: str = ""
    admin_id: str
    members: Tuple[TeamMember, ...] = ()
    invite_code: str
    created_at: datetime


# PUBLIC_INTERFACE
class FocusSession(_Record):
    """
    A focus session. task_id is a weak reference: the task may have been
    deleted since the session started.
    """

    id: str
    task_id: str
    duration: int = 0
    completed: bool = False
    distractions: int = 0
    user_id: str = ""
    created_at: datetime


# PUBLIC_INTERFACE
class AppState(_Record):
    """
    The store's single aggregate. Collections are tuples so a state value is
    never mutated after it has been produced.
    """

    user: Optional[User] = None
    tasks: Tuple[Task, ...] = ()
    teams: Tuple[Team, ...] = ()
    current_team: Optional[Team] = None
    focus_session: Optional[FocusSession] = None
    theme: Theme = "light"
    is_onboarding: bool = True


