from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority, Task, TaskStatus, TeamMember, Theme, ensure_utc

# Shared type for incoming timestamps which can be a date, datetime, or ISO8601 string
DateInput = Union[date, datetime, str]


def _parse_timestamp(value: Optional[DateInput]) -> Optional[datetime]:
    """
    Normalize timestamp input into an aware UTC datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - Naive datetimes are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, date):
        # Promote a date to a datetime at midnight
        return ensure_utc(datetime(value.year, value.month, value.day, 0, 0, 0))

    if isinstance(value, str):
        s = value.strip()
        # fromisoformat only learned the trailing 'Z' in 3.11
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(s))
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return ensure_utc(datetime(d.year, d.month, d.day, 0, 0, 0))
            except ValueError as e:
                raise ValueError(
                    "Invalid date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TaskCreate(_Schema):
    """
    Schema for creating a task. id, createdAt and userId are generated by the store.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Write quarterly report",
                "description": "Draft, review, send",
                "priority": "high",
                "status": "todo",
                "dueDate": "2025-02-01T17:00:00Z",
                "tags": ["work"],
            }
        },
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default="medium", description="low, medium, high or urgent")
    status: TaskStatus = Field(default="todo", description="todo, in-progress, blocked or done")
    due_date: Optional[datetime] = Field(default=None, description="Deadline; ISO8601 date or datetime")
    start_date: Optional[datetime] = Field(default=None, description="Planned start; ISO8601 date or datetime")
    estimated_time: Optional[int] = Field(default=None, ge=0, description="Estimate in minutes")
    tags: List[str] = Field(default_factory=list, description="Ordered labels")
    team_id: Optional[str] = Field(default=None, description="Owning team, if any")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and enforce 1..200 length."""
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("due_date", "start_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[DateInput]) -> Optional[datetime]:
        return _parse_timestamp(v)


# PUBLIC_INTERFACE
class TaskUpdate(_Schema):
    """
    Schema for partially updating a task.
    Only fields present in the request body are applied; an explicit null clears the field.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_time: Optional[int] = Field(default=None, ge=0)
    actual_time: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    team_id: Optional[str] = None
    honestly_completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """If title is provided, strip whitespace and enforce 1..200 length."""
        return _clean_title(v)

    @field_validator("due_date", "start_date", "completed_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[DateInput]) -> Optional[datetime]:
        return _parse_timestamp(v)


class ThemeIn(_Schema):
    theme: Theme


class FocusStart(_Schema):
    task_id: str = Field(..., min_length=1, description="Task to focus on; not required to exist")


# PUBLIC_INTERFACE
class TeamCreate(_Schema):
    """Schema for creating a team. id, createdAt and inviteCode are generated by the store."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    admin_id: Optional[str] = Field(default=None, description="Defaults to the current user")
    members: List[TeamMember] = Field(default_factory=list)


class TeamJoin(_Schema):
    invite_code: str = Field(..., min_length=1, max_length=64)

    @field_validator("invite_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("invite code must not be blank")
        return s


class CurrentTeamIn(_Schema):
    team_id: Optional[str] = Field(default=None, description="Team to make current; null clears it")


# PUBLIC_INTERFACE
class TaskUrgencyOut(_Schema):
    """Urgency classification of one task at the time of the request."""

    task_id: str
    tier: str
    ratio: Optional[float] = None
    percent: Optional[float] = None


class TaskAnalysisOut(_Schema):
    """Work analysis of one task at the time of the request. timeRemaining is in minutes."""

    task_id: str
    urgency_level: str
    time_remaining: Optional[float] = None
    procrastination_risk: float
    time_utilization: float
    progress_rate: float
    recommended_action: str


class TaskPage(_Schema):
    """Envelope for paginated task lists."""

    items: List[Task]
    total: int
    limit: int
    offset: int


class TierGroupsOut(_Schema):
    counts: Dict[str, int]
    tasks: Dict[str, List[Task]]


class DashboardOut(_Schema):
    completed: int
    in_progress: int
    todays_tasks: int
    focus_sessions: int
    overdue: int
    tiers: Dict[str, int]
    recent: List[Task]
