"""
Deadline urgency classification.

Every function here is a pure function of its arguments: the caller passes
"now" explicitly and is expected to re-evaluate as time advances. Nothing in
this module reads or writes the store.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, get_args

from .models import AppState, Task, TaskStatus, ensure_utc

# Fraction of the creation-to-due window after which a task turns critical.
CRITICAL_RATIO: float = 0.5
# Fraction of the window after which a task is at risk of missing its deadline.
AT_RISK_RATIO: float = 0.85
RECENT_TASKS_LIMIT: int = 5
PERCENT_SCALE: float = 100.0

TASK_STATUSES = get_args(TaskStatus)


class UrgencyTier(str, Enum):
    NONE = "none"
    NORMAL = "normal"
    CRITICAL = "critical"
    AT_RISK = "at-risk"
    OVERDUE = "overdue"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TaskUrgency:
    """
    Classification result for one task at one instant.

    Fields:
    - tier: discrete urgency tier
    - ratio: elapsed fraction of the creation-to-due window; None when the task
      is done or has no due date
    - percent: ratio scaled to 0..100 and clamped, for progress bars only
    """

    tier: UrgencyTier
    ratio: Optional[float] = None
    percent: Optional[float] = None


def _is_active_with_deadline(task: Task) -> bool:
    return task.status != "done" and task.due_date is not None


# PUBLIC_INTERFACE
def progress_ratio(task: Task, now: datetime) -> Optional[float]:
    """
    Return (now - created_at) / (due_date - created_at), or None when the task
    is done or has no due date.

    A window of zero (or negative) length counts as fully elapsed and yields 1.0
    instead of dividing by zero.
    """
    if not _is_active_with_deadline(task):
        return None
    created = ensure_utc(task.created_at)
    due = ensure_utc(task.due_date)
    window = due - created  # type: ignore[operator]
    if window.total_seconds() <= 0:
        return 1.0
    return (ensure_utc(now) - created) / window  # type: ignore[operator]


# PUBLIC_INTERFACE
def progress_percent(ratio: Optional[float]) -> Optional[float]:
    """Scale a ratio to a 0..100 percentage, clamped at both ends."""
    if ratio is None:
        return None
    return min(max(ratio * PERCENT_SCALE, 0.0), PERCENT_SCALE)


# PUBLIC_INTERFACE
def classify(task: Task, now: datetime) -> TaskUrgency:
    """
    Classify a task. Rules apply in order, first match wins:
    done -> none, no due date -> none, past due -> overdue,
    ratio >= AT_RISK_RATIO -> at-risk, ratio >= CRITICAL_RATIO -> critical,
    otherwise normal.
    """
    ratio = progress_ratio(task, now)
    if ratio is None:
        return TaskUrgency(tier=UrgencyTier.NONE)

    percent = progress_percent(ratio)
    if ensure_utc(now) > ensure_utc(task.due_date):  # type: ignore[operator]
        tier = UrgencyTier.OVERDUE
    elif ratio >= AT_RISK_RATIO:
        tier = UrgencyTier.AT_RISK
    elif ratio >= CRITICAL_RATIO:
        tier = UrgencyTier.CRITICAL
    else:
        tier = UrgencyTier.NORMAL
    return TaskUrgency(tier=tier, ratio=ratio, percent=percent)


def tier_of(task: Task, now: datetime) -> UrgencyTier:
    return classify(task, now).tier


# PUBLIC_INTERFACE
def tasks_by_tier(tasks: Iterable[Task], now: datetime) -> Dict[UrgencyTier, List[Task]]:
    """Group tasks by tier. Every tier is present as a key; order within a tier follows input order."""
    groups: Dict[UrgencyTier, List[Task]] = {tier: [] for tier in UrgencyTier}
    for task in tasks:
        groups[tier_of(task, now)].append(task)
    return groups


def tier_counts(tasks: Iterable[Task], now: datetime) -> Dict[UrgencyTier, int]:
    return {tier: len(items) for tier, items in tasks_by_tier(tasks, now).items()}


def overdue_count(tasks: Iterable[Task], now: datetime) -> int:
    return sum(1 for task in tasks if tier_of(task, now) is UrgencyTier.OVERDUE)


# PUBLIC_INTERFACE
def recent_tasks(tasks: Sequence[Task], limit: int = RECENT_TASKS_LIMIT) -> List[Task]:
    """
    Return the most recently created tasks, newest first, capped at `limit`.
    Tasks sharing a creation time keep the later-inserted one first.
    """
    indexed = list(enumerate(tasks))
    indexed.sort(key=lambda pair: (ensure_utc(pair[1].created_at), pair[0]), reverse=True)
    return [task for _, task in indexed[: max(limit, 0)]]


def status_counts(tasks: Iterable[Task]) -> Dict[str, int]:
    counts = {status: 0 for status in TASK_STATUSES}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    return counts


def tasks_created_on(tasks: Iterable[Task], day: date) -> List[Task]:
    """Tasks whose creation timestamp (UTC) falls on the given calendar day."""
    return [task for task in tasks if ensure_utc(task.created_at).date() == day]  # type: ignore[union-attr]


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class DashboardSummary:
    """Aggregate counters shown on the dashboard."""

    completed: int
    in_progress: int
    todays_tasks: int
    focus_sessions: int
    overdue: int
    tiers: Dict[UrgencyTier, int]
    recent: List[Task]


# PUBLIC_INTERFACE
def dashboard_summary(state: AppState, now: datetime) -> DashboardSummary:
    """Fold the aggregate into the dashboard counters at instant `now`."""
    statuses = status_counts(state.tasks)
    tiers = tier_counts(state.tasks, now)
    return DashboardSummary(
        completed=statuses["done"],
        in_progress=statuses["in-progress"],
        todays_tasks=len(tasks_created_on(state.tasks, ensure_utc(now).date())),  # type: ignore[union-attr]
        focus_sessions=1 if state.focus_session is not None else 0,
        overdue=tiers[UrgencyTier.OVERDUE],
        tiers=tiers,
        recent=recent_tasks(state.tasks),
    )
