"""
Per-task work analysis shown alongside each task.

Like the urgency tiers, this is a pure function of a task and an instant. The
estimate drives everything here: time left is compared against the estimated
effort, and recorded effort (`actual_time`) against the estimate.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal, Optional

from .models import Task, ensure_utc

UrgencyLevel = Literal["low", "medium", "high", "critical"]

DEFAULT_ESTIMATE_MINUTES: int = 60
# Remaining time below these multiples of the estimate raises the level.
CRITICAL_ESTIMATE_FACTOR: float = 0.5
HIGH_ESTIMATE_FACTOR: float = 1.2
MEDIUM_ESTIMATE_FACTOR: float = 2.0

STALE_TODO_AGE = timedelta(days=3)
STALE_TODO_RISK: int = 30
BEHIND_ESTIMATE_RISK: int = 40
NEAR_ESTIMATE_RISK: int = 20
MAX_RISK: int = 100

# An unfinished task never reports full progress.
IN_PROGRESS_CAP: float = 90.0
TIME_CRUNCH_PROGRESS: float = 20.0
TIME_CRUNCH_WINDOW_MINUTES: int = 24 * 60
HIGH_RISK_THRESHOLD: int = 60

ACTION_CRITICAL = "Critical: drop everything and focus on this task now."
ACTION_HIGH_RISK = "High risk: this task needs immediate attention to avoid missing the deadline."
ACTION_TIME_CRUNCH = "Time crunch: consider extending the deadline or reducing scope."
ACTION_ON_TRACK = "On track: continue with your current approach."


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TaskAnalysis:
    """
    Work analysis of one task at one instant.

    Fields:
    - urgency_level: low, medium, high or critical, relative to the estimate
    - time_remaining: minutes until the due date, floored at 0; None without one
    - procrastination_risk: 0..100
    - time_utilization: recorded time as a percentage of the estimate
    - progress_rate: 0 for todo, 100 for done, otherwise effort vs estimate capped at 90
    - recommended_action: one-line suggestion
    """

    urgency_level: UrgencyLevel
    time_remaining: Optional[float]
    procrastination_risk: float
    time_utilization: float
    progress_rate: float
    recommended_action: str


def _estimate_minutes(task: Task) -> int:
    return task.estimated_time or DEFAULT_ESTIMATE_MINUTES


def time_remaining_minutes(task: Task, now: datetime) -> Optional[float]:
    if task.due_date is None:
        return None
    left = ensure_utc(task.due_date) - ensure_utc(now)  # type: ignore[operator]
    return max(0.0, left.total_seconds() / 60)


def urgency_level(task: Task, remaining: Optional[float]) -> UrgencyLevel:
    if remaining is None:
        return "low"
    estimate = _estimate_minutes(task)
    if remaining < estimate * CRITICAL_ESTIMATE_FACTOR:
        return "critical"
    if remaining < estimate * HIGH_ESTIMATE_FACTOR:
        return "high"
    if remaining < estimate * MEDIUM_ESTIMATE_FACTOR:
        return "medium"
    return "low"


def procrastination_risk(task: Task, now: datetime, remaining: Optional[float]) -> float:
    risk = 0
    age = ensure_utc(now) - ensure_utc(task.created_at)  # type: ignore[operator]
    if task.status == "todo" and age > STALE_TODO_AGE:
        risk += STALE_TODO_RISK
    if remaining is not None:
        estimate = _estimate_minutes(task)
        if remaining < estimate:
            risk += BEHIND_ESTIMATE_RISK
        elif remaining < estimate * MEDIUM_ESTIMATE_FACTOR:
            risk += NEAR_ESTIMATE_RISK
    return float(min(MAX_RISK, risk))


def progress_rate(task: Task) -> float:
    if task.status == "done":
        return 100.0
    if task.status == "todo":
        return 0.0
    spent = task.actual_time or 0
    return min(IN_PROGRESS_CAP, spent / _estimate_minutes(task) * 100)


def time_utilization(task: Task) -> float:
    if not task.estimated_time:
        return 0.0
    return (task.actual_time or 0) / task.estimated_time * 100


def recommend(level: UrgencyLevel, risk: float, progress: float, remaining: Optional[float]) -> str:
    if level == "critical":
        return ACTION_CRITICAL
    if level == "high" and risk > HIGH_RISK_THRESHOLD:
        return ACTION_HIGH_RISK
    if progress < TIME_CRUNCH_PROGRESS and remaining is not None and remaining < TIME_CRUNCH_WINDOW_MINUTES:
        return ACTION_TIME_CRUNCH
    return ACTION_ON_TRACK


# PUBLIC_INTERFACE
def analyze_task(task: Task, now: datetime) -> TaskAnalysis:
    """Analyze `task` as of `now`."""
    remaining = time_remaining_minutes(task, now)
    level = urgency_level(task, remaining)
    risk = procrastination_risk(task, now, remaining)
    progress = progress_rate(task)
    return TaskAnalysis(
        urgency_level=level,
        time_remaining=remaining,
        procrastination_risk=risk,
        time_utilization=time_utilization(task),
        progress_rate=progress,
        recommended_action=recommend(level, risk, progress, remaining),
    )
