from __future__ import annotations

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
from .models import AppState

log = structlog.get_logger()


# PUBLIC_INTERFACE
def reduce(state: AppState, intent: Intent) -> AppState:
    """
    Apply one intent to `state` and return the resulting state.

    The function is total: an unrecognized intent, or an update/delete whose
    target id does not exist, returns `state` itself. Fields an intent does not
    touch are carried over as the same objects, so callers can detect which
    parts changed by identity.
    """
    match intent:
        case SetUser(user=user):
            return state.model_copy(update={"user": user})
        case SetTheme(theme=theme):
            return state.model_copy(update={"theme": theme})
        case AddTask(task=task):
            return state.model_copy(update={"tasks": state.tasks + (task,)})
        case UpdateTask(task_id=task_id, changes=changes):
            if not any(t.id == task_id for t in state.tasks):
                return state
            tasks = tuple(
                t.model_copy(update=dict(changes)) if t.id == task_id else t
                for t in state.tasks
            )
            return state.model_copy(update={"tasks": tasks})
        case DeleteTask(task_id=task_id):
            tasks = tuple(t for t in state.tasks if t.id != task_id)
            if len(tasks) == len(state.tasks):
                return state
            return state.model_copy(update={"tasks": tasks})
        case SetTasks(tasks=tasks):
            return state.model_copy(update={"tasks": tuple(tasks)})
        case StartFocusSession(session=session):
            # replaces any running session, finished or not
            return state.model_copy(update={"focus_session": session})
        case EndFocusSession():
            if state.focus_session is None:
                return state
            return state.model_copy(update={"focus_session": None})
        case CreateTeam(team=team):
            return state.model_copy(update={"teams": state.teams + (team,)})
        case JoinTeam(team=team):
            return state.model_copy(update={"teams": state.teams + (team,), "current_team": team})
        case SetCurrentTeam(team=team):
            return state.model_copy(update={"current_team": team})
        case CompleteOnboarding():
            if not state.is_onboarding:
                return state
            return state.model_copy(update={"is_onboarding": False})
        case _:
            log.debug("intent_ignored", intent=type(intent).__name__)
            return state
