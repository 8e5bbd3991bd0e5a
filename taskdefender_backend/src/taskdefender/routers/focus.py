from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status

from ..deps import get_store
from ..models import FocusSession
from ..schemas import FocusStart
from ..store import AppStore

router = APIRouter(
    prefix="/api/v1/focus",
    tags=["focus"],
)


@router.get("", response_model=Optional[FocusSession], summary="Current Focus Session")
def get_focus_session(store: AppStore = Depends(get_store)) -> Optional[FocusSession]:
    return store.state.focus_session


# PUBLIC_INTERFACE
@router.post(
    "/start",
    response_model=FocusSession,
    status_code=status.HTTP_201_CREATED,
    summary="Start Focus Session",
    description=(
        "Start a fresh session for the given task. A running session is replaced "
        "without being finished; the task id is not checked."
    ),
)
def start_focus_session(payload: FocusStart, store: AppStore = Depends(get_store)) -> FocusSession:
    return store.start_focus_session(payload.task_id)


# PUBLIC_INTERFACE
@router.post(
    "/end",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End Focus Session",
    description="Clear the running session. Ending when none is running is a no-op.",
)
def end_focus_session(store: AppStore = Depends(get_store)) -> None:
    store.end_focus_session()
    return None
