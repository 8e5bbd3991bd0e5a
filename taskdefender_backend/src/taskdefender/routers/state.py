from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_store
from ..models import AppState, User
from ..schemas import ThemeIn
from ..store import AppStore

router = APIRouter(
    prefix="/api/v1/state",
    tags=["state"],
)


# PUBLIC_INTERFACE
@router.get("", response_model=AppState, summary="Application State")
def get_state(store: AppStore = Depends(get_store)) -> AppState:
    """Return the whole aggregate: user, tasks, teams, current team, focus session, theme and onboarding flag."""
    return store.state


# PUBLIC_INTERFACE
@router.put("/user", response_model=AppState, summary="Set User")
def put_user(payload: User, store: AppStore = Depends(get_store)) -> AppState:
    """Replace the current user. Other parts of the state are left untouched."""
    store.set_user(payload)
    return store.state


@router.put("/theme", response_model=AppState, summary="Set Theme")
def put_theme(payload: ThemeIn, store: AppStore = Depends(get_store)) -> AppState:
    store.set_theme(payload.theme)
    return store.state


@router.post("/onboarding/complete", response_model=AppState, summary="Complete Onboarding")
def complete_onboarding(store: AppStore = Depends(get_store)) -> AppState:
    store.complete_onboarding()
    return store.state
