from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_store
from ..models import Team
from ..schemas import CurrentTeamIn, TeamCreate, TeamJoin
from ..store import AppStore

router = APIRouter(
    prefix="/api/v1/teams",
    tags=["teams"],
)


@router.get("/", response_model=List[Team], summary="List Teams")
def list_teams(store: AppStore = Depends(get_store)) -> List[Team]:
    return list(store.state.teams)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=Team,
    status_code=status.HTTP_201_CREATED,
    summary="Create Team",
    description="Create a team with a freshly generated id, createdAt and invite code.",
)
def create_team(payload: TeamCreate, store: AppStore = Depends(get_store)) -> Team:
    return store.create_team(payload.model_dump())


# PUBLIC_INTERFACE
@router.post(
    "/join",
    response_model=Team,
    status_code=status.HTTP_201_CREATED,
    summary="Join Team",
    description="Record membership of the team behind an invite code and make it the current team.",
)
def join_team(payload: TeamJoin, store: AppStore = Depends(get_store)) -> Team:
    return store.join_team(payload.invite_code)


# PUBLIC_INTERFACE
@router.put(
    "/current",
    response_model=Optional[Team],
    summary="Set Current Team",
    responses={404: {"description": "Team not found"}},
)
def set_current_team(payload: CurrentTeamIn, store: AppStore = Depends(get_store)) -> Optional[Team]:
    """Make a known team current, or clear the current team with a null teamId."""
    team: Optional[Team] = None
    if payload.team_id is not None:
        team = store.get_team(payload.team_id)
        if team is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    store.set_current_team(team)
    return store.state.current_team
