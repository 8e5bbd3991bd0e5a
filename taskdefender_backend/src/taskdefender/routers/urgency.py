from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_store
from ..schemas import DashboardOut, TierGroupsOut
from ..store import AppStore
from ..urgency import dashboard_summary, tasks_by_tier
from ..utils import tier_keyed

router = APIRouter(
    prefix="/api/v1/urgency",
    tags=["urgency"],
)


# PUBLIC_INTERFACE
@router.get(
    "/tiers",
    response_model=TierGroupsOut,
    summary="Tasks By Tier",
    description="All tasks grouped by urgency tier, with per-tier counts. Every tier is always present.",
)
def get_tiers(store: AppStore = Depends(get_store)) -> TierGroupsOut:
    groups = tasks_by_tier(store.state.tasks, store.now())
    return TierGroupsOut(
        counts={tier.value: len(items) for tier, items in groups.items()},
        tasks=tier_keyed(groups),
    )


# PUBLIC_INTERFACE
@router.get(
    "/dashboard",
    response_model=DashboardOut,
    summary="Dashboard Summary",
    description="Completed, in-progress, today's and overdue counts, tier counts and the most recent tasks.",
)
def get_dashboard(store: AppStore = Depends(get_store)) -> DashboardOut:
    summary = dashboard_summary(store.state, store.now())
    return DashboardOut(
        completed=summary.completed,
        in_progress=summary.in_progress,
        todays_tasks=summary.todays_tasks,
        focus_sessions=summary.focus_sessions,
        overdue=summary.overdue,
        tiers=tier_keyed(summary.tiers),
        recent=summary.recent,
    )
