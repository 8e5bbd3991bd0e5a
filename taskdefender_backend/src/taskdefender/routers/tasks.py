from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..analysis import analyze_task
from ..deps import get_store
from ..models import Task, TaskStatus
from ..schemas import TaskAnalysisOut, TaskCreate, TaskPage, TaskUpdate, TaskUrgencyOut
from ..store import AppStore
from ..urgency import UrgencyTier, classify
from ..utils import pagination_envelope

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

# A body may null these out syntactically, but a task always has them.
_NON_NULLABLE_FIELDS = frozenset({"title", "priority", "status", "tags"})


def _require_task(store: AppStore, task_id: str) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Add Task",
    description="Append a new task. The server assigns id, createdAt and userId.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, store: AppStore = Depends(get_store)) -> Task:
    """
    Create a new task at the end of the task list.
    """
    return store.add_task(payload.model_dump())


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TaskPage,
    summary="List Tasks",
    description=(
        "List tasks with optional filters and pagination.\n\n"
        "Query parameters:\n"
        "- limit: max number of items to return (0..1000)\n"
        "- offset: number of items to skip (>=0)\n"
        "- status: filter by status\n"
        "- tier: filter by urgency tier, evaluated at request time\n"
        "- q: search query for title/description (substring match)\n"
        "- order: 'asc' (insertion order, default) or 'desc' (newest first)\n\n"
        "Returns a pagination envelope with items and total count."
    ),
)
def list_tasks(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status", description="Filter by status"),
    tier: Optional[UrgencyTier] = Query(None, description="Filter by urgency tier"),
    q: Optional[str] = Query(None, description="Search text for title/description"),
    order: str = Query("asc", description="'asc' or 'desc'"),
    store: AppStore = Depends(get_store),
) -> TaskPage:
    """
    List tasks with pagination and filters.
    """
    ord_norm = order.strip().lower()
    if ord_norm not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="order must be 'asc' or 'desc'")

    now = store.now()
    items: List[Task] = list(store.state.tasks)
    if status_filter is not None:
        items = [t for t in items if t.status == status_filter]
    if tier is not None:
        items = [t for t in items if classify(t, now).tier is tier]
    if q and q.strip():
        needle = q.strip().lower()
        items = [
            t for t in items
            if needle in t.title.lower() or needle in (t.description or "").lower()
        ]
    if ord_norm == "desc":
        items.reverse()

    total = len(items)
    page = items[offset:offset + limit]
    return TaskPage(**pagination_envelope(items=page, total=total, limit=limit, offset=offset))


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=Task,
    summary="Get Task",
    responses={404: {"description": "Task not found"}},
)
def get_task(task_id: str, store: AppStore = Depends(get_store)) -> Task:
    """Retrieve a single task by its id."""
    return _require_task(store, task_id)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=Task,
    summary="Update Task",
    description="Shallow-merge the given fields into a task. id, createdAt and userId cannot change.",
    responses={404: {"description": "Task not found"}},
)
def patch_task(task_id: str, payload: TaskUpdate, store: AppStore = Depends(get_store)) -> Task:
    """
    Partial update of a task. Moving to done stamps completedAt; leaving done clears it.
    """
    _require_task(store, task_id)
    changes = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if not (v is None and k in _NON_NULLABLE_FIELDS)
    }
    updated = store.update_task(task_id, changes)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return updated


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, store: AppStore = Depends(get_store)) -> None:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    if not store.delete_task(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return None


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}/urgency",
    response_model=TaskUrgencyOut,
    summary="Task Urgency",
    description="Progress ratio, clamped percentage and urgency tier of one task, evaluated now.",
    responses={404: {"description": "Task not found"}},
)
def get_task_urgency(task_id: str, store: AppStore = Depends(get_store)) -> TaskUrgencyOut:
    task = _require_task(store, task_id)
    result = classify(task, store.now())
    return TaskUrgencyOut(task_id=task.id, tier=result.tier.value, ratio=result.ratio, percent=result.percent)


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}/analysis",
    response_model=TaskAnalysisOut,
    summary="Task Analysis",
    description="Estimate-relative urgency level, time remaining, procrastination risk and a recommended action.",
    responses={404: {"description": "Task not found"}},
)
def get_task_analysis(task_id: str, store: AppStore = Depends(get_store)) -> TaskAnalysisOut:
    task = _require_task(store, task_id)
    result = analyze_task(task, store.now())
    return TaskAnalysisOut(
        task_id=task.id,
        urgency_level=result.urgency_level,
        time_remaining=result.time_remaining,
        procrastination_risk=result.procrastination_risk,
        time_utilization=result.time_utilization,
        progress_rate=result.progress_rate,
        recommended_action=result.recommended_action,
    )
