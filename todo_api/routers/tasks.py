# PURPOSE: /tasks: listing, CRUD, status toggle, reorder and statistics.
# Static paths (/stats, /reorder) are declared before /{task_id}.

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..api.deps import SortBy, admin_only, forbid_viewer, parse_assignee, parse_sort_by
from ..auth import UserContext, get_user_context
from ..config import settings
from ..db import get_db
from ..models import AdvancedStats, ReorderTasks, TaskCreate, TaskStats, TaskUpdate, TaskView
from ..store import stats as stats_store
from ..store import tasks as task_store

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskView])
def list_tasks(
    q: Optional[str] = Query(None, alias="filter"),
    sort_by: Optional[SortBy] = Depends(parse_sort_by),
    is_completed: Optional[bool] = Query(None, alias="isCompleted"),
    todo_state_id: Optional[int] = Query(None, alias="todoStateId"),
    assigned_to_id: Optional[int] = Depends(parse_assignee),
    unassigned_only: bool = Query(False, alias="unassignedOnly"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return task_store.list_tasks(
        db,
        organization_id=user.organization_id,
        q=q,
        sort_by=sort_by,
        is_completed=is_completed,
        todo_state_id=todo_state_id,
        assigned_to_id=assigned_to_id,
        unassigned_only=unassigned_only,
        project_id=project_id,
    )


@router.get("/stats", response_model=TaskStats)
def task_stats(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return stats_store.get_task_stats(db, organization_id=user.organization_id)


@router.get("/stats/advanced", response_model=AdvancedStats)
def advanced_stats(
    days: int = Query(settings.DEFAULT_STATS_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return stats_store.get_advanced_stats(db, organization_id=user.organization_id, days=days)


@router.post("/reorder")
def reorder_tasks(
    payload: ReorderTasks,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    updated = task_store.reorder_tasks(
        db,
        payload.task_ids,
        organization_id=user.organization_id,
        user_id=user.user_id,
        role=user.role,
    )
    return {"updated": updated}


@router.post("", response_model=TaskView, status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    task = task_store.create_task(db, item, organization_id=user.organization_id, user_id=user.user_id)
    response.headers["Location"] = f"/api/v1/tasks/{task.id}"
    return task


@router.get("/{task_id}", response_model=TaskView)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return task_store.get_task(db, task_id, organization_id=user.organization_id)


@router.put("/{task_id}", response_model=TaskView)
def update_task(
    task_id: int,
    item: TaskUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    return task_store.update_task(
        db,
        task_id,
        item,
        organization_id=user.organization_id,
        user_id=user.user_id,
        role=user.role,
    )


@router.patch("/{task_id}/status", response_model=TaskView)
def toggle_task_status(
    task_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    return task_store.toggle_task_status(
        db,
        task_id,
        organization_id=user.organization_id,
        user_id=user.user_id,
        role=user.role,
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    task_store.delete_task(
        db,
        task_id,
        organization_id=user.organization_id,
        user_id=user.user_id,
        role=user.role,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
