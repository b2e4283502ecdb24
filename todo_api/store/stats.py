# PURPOSE: task statistics for an organization.
# Both reports load the organization's tasks once and aggregate in Python;
# the trend series is a plain days x tasks recomputation meant for small teams.

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..db_models import TaskDB, TodoStateDB, UserDB, now_utc
from ..models import AdvancedStats, TaskPriority, TaskStats, TrendDataPoint, UserTaskStats
from .common import require_org, states_in_org, tasks_in_org

log = logging.getLogger(__name__)

UNASSIGNED_KEY = "unassigned"
UNASSIGNED_NAME = "Unassigned"


def _state_labels(db: Session, organization_id: int) -> Dict[int, str]:
    """State id -> display name, in display order."""
    states = states_in_org(db, organization_id).order_by(TodoStateDB.order, TodoStateDB.id).all()
    return {s.id: s.display_name for s in states}


def _zeroed(labels: Dict[int, str]) -> Dict[str, int]:
    return {name: 0 for name in labels.values()}


def _label(task: TaskDB, labels: Dict[int, str]) -> str:
    # a task may still point at a state that was soft-deleted later
    return labels.get(task.todo_state_id) or task.todo_state.display_name


def _is_done(task: TaskDB) -> bool:
    return bool(task.todo_state and task.todo_state.is_terminal)


def _day(value) -> Optional[date]:
    return value.date() if value is not None else None


def get_task_stats(db: Session, *, organization_id: Optional[int]) -> TaskStats:
    """Totals over every non-deleted task of the organization, subtasks included."""
    org_id = require_org(organization_id)
    labels = _state_labels(db, org_id)
    tasks = tasks_in_org(db, org_id).all()

    completed = sum(1 for t in tasks if _is_done(t))
    high_priority = sum(1 for t in tasks if t.priority == TaskPriority.HIGH and not _is_done(t))
    by_state = _zeroed(labels)
    for t in tasks:
        name = _label(t, labels)
        by_state[name] = by_state.get(name, 0) + 1

    return TaskStats(
        total=len(tasks),
        completed=completed,
        active=len(tasks) - completed,
        high_priority=high_priority,
        by_state=by_state,
    )


def get_advanced_stats(
    db: Session,
    *,
    organization_id: Optional[int],
    days: int = 30,
) -> AdvancedStats:
    """Per-assignee breakdown, per-state totals and a daily trend for the last `days` days."""
    org_id = require_org(organization_id)
    labels = _state_labels(db, org_id)
    tasks = tasks_in_org(db, org_id).all()

    by_user: Dict[str, UserTaskStats] = {}
    for t in tasks:
        key = str(t.assigned_to_id) if t.assigned_to_id is not None else UNASSIGNED_KEY
        bucket = by_user.get(key)
        if bucket is None:
            bucket = _user_bucket(t.assigned_to, labels)
            by_user[key] = bucket
        bucket.total_tasks += 1
        if _is_done(t):
            bucket.completed_tasks += 1
        else:
            bucket.active_tasks += 1
        if t.priority == TaskPriority.HIGH:
            bucket.high_priority_tasks += 1
        name = _label(t, labels)
        bucket.state_counts[name] = bucket.state_counts.get(name, 0) + 1

    by_state = _zeroed(labels)
    by_state.update(Counter(_label(t, labels) for t in tasks))

    today = now_utc().date()
    trends: List[TrendDataPoint] = []
    for offset in range(days, -1, -1):
        day = today - timedelta(days=offset)
        existing = [t for t in tasks if _day(t.created_at) <= day]
        state_counts = _zeroed(labels)
        for t in existing:
            name = _label(t, labels)
            state_counts[name] = state_counts.get(name, 0) + 1
        trends.append(
            TrendDataPoint(
                date=day,
                tasks_created=sum(1 for t in tasks if _day(t.created_at) == day),
                tasks_completed=sum(1 for t in tasks if _day(t.completed_at) == day),
                total_tasks=len(existing),
                state_counts=state_counts,
            )
        )

    log.debug("advanced stats org_id=%s days=%s tasks=%s", org_id, days, len(tasks))
    return AdvancedStats(by_user=by_user, trends=trends, by_state=by_state)


def _user_bucket(user: Optional[UserDB], labels: Dict[int, str]) -> UserTaskStats:
    if user is None:
        return UserTaskStats(user_id=None, user_name=UNASSIGNED_NAME, state_counts=_zeroed(labels))
    return UserTaskStats(
        user_id=user.id,
        user_name=user.full_name or user.email,
        user_email=user.email,
        state_counts=_zeroed(labels),
    )
