# PURPOSE: task listing, lookup and mutations, always scoped to one organization.
# Reads are organization-wide for every role; ownership (creator or Admin)
# only gates mutations.

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from ..db_models import TaskDB, TodoStateDB, now_utc
from ..exceptions import AuthorizationDenied, InvalidReference, NotFound
from ..models import UNSET, TaskCreate, TaskUpdate, TaskView
from .common import (
    ADMIN,
    default_state,
    require_org,
    require_user,
    resolve_assignee,
    resolve_parent_task,
    resolve_project,
    resolve_state,
    states_in_org,
    tasks_in_org,
)

log = logging.getLogger(__name__)

SORT_KEYS = ("title", "priority", "duedate", "created")
REOPEN_STATE_NAME = "active"


# --- Mapping ---------------------------------------------------------------


def to_view(task: TaskDB, subtasks: Sequence[TaskDB] = ()) -> TaskView:
    state = task.todo_state
    assignee = task.assigned_to
    return TaskView(
        id=task.id,
        title=task.title,
        description=task.description,
        is_completed=bool(state and state.is_terminal),
        todo_state_id=task.todo_state_id,
        todo_state_name=state.name if state else "",
        todo_state_display_name=state.display_name if state else "",
        todo_state_color=state.color if state else None,
        priority=task.priority,
        due_date=task.due_date,
        completed_at=task.completed_at,
        created_at=task.created_at,
        created_by_id=task.created_by_id,
        created_by_name=task.created_by.full_name if task.created_by else "",
        updated_at=task.updated_at,
        updated_by_id=task.updated_by_id,
        updated_by_name=task.updated_by.full_name if task.updated_by else None,
        assigned_to_id=task.assigned_to_id,
        assigned_to_name=assignee.full_name if assignee else None,
        assigned_to_email=assignee.email if assignee else None,
        project_id=task.project_id,
        project_name=task.project.name if task.project else None,
        parent_task_id=task.parent_task_id,
        parent_task_title=task.parent_task.title if task.parent_task else None,
        order=task.display_order,
        subtasks=[to_view(s) for s in subtasks],
    )


# --- Helpers ---------------------------------------------------------------


def _apply_filters(
    query,
    *,
    q: Optional[str] = None,
    is_completed: Optional[bool] = None,
    todo_state_id: Optional[int] = None,
    assigned_to_id: Optional[int] = None,
    unassigned_only: bool = False,
    project_id: Optional[int] = None,
):
    """Apply the independent (ANDed) listing filters to a TaskDB query."""
    if unassigned_only:
        query = query.filter(TaskDB.assigned_to_id.is_(None))
    elif assigned_to_id is not None and assigned_to_id >= 0:
        query = query.filter(TaskDB.assigned_to_id == assigned_to_id)

    # an explicit state beats the legacy completed/active switch
    if todo_state_id is not None:
        query = query.filter(TaskDB.todo_state_id == todo_state_id)
    elif is_completed is not None:
        query = query.join(TaskDB.todo_state).filter(TodoStateDB.is_terminal.is_(is_completed))

    if project_id is not None:
        query = query.filter(TaskDB.project_id == project_id)
    if q:
        # literal substring: % and _ in the input are not wildcards
        query = query.filter(
            or_(
                TaskDB.title.icontains(q, autoescape=True),
                TaskDB.description.icontains(q, autoescape=True),
            )
        )
    return query


def _apply_ordering(query, *, sort_by: Optional[str]):
    """
    Explicit display order first (NULLs last), then the requested key:
    title asc | priority desc, created asc | duedate asc (undated last) | created desc.
    Unknown keys use the default (newest first). Task id keeps results deterministic.
    """
    key = (sort_by or "").lower()
    ordering: List[Any] = [
        case((TaskDB.display_order.is_(None), 1), else_=0),
        TaskDB.display_order.asc(),
    ]
    if key == "title":
        ordering += [TaskDB.title.asc(), TaskDB.id.asc()]
    elif key == "priority":
        ordering += [TaskDB.priority.desc(), TaskDB.created_at.asc(), TaskDB.id.asc()]
    elif key == "duedate":
        ordering += [
            case((TaskDB.due_date.is_(None), 1), else_=0),
            TaskDB.due_date.asc(),
            TaskDB.id.asc(),
        ]
    else:
        ordering += [TaskDB.created_at.desc(), TaskDB.id.desc()]
    return query.order_by(*ordering)


def _get_row(db: Session, task_id: int, organization_id: int) -> TaskDB:
    row = tasks_in_org(db, organization_id).filter(TaskDB.id == task_id).one_or_none()
    if row is None:
        raise NotFound(f"Task with ID {task_id} not found")
    return row


def _ensure_can_modify(task: TaskDB, user_id: Optional[int], role: Optional[str]) -> None:
    if role == ADMIN:
        return
    if user_id is None or task.created_by_id != user_id:
        raise AuthorizationDenied("You can only modify tasks you created")


def _subtasks(db: Session, task: TaskDB) -> List[TaskDB]:
    query = tasks_in_org(db, task.organization_id).filter(TaskDB.parent_task_id == task.id)
    return _apply_ordering(query, sort_by=None).all()


def _move_to_state(task: TaskDB, state: TodoStateDB, now) -> None:
    """Change state; completed_at follows the terminal flag of the new state."""
    previous = task.todo_state
    was_terminal = bool(previous and previous.is_terminal)
    if state.is_terminal and not was_terminal:
        task.completed_at = now
        task.reopen_state_id = previous.id if previous else None
    elif not state.is_terminal:
        task.completed_at = None
        task.reopen_state_id = None
    task.todo_state = state
    task.todo_state_id = state.id


def _terminal_state(db: Session, organization_id: int) -> Optional[TodoStateDB]:
    return (
        states_in_org(db, organization_id)
        .filter(TodoStateDB.is_terminal.is_(True))
        .order_by(TodoStateDB.order.asc(), TodoStateDB.id.asc())
        .first()
    )


def _reopen_state(db: Session, task: TaskDB) -> Optional[TodoStateDB]:
    """Where a completed task goes back to: its pre-completion state, else 'active', else the default."""
    states = states_in_org(db, task.organization_id).filter(TodoStateDB.is_terminal.is_(False))
    if task.reopen_state_id is not None:
        state = states.filter(TodoStateDB.id == task.reopen_state_id).one_or_none()
        if state is not None:
            return state
    state = states.filter(TodoStateDB.name == REOPEN_STATE_NAME).first()
    if state is not None:
        return state
    return states.filter(TodoStateDB.is_default.is_(True)).first()


# --- Queries ---------------------------------------------------------------


def list_tasks(
    db: Session,
    *,
    organization_id: Optional[int],
    q: Optional[str] = None,
    sort_by: Optional[str] = None,
    is_completed: Optional[bool] = None,
    todo_state_id: Optional[int] = None,
    assigned_to_id: Optional[int] = None,
    unassigned_only: bool = False,
    project_id: Optional[int] = None,
) -> List[TaskView]:
    """Top-level, non-deleted tasks of the organization with filters and ordering applied."""
    org_id = require_org(organization_id)
    query = tasks_in_org(db, org_id).filter(TaskDB.parent_task_id.is_(None))
    query = _apply_filters(
        query,
        q=q,
        is_completed=is_completed,
        todo_state_id=todo_state_id,
        assigned_to_id=assigned_to_id,
        unassigned_only=unassigned_only,
        project_id=project_id,
    )
    query = _apply_ordering(query, sort_by=sort_by)
    return [to_view(row) for row in query.all()]


def get_task(db: Session, task_id: int, *, organization_id: Optional[int]) -> TaskView:
    """Fetch one task of the organization with its subtasks embedded."""
    org_id = require_org(organization_id)
    row = _get_row(db, task_id, org_id)
    return to_view(row, _subtasks(db, row))


# --- Mutations -------------------------------------------------------------


def create_task(
    db: Session,
    data: TaskCreate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> TaskView:
    """Create a task for the acting user; references must resolve inside the organization."""
    org_id = require_org(organization_id)
    actor = require_user(user_id)

    if data.todo_state_id is not None:
        state = resolve_state(db, org_id, data.todo_state_id)
    else:
        state = default_state(db, org_id)
        if state is None:
            raise InvalidReference("Organization has no default todo state")

    assignee = resolve_assignee(db, org_id, data.assigned_to_id) if data.assigned_to_id is not None else None
    project = resolve_project(db, org_id, data.project_id) if data.project_id is not None else None
    parent = resolve_parent_task(db, org_id, data.parent_task_id) if data.parent_task_id is not None else None
    if project is None and parent is not None and parent.project_id is not None:
        project = parent.project

    now = now_utc()
    row = TaskDB(
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        priority=int(data.priority),
        organization_id=org_id,
        todo_state_id=state.id,
        created_by_id=actor,
        assigned_to_id=assignee.id if assignee else None,
        project_id=project.id if project else None,
        parent_task_id=parent.id if parent else None,
        completed_at=now if state.is_terminal else None,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("task created task_id=%s org_id=%s user_id=%s", row.id, org_id, actor)
    return to_view(row)


def update_task(
    db: Session,
    task_id: int,
    data: TaskUpdate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
    role: Optional[str],
) -> TaskView:
    """Replace the editable fields (PUT); tri-state references follow omitted/null/value."""
    org_id = require_org(organization_id)
    row = _get_row(db, task_id, org_id)
    _ensure_can_modify(row, user_id, role)

    row.title = data.title
    row.description = data.description
    row.due_date = data.due_date
    row.priority = int(data.priority)

    assignee_id = data.tri_state("assigned_to_id")
    if assignee_id is not UNSET:
        row.assigned_to = resolve_assignee(db, org_id, assignee_id) if assignee_id is not None else None

    project_id = data.tri_state("project_id")
    if project_id is not UNSET:
        row.project = resolve_project(db, org_id, project_id) if project_id is not None else None

    parent_id = data.tri_state("parent_task_id")
    if parent_id is not UNSET:
        if parent_id is None:
            row.parent_task = None
        elif parent_id == row.id:
            raise InvalidReference("A task cannot be its own parent")
        else:
            row.parent_task = resolve_parent_task(db, org_id, parent_id)

    now = now_utc()
    if data.todo_state_id is not None and data.todo_state_id != row.todo_state_id:
        _move_to_state(row, resolve_state(db, org_id, data.todo_state_id), now)

    row.updated_at = now
    row.updated_by_id = user_id
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("task updated task_id=%s org_id=%s user_id=%s", row.id, org_id, user_id)
    return to_view(row, _subtasks(db, row))


def toggle_task_status(
    db: Session,
    task_id: int,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
    role: Optional[str],
) -> TaskView:
    """Flip between the terminal state and the state the task is reopened into."""
    org_id = require_org(organization_id)
    row = _get_row(db, task_id, org_id)
    _ensure_can_modify(row, user_id, role)

    completed = bool(row.todo_state and row.todo_state.is_terminal)
    target = _reopen_state(db, row) if completed else _terminal_state(db, org_id)
    now = now_utc()
    if target is None:
        log.warning(
            "toggle target state missing task_id=%s org_id=%s completed=%s", row.id, org_id, completed
        )
    else:
        _move_to_state(row, target, now)

    row.updated_at = now
    row.updated_by_id = user_id
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info(
        "task status toggled task_id=%s org_id=%s user_id=%s state=%s",
        row.id, org_id, user_id, row.todo_state.name,
    )
    return to_view(row, _subtasks(db, row))


def delete_task(
    db: Session,
    task_id: int,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
    role: Optional[str],
) -> None:
    """Soft-delete one task; its subtasks are left untouched."""
    org_id = require_org(organization_id)
    row = _get_row(db, task_id, org_id)
    _ensure_can_modify(row, user_id, role)
    row.mark_deleted(user_id)
    db.add(row)
    db.commit()
    log.info("task deleted task_id=%s org_id=%s user_id=%s", task_id, org_id, user_id)


def reorder_tasks(
    db: Session,
    task_ids: Sequence[int],
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
    role: Optional[str],
) -> int:
    """Give each listed task its 0-based position as display order; all or nothing."""
    org_id = require_org(organization_id)
    if not task_ids:
        return 0
    rows = {row.id: row for row in tasks_in_org(db, org_id).filter(TaskDB.id.in_(list(task_ids))).all()}

    missing = [tid for tid in task_ids if tid not in rows]
    if missing:
        raise InvalidReference(f"Tasks not found in organization: {missing}")
    if role != ADMIN:
        foreign = [tid for tid in task_ids if rows[tid].created_by_id != user_id]
        if foreign:
            raise AuthorizationDenied(f"You can only reorder tasks you created: {foreign}")

    for position, tid in enumerate(task_ids):
        rows[tid].display_order = position
        db.add(rows[tid])
    db.commit()
    log.info("tasks reordered count=%s org_id=%s user_id=%s", len(task_ids), org_id, user_id)
    return len(task_ids)
