# PURPOSE: per-organization workflow states (CRUD, default handling, reorder).

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db_models import TaskDB, TodoStateDB, now_utc
from ..exceptions import Conflict, InvalidReference, NotFound
from ..models import TodoStateCreate, TodoStateUpdate, TodoStateView
from .common import require_org, states_in_org, tasks_in_org

log = logging.getLogger(__name__)

TERMINAL_STATE_NAME = "done"

# Workflow every new organization starts with.
DEFAULT_STATES = (
    {"name": "draft", "display_name": "Draft", "order": 0, "is_default": True, "color": "#6B7280"},
    {"name": "active", "display_name": "Active", "order": 1, "color": "#3B82F6"},
    {"name": "in-progress", "display_name": "In Progress", "order": 2, "color": "#F59E0B"},
    {"name": "done", "display_name": "Done", "order": 3, "is_terminal": True, "color": "#10B981"},
)


def _task_count(db: Session, state: TodoStateDB) -> int:
    return tasks_in_org(db, state.organization_id).filter(TaskDB.todo_state_id == state.id).count()


def to_view(state: TodoStateDB, task_count: int = 0) -> TodoStateView:
    return TodoStateView(
        id=state.id,
        name=state.name,
        display_name=state.display_name,
        order=state.order,
        is_default=state.is_default,
        is_terminal=state.is_terminal,
        color=state.color,
        icon=state.icon,
        organization_id=state.organization_id,
        task_count=task_count,
    )


def _get_row(db: Session, state_id: int, organization_id: int) -> TodoStateDB:
    row = states_in_org(db, organization_id).filter(TodoStateDB.id == state_id).one_or_none()
    if row is None:
        raise NotFound(f"Todo state with ID {state_id} not found")
    return row


def _ensure_unique_name(db: Session, organization_id: int, name: str, *, exclude_id: Optional[int] = None) -> None:
    query = states_in_org(db, organization_id).filter(func.lower(TodoStateDB.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(TodoStateDB.id != exclude_id)
    if query.first() is not None:
        raise Conflict(f"A todo state with the name '{name}' already exists in this organization.")


def _ensure_unique_display_name(
    db: Session, organization_id: int, display_name: str, *, exclude_id: Optional[int] = None
) -> None:
    # stats are keyed by display name
    query = states_in_org(db, organization_id).filter(
        func.lower(TodoStateDB.display_name) == display_name.strip().lower()
    )
    if exclude_id is not None:
        query = query.filter(TodoStateDB.id != exclude_id)
    if query.first() is not None:
        raise Conflict(f"A todo state displayed as '{display_name}' already exists in this organization.")


def _unset_defaults(db: Session, organization_id: int, *, keep_id: Optional[int] = None) -> None:
    """Clear is_default on every other state; best effort, not race-safe."""
    query = states_in_org(db, organization_id).filter(TodoStateDB.is_default.is_(True))
    if keep_id is not None:
        query = query.filter(TodoStateDB.id != keep_id)
    now = now_utc()
    for other in query.all():
        other.is_default = False
        other.updated_at = now
        db.add(other)


def seed_default_states(db: Session, organization_id: int) -> List[TodoStateDB]:
    """Add the standard workflow to a fresh organization (caller commits)."""
    now = now_utc()
    rows = []
    for preset in DEFAULT_STATES:
        row = TodoStateDB(
            organization_id=organization_id,
            name=preset["name"],
            display_name=preset["display_name"],
            order=preset["order"],
            is_default=preset.get("is_default", False),
            is_terminal=preset.get("is_terminal", False),
            color=preset["color"],
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        rows.append(row)
    return rows


# --- Queries ---------------------------------------------------------------


def list_states(db: Session, *, organization_id: Optional[int]) -> List[TodoStateView]:
    org_id = require_org(organization_id)
    rows = states_in_org(db, org_id).order_by(TodoStateDB.order.asc(), TodoStateDB.name.asc()).all()
    counts = dict(
        tasks_in_org(db, org_id)
        .with_entities(TaskDB.todo_state_id, func.count(TaskDB.id))
        .group_by(TaskDB.todo_state_id)
        .all()
    )
    return [to_view(row, counts.get(row.id, 0)) for row in rows]


def get_state(db: Session, state_id: int, *, organization_id: Optional[int]) -> TodoStateView:
    org_id = require_org(organization_id)
    row = _get_row(db, state_id, org_id)
    return to_view(row, _task_count(db, row))


# --- Mutations -------------------------------------------------------------


def create_state(
    db: Session,
    data: TodoStateCreate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> TodoStateView:
    org_id = require_org(organization_id)
    name = data.name.strip().lower()
    _ensure_unique_name(db, org_id, name)
    _ensure_unique_display_name(db, org_id, data.display_name)
    if data.is_default:
        _unset_defaults(db, org_id)

    is_terminal = data.is_terminal if data.is_terminal is not None else name == TERMINAL_STATE_NAME
    now = now_utc()
    row = TodoStateDB(
        organization_id=org_id,
        name=name,
        display_name=data.display_name,
        order=data.order,
        is_default=data.is_default,
        is_terminal=is_terminal,
        color=data.color,
        icon=data.icon,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("todo state created state_id=%s name=%s org_id=%s user_id=%s", row.id, row.name, org_id, user_id)
    return to_view(row, 0)


def update_state(
    db: Session,
    state_id: int,
    data: TodoStateUpdate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> TodoStateView:
    """Partial update: only supplied fields change."""
    org_id = require_org(organization_id)
    row = _get_row(db, state_id, org_id)

    if data.name and data.name.strip().lower() != row.name:
        name = data.name.strip().lower()
        _ensure_unique_name(db, org_id, name, exclude_id=row.id)
        row.name = name
    if data.display_name and data.display_name != row.display_name:
        _ensure_unique_display_name(db, org_id, data.display_name, exclude_id=row.id)
        row.display_name = data.display_name
    if data.order is not None:
        row.order = data.order
    if data.color is not None:
        row.color = data.color
    if data.icon is not None:
        row.icon = data.icon
    if data.is_terminal is not None:
        row.is_terminal = data.is_terminal
    if data.is_default is not None:
        if not data.is_default and row.is_default:
            raise Conflict("An organization needs a default todo state. Mark another state as default instead.")
        if data.is_default and not row.is_default:
            _unset_defaults(db, org_id, keep_id=row.id)
        row.is_default = data.is_default

    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("todo state updated state_id=%s name=%s org_id=%s user_id=%s", row.id, row.name, org_id, user_id)
    return to_view(row, _task_count(db, row))


def delete_state(
    db: Session,
    state_id: int,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> None:
    """Soft-delete a state that no live task references."""
    org_id = require_org(organization_id)
    row = _get_row(db, state_id, org_id)
    if row.is_default:
        raise Conflict("Cannot delete the default todo state. Mark another state as default first.")
    in_use = _task_count(db, row)
    if in_use > 0:
        raise Conflict(
            f"Cannot delete todo state '{row.display_name}' because it is being used by "
            f"{in_use} task(s). Please reassign those tasks to another state first."
        )
    row.mark_deleted(user_id)
    db.add(row)
    db.commit()
    log.info("todo state deleted state_id=%s org_id=%s user_id=%s", state_id, org_id, user_id)


def reorder_states(
    db: Session,
    state_ids: Sequence[int],
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> List[TodoStateView]:
    """Set each listed state's order to its 0-based position; unlisted states keep theirs."""
    org_id = require_org(organization_id)
    rows = {row.id: row for row in states_in_org(db, org_id).filter(TodoStateDB.id.in_(list(state_ids))).all()}
    missing = [sid for sid in state_ids if sid not in rows]
    if missing:
        raise InvalidReference(f"Todo states not found in organization: {missing}")

    now = now_utc()
    for position, sid in enumerate(state_ids):
        rows[sid].order = position
        rows[sid].updated_at = now
        db.add(rows[sid])
    db.commit()
    log.info("todo states reordered count=%s org_id=%s user_id=%s", len(state_ids), org_id, user_id)
    return list_states(db, organization_id=org_id)
