# PURPOSE: tenant scoping and reference lookups shared by the store modules.
# Every lookup filters by organization and excludes soft-deleted rows, so a
# row from another tenant and a missing row look the same to callers.

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..db_models import ProjectDB, TaskDB, TodoStateDB, UserDB
from ..exceptions import AuthorizationMissing, InvalidReference

ADMIN = "Admin"


def require_org(organization_id: Optional[int]) -> int:
    """Organization-scoped operations refuse to run without a tenant."""
    if organization_id is None:
        raise AuthorizationMissing("User organization not found")
    return organization_id


def require_user(user_id: Optional[int]) -> int:
    if user_id is None:
        raise AuthorizationMissing("User information not found")
    return user_id


def tasks_in_org(db: Session, organization_id: int):
    """Non-deleted tasks of one organization (any depth)."""
    return db.query(TaskDB).filter(
        TaskDB.organization_id == organization_id,
        TaskDB.is_deleted.is_(False),
    )


def states_in_org(db: Session, organization_id: int):
    return db.query(TodoStateDB).filter(
        TodoStateDB.organization_id == organization_id,
        TodoStateDB.is_deleted.is_(False),
    )


def projects_in_org(db: Session, organization_id: int):
    return db.query(ProjectDB).filter(
        ProjectDB.organization_id == organization_id,
        ProjectDB.is_deleted.is_(False),
    )


def users_in_org(db: Session, organization_id: int):
    return db.query(UserDB).filter(
        UserDB.organization_id == organization_id,
        UserDB.is_deleted.is_(False),
    )


# --- Reference resolution (raise InvalidReference) -------------------------


def resolve_state(db: Session, organization_id: int, state_id: int) -> TodoStateDB:
    state = states_in_org(db, organization_id).filter(TodoStateDB.id == state_id).one_or_none()
    if state is None:
        raise InvalidReference(f"Todo state with ID {state_id} not found in organization")
    return state


def default_state(db: Session, organization_id: int) -> Optional[TodoStateDB]:
    return (
        states_in_org(db, organization_id)
        .filter(TodoStateDB.is_default.is_(True))
        .order_by(TodoStateDB.order.asc(), TodoStateDB.id.asc())
        .first()
    )


def resolve_assignee(db: Session, organization_id: int, user_id: int) -> UserDB:
    user = (
        users_in_org(db, organization_id)
        .filter(UserDB.id == user_id, UserDB.is_active.is_(True))
        .one_or_none()
    )
    if user is None:
        raise InvalidReference(f"User with ID {user_id} not found or inactive in organization")
    return user


def resolve_project(db: Session, organization_id: int, project_id: int) -> ProjectDB:
    project = projects_in_org(db, organization_id).filter(ProjectDB.id == project_id).one_or_none()
    if project is None:
        raise InvalidReference(f"Project with ID {project_id} not found in organization")
    return project


def resolve_parent_task(db: Session, organization_id: int, task_id: int) -> TaskDB:
    parent = tasks_in_org(db, organization_id).filter(TaskDB.id == task_id).one_or_none()
    if parent is None:
        raise InvalidReference(f"Parent task with ID {task_id} not found in organization")
    return parent
