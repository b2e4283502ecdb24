# PURPOSE: organization projects; soft-deleted only once they hold no live tasks.

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db_models import ProjectDB, TaskDB, TodoStateDB, now_utc
from ..exceptions import Conflict, NotFound
from ..models import ProjectCreate, ProjectUpdate, ProjectView
from .common import projects_in_org, require_org, require_user, tasks_in_org

log = logging.getLogger(__name__)


def _counts(db: Session, project: ProjectDB) -> tuple[int, int]:
    """(all live tasks, live tasks whose state is not terminal)"""
    query = tasks_in_org(db, project.organization_id).filter(TaskDB.project_id == project.id)
    total = query.count()
    active = query.join(TaskDB.todo_state).filter(TodoStateDB.is_terminal.is_(False)).count()
    return total, active


def to_view(project: ProjectDB, task_count: int = 0, active_task_count: int = 0) -> ProjectView:
    return ProjectView(
        id=project.id,
        name=project.name,
        description=project.description,
        organization_id=project.organization_id,
        organization_name=project.organization.name if project.organization else "",
        created_by_id=project.created_by_id,
        created_by_name=project.created_by.full_name if project.created_by else "",
        created_at=project.created_at,
        updated_at=project.updated_at,
        updated_by_id=project.updated_by_id,
        updated_by_name=project.updated_by.full_name if project.updated_by else None,
        task_count=task_count,
        active_task_count=active_task_count,
    )


def _get_row(db: Session, project_id: int, organization_id: int) -> ProjectDB:
    row = projects_in_org(db, organization_id).filter(ProjectDB.id == project_id).one_or_none()
    if row is None:
        raise NotFound(f"Project with ID {project_id} not found")
    return row


def _ensure_unique_name(db: Session, organization_id: int, name: str, *, exclude_id: Optional[int] = None) -> None:
    query = projects_in_org(db, organization_id).filter(func.lower(ProjectDB.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(ProjectDB.id != exclude_id)
    if query.first() is not None:
        raise Conflict(f"A project with the name '{name}' already exists in this organization.")


def list_projects(db: Session, *, organization_id: Optional[int]) -> List[ProjectView]:
    org_id = require_org(organization_id)
    rows = projects_in_org(db, org_id).order_by(ProjectDB.name.asc()).all()
    return [to_view(row, *_counts(db, row)) for row in rows]


def get_project(db: Session, project_id: int, *, organization_id: Optional[int]) -> ProjectView:
    org_id = require_org(organization_id)
    row = _get_row(db, project_id, org_id)
    return to_view(row, *_counts(db, row))


def create_project(
    db: Session,
    data: ProjectCreate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> ProjectView:
    org_id = require_org(organization_id)
    actor = require_user(user_id)
    name = data.name.strip()
    _ensure_unique_name(db, org_id, name)

    now = now_utc()
    row = ProjectDB(
        name=name,
        description=data.description.strip() if data.description else None,
        organization_id=org_id,
        created_by_id=actor,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("project created project_id=%s org_id=%s user_id=%s", row.id, org_id, actor)
    return to_view(row)


def update_project(
    db: Session,
    project_id: int,
    data: ProjectUpdate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> ProjectView:
    org_id = require_org(organization_id)
    row = _get_row(db, project_id, org_id)

    if data.name is not None and data.name.strip() != row.name:
        name = data.name.strip()
        _ensure_unique_name(db, org_id, name, exclude_id=row.id)
        row.name = name
    if data.description is not None:
        row.description = data.description.strip()

    row.updated_at = now_utc()
    row.updated_by_id = user_id
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("project updated project_id=%s org_id=%s user_id=%s", row.id, org_id, user_id)
    return to_view(row, *_counts(db, row))


def delete_project(
    db: Session,
    project_id: int,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> None:
    org_id = require_org(organization_id)
    row = _get_row(db, project_id, org_id)
    if tasks_in_org(db, org_id).filter(TaskDB.project_id == row.id).first() is not None:
        raise Conflict("Cannot delete project that has tasks. Please reassign or delete tasks first.")
    row.mark_deleted(user_id)
    db.add(row)
    db.commit()
    log.info("project deleted project_id=%s org_id=%s user_id=%s", project_id, org_id, user_id)
