# PURPOSE: tenant records: creation (with seeded workflow), lookup with counts, update.

from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from ..db_models import OrganizationDB, TaskDB, TodoStateDB, now_utc
from ..exceptions import Conflict, NotFound
from ..models import OrganizationUpdate, OrganizationView
from .common import require_org, states_in_org, tasks_in_org, users_in_org
from .todo_states import seed_default_states

log = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_STRIP.sub("-", name.lower()).strip("-")
    return slug[:90] or "org"


def _slug_taken(db: Session, slug: str, *, exclude_id: Optional[int] = None) -> bool:
    query = db.query(OrganizationDB).filter(OrganizationDB.slug == slug)
    if exclude_id is not None:
        query = query.filter(OrganizationDB.id != exclude_id)
    return query.first() is not None


def unique_slug(db: Session, name: str) -> str:
    """Slug for `name`, suffixed -2, -3, ... until free."""
    base = slugify(name)
    slug, n = base, 1
    while _slug_taken(db, slug):
        n += 1
        slug = f"{base}-{n}"
    return slug


def create_organization(db: Session, *, name: str, slug: Optional[str] = None) -> OrganizationDB:
    """Create an organization with the default workflow states; commits."""
    slug = slug or unique_slug(db, name)
    if _slug_taken(db, slug):
        raise Conflict(f"Slug '{slug}' is already in use")
    now = now_utc()
    org = OrganizationDB(name=name.strip(), slug=slug, is_active=True, created_at=now, updated_at=now)
    db.add(org)
    db.flush()
    seed_default_states(db, org.id)
    db.commit()
    db.refresh(org)
    log.info("organization created org_id=%s slug=%s", org.id, org.slug)
    return org


def get_by_slug(db: Session, slug: str) -> Optional[OrganizationDB]:
    return (
        db.query(OrganizationDB)
        .filter(OrganizationDB.slug == slug, OrganizationDB.is_deleted.is_(False))
        .one_or_none()
    )


def get_row(db: Session, organization_id: int) -> Optional[OrganizationDB]:
    return (
        db.query(OrganizationDB)
        .filter(OrganizationDB.id == organization_id, OrganizationDB.is_deleted.is_(False))
        .one_or_none()
    )


def get_organization(db: Session, *, organization_id: Optional[int]) -> OrganizationView:
    """Organization with user, task, active-task and state counts."""
    org_id = require_org(organization_id)
    org = get_row(db, org_id)
    if org is None:
        raise NotFound("Organization not found")

    tasks = tasks_in_org(db, org_id)
    return OrganizationView(
        id=org.id,
        name=org.name,
        slug=org.slug,
        is_active=org.is_active,
        created_at=org.created_at,
        updated_at=org.updated_at,
        user_count=users_in_org(db, org_id).count(),
        task_count=tasks.count(),
        active_task_count=tasks.join(TaskDB.todo_state).filter(TodoStateDB.is_terminal.is_(False)).count(),
        todo_state_count=states_in_org(db, org_id).count(),
    )


def update_organization(
    db: Session,
    data: OrganizationUpdate,
    *,
    organization_id: Optional[int],
    user_id: Optional[int],
) -> OrganizationView:
    """Apply the supplied fields; a slug must stay unique across organizations."""
    org_id = require_org(organization_id)
    org = get_row(db, org_id)
    if org is None:
        raise NotFound("Organization not found")

    if data.name:
        org.name = data.name.strip()
    if data.slug:
        if _slug_taken(db, data.slug, exclude_id=org.id):
            raise Conflict(f"Slug '{data.slug}' is already in use")
        org.slug = data.slug
    if data.is_active is not None:
        org.is_active = data.is_active

    org.updated_at = now_utc()
    db.add(org)
    db.commit()
    log.info("organization updated org_id=%s user_id=%s", org_id, user_id)
    return get_organization(db, organization_id=org_id)
