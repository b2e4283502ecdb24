# PURPOSE: accounts: registration, login, directory lookups and admin user management.

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..auth import hash_password, verify_password
from ..config import settings
from ..db_models import RoleDB, TaskDB, UserDB, now_utc
from ..exceptions import AuthorizationMissing, Conflict, InvalidReference, NotFound
from ..models import (
    UserForAssignment,
    UserManagementUpdate,
    UserManagementView,
    UserPublic,
    UserRegister,
)
from . import organizations
from .common import ADMIN, require_org, require_user, users_in_org

log = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    "Admin": "Full access to the organization: users, workflow states and every task",
    "User": "Creates tasks and edits the tasks they created",
    "Viewer": "Read-only access",
}
DEFAULT_ROLE = "User"


def ensure_roles(db: Session) -> None:
    """Insert any missing role rows; safe to call on every start."""
    existing = {name for (name,) in db.query(RoleDB.name).all()}
    for name, description in ROLE_DESCRIPTIONS.items():
        if name not in existing:
            db.add(RoleDB(name=name, description=description))
    db.commit()


def seed(db: Session) -> None:
    """Roles plus the default organization with its workflow states."""
    ensure_roles(db)
    if organizations.get_by_slug(db, settings.DEFAULT_ORGANIZATION_SLUG) is None:
        organizations.create_organization(
            db, name="Default Organization", slug=settings.DEFAULT_ORGANIZATION_SLUG
        )
    log.info("seed complete default_org=%s", settings.DEFAULT_ORGANIZATION_SLUG)


def _role(db: Session, name: str) -> Optional[RoleDB]:
    return db.query(RoleDB).filter(RoleDB.name == name).one_or_none()


def to_public(user: UserDB) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role.name,
        organization_id=user.organization_id,
        organization_name=user.organization.name if user.organization else "",
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


def _to_management_view(db: Session, user: UserDB) -> UserManagementView:
    created = (
        db.query(TaskDB)
        .filter(TaskDB.created_by_id == user.id, TaskDB.is_deleted.is_(False))
        .count()
    )
    return UserManagementView(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role.name,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        task_count=created,
    )


# --- Registration / login --------------------------------------------------


def _target_organization(db: Session, data: UserRegister):
    if data.organization_id is not None:
        org = organizations.get_row(db, data.organization_id)
        if org is None:
            raise InvalidReference(f"Organization with ID {data.organization_id} not found")
        return org
    if data.organization_name:
        return organizations.create_organization(db, name=data.organization_name)
    org = organizations.get_by_slug(db, settings.DEFAULT_ORGANIZATION_SLUG)
    if org is None:
        org = organizations.create_organization(
            db, name="Default Organization", slug=settings.DEFAULT_ORGANIZATION_SLUG
        )
    return org


def register(db: Session, data: UserRegister) -> UserDB:
    """Create an account; the first member of an organization becomes its Admin."""
    email = data.email.strip().lower()
    if db.query(UserDB).filter(UserDB.email == email).first() is not None:
        raise Conflict("Email already registered")

    ensure_roles(db)
    org = _target_organization(db, data)
    first_member = users_in_org(db, org.id).first() is None
    role = _role(db, ADMIN if first_member else DEFAULT_ROLE)

    now = now_utc()
    user = UserDB(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        organization_id=org.id,
        role_id=role.id,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("user registered user_id=%s org_id=%s role=%s", user.id, org.id, role.name)
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[UserDB]:
    """Return the user for valid credentials (and stamp last_login_at), else None."""
    user = (
        db.query(UserDB)
        .filter(UserDB.email == email.strip().lower(), UserDB.is_deleted.is_(False))
        .one_or_none()
    )
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        return None
    user.last_login_at = now_utc()
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("user logged in user_id=%s org_id=%s", user.id, user.organization_id)
    return user


# --- Self service ----------------------------------------------------------


def current_user(db: Session, *, user_id: Optional[int], organization_id: Optional[int]) -> UserDB:
    uid = require_user(user_id)
    org_id = require_org(organization_id)
    user = users_in_org(db, org_id).filter(UserDB.id == uid).one_or_none()
    if user is None:
        raise AuthorizationMissing("User information not found")
    return user


def users_for_assignment(db: Session, *, organization_id: Optional[int]) -> List[UserForAssignment]:
    org_id = require_org(organization_id)
    rows = (
        users_in_org(db, org_id)
        .filter(UserDB.is_active.is_(True))
        .order_by(UserDB.first_name.asc(), UserDB.last_name.asc())
        .all()
    )
    return [
        UserForAssignment(
            id=u.id,
            email=u.email,
            first_name=u.first_name,
            last_name=u.last_name,
            full_name=u.full_name,
        )
        for u in rows
    ]


def change_own_role(db: Session, role_name: str, *, user_id: Optional[int], organization_id: Optional[int]) -> UserDB:
    """Development helper: switch the caller's role."""
    user = current_user(db, user_id=user_id, organization_id=organization_id)
    role = _role(db, role_name)
    if role is None:
        raise InvalidReference(f"Role '{role_name}' not found")
    user.role_id = role.id
    user.updated_at = now_utc()
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("user role changed user_id=%s role=%s", user.id, role.name)
    return user


# --- User management (Admin) -----------------------------------------------


def _get_row(db: Session, user_id: int, organization_id: int) -> UserDB:
    user = users_in_org(db, organization_id).filter(UserDB.id == user_id).one_or_none()
    if user is None:
        raise NotFound(f"User with ID {user_id} not found")
    return user


def list_users(db: Session, *, organization_id: Optional[int]) -> List[UserManagementView]:
    org_id = require_org(organization_id)
    rows = users_in_org(db, org_id).order_by(UserDB.last_name.asc(), UserDB.first_name.asc()).all()
    return [_to_management_view(db, u) for u in rows]


def get_user(db: Session, user_id: int, *, organization_id: Optional[int]) -> UserManagementView:
    org_id = require_org(organization_id)
    return _to_management_view(db, _get_row(db, user_id, org_id))


def update_user(
    db: Session,
    user_id: int,
    data: UserManagementUpdate,
    *,
    organization_id: Optional[int],
    actor_id: Optional[int],
) -> UserManagementView:
    org_id = require_org(organization_id)
    user = _get_row(db, user_id, org_id)

    if data.first_name is not None:
        user.first_name = data.first_name.strip()
    if data.last_name is not None:
        user.last_name = data.last_name.strip()
    if data.role:
        role = _role(db, data.role)
        if role is None:
            raise InvalidReference(f"Role '{data.role}' not found")
        user.role_id = role.id
    if data.is_active is not None:
        user.is_active = data.is_active

    user.updated_at = now_utc()
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("user updated user_id=%s org_id=%s actor_id=%s", user.id, org_id, actor_id)
    return _to_management_view(db, user)


def delete_user(db: Session, user_id: int, *, organization_id: Optional[int], actor_id: Optional[int]) -> None:
    org_id = require_org(organization_id)
    if user_id == actor_id:
        raise Conflict("You cannot delete your own account")
    user = _get_row(db, user_id, org_id)
    user.mark_deleted(actor_id)
    user.is_active = False
    db.add(user)
    db.commit()
    log.info("user deleted user_id=%s org_id=%s actor_id=%s", user_id, org_id, actor_id)
