# PURPOSE: define how tenant rows look in the database.
# Every tenant-owned table carries audit timestamps and the soft-delete triple
# (is_deleted, deleted_at, deleted_by_id); rows are never physically removed.

from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


class AuditMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, nullable=False)


class SoftDeleteMixin:
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    deleted_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def mark_deleted(self, by_user_id: int | None) -> None:
        now = now_utc()
        self.is_deleted = True
        self.deleted_at = now
        self.deleted_by_id = by_user_id
        self.updated_at = now


class OrganizationDB(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RoleDB(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, nullable=False)


class UserDB(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # free-form preferences document (visibleStats, theme, language, ...)
    preferences: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    organization = relationship("OrganizationDB")
    role = relationship("RoleDB")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TodoStateDB(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "todo_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)  # lowercase
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[int] = mapped_column("sort_order", Integer, default=0, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # completion semantics live here, not in the state's name
    is_terminal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)

    organization = relationship("OrganizationDB")


class ProjectDB(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    updated_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    organization = relationship("OrganizationDB")
    created_by = relationship("UserDB", foreign_keys=[created_by_id])
    updated_by = relationship("UserDB", foreign_keys=[updated_by_id])


class TaskDB(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)  # 0 low, 1 medium, 2 high
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # explicit display order; NULL sorts after ordered rows
    display_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    todo_state_id: Mapped[int] = mapped_column(ForeignKey("todo_states.id"), nullable=False)
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    updated_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    assigned_to_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    parent_task_id: Mapped[int | None] = mapped_column(ForeignKey("tasks.id"), nullable=True)
    # state the task left when it was completed; reopening returns there
    reopen_state_id: Mapped[int | None] = mapped_column(ForeignKey("todo_states.id"), nullable=True)

    todo_state = relationship("TodoStateDB", foreign_keys=[todo_state_id])
    created_by = relationship("UserDB", foreign_keys=[created_by_id])
    updated_by = relationship("UserDB", foreign_keys=[updated_by_id])
    assigned_to = relationship("UserDB", foreign_keys=[assigned_to_id])
    project = relationship("ProjectDB")
    parent_task = relationship("TaskDB", remote_side=[id])


# Helpful indexes for tenant scoping and filtering
Index("ix_todo_states_org_name", TodoStateDB.organization_id, TodoStateDB.name)
Index("ix_projects_org_name", ProjectDB.organization_id, ProjectDB.name)
Index("ix_tasks_org_deleted", TaskDB.organization_id, TaskDB.is_deleted)
Index("ix_tasks_todo_state_id", TaskDB.todo_state_id)
Index("ix_tasks_assigned_to_id", TaskDB.assigned_to_id)
Index("ix_tasks_project_id", TaskDB.project_id)
Index("ix_tasks_parent_task_id", TaskDB.parent_task_id)
