# PURPOSE: request/response schemas (Pydantic v2).
# JSON uses the camelCase names the SPA already speaks (sortBy, todoStateId, ...);
# Python code keeps snake_case through alias_generator.

import enum
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

RoleName = Literal["Admin", "User", "Viewer"]
Day = date


class TaskPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


class Unset(enum.Enum):
    """Marker for an update field the client did not send at all."""

    token = 0

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.token


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def tri_state(self, field: str) -> Any:
        """Return UNSET when `field` was omitted, else its value (None = explicit null)."""
        if field not in self.model_fields_set:
            return UNSET
        return getattr(self, field)


def _unique_ids(ids: list[int]) -> list[int]:
    if len(set(ids)) != len(ids):
        raise ValueError("ids must be unique")
    return ids


# --- Tasks -----------------------------------------------------------------


class TaskCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    due_date: datetime | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    todo_state_id: int | None = None  # org default state when omitted
    assigned_to_id: int | None = None
    project_id: int | None = None
    parent_task_id: int | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"title": "Ship v1", "priority": 2},
                {"title": "Write docs", "projectId": 1, "assignedToId": 3, "dueDate": "2026-12-31T18:00:00Z"},
            ]
        },
    )


class TaskUpdate(ApiModel):
    """Full representation of the editable task fields.

    Scalars are always overwritten. ``assigned_to_id``, ``project_id`` and
    ``parent_task_id`` are tri-state: omitted keeps, null clears, a value sets
    (read them with ``tri_state``). ``todo_state_id`` omitted/null keeps the state.
    """

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    due_date: datetime | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    todo_state_id: int | None = None
    assigned_to_id: int | None = None
    project_id: int | None = None
    parent_task_id: int | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"title": "Ship v1", "priority": 2, "todoStateId": 4},
                {"title": "Ship v1", "priority": 1, "assignedToId": None},
            ]
        },
    )


class TaskView(ApiModel):
    id: int
    title: str
    description: str | None = None
    is_completed: bool
    todo_state_id: int
    todo_state_name: str
    todo_state_display_name: str
    todo_state_color: str | None = None
    priority: TaskPriority
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    created_by_id: int
    created_by_name: str
    updated_at: datetime
    updated_by_id: int | None = None
    updated_by_name: str | None = None
    assigned_to_id: int | None = None
    assigned_to_name: str | None = None
    assigned_to_email: str | None = None
    project_id: int | None = None
    project_name: str | None = None
    parent_task_id: int | None = None
    parent_task_title: str | None = None
    order: int | None = None
    subtasks: list["TaskView"] = Field(default_factory=list)


class ReorderTasks(ApiModel):
    task_ids: list[int] = Field(min_length=1)

    check_unique = field_validator("task_ids")(_unique_ids)


class TaskStats(ApiModel):
    total: int
    completed: int
    active: int
    high_priority: int
    by_state: dict[str, int] = Field(default_factory=dict)


class UserTaskStats(ApiModel):
    user_id: int | None = None
    user_name: str
    user_email: str = ""
    total_tasks: int = 0
    completed_tasks: int = 0
    active_tasks: int = 0
    high_priority_tasks: int = 0
    state_counts: dict[str, int] = Field(default_factory=dict)


class TrendDataPoint(ApiModel):
    date: Day
    tasks_created: int = 0
    tasks_completed: int = 0
    total_tasks: int = 0
    state_counts: dict[str, int] = Field(default_factory=dict)


class AdvancedStats(ApiModel):
    by_user: dict[str, UserTaskStats] = Field(default_factory=dict)
    trends: list[TrendDataPoint] = Field(default_factory=list)
    by_state: dict[str, int] = Field(default_factory=dict)


# --- Todo states -----------------------------------------------------------


class TodoStateCreate(ApiModel):
    name: str = Field(min_length=1, max_length=50)
    display_name: str = Field(min_length=1, max_length=100)
    order: int = Field(default=0, ge=0)
    is_default: bool = False
    is_terminal: bool | None = None  # defaults to name == "done"
    color: str | None = Field(default=None, max_length=7)
    icon: str | None = Field(default=None, max_length=50)


class TodoStateUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    display_name: str | None = Field(default=None, min_length=1, max_length=100)
    order: int | None = Field(default=None, ge=0)
    is_default: bool | None = None
    is_terminal: bool | None = None
    color: str | None = Field(default=None, max_length=7)
    icon: str | None = Field(default=None, max_length=50)


class TodoStateView(ApiModel):
    id: int
    name: str
    display_name: str
    order: int
    is_default: bool
    is_terminal: bool
    color: str | None = None
    icon: str | None = None
    organization_id: int
    task_count: int = 0


class ReorderTodoStates(ApiModel):
    state_ids: list[int] = Field(min_length=1)

    check_unique = field_validator("state_ids")(_unique_ids)


# --- Projects --------------------------------------------------------------


class ProjectCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)


class ProjectUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)


class ProjectView(ApiModel):
    id: int
    name: str
    description: str | None = None
    organization_id: int
    organization_name: str
    created_by_id: int
    created_by_name: str
    created_at: datetime
    updated_at: datetime
    updated_by_id: int | None = None
    updated_by_name: str | None = None
    task_count: int = 0
    active_task_count: int = 0


# --- Organization ----------------------------------------------------------


class OrganizationUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=100, pattern=r"^[a-z0-9-]+$")
    is_active: bool | None = None


class OrganizationView(ApiModel):
    id: int
    name: str
    slug: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    user_count: int = 0
    task_count: int = 0
    active_task_count: int = 0
    todo_state_count: int = 0


# --- Users / user management ----------------------------------------------


class UserPublic(ApiModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    role: RoleName
    organization_id: int
    organization_name: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None


class UserForAssignment(ApiModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str


class UserManagementView(ApiModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: RoleName
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None
    task_count: int = 0  # tasks created by this user


class UserManagementUpdate(ApiModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None


class RoleChange(ApiModel):
    role: RoleName


# --- Preferences -----------------------------------------------------------

DEFAULT_VISIBLE_STATS: tuple[str, ...] = ("Total", "High Priority")


class UserPreferences(ApiModel):
    visible_stats: list[str] = Field(default_factory=lambda: list(DEFAULT_VISIBLE_STATS))
    theme: str | None = None
    language: str | None = None
    other_preferences: dict[str, Any] = Field(default_factory=dict)


class UserPreferencesUpdate(ApiModel):
    visible_stats: list[str] | None = None
    theme: str | None = Field(default=None, max_length=20)
    language: str | None = Field(default=None, max_length=10)
    other_preferences: dict[str, Any] | None = None


# --- Auth ------------------------------------------------------------------


class UserRegister(ApiModel):
    email: EmailStr = Field(max_length=255)
    # Raw password only in create request
    password: str = Field(min_length=6, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    organization_id: int | None = None
    organization_name: str | None = Field(default=None, min_length=1, max_length=200)


class TokenResponse(ApiModel):
    # Simple JWT response
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserPublic | None = None
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"accessToken": "<jwt>", "tokenType": "bearer"}]}
    )
