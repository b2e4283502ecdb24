from typing import Callable, Literal

from fastapi import Depends, HTTPException, Query, status

from ..auth import UserContext, get_user_context
from ..store.tasks import SORT_KEYS

# Shared sort keys for task listings
SortBy = Literal["title", "priority", "duedate", "created"]


def parse_sort_by(sort_by: str | None = Query(None, alias="sortBy")) -> SortBy | None:
    """Case-insensitive sort key; unknown keys fall back to the default ordering."""
    if not sort_by:
        return None
    key = sort_by.lower()
    if key in SORT_KEYS:
        return key  # type: ignore[return-value]
    return None


def parse_assignee(assigned_to_id: str | None = Query(None, alias="assignedToId")) -> int | None:
    if assigned_to_id is None or assigned_to_id == "":
        return None
    try:
        return int(assigned_to_id)
    except (TypeError, ValueError) as err:
        raise HTTPException(
            status_code=422,
            detail=[
                {
                    "type": "int_parsing",
                    "loc": ["query", "assignedToId"],
                    "msg": "Input should be a valid integer, unable to parse string as an integer",
                    "input": assigned_to_id,
                }
            ],
        ) from err


def require_roles(*roles: str) -> Callable[..., UserContext]:
    """Dependency that lets only the given roles through (403 otherwise)."""

    def _check(user: UserContext = Depends(get_user_context)) -> UserContext:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(roles)}",
            )
        return user

    return _check


def forbid_viewer(user: UserContext = Depends(get_user_context)) -> UserContext:
    if user.is_viewer:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Viewers have read-only access")
    return user


admin_only = require_roles("Admin")
