# PURPOSE: /users: the caller's profile and the assignee picker.

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import UserContext, create_user_token, get_user_context
from ..config import settings
from ..db import get_db
from ..models import RoleChange, TokenResponse, UserForAssignment, UserPublic
from ..store import users as user_store

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
def me(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    row = user_store.current_user(db, user_id=user.user_id, organization_id=user.organization_id)
    return user_store.to_public(row)


@router.get("/for-assignment", response_model=List[UserForAssignment])
def users_for_assignment(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return user_store.users_for_assignment(db, organization_id=user.organization_id)


@router.post("/me/role", response_model=TokenResponse)
def change_my_role(
    payload: RoleChange,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    """Development-only role switch; the new role takes effect through the reissued token."""
    if not settings.DEV_TESTING:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    row = user_store.change_own_role(
        db, payload.role, user_id=user.user_id, organization_id=user.organization_id
    )
    return TokenResponse(access_token=create_user_token(row), user=user_store.to_public(row))
