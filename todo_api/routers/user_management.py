# PURPOSE: /usermanagement: Admin view and control over the organization's accounts.

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.deps import admin_only
from ..auth import UserContext
from ..db import get_db
from ..models import UserManagementUpdate, UserManagementView
from ..store import users as user_store

router = APIRouter(prefix="/usermanagement", tags=["usermanagement"])


@router.get("", response_model=List[UserManagementView])
def list_users(
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return user_store.list_users(db, organization_id=user.organization_id)


@router.get("/{user_id}", response_model=UserManagementView)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return user_store.get_user(db, user_id, organization_id=user.organization_id)


@router.put("/{user_id}", response_model=UserManagementView)
def update_user(
    user_id: int,
    item: UserManagementUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return user_store.update_user(
        db, user_id, item, organization_id=user.organization_id, actor_id=user.user_id
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    user_store.delete_user(db, user_id, organization_id=user.organization_id, actor_id=user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
