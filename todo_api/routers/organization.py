# PURPOSE: /organization: the caller's own organization (Admin only).

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.deps import admin_only
from ..auth import UserContext
from ..db import get_db
from ..models import OrganizationUpdate, OrganizationView
from ..store import organizations as org_store

router = APIRouter(prefix="/organization", tags=["organization"])


@router.get("", response_model=OrganizationView)
def get_organization(
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return org_store.get_organization(db, organization_id=user.organization_id)


@router.put("", response_model=OrganizationView)
def update_organization(
    item: OrganizationUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return org_store.update_organization(
        db, item, organization_id=user.organization_id, user_id=user.user_id
    )
