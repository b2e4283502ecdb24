# PURPOSE: /userpreferences: the caller's UI preferences.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import UserContext, get_user_context
from ..db import get_db
from ..models import UserPreferences, UserPreferencesUpdate
from ..store import preferences as pref_store

router = APIRouter(prefix="/userpreferences", tags=["userpreferences"])


@router.get("", response_model=UserPreferences)
def get_preferences(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return pref_store.get_preferences(db, user_id=user.user_id, organization_id=user.organization_id)


@router.put("", response_model=UserPreferences)
def update_preferences(
    item: UserPreferencesUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return pref_store.update_preferences(
        db, item, user_id=user.user_id, organization_id=user.organization_id
    )
