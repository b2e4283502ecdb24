# PURPOSE: per-user UI preferences kept as a JSON document on the user row.

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..db_models import now_utc
from ..models import UserPreferences, UserPreferencesUpdate
from .users import current_user

log = logging.getLogger(__name__)


def _load(raw, user_id: int) -> UserPreferences:
    if not raw:
        return UserPreferences()
    try:
        return UserPreferences.model_validate(raw)
    except ValidationError:
        log.warning("discarding unreadable preferences user_id=%s", user_id)
        return UserPreferences()


def get_preferences(db: Session, *, user_id: Optional[int], organization_id: Optional[int]) -> UserPreferences:
    user = current_user(db, user_id=user_id, organization_id=organization_id)
    return _load(user.preferences, user.id)


def update_preferences(
    db: Session,
    data: UserPreferencesUpdate,
    *,
    user_id: Optional[int],
    organization_id: Optional[int],
) -> UserPreferences:
    """Overlay the supplied fields; otherPreferences is merged key by key."""
    user = current_user(db, user_id=user_id, organization_id=organization_id)
    prefs = _load(user.preferences, user.id)

    if data.visible_stats is not None:
        prefs.visible_stats = list(data.visible_stats)
    if data.theme is not None:
        prefs.theme = data.theme
    if data.language is not None:
        prefs.language = data.language
    if data.other_preferences:
        prefs.other_preferences = {**prefs.other_preferences, **data.other_preferences}

    # stored in the camelCase shape clients send
    user.preferences = prefs.model_dump(by_alias=True)
    user.updated_at = now_utc()
    db.add(user)
    db.commit()
    log.info("preferences updated user_id=%s", user.id)
    return prefs
