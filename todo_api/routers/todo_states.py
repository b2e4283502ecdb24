# PURPOSE: /todostates: workflow states; anyone in the organization reads, Admins change.

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.deps import admin_only
from ..auth import UserContext, get_user_context
from ..db import get_db
from ..models import ReorderTodoStates, TodoStateCreate, TodoStateUpdate, TodoStateView
from ..store import todo_states as state_store

router = APIRouter(prefix="/todostates", tags=["todostates"])


@router.get("", response_model=List[TodoStateView])
def list_states(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return state_store.list_states(db, organization_id=user.organization_id)


@router.post("/reorder", response_model=List[TodoStateView])
def reorder_states(
    payload: ReorderTodoStates,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return state_store.reorder_states(
        db, payload.state_ids, organization_id=user.organization_id, user_id=user.user_id
    )


@router.get("/{state_id}", response_model=TodoStateView)
def get_state(
    state_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return state_store.get_state(db, state_id, organization_id=user.organization_id)


@router.post("", response_model=TodoStateView, status_code=status.HTTP_201_CREATED)
def create_state(
    item: TodoStateCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    state = state_store.create_state(db, item, organization_id=user.organization_id, user_id=user.user_id)
    response.headers["Location"] = f"/api/v1/todostates/{state.id}"
    return state


@router.put("/{state_id}", response_model=TodoStateView)
def update_state(
    state_id: int,
    item: TodoStateUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    return state_store.update_state(
        db, state_id, item, organization_id=user.organization_id, user_id=user.user_id
    )


@router.delete("/{state_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_state(
    state_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(admin_only),
):
    state_store.delete_state(db, state_id, organization_id=user.organization_id, user_id=user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
