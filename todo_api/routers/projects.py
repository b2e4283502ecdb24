# PURPOSE: /projects: CRUD; Viewers are read-only.

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.deps import forbid_viewer
from ..auth import UserContext, get_user_context
from ..db import get_db
from ..models import ProjectCreate, ProjectUpdate, ProjectView
from ..store import projects as project_store

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=List[ProjectView])
def list_projects(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return project_store.list_projects(db, organization_id=user.organization_id)


@router.get("/{project_id}", response_model=ProjectView)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_user_context),
):
    return project_store.get_project(db, project_id, organization_id=user.organization_id)


@router.post("", response_model=ProjectView, status_code=status.HTTP_201_CREATED)
def create_project(
    item: ProjectCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    project = project_store.create_project(
        db, item, organization_id=user.organization_id, user_id=user.user_id
    )
    response.headers["Location"] = f"/api/v1/projects/{project.id}"
    return project


@router.put("/{project_id}", response_model=ProjectView)
def update_project(
    project_id: int,
    item: ProjectUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    return project_store.update_project(
        db, project_id, item, organization_id=user.organization_id, user_id=user.user_id
    )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(forbid_viewer),
):
    project_store.delete_project(db, project_id, organization_id=user.organization_id, user_id=user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
