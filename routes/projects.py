# routes/projects.py
import logging
from datetime import datetime
from typing import Tuple

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from core.database import get_session
from core.errors import BadRequestError, UnauthorizedError
from core.permissions import AuthProject, get_user_permissions
from core.security import get_current_user_id, get_user_membership
from core.utils import create_slug
from models.models import Member, Organization, Project
from schemas.project_schema import (
    ProjectCreate,
    ProjectCreated,
    ProjectList,
    ProjectRead,
    ProjectResponse,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{slug}/projects", tags=["Projects"])


def _get_org_project(session: Session, organization_id: str, project_id: str) -> Project:
    project = session.exec(
        select(Project).where(Project.id == project_id, Project.organization_id == organization_id)
    ).first()
    if not project:
        raise BadRequestError("Project not found.")
    return project


# ==================================================================
#  ✅ Create New Project
# ==================================================================
@router.post("", response_model=ProjectCreated, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("create", "Project"):
        raise UnauthorizedError("You're not allowed to create new projects.")

    slug = create_slug(data.name)
    if not slug:
        raise BadRequestError("Project name must contain letters or digits.")

    project = Project(
        name=data.name,
        description=data.description,
        slug=slug,
        organization_id=organization.id,
        owner_id=user_id,
    )
    try:
        session.add(project)
        session.commit()
        session.refresh(project)
    except IntegrityError:
        session.rollback()
        raise BadRequestError("Another project with same name already exists.")

    return ProjectCreated(project_id=project.id)


# ==================================================================
#  ✅ Get All Projects (filtered by organization)
# ==================================================================
@router.get("", response_model=ProjectList)
def get_projects(
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("get", "Project"):
        raise UnauthorizedError("You're not allowed to see organization projects.")

    projects = session.exec(
        select(Project)
        .where(Project.organization_id == organization.id)
        .options(selectinload(Project.owner))
        .order_by(desc(Project.created_at))
    ).all()

    return ProjectList(projects=[ProjectRead.model_validate(project) for project in projects])


# ==================================================================
#  ✅ Get Single Project by slug
# ==================================================================
@router.get("/{project_slug}", response_model=ProjectResponse)
def get_project(
    project_slug: str,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("get", "Project"):
        raise UnauthorizedError("You're not allowed to see this project.")

    project = session.exec(
        select(Project)
        .where(Project.slug == project_slug, Project.organization_id == organization.id)
        .options(selectinload(Project.owner))
    ).first()
    if not project:
        raise BadRequestError("Project not found.")

    return ProjectResponse(project=ProjectRead.model_validate(project))


# ==================================================================
#  ✅ Update Project (owner or admin)
# ==================================================================
@router.put("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership
    project = _get_org_project(session, organization.id, project_id)

    auth_project = AuthProject.model_validate(project)
    if get_user_permissions(user_id, member.role).cannot("update", auth_project):
        raise UnauthorizedError("You're not allowed to update this project.")

    project.name = data.name
    project.description = data.description
    project.updated_at = datetime.utcnow()

    session.add(project)
    session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
#  ✅ Delete Project (owner or admin)
# ==================================================================
@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership
    project = _get_org_project(session, organization.id, project_id)

    auth_project = AuthProject.model_validate(project)
    if get_user_permissions(user_id, member.role).cannot("delete", auth_project):
        raise UnauthorizedError("You're not allowed to delete this project.")

    project_slug = project.slug
    session.delete(project)
    session.commit()
    logger.info("Project %s deleted from %s by %s", project_slug, organization.slug, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
