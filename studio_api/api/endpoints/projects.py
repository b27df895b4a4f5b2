"""
Project Management Endpoints

CRUD operations for client projects within a tenant.

RBAC:
- List/view projects: VIEW_CONTENT
- Create project: CREATE_CONTENT
- Update project: EDIT_CONTENT
- Delete (soft or hard) and restore: DELETE_CONTENT

Lists only show the caller's tenant. A project of another tenant loaded
by id is a 403 unless the caller holds a global role.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from studio_api.database import get_db
from studio_api.models.project import Project
from studio_api.schemas.project import (
    PROJECT_STATUS_PATTERN,
    ProjectResponse,
    ProjectCreate,
    ProjectUpdate,
    ProjectListResponse
)
from studio_api.api.deps import require_permission, ensure_tenant_access, resolve_tenant
from studio_api.core.permissions import Permission
from studio_api.core.exceptions import ProjectNotFoundError
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def load_project(db: Session, principal: Principal, project_id: str, deleted: Optional[bool] = False) -> Project:
    """
    Load by id, then check the tenant.

    deleted=None matches live and soft-deleted projects alike.
    """
    query = db.query(Project).filter(Project.id == project_id)
    if deleted is not None:
        query = query.filter(Project.is_deleted == deleted)

    project = query.first()
    if not project:
        raise ProjectNotFoundError(project_id)

    ensure_tenant_access(principal, project.tenant_id)
    return project


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=PROJECT_STATUS_PATTERN),
    owner_id: Optional[str] = None,
    include_deleted: bool = False,
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    """
    List projects in the caller's tenant.

    Supports filtering by status, owner, and soft-deleted flag.
    """
    tenant_id = resolve_tenant(principal, tenant_id)
    query = db.query(Project).filter(Project.tenant_id == tenant_id)

    if not include_deleted:
        query = query.filter(Project.is_deleted == False)  # noqa: E712

    if status:
        query = query.filter(Project.status == status)

    if owner_id:
        query = query.filter(Project.owner_id == owner_id)

    total = query.count()

    offset = (page - 1) * page_size
    projects = query.order_by(
        Project.created_at.desc()
    ).offset(offset).limit(page_size).all()

    logger.debug(f"Listed {len(projects)} projects for tenant {tenant_id}")

    return ProjectListResponse(
        projects=projects,
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    return load_project(db, principal, project_id)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    principal: Principal = Depends(require_permission(Permission.CREATE_CONTENT)),
    db: Session = Depends(get_db)
):
    """
    Create a project in the caller's tenant.

    The caller becomes the owner.
    """
    new_project = Project(
        tenant_id=principal.tenant_id,
        owner_id=principal.user_id,
        name=project_data.name,
        client_name=project_data.client_name,
        description=project_data.description,
        event_date=project_data.event_date,
        budget=project_data.budget,
        status="booked"
    )

    db.add(new_project)
    db.commit()
    db.refresh(new_project)

    logger.info(f"Project created: {new_project.id} by {principal.user_id}")

    return new_project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    principal: Principal = Depends(require_permission(Permission.EDIT_CONTENT)),
    db: Session = Depends(get_db)
):
    project = load_project(db, principal, project_id)

    update_data = project_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is not None:
            setattr(project, field, value)

    db.commit()
    db.refresh(project)

    logger.info(f"Project updated: {project.id} by {principal.user_id}")

    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    hard_delete: bool = Query(False, description="Permanently delete"),
    principal: Principal = Depends(require_permission(Permission.DELETE_CONTENT)),
    db: Session = Depends(get_db)
):
    """Soft delete by default; hard_delete removes the row."""
    project = load_project(db, principal, project_id, deleted=None)

    if hard_delete:
        db.delete(project)
        logger.info(f"Project hard deleted: {project_id} by {principal.user_id}")
    else:
        project.soft_delete()
        logger.info(f"Project soft deleted: {project_id} by {principal.user_id}")

    db.commit()
    return None


@router.post("/{project_id}/restore", response_model=ProjectResponse)
async def restore_project(
    project_id: str,
    principal: Principal = Depends(require_permission(Permission.DELETE_CONTENT)),
    db: Session = Depends(get_db)
):
    project = load_project(db, principal, project_id, deleted=True)

    project.restore()
    db.commit()
    db.refresh(project)

    logger.info(f"Project restored: {project_id} by {principal.user_id}")

    return project
