"""
Image Endpoints

Photo metadata attached to a project. Uploading the bytes happens directly
against object storage; these routes only record and curate what was
uploaded.

RBAC: list/get VIEW_CONTENT, create CREATE_CONTENT, update EDIT_CONTENT,
delete DELETE_CONTENT. An image takes the tenant of its project, and an
image or project of another tenant answers 403.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from studio_api.database import get_db
from studio_api.models.image import Image
from studio_api.schemas.image import (
    UPLOAD_STATUS_PATTERN,
    ImageCreate,
    ImageUpdate,
    ImageResponse,
    ImageListResponse,
)
from studio_api.api.deps import require_permission, ensure_tenant_access, resolve_tenant
from studio_api.api.endpoints.projects import load_project
from studio_api.core.permissions import Permission
from studio_api.core.exceptions import ImageNotFoundError
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


def _load_image(db: Session, principal: Principal, image_id: str) -> Image:
    image = db.query(Image).filter(Image.id == image_id).first()
    if not image:
        raise ImageNotFoundError(image_id)
    ensure_tenant_access(principal, image.tenant_id)
    return image


@router.get("", response_model=ImageListResponse)
async def list_images(
    project_id: Optional[str] = None,
    upload_status: Optional[str] = Query(None, pattern=UPLOAD_STATUS_PATTERN),
    selected_only: bool = False,
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    """
    List images of the caller's tenant, optionally for one project.

    Ordered by the studio's custom sort order, then capture time.
    """
    if project_id:
        project = load_project(db, principal, project_id, deleted=None)
        query = db.query(Image).filter(Image.project_id == project.id)
    else:
        tenant_id = resolve_tenant(principal, tenant_id)
        query = db.query(Image).filter(Image.tenant_id == tenant_id)

    if upload_status:
        query = query.filter(Image.upload_status == upload_status)
    if selected_only:
        query = query.filter(Image.selected_by_client == True)  # noqa: E712

    images = query.order_by(Image.sort_order, Image.captured_at, Image.created_at).all()
    return ImageListResponse(images=images, count=len(images))


@router.get("/{image_id}", response_model=ImageResponse)
async def get_image(
    image_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    return _load_image(db, principal, image_id)


@router.post("", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
async def create_image(
    image_data: ImageCreate,
    principal: Principal = Depends(require_permission(Permission.CREATE_CONTENT)),
    db: Session = Depends(get_db)
):
    """Record an uploaded image against a live project."""
    project = load_project(db, principal, image_data.project_id)

    image = Image(
        tenant_id=project.tenant_id,
        uploaded_by=principal.user_id,
        **image_data.model_dump()
    )
    db.add(image)
    db.commit()
    db.refresh(image)

    logger.info(f"Image recorded: {image.id} project={project.id} by {principal.user_id}")
    return image


@router.patch("/{image_id}", response_model=ImageResponse)
async def update_image(
    image_id: str,
    image_data: ImageUpdate,
    principal: Principal = Depends(require_permission(Permission.EDIT_CONTENT)),
    db: Session = Depends(get_db)
):
    image = _load_image(db, principal, image_id)

    for field, value in image_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(image, field, value)

    db.commit()
    db.refresh(image)
    return image


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    image_id: str,
    principal: Principal = Depends(require_permission(Permission.DELETE_CONTENT)),
    db: Session = Depends(get_db)
):
    image = _load_image(db, principal, image_id)
    db.delete(image)
    db.commit()

    logger.info(f"Image deleted: {image_id} by {principal.user_id}")
    return None
