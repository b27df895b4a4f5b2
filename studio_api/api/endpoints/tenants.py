"""
Tenant Administration Endpoints

Superadmin management of studios. Tenant users can read their own tenant
through /tenants/current.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from studio_api.database import get_db
from studio_api.schemas.tenant import (
    TenantCreate,
    TenantUpdate,
    TenantStatusUpdate,
    TenantResponse,
    TenantCreatedResponse,
    TenantListResponse,
)
from studio_api.api.deps import require_permission
from studio_api.core.permissions import Permission
from studio_api.services import tenants as tenant_service
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=TenantListResponse)
async def list_tenants(
    include_inactive: bool = Query(True),
    principal: Principal = Depends(require_permission(Permission.VIEW_TENANTS)),
    db: Session = Depends(get_db)
):
    tenants = tenant_service.list_tenants(db, include_inactive=include_inactive)
    return TenantListResponse(tenants=tenants, total=len(tenants))


@router.get("/current", response_model=TenantResponse)
async def get_current_tenant(
    principal: Principal = Depends(require_permission(Permission.ACCESS_API)),
    db: Session = Depends(get_db)
):
    return tenant_service.get_tenant(db, principal.tenant_id)


@router.post("", response_model=TenantCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    payload: TenantCreate,
    principal: Principal = Depends(require_permission(Permission.CREATE_TENANT)),
    db: Session = Depends(get_db)
):
    """Create a studio and its admin on the studio's behalf."""
    tenant, admin, temporary_password = tenant_service.create_tenant(
        db, created_by=principal.user_id, **payload.model_dump()
    )
    return TenantCreatedResponse(
        tenant=TenantResponse.model_validate(tenant),
        admin_user_id=admin.id,
        admin_email=admin.email,
        temporary_password=temporary_password,
    )


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_TENANTS)),
    db: Session = Depends(get_db)
):
    return tenant_service.get_tenant(db, tenant_id)


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: str,
    payload: TenantUpdate,
    principal: Principal = Depends(require_permission(Permission.UPDATE_TENANT)),
    db: Session = Depends(get_db)
):
    tenant = tenant_service.get_tenant(db, tenant_id)
    return tenant_service.update_tenant(
        db, tenant, payload.model_dump(exclude_unset=True), performed_by=principal.user_id
    )


@router.patch("/{tenant_id}/status", response_model=TenantResponse)
async def set_tenant_status(
    tenant_id: str,
    payload: TenantStatusUpdate,
    principal: Principal = Depends(require_permission(Permission.DEACTIVATE_TENANT)),
    db: Session = Depends(get_db)
):
    """
    Activate or deactivate a studio.

    Deactivation locks out every user of the tenant at their next request;
    user records are left as they are.
    """
    tenant = tenant_service.get_tenant(db, tenant_id)
    return tenant_service.set_tenant_active(db, tenant, payload.is_active, performed_by=principal.user_id)
