"""
Role Management Endpoints

RBAC: MANAGE_ROLES. Global roles can only be created or changed by a
global-role caller (superadmin); tenant roles only by their own tenant.
Every mutation clears the role registry cache.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studio_api.database import get_db
from studio_api.models.role import Role, GLOBAL_TENANT_ID
from studio_api.schemas.role import RoleCreate, RoleUpdate, RoleResponse, RoleListResponse
from studio_api.api.deps import require_permission, ensure_tenant_access, get_role_registry
from studio_api.core.permissions import Permission, is_global_role
from studio_api.core.roles import RoleRegistry
from studio_api.core.exceptions import PermissionDenied
from studio_api.services import roles as role_service
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/roles", tags=["roles"])

manage_roles = require_permission(Permission.MANAGE_ROLES)


def _check_scope(principal: Principal, role_tenant_id: str) -> None:
    if role_tenant_id == GLOBAL_TENANT_ID:
        if not is_global_role(principal.role):
            log_security_event(
                "permission_denied",
                {
                    "user_id": principal.user_id,
                    "tenant_id": principal.tenant_id,
                    "role": principal.role,
                    "reason": "global_role_change",
                },
                logger
            )
            raise PermissionDenied()
        return
    ensure_tenant_access(principal, role_tenant_id)


def _load_role(db: Session, principal: Principal, role_id: str) -> Role:
    role = role_service.get_role(db, role_id)
    _check_scope(principal, role.tenant_id)
    return role


@router.get("", response_model=RoleListResponse)
async def list_roles(
    principal: Principal = Depends(manage_roles),
    db: Session = Depends(get_db)
):
    """Global roles plus the caller's own tenant roles."""
    return RoleListResponse(roles=role_service.list_roles(db, principal.tenant_id))


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role_data: RoleCreate,
    principal: Principal = Depends(manage_roles),
    registry: RoleRegistry = Depends(get_role_registry),
    db: Session = Depends(get_db)
):
    tenant_id = GLOBAL_TENANT_ID if role_data.is_global else principal.tenant_id
    _check_scope(principal, tenant_id)

    return role_service.create_role(
        db,
        registry,
        tenant_id=tenant_id,
        name=role_data.name,
        description=role_data.description,
        performed_by=principal.user_id,
    )


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    principal: Principal = Depends(manage_roles),
    registry: RoleRegistry = Depends(get_role_registry),
    db: Session = Depends(get_db)
):
    """Rename a role or change its description. Built-in roles keep their names."""
    role = _load_role(db, principal, role_id)
    return role_service.update_role(
        db,
        registry,
        role,
        name=role_data.name,
        description=role_data.description,
        performed_by=principal.user_id,
    )


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    principal: Principal = Depends(manage_roles),
    registry: RoleRegistry = Depends(get_role_registry),
    db: Session = Depends(get_db)
):
    """Refused with 409 while any user still holds the role."""
    role = _load_role(db, principal, role_id)
    role_service.delete_role(db, registry, role, performed_by=principal.user_id)
    return None
