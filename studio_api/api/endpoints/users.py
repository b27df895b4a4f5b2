"""
User Management Endpoints

CRUD operations for users within a tenant.

RBAC:
- Every operation requires MANAGE_USERS (admin, superadmin). Users read
  their own profile through /auth/me.
- Lists are filtered by the caller's tenant. A superadmin may pass
  ?tenant_id= to work on another tenant.
- By-id access to a user of another tenant is 403, not 404.
- Only a global role (superadmin) may hand out a global-only role, and
  only to users of the system tenant. Users holding a global role are
  off limits to tenant admins.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from studio_api.database import get_db
from studio_api.models.tenant import Tenant
from studio_api.models.user import User
from studio_api.schemas.common import Message
from studio_api.schemas.user import (
    UserResponse,
    UserCreate,
    UserCreatedResponse,
    UserUpdate,
    UserListResponse,
    PasswordChange,
)
from studio_api.api.deps import require_permission, ensure_tenant_access, resolve_tenant
from studio_api.core.permissions import Permission, is_global_role
from studio_api.core.exceptions import UserNotFoundError, PermissionDenied, InvalidInputError
from studio_api.services import users as user_service
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

manage_users = require_permission(Permission.MANAGE_USERS)


def _deny(principal: Principal, reason: str, **details) -> PermissionDenied:
    log_security_event(
        "permission_denied",
        {
            "user_id": principal.user_id,
            "tenant_id": principal.tenant_id,
            "role": principal.role,
            "reason": reason,
            **details,
        },
        logger
    )
    return PermissionDenied()


def _load_user(db: Session, principal: Principal, user_id: str) -> User:
    """
    Load by id, then check the tenant.

    Holders of a global role are only visible to other global callers, so
    a tenant admin can never reset or edit a superadmin account.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFoundError(user_id)
    ensure_tenant_access(principal, user.tenant_id)
    if is_global_role(user.role_name) and not is_global_role(principal.role):
        raise _deny(principal, "global_role_target", target_user_id=user.id)
    return user


def _check_assignable(db: Session, principal: Principal, tenant_id: str, role_id: str) -> None:
    """
    Tenant admins cannot grant superadmin, and global roles stay inside
    the internal (system) tenant.
    """
    role = user_service.get_visible_role(db, tenant_id, role_id)
    if role is None or not is_global_role(role.name):
        return
    if not is_global_role(principal.role):
        raise _deny(principal, "global_role_assignment")

    tenant = db.get(Tenant, tenant_id)
    if tenant is not None and not tenant.is_internal:
        raise InvalidInputError("Global roles can only be held by system tenant users")


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    role_id: Optional[str] = None,
    is_active: Optional[bool] = Query(None),
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    """
    List users in the caller's tenant.

    Supports filtering by role and active status. Paginated.
    """
    tenant_id = resolve_tenant(principal, tenant_id)
    query = db.query(User).filter(User.tenant_id == tenant_id)

    if role_id:
        query = query.filter(User.role_id == role_id)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)

    total = query.count()

    offset = (page - 1) * page_size
    users = query.order_by(User.created_at.desc()).offset(offset).limit(page_size).all()

    logger.debug(f"Listed {len(users)} users for tenant {tenant_id}")

    return UserListResponse(
        users=users,
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    return _load_user(db, principal, user_id)


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    """
    Create a user in the caller's tenant.

    The tenant must exist and be active. Without a password the response
    carries a one-time temporary password and the user must choose a real
    one at first login.
    """
    tenant_id = resolve_tenant(principal, tenant_id)
    _check_assignable(db, principal, tenant_id, user_data.role_id)

    user, temporary_password = user_service.create_user(
        db,
        tenant_id=tenant_id,
        email=user_data.email,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role_id=user_data.role_id,
        password=user_data.password,
        created_by=principal.user_id,
    )

    return UserCreatedResponse(
        user=UserResponse.model_validate(user),
        temporary_password=temporary_password,
    )


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    """
    Update names, role or active flag.

    A role change shows up in the user's token after /refresh-token or the
    next login.
    """
    user = _load_user(db, principal, user_id)

    changes = user_data.model_dump(exclude_unset=True)
    if changes.get("role_id"):
        _check_assignable(db, principal, user.tenant_id, changes["role_id"])

    return user_service.update_user(db, user, changes, performed_by=principal.user_id)


@router.put("/{user_id}/password", response_model=Message)
async def change_user_password(
    user_id: str,
    payload: PasswordChange,
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    """Set a user's password. Every token the user holds stops working."""
    user = _load_user(db, principal, user_id)
    user_service.change_password(db, user, payload.password, performed_by=principal.user_id)
    return Message(message="Password updated")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    principal: Principal = Depends(manage_users),
    db: Session = Depends(get_db)
):
    """
    Delete a user.

    This is a hard delete. Deleting your own account is refused.
    """
    user = _load_user(db, principal, user_id)
    user_service.delete_user(db, user, performed_by=principal.user_id)
    return None
