"""
User Directory

User lifecycle inside a tenant: creation (only into an existing, active
tenant), updates, password changes and deletion.
"""
from typing import Optional, Tuple, Dict, Any

from sqlalchemy.orm import Session

from studio_api.core.exceptions import (
    ConflictError,
    InvalidInputError,
    TenantNotFoundError,
    RoleNotFoundError,
)
from studio_api.core.security import get_password_hash, generate_temporary_password
from studio_api.models.role import Role, GLOBAL_TENANT_ID
from studio_api.models.tenant import Tenant
from studio_api.models.user import User
from studio_api.utils.logging import (
    get_logger,
    log_audit_event,
    USER_CREATED,
    USER_UPDATED,
    USER_DELETED,
    ROLE_CHANGED,
    PASSWORD_CHANGED,
)

logger = get_logger(__name__)


def get_visible_role(db: Session, tenant_id: str, role_id: str) -> Optional[Role]:
    """A role the tenant may assign: global or its own."""
    return db.query(Role).filter(
        Role.id == role_id,
        Role.tenant_id.in_([GLOBAL_TENANT_ID, tenant_id])
    ).first()


def create_user(
    db: Session,
    tenant_id: str,
    email: str,
    first_name: str,
    last_name: str,
    role_id: str,
    password: Optional[str] = None,
    created_by: Optional[str] = None,
    commit: bool = True,
) -> Tuple[User, Optional[str]]:
    """
    Create a user and return it with its temporary password, if one was
    generated.

    Fails on a missing tenant (404), an inactive tenant (400), a role the
    tenant cannot see (404) or an email already in use anywhere (409).
    """
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise TenantNotFoundError(tenant_id)
    if not tenant.is_active:
        logger.warning(f"User creation refused for inactive tenant {tenant_id}")
        raise InvalidInputError("Tenant is inactive")

    role = get_visible_role(db, tenant_id, role_id)
    if not role:
        raise RoleNotFoundError(role_id)

    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    temporary_password = None
    if password is None:
        temporary_password = generate_temporary_password()

    user = User(
        tenant_id=tenant_id,
        email=email,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role_id=role.id,
        password_hash=get_password_hash(password or temporary_password),
        is_password_set=password is not None,
        is_active=True,
        token_version=0,
    )
    user.role = role
    db.add(user)

    if commit:
        db.commit()
        db.refresh(user)
    else:
        db.flush()

    log_audit_event(USER_CREATED, "user", user.id, logger, tenant_id=tenant_id, performed_by=created_by)
    return user, temporary_password


def update_user(db: Session, user: User, changes: Dict[str, Any], performed_by: Optional[str] = None) -> User:
    """
    Apply profile, role and status changes.

    Existing tokens keep the role they were issued with.
    """
    if "role_id" in changes and changes["role_id"] is not None and changes["role_id"] != user.role_id:
        role = get_visible_role(db, user.tenant_id, changes["role_id"])
        if not role:
            raise RoleNotFoundError(changes["role_id"])
        log_audit_event(
            ROLE_CHANGED, "user", user.id, logger,
            tenant_id=user.tenant_id,
            performed_by=performed_by,
            changes={"from": user.role_id, "to": role.id},
        )
        user.role = role

    for field in ("first_name", "last_name", "is_active"):
        if changes.get(field) is not None:
            setattr(user, field, changes[field])

    db.commit()
    db.refresh(user)

    log_audit_event(USER_UPDATED, "user", user.id, logger, tenant_id=user.tenant_id, performed_by=performed_by)
    return user


def change_password(
    db: Session,
    user: User,
    new_password: str,
    performed_by: Optional[str] = None,
    commit: bool = True,
) -> User:
    """Set a new password and invalidate every token issued before."""
    user.password_hash = get_password_hash(new_password)
    user.is_password_set = True
    user.bump_token_version()

    if commit:
        db.commit()

    log_audit_event(
        PASSWORD_CHANGED, "user", user.id, logger,
        tenant_id=user.tenant_id,
        performed_by=performed_by or user.id,
    )
    return user


def delete_user(db: Session, user: User, performed_by: str) -> None:
    if user.id == performed_by:
        raise InvalidInputError("Cannot delete your own account")

    user_id, tenant_id = user.id, user.tenant_id
    db.delete(user)
    db.commit()

    log_audit_event(USER_DELETED, "user", user_id, logger, tenant_id=tenant_id, performed_by=performed_by)
