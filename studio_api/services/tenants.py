"""
Tenant Directory

Signup, updates and the active/inactive lifecycle. Tenants are never
deleted here; deactivation locks out every user of the tenant because
login and token verification check the tenant's flag.
"""
from datetime import datetime
from typing import Optional, Tuple, List, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from studio_api.core.exceptions import ConflictError, InvalidInputError, TenantNotFoundError
from studio_api.core.permissions import RoleKind
from studio_api.models.tenant import Tenant
from studio_api.models.user import User
from studio_api.services import users as user_service
from studio_api.services.roles import get_role_by_kind
from studio_api.utils.logging import (
    get_logger,
    log_audit_event,
    TENANT_CREATED,
    TENANT_UPDATED,
    TENANT_STATUS_CHANGED,
)

logger = get_logger(__name__)


def get_tenant(db: Session, tenant_id: str) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise TenantNotFoundError(tenant_id)
    return tenant


def list_tenants(db: Session, include_inactive: bool = True) -> List[Tenant]:
    query = db.query(Tenant)
    if not include_inactive:
        query = query.filter(Tenant.is_active == True)  # noqa: E712
    return query.order_by(Tenant.created_at.desc()).all()


def create_tenant(
    db: Session,
    company_name: str,
    username: str,
    email: str,
    first_name: str,
    last_name: str,
    password: Optional[str] = None,
    created_by: Optional[str] = None,
    admin_role_kind: RoleKind = RoleKind.ADMIN,
    is_internal: bool = False,
    **extra: Any,
) -> Tuple[Tenant, User, Optional[str]]:
    """
    Create a tenant and its first admin in one transaction.

    Returns (tenant, admin user, temporary password or None). If the admin
    cannot be created nothing is persisted.
    """
    username = username.strip().lower()
    email = email.strip().lower()

    existing = db.query(Tenant).filter(
        or_(Tenant.username == username, Tenant.email == email)
    ).first()
    if existing:
        raise ConflictError("Tenant with this username or email already exists")

    admin_role = get_role_by_kind(db, admin_role_kind)

    tenant = Tenant(
        name=company_name.strip(),
        username=username,
        email=email,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        is_active=True,
        is_internal=is_internal,
        subscription_plan=extra.get("subscription_plan") or "trial",
        subscription_start=extra.get("subscription_start") or datetime.utcnow(),
        subscription_end=extra.get("subscription_end"),
        country_code=extra.get("country_code"),
        phone_number=extra.get("phone_number"),
        created_by=created_by,
        updated_by=created_by,
    )
    db.add(tenant)

    try:
        db.flush()
        admin, temporary_password = user_service.create_user(
            db,
            tenant_id=tenant.id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role_id=admin_role.id,
            password=password,
            created_by=created_by,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(tenant)
    log_audit_event(TENANT_CREATED, "tenant", tenant.id, logger, tenant_id=tenant.id, performed_by=created_by)
    return tenant, admin, temporary_password


def update_tenant(db: Session, tenant: Tenant, changes: Dict[str, Any], performed_by: Optional[str] = None) -> Tenant:
    field_map = {"company_name": "name"}
    for field, value in changes.items():
        if value is None:
            continue
        setattr(tenant, field_map.get(field, field), value)
    tenant.updated_by = performed_by

    db.commit()
    db.refresh(tenant)

    log_audit_event(
        TENANT_UPDATED, "tenant", tenant.id, logger,
        tenant_id=tenant.id,
        performed_by=performed_by,
        changes={k: v for k, v in changes.items() if v is not None},
    )
    return tenant


def set_tenant_active(db: Session, tenant: Tenant, active: bool, performed_by: Optional[str] = None) -> Tenant:
    """
    Activate or deactivate a tenant.

    User rows are not touched; their sessions stop verifying because the
    tenant flag is checked on every request.
    """
    if tenant.is_active == active:
        return tenant
    if tenant.is_internal and not active:
        raise InvalidInputError("The system tenant cannot be deactivated")

    tenant.is_active = active
    tenant.updated_by = performed_by
    db.commit()
    db.refresh(tenant)

    log_audit_event(
        TENANT_STATUS_CHANGED, "tenant", tenant.id, logger,
        tenant_id=tenant.id,
        performed_by=performed_by,
        changes={"is_active": active},
    )
    return tenant
