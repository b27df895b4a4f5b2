"""
Role management

Create, rename and delete roles. Every mutation clears the role registry
cache so permission checks see the change on the next lookup.

Name rules:
- unique per scope (global, or one tenant), case-insensitive;
- a tenant role may not take the name of a global role or of a built-in
  role kind, otherwise a tenant could mint itself "superadmin".
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from studio_api.core.exceptions import ConflictError, InvalidInputError, RoleNotFoundError
from studio_api.core.permissions import RoleKind
from studio_api.core.roles import RoleRegistry
from studio_api.models.role import Role, GLOBAL_TENANT_ID
from studio_api.models.user import User
from studio_api.utils.logging import (
    get_logger,
    log_audit_event,
    ROLE_CREATED,
    ROLE_UPDATED,
    ROLE_DELETED,
)

logger = get_logger(__name__)

DEFAULT_ROLES = {
    RoleKind.SUPERADMIN: "System superadmin with access to every tenant",
    RoleKind.ADMIN: "Studio owner or manager",
    RoleKind.PHOTOGRAPHER: "Shoots events and uploads images",
    RoleKind.EDITOR: "Edits and delivers images",
    RoleKind.VIEWER: "Read-only access",
}


def _name_taken(db: Session, tenant_id: str, name_key: str, exclude_id: Optional[str] = None) -> bool:
    scopes = [GLOBAL_TENANT_ID] if tenant_id == GLOBAL_TENANT_ID else [GLOBAL_TENANT_ID, tenant_id]
    query = db.query(Role).filter(Role.name_key == name_key, Role.tenant_id.in_(scopes))
    if exclude_id:
        query = query.filter(Role.id != exclude_id)
    return query.first() is not None


def _check_name(db: Session, tenant_id: str, name: str, exclude_id: Optional[str] = None) -> str:
    name = name.strip()
    if not name:
        raise InvalidInputError("Role name is required")
    name_key = name.lower()

    if tenant_id != GLOBAL_TENANT_ID and RoleKind.from_name(name_key) is not None:
        raise ConflictError(f"'{name}' is a reserved role name")

    if _name_taken(db, tenant_id, name_key, exclude_id):
        raise ConflictError("Role with this name already exists")

    if tenant_id == GLOBAL_TENANT_ID:
        # A new global name must not collide with any tenant's private role
        clash = db.query(Role).filter(Role.name_key == name_key, Role.tenant_id != GLOBAL_TENANT_ID)
        if exclude_id:
            clash = clash.filter(Role.id != exclude_id)
        if clash.first():
            raise ConflictError("A tenant role already uses this name")
    return name


def list_roles(db: Session, tenant_id: str) -> List[Role]:
    """Roles visible to a tenant: global plus its own."""
    return db.query(Role).filter(
        Role.tenant_id.in_([GLOBAL_TENANT_ID, tenant_id])
    ).order_by(Role.created_at.desc()).all()


def get_role(db: Session, role_id: str) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise RoleNotFoundError(role_id)
    return role


def create_role(
    db: Session,
    registry: RoleRegistry,
    tenant_id: str,
    name: str,
    description: Optional[str] = None,
    performed_by: Optional[str] = None,
) -> Role:
    name = _check_name(db, tenant_id, name)

    role = Role(tenant_id=tenant_id, description=description)
    role.rename(name)
    db.add(role)
    db.commit()
    db.refresh(role)
    registry.clear_cache()

    log_audit_event(ROLE_CREATED, "role", role.id, logger, tenant_id=tenant_id, performed_by=performed_by)
    return role


def update_role(
    db: Session,
    registry: RoleRegistry,
    role: Role,
    name: Optional[str] = None,
    description: Optional[str] = None,
    performed_by: Optional[str] = None,
) -> Role:
    if role.is_global and RoleKind.from_name(role.name) is not None and name is not None \
            and name.strip().lower() != role.name_key:
        raise InvalidInputError("Built-in roles cannot be renamed")

    if name is not None:
        role.rename(_check_name(db, role.tenant_id, name, exclude_id=role.id))
    if description is not None:
        role.description = description

    db.commit()
    db.refresh(role)
    registry.clear_cache()

    log_audit_event(ROLE_UPDATED, "role", role.id, logger, tenant_id=role.tenant_id, performed_by=performed_by)
    return role


def delete_role(db: Session, registry: RoleRegistry, role: Role, performed_by: Optional[str] = None) -> None:
    if role.is_global and RoleKind.from_name(role.name) is not None:
        raise InvalidInputError("Built-in roles cannot be deleted")

    if db.query(User).filter(User.role_id == role.id).first():
        raise ConflictError("Role is still assigned to users")

    role_id, tenant_id = role.id, role.tenant_id
    db.delete(role)
    db.commit()
    registry.clear_cache()

    log_audit_event(ROLE_DELETED, "role", role_id, logger, tenant_id=tenant_id, performed_by=performed_by)


def seed_default_roles(db: Session) -> int:
    """Create the built-in global roles that are missing. Returns the count created."""
    existing = {
        key for (key,) in db.query(Role.name_key).filter(Role.tenant_id == GLOBAL_TENANT_ID).all()
    }
    created = 0
    for kind, description in DEFAULT_ROLES.items():
        if kind.value in existing:
            continue
        role = Role(tenant_id=GLOBAL_TENANT_ID, description=description)
        role.rename(kind.value)
        db.add(role)
        created += 1
    if created:
        db.commit()
        logger.info(f"Seeded {created} default roles")
    return created


def get_role_by_kind(db: Session, kind: RoleKind) -> Role:
    role = db.query(Role).filter(
        Role.tenant_id == GLOBAL_TENANT_ID,
        Role.name_key == kind.value
    ).first()
    if not role:
        raise RoleNotFoundError(kind.value)
    return role
