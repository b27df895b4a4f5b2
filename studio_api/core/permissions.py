"""
Permission System (RBAC)

Static permission table: each Permission maps to the set of built-in role
kinds allowed to use it. An empty set means "any authenticated role that
the role registry knows about", not "nobody".

Tenant-scoped permissions need two checks: the role check below and
check_tenant_access(). Global role kinds (superadmin) skip the second one.

Everything in this module is a pure decision over its arguments; loading
roles and raising HTTP errors happens in api/deps.py.
"""
import enum
from typing import Mapping, Optional, FrozenSet


class Permission(str, enum.Enum):
    # System-wide
    MANAGE_SYSTEM = "MANAGE_SYSTEM"
    MANAGE_TENANTS = "MANAGE_TENANTS"

    # Tenant administration
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_ROLES = "MANAGE_ROLES"

    # Tenant directory
    CREATE_TENANT = "CREATE_TENANT"
    VIEW_TENANTS = "VIEW_TENANTS"
    UPDATE_TENANT = "UPDATE_TENANT"
    DELETE_TENANT = "DELETE_TENANT"
    DEACTIVATE_TENANT = "DEACTIVATE_TENANT"

    # Studio content (events, projects, images, finances)
    CREATE_CONTENT = "CREATE_CONTENT"
    EDIT_CONTENT = "EDIT_CONTENT"
    VIEW_CONTENT = "VIEW_CONTENT"
    DELETE_CONTENT = "DELETE_CONTENT"

    # Any authenticated user
    ACCESS_API = "ACCESS_API"


class RoleKind(str, enum.Enum):
    """Built-in role names. Tenants may add their own roles on top."""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    PHOTOGRAPHER = "photographer"
    EDITOR = "editor"
    VIEWER = "viewer"

    @classmethod
    def from_name(cls, role_name: Optional[str]) -> Optional["RoleKind"]:
        if not role_name:
            return None
        try:
            return cls(role_name.strip().lower())
        except ValueError:
            return None


# Role kinds whose holders may act on any tenant's data
GLOBAL_ROLE_KINDS: FrozenSet[RoleKind] = frozenset({RoleKind.SUPERADMIN})

_STAFF = frozenset({RoleKind.SUPERADMIN, RoleKind.ADMIN})
_CONTRIBUTORS = _STAFF | {RoleKind.PHOTOGRAPHER, RoleKind.EDITOR}

PERMISSION_TABLE: Mapping[Permission, FrozenSet[RoleKind]] = {
    Permission.MANAGE_SYSTEM: frozenset({RoleKind.SUPERADMIN}),
    Permission.MANAGE_TENANTS: frozenset({RoleKind.SUPERADMIN}),

    Permission.MANAGE_USERS: _STAFF,
    Permission.MANAGE_ROLES: _STAFF,

    Permission.CREATE_TENANT: frozenset({RoleKind.SUPERADMIN}),
    Permission.VIEW_TENANTS: frozenset({RoleKind.SUPERADMIN}),
    Permission.UPDATE_TENANT: frozenset({RoleKind.SUPERADMIN}),
    Permission.DELETE_TENANT: frozenset({RoleKind.SUPERADMIN}),
    Permission.DEACTIVATE_TENANT: frozenset({RoleKind.SUPERADMIN}),

    Permission.CREATE_CONTENT: _CONTRIBUTORS,
    Permission.EDIT_CONTENT: _CONTRIBUTORS,
    Permission.VIEW_CONTENT: _CONTRIBUTORS | {RoleKind.VIEWER},
    Permission.DELETE_CONTENT: _STAFF,

    Permission.ACCESS_API: frozenset(),
}

def ensure_table_complete(table: Mapping[Permission, FrozenSet[RoleKind]]) -> None:
    """Every Permission must have an entry, even an empty one."""
    unmapped = set(Permission) - set(table)
    if unmapped:
        raise RuntimeError(
            f"Permissions missing from PERMISSION_TABLE: {sorted(p.value for p in unmapped)}"
        )


ensure_table_complete(PERMISSION_TABLE)


def allowed_role_kinds(permission) -> Optional[FrozenSet[RoleKind]]:
    """Allowed role kinds for a permission, or None if it is not mapped."""
    try:
        return PERMISSION_TABLE.get(Permission(permission))
    except ValueError:
        return None


def check_permission(role_name: str, permission, known_roles: Mapping[str, object]) -> bool:
    """
    Decide whether a role may use a permission.

    known_roles is the role registry view for the caller (lowercase name ->
    record); it only matters for permissions with an empty allowed set.
    Unmapped permission keys are denied.
    """
    allowed = allowed_role_kinds(permission)
    if allowed is None:
        return False

    if not role_name:
        return False

    if not allowed:
        return role_name.strip().lower() in known_roles

    kind = RoleKind.from_name(role_name)
    return kind is not None and kind in allowed


def is_global_role(role_name: str) -> bool:
    return RoleKind.from_name(role_name) in GLOBAL_ROLE_KINDS


def check_tenant_access(role_name: str, caller_tenant_id: str, resource_tenant_id: str) -> bool:
    """Same tenant, or a global role kind."""
    if caller_tenant_id and caller_tenant_id == resource_tenant_id:
        return True
    return is_global_role(role_name)


def authorize(
    role_name: str,
    permission,
    known_roles: Mapping[str, object],
    caller_tenant_id: str,
    resource_tenant_id: str,
) -> bool:
    """Both checks for a tenant-scoped permission."""
    return (
        check_permission(role_name, permission, known_roles)
        and check_tenant_access(role_name, caller_tenant_id, resource_tenant_id)
    )
