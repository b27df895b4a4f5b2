"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.

The token issuer, role registry and Google client live on app.state and
are handed out through dependencies, so tests can swap any of them.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from studio_api.database import get_db
from studio_api.core.permissions import Permission, check_permission, check_tenant_access
from studio_api.core.roles import RoleRegistry
from studio_api.core.security import TokenIssuer
from studio_api.core.exceptions import PermissionDenied, TenantIsolationError
from studio_api.services.auth import Principal, verify_session
from studio_api.services.google_oauth import GoogleOAuthClient
from studio_api.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

# auto_error=False: a missing header must produce the same 401 as a bad token
security = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_role_registry(request: Request) -> RoleRegistry:
    return request.app.state.role_registry


def get_google_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.google_client


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
) -> Principal:
    """
    Authenticated caller.

    Verifies signature, expiry, token version, and that both the user and
    the tenant are still active. Any failure is a plain 401.
    """
    token = credentials.credentials if credentials else None
    return verify_session(db, issuer, token)


def require_permission(permission: Permission):
    """
    Dependency factory: the caller's role must hold `permission`.

    Usage:
        @router.post("", dependencies=[Depends(require_permission(Permission.CREATE_CONTENT))])
    or take the returned Principal as a parameter.
    """
    async def dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        registry: RoleRegistry = Depends(get_role_registry)
    ) -> Principal:
        known_roles = registry.load_roles(principal.tenant_id)

        if not check_permission(principal.role, permission, known_roles):
            log_security_event(
                "permission_denied",
                {
                    "user_id": principal.user_id,
                    "tenant_id": principal.tenant_id,
                    "role": principal.role,
                    "permission": permission.value,
                    "path": request.url.path,
                },
                logger
            )
            raise PermissionDenied()

        return principal

    return dependency


def ensure_tenant_access(principal: Principal, resource_tenant_id: str) -> None:
    """
    Raise TenantIsolationError unless the caller may touch the tenant.

    Call after loading a record by id: a record of another tenant is a
    403, not a 404, except for global roles.
    """
    if check_tenant_access(principal.role, principal.tenant_id, resource_tenant_id):
        return

    log_security_event(
        "tenant_isolation_violation",
        {
            "user_id": principal.user_id,
            "tenant_id": principal.tenant_id,
            "resource_tenant_id": resource_tenant_id,
            "role": principal.role,
        },
        logger
    )
    raise TenantIsolationError()


def resolve_tenant(principal: Principal, tenant_id: Optional[str] = None) -> str:
    """
    Tenant a request works on: the caller's own, or the one asked for in
    ?tenant_id= if the caller may access it.
    """
    if tenant_id is None or tenant_id == principal.tenant_id:
        return principal.tenant_id
    ensure_tenant_access(principal, tenant_id)
    return tenant_id
