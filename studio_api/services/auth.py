"""
Authentication Service

Login, password setup, session verification, refresh, logout and password
reset.

Every authentication failure raises the same AuthenticationError; the
actual reason only goes to the security log. This keeps bad passwords,
unknown emails, stale tokens and deactivated tenants indistinguishable to
clients.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from studio_api.config import get_settings
from studio_api.core.exceptions import AuthenticationError, InvalidInputError
from studio_api.core.security import (
    TokenIssuer,
    SETUP_TOKEN,
    verify_password,
    generate_reset_token,
    hash_reset_token,
)
from studio_api.models.tenant import Tenant
from studio_api.models.user import User
from studio_api.services import users as user_service
from studio_api.services.google_oauth import GoogleOAuthClient, GoogleOAuthError
from studio_api.utils.logging import (
    get_logger,
    log_security_event,
    log_audit_event,
    PASSWORD_RESET,
)

logger = get_logger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller.

    role and tenant_id come from the token, not from the live user row:
    a role change applies after re-login or /refresh-token.
    """
    user_id: str
    tenant_id: str
    role: str
    role_id: Optional[str]
    user: User


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: Optional[str] = None
    setup_token: Optional[str] = None

    @property
    def requires_password_setup(self) -> bool:
        return self.setup_token is not None


def _reject(reason: str, **details) -> AuthenticationError:
    log_security_event("failed_login", {"reason": reason, **details}, logger)
    return AuthenticationError()


def _load_tenant(db: Session, tenant_id: str) -> Optional[Tenant]:
    return db.query(Tenant).filter(Tenant.id == tenant_id).first()


def authenticate(db: Session, issuer: TokenIssuer, email: str, password: str) -> LoginResult:
    """
    Check credentials and return a session token or a setup token.

    Users created with a temporary password get a setup token instead of
    a session until they choose a password.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user:
        # Spend a hash verification anyway
        verify_password(password, None)
        raise _reject("user_not_found", email=email)

    if not verify_password(password, user.password_hash):
        raise _reject("invalid_password", user_id=user.id, tenant_id=user.tenant_id)

    if not user.is_active:
        raise _reject("user_inactive", user_id=user.id, tenant_id=user.tenant_id)

    tenant = _load_tenant(db, user.tenant_id)
    if not tenant or not tenant.is_active:
        raise _reject("tenant_inactive", user_id=user.id, tenant_id=user.tenant_id)

    if not user.is_password_set:
        logger.info(f"Password setup required: user={user.id}")
        return LoginResult(user=user, setup_token=issuer.issue_setup_token(user))

    user.last_login_at = datetime.utcnow()
    db.commit()

    logger.info(f"Successful login: user={user.id}, tenant={user.tenant_id}")
    return LoginResult(user=user, token=issuer.issue(user, user.role_name))


def verify_session(db: Session, issuer: TokenIssuer, token: Optional[str]) -> Principal:
    """
    Full verification of an access token.

    Signature and absolute expiry, then the stored user (looked up by id
    AND tenant), the user's active flag, the tenant's active flag and the
    token version. Read-only.
    """
    claims = issuer.decode(token)
    if claims is None:
        log_security_event("invalid_token", {"reason": "malformed_or_expired"}, logger)
        raise AuthenticationError()

    user = db.query(User).filter(
        User.id == claims.user_id,
        User.tenant_id == claims.tenant_id
    ).first()

    reason = None
    if not user:
        reason = "user_not_found"
    elif not user.is_active:
        reason = "user_inactive"
    elif claims.ver != (user.token_version or 0):
        reason = "token_version_mismatch"
    else:
        tenant = _load_tenant(db, user.tenant_id)
        if not tenant or not tenant.is_active:
            reason = "tenant_inactive"

    if reason:
        log_security_event(
            "invalid_token",
            {"reason": reason, "user_id": claims.user_id, "tenant_id": claims.tenant_id},
            logger
        )
        raise AuthenticationError()

    return Principal(
        user_id=user.id,
        tenant_id=claims.tenant_id,
        role=claims.role,
        role_id=claims.role_id,
        user=user,
    )


def login_with_google(db: Session, issuer: TokenIssuer, client: GoogleOAuthClient, code: str, redirect_uri: str) -> Tuple[User, Tenant, str]:
    """
    Log in the existing user whose email Google vouches for.

    Unknown emails and provider failures are plain authentication errors.
    """
    try:
        email = client.fetch_verified_email(code, redirect_uri)
    except GoogleOAuthError as e:
        raise _reject("google_oauth_failed", error=str(e))

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise _reject("user_not_found", email=email, provider="google")
    if not user.is_active:
        raise _reject("user_inactive", user_id=user.id, tenant_id=user.tenant_id)

    tenant = _load_tenant(db, user.tenant_id)
    if not tenant or not tenant.is_active:
        raise _reject("tenant_inactive", user_id=user.id, tenant_id=user.tenant_id)

    user.last_login_at = datetime.utcnow()
    db.commit()

    logger.info(f"Successful Google login: user={user.id}, tenant={tenant.id}")
    return user, tenant, issuer.issue(user, user.role_name)


def setup_password(db: Session, issuer: TokenIssuer, setup_token: str, password: str) -> Tuple[User, str]:
    """
    Set the first real password using a setup token.

    The setup token embeds the token version; setting the password bumps
    it, so the same setup token cannot be used twice.
    """
    claims = issuer.decode(setup_token, expected_type=SETUP_TOKEN)
    if claims is None:
        log_security_event("invalid_token", {"reason": "setup_token_invalid"}, logger)
        raise AuthenticationError()

    user = db.query(User).filter(User.id == claims.user_id).first()
    if (
        not user
        or not user.is_active
        or user.is_password_set
        or claims.ver != (user.token_version or 0)
    ):
        log_security_event("invalid_token", {"reason": "setup_token_rejected", "user_id": claims.user_id}, logger)
        raise AuthenticationError()

    tenant = _load_tenant(db, user.tenant_id)
    if not tenant or not tenant.is_active:
        raise _reject("tenant_inactive", user_id=user.id, tenant_id=user.tenant_id)

    user_service.change_password(db, user, password, commit=False)
    user.last_login_at = datetime.utcnow()
    db.commit()

    logger.info(f"Password set up: user={user.id}")
    return user, issuer.issue(user, user.role_name)


def refresh(db: Session, issuer: TokenIssuer, principal: Principal) -> str:
    """Re-issue a session token with the user's current role."""
    user = principal.user
    db.refresh(user)
    return issuer.issue(user, user.role_name)


def logout(db: Session, principal: Principal) -> None:
    """Invalidate every outstanding token of the user."""
    principal.user.bump_token_version()
    db.commit()
    logger.info(f"Logout: user={principal.user_id}")


def request_password_reset(db: Session, email: str) -> Optional[str]:
    """
    Store a reset token digest for an active user.

    Returns the clear token (for the mail sender) or None when there is no
    such user. Callers must answer the client the same way in both cases.
    """
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active:
        log_security_event("password_reset_unknown", {"email": email}, logger)
        return None

    token = generate_reset_token()
    user.reset_password_token = hash_reset_token(token)
    user.reset_password_expires = datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    # Mail delivery is handled outside this service
    logger.info(f"Password reset requested: user={user.id}")
    return token


def reset_password(db: Session, token: str, password: str) -> User:
    digest = hash_reset_token(token)
    user = db.query(User).filter(User.reset_password_token == digest).first()

    if (
        not user
        or user.reset_password_expires is None
        or user.reset_password_expires < datetime.utcnow()
        or not user.is_active
    ):
        log_security_event("password_reset_rejected", {"reason": "invalid_or_expired"}, logger)
        raise InvalidInputError("Invalid or expired reset token")

    user_service.change_password(db, user, password, commit=False)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.commit()

    log_audit_event(PASSWORD_RESET, "user", user.id, logger, tenant_id=user.tenant_id, performed_by=user.id)
    return user
