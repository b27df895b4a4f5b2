"""
Authentication Endpoints

Login, first-password setup, session verification and refresh, logout,
password reset, Google sign-in and public studio signup.

Every authentication failure answers 401 "Unauthorized"; the reason is only
in the security log.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studio_api.database import get_db
from studio_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SetupPasswordRequest,
    SessionResponse,
    VerifyTokenResponse,
    TokenResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    GoogleCallbackRequest,
    GoogleLoginResponse,
)
from studio_api.schemas.common import Message
from studio_api.schemas.tenant import TenantCreate, TenantCreatedResponse, TenantResponse, TenantSummary
from studio_api.schemas.user import UserResponse
from studio_api.api.deps import get_current_principal, get_token_issuer, get_google_client
from studio_api.core.security import TokenIssuer
from studio_api.services import auth as auth_service
from studio_api.services import tenants as tenant_service
from studio_api.services.auth import Principal
from studio_api.services.google_oauth import GoogleOAuthClient
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["authentication"])

RESET_REQUESTED_MESSAGE = "If the email exists, a password reset link has been sent"


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """
    Authenticate with email and password.

    Users still on a temporary password get a setup challenge instead of a
    session token.
    """
    result = auth_service.authenticate(db, issuer, credentials.email, credentials.password)

    if result.requires_password_setup:
        return LoginResponse(
            require_password_setup=True,
            setup_token=result.setup_token,
            email=result.user.email,
        )

    return LoginResponse(token=result.token, user=UserResponse.model_validate(result.user))


@router.post("/setup-password", response_model=SessionResponse)
async def setup_password(
    payload: SetupPasswordRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """Choose the first password. The setup token works once."""
    user, token = auth_service.setup_password(db, issuer, payload.token, payload.password)
    return SessionResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/verify-token", response_model=VerifyTokenResponse)
async def verify_token(principal: Principal = Depends(get_current_principal)):
    return VerifyTokenResponse(valid=True, user=UserResponse.model_validate(principal.user))


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """
    Re-issue the session token with the user's current role.

    The presented token stays valid until it expires.
    """
    return TokenResponse(token=auth_service.refresh(db, issuer, principal))


@router.post("/logout", response_model=Message)
async def logout(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Sign out every session of the current user."""
    auth_service.logout(db, principal)
    return Message(message="Logged out")


@router.get("/auth/me", response_model=UserResponse)
async def me(principal: Principal = Depends(get_current_principal)):
    return principal.user


@router.post("/forgot-password", response_model=Message)
async def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Start a password reset.

    The answer is identical whether or not the email belongs to a user.
    """
    auth_service.request_password_reset(db, payload.email)
    return Message(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=Message)
async def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, payload.token, payload.password)
    return Message(message="Password has been reset")


@router.post("/auth/google/callback", response_model=GoogleLoginResponse)
def google_callback(
    payload: GoogleCallbackRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
    client: GoogleOAuthClient = Depends(get_google_client)
):
    """
    Complete Google sign-in for an existing user.

    Sync handler: the provider calls block and must stay off the event
    loop.

    No account is created here: the Google email must already belong to an
    active user of an active tenant.
    """
    user, tenant, token = auth_service.login_with_google(
        db, issuer, client, payload.code, payload.redirect_uri
    )
    return GoogleLoginResponse(
        token=token,
        user=UserResponse.model_validate(user),
        tenant=TenantSummary.model_validate(tenant),
    )


@router.post("/signup", response_model=TenantCreatedResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: TenantCreate, db: Session = Depends(get_db)):
    """
    Public studio signup.

    Creates the tenant and its admin. Without a password the admin gets a
    temporary one (returned once) and must set a real one on first login.
    """
    data = payload.model_dump()
    tenant, admin, temporary_password = tenant_service.create_tenant(db, **data)

    logger.info(f"Studio signed up: tenant={tenant.id}")

    return TenantCreatedResponse(
        tenant=TenantResponse.model_validate(tenant),
        admin_user_id=admin.id,
        admin_email=admin.email,
        temporary_password=temporary_password,
    )
