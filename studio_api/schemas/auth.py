"""
Authentication Schemas

Request/response models for login, password setup, token verification,
refresh, password reset and Google sign-in.
"""
from pydantic import EmailStr, Field
from typing import Optional

from studio_api.schemas.common import CamelModel
from studio_api.schemas.user import UserResponse
from studio_api.schemas.tenant import TenantSummary


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(CamelModel):
    """
    Either a session (token + user) or a password-setup challenge.

    Exactly one of the two shapes is filled in; unset fields are dropped
    from the response body.
    """
    token: Optional[str] = None
    user: Optional[UserResponse] = None
    require_password_setup: Optional[bool] = None
    setup_token: Optional[str] = None
    email: Optional[str] = None


class SetupPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class SessionResponse(CamelModel):
    token: str
    user: UserResponse


class VerifyTokenResponse(CamelModel):
    valid: bool
    user: UserResponse


class TokenResponse(CamelModel):
    token: str


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class GoogleCallbackRequest(CamelModel):
    code: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)


class GoogleLoginResponse(CamelModel):
    token: str
    user: UserResponse
    tenant: TenantSummary
