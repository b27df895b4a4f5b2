"""
User Schemas

Request/response models for user operations. Password hashes, reset
tokens and token versions never leave the server.
"""
from pydantic import EmailStr, Field
from typing import Optional, List
from datetime import datetime

from studio_api.schemas.common import CamelModel


class UserBase(CamelModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserCreate(UserBase):
    """
    Create a user in the caller's tenant.

    Without a password a temporary one is generated and returned once;
    the user then goes through the password setup step on first login.
    """
    role_id: str
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class UserUpdate(CamelModel):
    """All fields optional. tenant_id is deliberately absent."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role_id: Optional[str] = None
    is_active: Optional[bool] = None


class PasswordChange(CamelModel):
    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(UserBase):
    id: str
    tenant_id: str
    role_id: str
    role_name: str
    is_active: bool
    is_password_set: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class UserCreatedResponse(CamelModel):
    user: UserResponse
    temporary_password: Optional[str] = None


class UserListResponse(CamelModel):
    users: List[UserResponse]
    total: int
    page: int
    page_size: int
