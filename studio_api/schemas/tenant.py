"""
Tenant Schemas
"""
from pydantic import EmailStr, Field
from typing import Optional, List
from datetime import datetime

from studio_api.schemas.common import CamelModel


class TenantCreate(CamelModel):
    """Signup payload: the studio plus its first admin."""
    company_name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    country_code: Optional[str] = Field(None, max_length=8)
    phone_number: Optional[str] = Field(None, max_length=32)
    subscription_plan: str = Field("trial", max_length=50)
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None


class TenantUpdate(CamelModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    country_code: Optional[str] = Field(None, max_length=8)
    phone_number: Optional[str] = Field(None, max_length=32)
    subscription_plan: Optional[str] = Field(None, max_length=50)
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None


class TenantStatusUpdate(CamelModel):
    is_active: bool


class TenantSummary(CamelModel):
    id: str
    name: str
    username: str
    is_active: bool


class TenantResponse(TenantSummary):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    subscription_plan: str
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    subscription_expired: bool
    created_at: datetime


class TenantCreatedResponse(CamelModel):
    tenant: TenantResponse
    admin_user_id: str
    admin_email: str
    temporary_password: Optional[str] = None


class TenantListResponse(CamelModel):
    tenants: List[TenantResponse]
    total: int
