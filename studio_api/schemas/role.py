"""
Role Schemas
"""
from pydantic import Field
from typing import Optional, List

from studio_api.schemas.common import CamelModel


class RoleCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    # Only global-role callers (superadmin) may create global roles
    is_global: bool = False


class RoleUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class RoleResponse(CamelModel):
    id: str
    tenant_id: str
    name: str
    description: Optional[str] = None
    is_global: bool


class RoleListResponse(CamelModel):
    roles: List[RoleResponse]
