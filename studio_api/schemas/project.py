"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from studio_api.schemas.common import CamelModel

PROJECT_STATUS_PATTERN = "^(booked|shooting|editing|delivered|cancelled)$"


class ProjectBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    client_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    budget: Optional[Decimal] = Field(None, ge=0)


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(CamelModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(None, pattern=PROJECT_STATUS_PATTERN)
    event_date: Optional[datetime] = None
    budget: Optional[Decimal] = Field(None, ge=0)


class ProjectResponse(ProjectBase):
    id: str
    tenant_id: str
    owner_id: Optional[str] = None
    status: str
    is_deleted: bool
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(CamelModel):
    """Paginated list of projects."""
    projects: List[ProjectResponse]
    total: int
    page: int
    page_size: int
