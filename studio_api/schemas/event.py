"""
Event Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from studio_api.schemas.common import CamelModel


class EventCreate(CamelModel):
    event_code: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1)
    alias: Optional[str] = Field(None, max_length=100)


class EventUpdate(CamelModel):
    """tenant_id is not accepted: events never move between tenants."""
    event_code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1)
    alias: Optional[str] = Field(None, max_length=100)


class EventResponse(EventCreate):
    id: str
    tenant_id: str
    created_at: datetime
    updated_at: datetime


class EventListResponse(CamelModel):
    events: List[EventResponse]
    count: int
