"""
Image Schemas

Upload metadata in, stored metadata out. project_id is fixed at creation
and tenant_id is never accepted.
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from studio_api.schemas.common import CamelModel

UPLOAD_STATUS_PATTERN = "^(uploading|completed|failed)$"


class ImageCreate(CamelModel):
    project_id: str
    original_url: str = Field(..., min_length=1, max_length=1024)
    compressed_url: Optional[str] = Field(None, max_length=1024)
    thumbnail_url: Optional[str] = Field(None, max_length=1024)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1, max_length=100)
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    captured_at: Optional[datetime] = None
    upload_status: str = Field("uploading", pattern=UPLOAD_STATUS_PATTERN)
    sort_order: Optional[int] = None
    tags: Optional[List[str]] = None


class ImageUpdate(CamelModel):
    compressed_url: Optional[str] = Field(None, max_length=1024)
    thumbnail_url: Optional[str] = Field(None, max_length=1024)
    upload_status: Optional[str] = Field(None, pattern=UPLOAD_STATUS_PATTERN)
    selected_by_client: Optional[bool] = None
    marked_as_favorite: Optional[bool] = None
    sort_order: Optional[int] = None
    tags: Optional[List[str]] = None
    comment: Optional[str] = None


class ImageResponse(ImageCreate):
    id: str
    tenant_id: str
    selected_by_client: bool
    marked_as_favorite: bool
    comment: Optional[str] = None
    uploaded_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ImageListResponse(CamelModel):
    images: List[ImageResponse]
    count: int
