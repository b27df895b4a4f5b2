"""
Image Model

Metadata for a delivered photo. The files themselves live in object
storage; only their URLs are kept here. Images belong to a project and
carry its tenant_id.
"""
from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, ForeignKey, Index, JSON
from datetime import datetime
from studio_api.database import Base
import uuid


class Image(Base):
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Storage
    original_url = Column(String(1024), nullable=False)
    compressed_url = Column(String(1024), nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)

    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    captured_at = Column(DateTime, nullable=True)  # EXIF DateTimeOriginal

    upload_status = Column(String(20), default="uploading", nullable=False)  # uploading, completed, failed

    selected_by_client = Column(Boolean, default=False, nullable=False)
    marked_as_favorite = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=True)
    comment = Column(Text, nullable=True)

    uploaded_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_image_tenant_project', 'tenant_id', 'project_id'),
        Index('idx_image_tenant_status', 'tenant_id', 'upload_status'),
    )

    def __repr__(self):
        return f"<Image {self.file_name} (tenant={self.tenant_id})>"
