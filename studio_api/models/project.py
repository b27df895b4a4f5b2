"""
Project Model

A client booking: one couple or customer, one or more shoots.
Projects are tenant-scoped and soft-deleted so they can be restored.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index, Numeric
from datetime import datetime
from studio_api.database import Base
import uuid


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    # Owner must be in the same tenant (enforced in the service layer)
    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    name = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(
        String(20),
        default="booked",
        nullable=False,
        index=True
    )  # booked, shooting, editing, delivered, cancelled
    event_date = Column(DateTime, nullable=True)
    budget = Column(Numeric(12, 2), nullable=True)

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_project_tenant_status', 'tenant_id', 'is_deleted', 'status'),
        Index('idx_project_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<Project {self.name} (tenant={self.tenant_id})>"

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = datetime.utcnow()

    def restore(self):
        self.is_deleted = False
        self.deleted_at = None
