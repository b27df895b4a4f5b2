"""
Event Model

Event types a studio shoots (wedding, engagement, pre-wedding...).
Codes are unique within a tenant; two studios may use the same code.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from datetime import datetime
from studio_api.database import Base
import uuid


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    event_code = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    alias = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_event_tenant_code', 'tenant_id', 'event_code', unique=True),
    )

    def __repr__(self):
        return f"<Event {self.event_code} (tenant={self.tenant_id})>"
