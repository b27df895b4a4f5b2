"""
Tenant Model

The tenant is the isolation boundary: one photography studio account.
Every data-bearing table carries tenant_id and every query filters by it.

Tenants are deactivated, never hard-deleted while data references them.
Deactivation is enforced at login and token verification, so user rows are
left untouched.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from studio_api.database import Base
import uuid


class Tenant(Base):
    __tablename__ = "tenants"

    # Random IDs avoid enumeration
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Studio identification
    name = Column(String(255), nullable=False)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    country_code = Column(String(8), nullable=True)
    phone_number = Column(String(32), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # The system tenant owns the superadmin account
    is_internal = Column(Boolean, default=False, nullable=False)

    # Subscription window
    subscription_plan = Column(String(50), default="trial", nullable=False)
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)

    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # No cascade: tenants are never deleted while users or content exist
    users = relationship("User", back_populates="tenant")

    __table_args__ = (
        Index('idx_tenant_active_username', 'is_active', 'username'),
    )

    def __repr__(self):
        return f"<Tenant {self.username}>"

    @property
    def subscription_expired(self) -> bool:
        return self.subscription_end is not None and self.subscription_end < datetime.utcnow()
