"""
Role Model

Roles are either global (tenant_id == GLOBAL_TENANT_ID, visible to every
tenant) or owned by one tenant and invisible to the others.

Names are unique per scope and compared case-insensitively through name_key.
"""
from sqlalchemy import Column, String, Text, DateTime, Index
from datetime import datetime
from studio_api.database import Base
import uuid

# Sentinel tenant_id for roles shared by all tenants
GLOBAL_TENANT_ID = "-1"


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(String(36), nullable=False, default=GLOBAL_TENANT_ID, index=True)

    name = Column(String(100), nullable=False)
    name_key = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_role_tenant_name', 'tenant_id', 'name_key', unique=True),
    )

    def __repr__(self):
        return f"<Role {self.name} (tenant={self.tenant_id})>"

    @property
    def is_global(self) -> bool:
        return self.tenant_id == GLOBAL_TENANT_ID

    def rename(self, name: str) -> None:
        self.name = name.strip()
        self.name_key = self.name.lower()
