"""
User Model

Users belong to exactly one tenant. tenant_id is fixed at creation and is
the field every query filters on.

token_version is embedded in issued tokens; bumping it invalidates every
token issued before the change.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship, validates
from datetime import datetime
from studio_api.database import Base
import uuid


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    # Email is unique across all tenants: login only takes email + password
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    is_password_set = Column(Boolean, default=False, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    token_version = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Only the sha256 digest of the emailed reset token is stored
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)

    tenant = relationship("Tenant", back_populates="users")
    role = relationship("Role", lazy="joined")

    __table_args__ = (
        Index('idx_user_tenant_active', 'tenant_id', 'is_active'),
        Index('idx_user_tenant_role', 'tenant_id', 'role_id'),
    )

    def __repr__(self):
        return f"<User {self.email} (tenant={self.tenant_id})>"

    @validates("tenant_id")
    def _validate_tenant_id(self, key, value):
        if self.tenant_id is not None and value != self.tenant_id:
            raise ValueError("tenant_id cannot change after creation")
        return value

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower()

    @property
    def role_name(self) -> str:
        return self.role.name if self.role else ""

    def bump_token_version(self) -> int:
        self.token_version = (self.token_version or 0) + 1
        return self.token_version
