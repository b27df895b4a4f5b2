"""
Project Finance Models

One finance record per project: the agreed budget, what the client has
paid so far and the next installment. Payments in and out are kept as
transactions. Both tables carry tenant_id.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime
from studio_api.database import Base
import uuid


class ProjectFinance(Base):
    __tablename__ = "project_finances"

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
        unique=True
    )

    total_budget = Column(Numeric(12, 2), nullable=True)
    received_amount = Column(Numeric(12, 2), default=0, nullable=False)
    received_date = Column(DateTime, nullable=True)
    next_due_date = Column(DateTime, nullable=True)
    next_due_amount = Column(Numeric(12, 2), nullable=True)
    is_client_closed = Column(Boolean, default=False, nullable=False)

    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    transactions = relationship(
        "FinanceTransaction",
        order_by="FinanceTransaction.occurred_at",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    __table_args__ = (
        Index('idx_finance_tenant_project', 'tenant_id', 'project_id'),
    )

    def __repr__(self):
        return f"<ProjectFinance project={self.project_id} (tenant={self.tenant_id})>"


class FinanceTransaction(Base):
    __tablename__ = "finance_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    finance_id = Column(
        String(36),
        ForeignKey("project_finances.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)

    occurred_at = Column(DateTime, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    nature = Column(String(10), nullable=False)  # received, paid
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
