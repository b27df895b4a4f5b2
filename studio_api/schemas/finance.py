"""
Project Finance Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from studio_api.schemas.common import CamelModel


class FinanceBase(CamelModel):
    total_budget: Optional[Decimal] = Field(None, ge=0)
    next_due_date: Optional[datetime] = None
    next_due_amount: Optional[Decimal] = Field(None, ge=0)


class FinanceCreate(FinanceBase):
    project_id: str


class FinanceUpdate(FinanceBase):
    """project_id and tenant_id are fixed; amounts received come from transactions."""
    is_client_closed: Optional[bool] = None


class TransactionCreate(CamelModel):
    amount: Decimal = Field(..., gt=0)
    occurred_at: datetime
    nature: str = Field(..., pattern="^(received|paid)$")
    comment: Optional[str] = None


class TransactionResponse(TransactionCreate):
    id: str
    created_at: datetime


class FinanceResponse(FinanceBase):
    id: str
    tenant_id: str
    project_id: str
    received_amount: Decimal
    received_date: Optional[datetime] = None
    is_client_closed: bool
    transactions: List[TransactionResponse] = []
    created_at: datetime
    updated_at: datetime


class FinanceListResponse(CamelModel):
    finances: List[FinanceResponse]
    count: int
