"""
Project Finance Endpoints

Budget and payment tracking, one record per project.

RBAC: list/get VIEW_CONTENT, create CREATE_CONTENT, update and
transactions EDIT_CONTENT, delete DELETE_CONTENT. Records take the tenant
of their project; another tenant's record answers 403.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal

from studio_api.database import get_db
from studio_api.models.finance import ProjectFinance, FinanceTransaction
from studio_api.schemas.finance import (
    FinanceCreate,
    FinanceUpdate,
    FinanceResponse,
    FinanceListResponse,
    TransactionCreate,
)
from studio_api.api.deps import require_permission, ensure_tenant_access, resolve_tenant
from studio_api.api.endpoints.projects import load_project
from studio_api.core.permissions import Permission
from studio_api.core.exceptions import FinanceNotFoundError, ConflictError
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/finances", tags=["finances"])


def _load_finance(db: Session, principal: Principal, finance_id: str) -> ProjectFinance:
    finance = db.query(ProjectFinance).filter(ProjectFinance.id == finance_id).first()
    if not finance:
        raise FinanceNotFoundError(finance_id)
    ensure_tenant_access(principal, finance.tenant_id)
    return finance


@router.get("", response_model=FinanceListResponse)
async def list_finances(
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    tenant_id = resolve_tenant(principal, tenant_id)
    finances = db.query(ProjectFinance).filter(
        ProjectFinance.tenant_id == tenant_id
    ).order_by(ProjectFinance.created_at.desc()).all()
    return FinanceListResponse(finances=finances, count=len(finances))


@router.get("/project/{project_id}", response_model=FinanceResponse)
async def get_finance_for_project(
    project_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    project = load_project(db, principal, project_id, deleted=None)
    finance = db.query(ProjectFinance).filter(ProjectFinance.project_id == project.id).first()
    if not finance:
        raise FinanceNotFoundError(f"project {project_id}")
    return finance


@router.get("/{finance_id}", response_model=FinanceResponse)
async def get_finance(
    finance_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    return _load_finance(db, principal, finance_id)


@router.post("", response_model=FinanceResponse, status_code=status.HTTP_201_CREATED)
async def create_finance(
    finance_data: FinanceCreate,
    principal: Principal = Depends(require_permission(Permission.CREATE_CONTENT)),
    db: Session = Depends(get_db)
):
    """Open the finance record of a live project. One per project."""
    project = load_project(db, principal, finance_data.project_id)

    if db.query(ProjectFinance).filter(ProjectFinance.project_id == project.id).first():
        raise ConflictError("Project finance already exists for this project")

    finance = ProjectFinance(
        tenant_id=project.tenant_id,
        created_by=principal.user_id,
        updated_by=principal.user_id,
        received_amount=Decimal("0"),
        **finance_data.model_dump()
    )
    db.add(finance)
    db.commit()
    db.refresh(finance)

    logger.info(f"Project finance created: {finance.id} project={project.id} by {principal.user_id}")
    return finance


@router.patch("/{finance_id}", response_model=FinanceResponse)
async def update_finance(
    finance_id: str,
    finance_data: FinanceUpdate,
    principal: Principal = Depends(require_permission(Permission.EDIT_CONTENT)),
    db: Session = Depends(get_db)
):
    finance = _load_finance(db, principal, finance_id)

    for field, value in finance_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(finance, field, value)
    finance.updated_by = principal.user_id

    db.commit()
    db.refresh(finance)
    return finance


@router.post("/{finance_id}/transactions", response_model=FinanceResponse, status_code=status.HTTP_201_CREATED)
async def add_transaction(
    finance_id: str,
    transaction_data: TransactionCreate,
    principal: Principal = Depends(require_permission(Permission.EDIT_CONTENT)),
    db: Session = Depends(get_db)
):
    """
    Record a payment.

    Money received from the client also raises received_amount; money paid
    out is only recorded.
    """
    finance = _load_finance(db, principal, finance_id)

    finance.transactions.append(FinanceTransaction(
        tenant_id=finance.tenant_id,
        **transaction_data.model_dump()
    ))
    if transaction_data.nature == "received":
        finance.received_amount = (finance.received_amount or Decimal("0")) + transaction_data.amount
        finance.received_date = transaction_data.occurred_at
    finance.updated_by = principal.user_id

    db.commit()
    db.refresh(finance)

    logger.info(f"Transaction added: finance={finance.id} nature={transaction_data.nature} by {principal.user_id}")
    return finance


@router.delete("/{finance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_finance(
    finance_id: str,
    principal: Principal = Depends(require_permission(Permission.DELETE_CONTENT)),
    db: Session = Depends(get_db)
):
    finance = _load_finance(db, principal, finance_id)
    db.delete(finance)
    db.commit()

    logger.info(f"Project finance deleted: {finance_id} by {principal.user_id}")
    return None
