"""
Database Models

Every data-bearing model carries tenant_id for multi-tenant isolation.
"""
from studio_api.models.tenant import Tenant
from studio_api.models.role import Role, GLOBAL_TENANT_ID
from studio_api.models.user import User
from studio_api.models.event import Event
from studio_api.models.project import Project
from studio_api.models.image import Image
from studio_api.models.finance import ProjectFinance, FinanceTransaction

__all__ = [
    "Tenant",
    "Role",
    "GLOBAL_TENANT_ID",
    "User",
    "Event",
    "Project",
    "Image",
    "ProjectFinance",
    "FinanceTransaction",
]
