#!/usr/bin/env python3
"""
Create the system tenant and the first superadmin.

Seeds the default global roles first. Safe to run more than once: an
existing system tenant is left alone.

Usage:
    python scripts/create_superadmin.py admin@example.com [password]

Without a password a temporary one is printed; it has to be replaced
through the password setup step on first login.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studio_api.database import SessionLocal, init_db
from studio_api.core.permissions import RoleKind
from studio_api.models.tenant import Tenant
from studio_api.services.roles import seed_default_roles
from studio_api.services.tenants import create_tenant

SYSTEM_USERNAME = "system"


def create_superadmin(email: str, password: str = None) -> None:
    init_db()
    db = SessionLocal()
    try:
        seed_default_roles(db)

        tenant = db.query(Tenant).filter(Tenant.username == SYSTEM_USERNAME).first()
        if tenant:
            print(f"System tenant already exists with ID: {tenant.id}")
            return

        tenant, admin, temporary_password = create_tenant(
            db,
            company_name="System",
            username=SYSTEM_USERNAME,
            email=email,
            first_name="System",
            last_name="Administrator",
            password=password,
            admin_role_kind=RoleKind.SUPERADMIN,
            is_internal=True,
            subscription_plan="internal",
        )

        print("\nSuperadmin created successfully!")
        print(f"\n{'=' * 50}")
        print("CREDENTIALS:")
        print(f"{'=' * 50}")
        print(f"Email: {admin.email}")
        if temporary_password:
            print(f"Temporary password: {temporary_password}")
        print(f"Role: {admin.role_name}")
        print(f"Tenant: {tenant.id}")
        print(f"{'=' * 50}")
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    create_superadmin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
