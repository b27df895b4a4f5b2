"""
Pytest configuration and fixtures.

Settings are cached on first import, so the environment is set up here
before anything from studio_api is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from studio_api.main import app
from studio_api.database import Base, engine, SessionLocal
from studio_api.core.permissions import RoleKind
from studio_api.core.roles import RoleRegistry, session_role_loader
from studio_api.core.security import build_token_issuer
from studio_api.services.roles import seed_default_roles, get_role_by_kind
from studio_api.services.tenants import create_tenant
from studio_api.services.users import create_user
import studio_api.models  # noqa: F401

PASSWORD = "correct-horse-1"


@pytest.fixture(autouse=True)
def database():
    """Fresh schema with the default roles for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_default_roles(session)
    finally:
        session.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(database):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def registry():
    """Isolated role registry on the app."""
    app.state.role_registry = RoleRegistry(session_role_loader(SessionLocal), ttl_seconds=300)
    return app.state.role_registry


@pytest.fixture
def issuer():
    app.state.token_issuer = build_token_issuer()
    return app.state.token_issuer


@pytest.fixture
def client(registry, issuer):
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(issuer):
    """Bearer header for a user, minted with the user's current role."""
    def _headers(user):
        return {"Authorization": f"Bearer {issuer.issue(user, user.role_name)}"}
    return _headers


def _make_studio(db, slug):
    tenant, admin, _ = create_tenant(
        db,
        company_name=f"Studio {slug.upper()}",
        username=f"studio-{slug}",
        email=f"owner-{slug}@example.com",
        first_name="Owner",
        last_name=slug.upper(),
        password=PASSWORD,
    )
    return tenant, admin


def _make_member(db, tenant, kind, email):
    user, _ = create_user(
        db,
        tenant_id=tenant.id,
        email=email,
        first_name=kind.value.title(),
        last_name="Member",
        role_id=get_role_by_kind(db, kind).id,
        password=PASSWORD,
    )
    return user


@pytest.fixture
def studio_a(db):
    return _make_studio(db, "a")


@pytest.fixture
def studio_b(db):
    return _make_studio(db, "b")


@pytest.fixture
def tenant_a(studio_a):
    return studio_a[0]


@pytest.fixture
def admin_a(studio_a):
    return studio_a[1]


@pytest.fixture
def tenant_b(studio_b):
    return studio_b[0]


@pytest.fixture
def admin_b(studio_b):
    return studio_b[1]


@pytest.fixture
def viewer_a(db, tenant_a):
    return _make_member(db, tenant_a, RoleKind.VIEWER, "viewer-a@example.com")


@pytest.fixture
def photographer_a(db, tenant_a):
    return _make_member(db, tenant_a, RoleKind.PHOTOGRAPHER, "photographer-a@example.com")


@pytest.fixture
def superadmin(db):
    _, user, _ = create_tenant(
        db,
        company_name="System",
        username="system",
        email="root@example.com",
        first_name="System",
        last_name="Administrator",
        password=PASSWORD,
        admin_role_kind=RoleKind.SUPERADMIN,
        is_internal=True,
    )
    return user
