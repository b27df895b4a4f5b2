"""
Tenant isolation tests for content, users and tenant targeting.

A record of another tenant loaded by id must answer 403, never 404, and
never leak data. Only superadmin crosses tenants.
"""
import pytest

from studio_api.core.exceptions import InvalidInputError, TenantNotFoundError
from studio_api.core.permissions import RoleKind
from studio_api.models.user import User
from studio_api.services.roles import get_role_by_kind
from studio_api.services.tenants import set_tenant_active
from studio_api.services.users import create_user

FORBIDDEN_CROSS_TENANT = {"detail": "Forbidden", "type": "tenant_isolation_error"}


@pytest.fixture
def event_a(client, admin_a, auth_headers):
    response = client.post(
        "/events",
        json={"eventCode": "WED", "description": "Wedding", "alias": "Shaadi"},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def project_a(client, admin_a, auth_headers):
    response = client.post(
        "/projects",
        json={"name": "Sharma wedding", "clientName": "Sharma", "budget": "2500.00"},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 201
    return response.json()


def test_event_is_stamped_with_callers_tenant(event_a, tenant_a):
    assert event_a["tenantId"] == tenant_a.id
    assert event_a["eventCode"] == "WED"


def test_payload_cannot_choose_the_tenant(client, admin_a, tenant_a, tenant_b, auth_headers):
    response = client.post(
        "/events",
        json={"eventCode": "ENG", "description": "Engagement", "tenantId": tenant_b.id},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 201
    assert response.json()["tenantId"] == tenant_a.id


def test_other_tenant_cannot_read_event_by_id(client, event_a, admin_b, auth_headers):
    response = client.get(f"/events/{event_a['id']}", headers=auth_headers(admin_b))

    assert response.status_code == 403
    assert response.json() == FORBIDDEN_CROSS_TENANT


def test_other_tenant_cannot_change_or_delete_event(client, event_a, admin_b, auth_headers):
    headers = auth_headers(admin_b)

    update = client.patch(f"/events/{event_a['id']}", json={"description": "Hijacked"}, headers=headers)
    delete = client.delete(f"/events/{event_a['id']}", headers=headers)

    assert update.status_code == 403
    assert delete.status_code == 403


def test_event_lists_only_show_own_tenant(client, event_a, admin_a, admin_b, auth_headers):
    own = client.get("/events", headers=auth_headers(admin_a)).json()
    other = client.get("/events", headers=auth_headers(admin_b)).json()

    assert own["count"] == 1
    assert other == {"events": [], "count": 0}


def test_superadmin_can_read_any_tenant(client, event_a, tenant_a, superadmin, auth_headers):
    headers = auth_headers(superadmin)

    assert client.get(f"/events/{event_a['id']}", headers=headers).status_code == 200

    listed = client.get("/events", params={"tenant_id": tenant_a.id}, headers=headers)
    assert listed.json()["count"] == 1


def test_tenant_admin_cannot_target_other_tenant(client, admin_a, tenant_b, auth_headers):
    response = client.get("/events", params={"tenant_id": tenant_b.id}, headers=auth_headers(admin_a))
    assert response.status_code == 403


def test_missing_event_is_404(client, admin_a, auth_headers):
    response = client.get("/events/does-not-exist", headers=auth_headers(admin_a))
    assert response.status_code == 404
    assert response.json()["type"] == "not_found"


def test_event_codes_are_unique_per_tenant(client, event_a, admin_a, admin_b, auth_headers):
    payload = {"eventCode": "WED", "description": "Wedding again"}

    duplicate = client.post("/events", json=payload, headers=auth_headers(admin_a))
    other_tenant = client.post("/events", json=payload, headers=auth_headers(admin_b))

    assert duplicate.status_code == 409
    assert other_tenant.status_code == 201


def test_viewer_can_read_but_not_write(client, event_a, viewer_a, auth_headers):
    headers = auth_headers(viewer_a)

    assert client.get(f"/events/{event_a['id']}", headers=headers).status_code == 200

    response = client.post("/events", json={"eventCode": "BDAY", "description": "Birthday"}, headers=headers)
    assert response.status_code == 403
    assert response.json()["type"] == "forbidden"


def test_photographer_can_edit_but_not_delete(client, project_a, photographer_a, auth_headers):
    headers = auth_headers(photographer_a)

    update = client.patch(f"/projects/{project_a['id']}", json={"status": "shooting"}, headers=headers)
    assert update.status_code == 200
    assert update.json()["status"] == "shooting"

    assert client.delete(f"/projects/{project_a['id']}", headers=headers).status_code == 403


def test_other_tenant_cannot_touch_project(client, project_a, admin_b, auth_headers):
    headers = auth_headers(admin_b)
    project_url = f"/projects/{project_a['id']}"

    assert client.get(project_url, headers=headers).json() == FORBIDDEN_CROSS_TENANT
    assert client.patch(project_url, json={"name": "Mine now"}, headers=headers).status_code == 403
    assert client.delete(project_url, headers=headers).status_code == 403
    assert client.get("/projects", headers=headers).json()["total"] == 0


def test_project_soft_delete_and_restore(client, project_a, admin_a, auth_headers):
    headers = auth_headers(admin_a)
    project_url = f"/projects/{project_a['id']}"

    assert client.delete(project_url, headers=headers).status_code == 204
    assert client.get(project_url, headers=headers).status_code == 404
    assert client.get("/projects", headers=headers).json()["total"] == 0
    assert client.get("/projects", params={"include_deleted": True}, headers=headers).json()["total"] == 1

    restored = client.post(f"{project_url}/restore", headers=headers)
    assert restored.status_code == 200
    assert restored.json()["isDeleted"] is False


def test_project_owner_is_the_creator(project_a, admin_a):
    assert project_a["ownerId"] == admin_a.id
    assert project_a["status"] == "booked"


def test_other_tenant_user_is_forbidden(client, admin_a, admin_b, auth_headers):
    response = client.get(f"/users/{admin_a.id}", headers=auth_headers(admin_b))
    assert response.json() == FORBIDDEN_CROSS_TENANT


def test_user_list_is_tenant_scoped(client, admin_a, viewer_a, admin_b, auth_headers):
    body = client.get("/users", headers=auth_headers(admin_a)).json()

    emails = {user["email"] for user in body["users"]}
    assert emails == {admin_a.email, viewer_a.email}
    assert body["total"] == 2


def test_user_creation_requires_active_tenant(client, db, tenant_b, superadmin, auth_headers):
    set_tenant_active(db, tenant_b, False)

    response = client.post(
        "/users",
        params={"tenant_id": tenant_b.id},
        json={
            "email": "late-joiner@example.com",
            "firstName": "Late",
            "lastName": "Joiner",
            "roleId": get_role_by_kind(db, RoleKind.VIEWER).id,
        },
        headers=auth_headers(superadmin),
    )

    assert response.status_code == 400
    db.expire_all()
    assert db.query(User).filter(User.email == "late-joiner@example.com").first() is None


def test_user_creation_requires_existing_tenant(db):
    with pytest.raises(TenantNotFoundError):
        create_user(
            db,
            tenant_id="no-such-tenant",
            email="ghost@example.com",
            first_name="Ghost",
            last_name="User",
            role_id=get_role_by_kind(db, RoleKind.VIEWER).id,
        )


def test_inactive_tenant_error_from_service(db, tenant_a):
    set_tenant_active(db, tenant_a, False)
    with pytest.raises(InvalidInputError):
        create_user(
            db,
            tenant_id=tenant_a.id,
            email="blocked@example.com",
            first_name="Blocked",
            last_name="User",
            role_id=get_role_by_kind(db, RoleKind.VIEWER).id,
        )


def test_user_tenant_cannot_change(db, admin_a, tenant_b):
    with pytest.raises(ValueError):
        admin_a.tenant_id = tenant_b.id
