"""
Images and project finances: both hang off a project, take its tenant,
and answer 403 to every other tenant.
"""
from decimal import Decimal

import pytest

FORBIDDEN_CROSS_TENANT = {"detail": "Forbidden", "type": "tenant_isolation_error"}


@pytest.fixture
def project_a(client, admin_a, auth_headers):
    response = client.post(
        "/projects",
        json={"name": "Kapoor wedding", "clientName": "Kapoor", "budget": "4000.00"},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 201
    return response.json()


def _image(project_id, **overrides):
    payload = {
        "projectId": project_id,
        "originalUrl": "https://cdn.example.com/a/IMG_0001.jpg",
        "fileName": "IMG_0001.jpg",
        "fileSize": 5_242_880,
        "mimeType": "image/jpeg",
        "width": 6000,
        "height": 4000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def image_a(client, project_a, admin_a, auth_headers):
    response = client.post("/images", json=_image(project_a["id"]), headers=auth_headers(admin_a))
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def finance_a(client, project_a, admin_a, auth_headers):
    response = client.post(
        "/finances",
        json={"projectId": project_a["id"], "totalBudget": "4000.00"},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 201
    return response.json()


def test_image_takes_the_project_tenant(image_a, tenant_a, admin_a):
    assert image_a["tenantId"] == tenant_a.id
    assert image_a["uploadedBy"] == admin_a.id
    assert image_a["uploadStatus"] == "uploading"


def test_image_payload_cannot_choose_the_tenant(client, project_a, admin_a, tenant_a, tenant_b, auth_headers):
    response = client.post(
        "/images",
        json=_image(project_a["id"], tenantId=tenant_b.id),
        headers=auth_headers(admin_a),
    )
    assert response.json()["tenantId"] == tenant_a.id


def test_other_tenant_cannot_touch_image(client, image_a, admin_b, auth_headers):
    headers = auth_headers(admin_b)

    read = client.get(f"/images/{image_a['id']}", headers=headers)
    update = client.patch(f"/images/{image_a['id']}", json={"comment": "Mine"}, headers=headers)
    delete = client.delete(f"/images/{image_a['id']}", headers=headers)

    assert read.status_code == 403
    assert read.json() == FORBIDDEN_CROSS_TENANT
    assert update.status_code == 403
    assert delete.status_code == 403


def test_other_tenant_cannot_attach_or_list_images_of_project(client, project_a, image_a, admin_b, auth_headers):
    headers = auth_headers(admin_b)

    attach = client.post("/images", json=_image(project_a["id"]), headers=headers)
    listed = client.get("/images", params={"project_id": project_a["id"]}, headers=headers)

    assert attach.status_code == 403
    assert listed.status_code == 403
    assert client.get("/images", headers=headers).json()["count"] == 0


def test_superadmin_image_lands_in_project_tenant(client, project_a, tenant_a, superadmin, auth_headers):
    response = client.post("/images", json=_image(project_a["id"]), headers=auth_headers(superadmin))

    assert response.status_code == 201
    assert response.json()["tenantId"] == tenant_a.id


def test_client_selection_filter(client, project_a, image_a, admin_a, auth_headers):
    headers = auth_headers(admin_a)
    client.post("/images", json=_image(project_a["id"], fileName="IMG_0002.jpg"), headers=headers)

    update = client.patch(
        f"/images/{image_a['id']}",
        json={"selectedByClient": True, "uploadStatus": "completed", "tags": ["haldi"]},
        headers=headers,
    )
    assert update.status_code == 200
    assert update.json()["tags"] == ["haldi"]

    selected = client.get(
        "/images",
        params={"project_id": project_a["id"], "selected_only": True},
        headers=headers,
    ).json()
    assert selected["count"] == 1
    assert selected["images"][0]["id"] == image_a["id"]


def test_viewer_can_list_but_not_add_images(client, project_a, image_a, viewer_a, auth_headers):
    headers = auth_headers(viewer_a)

    assert client.get("/images", headers=headers).json()["count"] == 1
    response = client.post("/images", json=_image(project_a["id"]), headers=headers)
    assert response.status_code == 403
    assert response.json()["type"] == "forbidden"


def test_images_need_a_live_project(client, project_a, admin_a, auth_headers):
    headers = auth_headers(admin_a)
    client.delete(f"/projects/{project_a['id']}", headers=headers)

    response = client.post("/images", json=_image(project_a["id"]), headers=headers)
    assert response.status_code == 404


def test_one_finance_record_per_project(client, finance_a, project_a, tenant_a, admin_a, auth_headers):
    assert finance_a["tenantId"] == tenant_a.id
    assert Decimal(finance_a["receivedAmount"]) == 0

    again = client.post("/finances", json={"projectId": project_a["id"]}, headers=auth_headers(admin_a))
    assert again.status_code == 409


def test_received_payments_add_up(client, finance_a, admin_a, auth_headers):
    headers = auth_headers(admin_a)
    url = f"/finances/{finance_a['id']}/transactions"

    client.post(url, json={"amount": "1500.00", "occurredAt": "2026-01-10T10:00:00", "nature": "received"}, headers=headers)
    client.post(url, json={"amount": "300.00", "occurredAt": "2026-01-12T10:00:00", "nature": "paid"}, headers=headers)
    response = client.post(
        url,
        json={"amount": "500.00", "occurredAt": "2026-02-01T10:00:00", "nature": "received", "comment": "Second installment"},
        headers=headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert Decimal(body["receivedAmount"]) == Decimal("2000")
    assert [t["nature"] for t in body["transactions"]] == ["received", "paid", "received"]


def test_transaction_nature_is_validated(client, finance_a, admin_a, auth_headers):
    response = client.post(
        f"/finances/{finance_a['id']}/transactions",
        json={"amount": "10", "occurredAt": "2026-01-10T10:00:00", "nature": "refund"},
        headers=auth_headers(admin_a),
    )
    assert response.status_code == 422


def test_finance_lookup_by_project(client, finance_a, project_a, admin_a, auth_headers):
    response = client.get(f"/finances/project/{project_a['id']}", headers=auth_headers(admin_a))

    assert response.status_code == 200
    assert response.json()["id"] == finance_a["id"]


def test_other_tenant_cannot_touch_finances(client, finance_a, project_a, admin_b, auth_headers):
    headers = auth_headers(admin_b)

    by_id = client.get(f"/finances/{finance_a['id']}", headers=headers)
    by_project = client.get(f"/finances/project/{project_a['id']}", headers=headers)
    payment = client.post(
        f"/finances/{finance_a['id']}/transactions",
        json={"amount": "1", "occurredAt": "2026-01-10T10:00:00", "nature": "received"},
        headers=headers,
    )
    update = client.patch(f"/finances/{finance_a['id']}", json={"isClientClosed": True}, headers=headers)
    delete = client.delete(f"/finances/{finance_a['id']}", headers=headers)

    assert by_id.json() == FORBIDDEN_CROSS_TENANT
    assert {r.status_code for r in (by_id, by_project, payment, update, delete)} == {403}
    assert client.get("/finances", headers=headers).json()["count"] == 0


def test_viewer_cannot_record_payments(client, finance_a, viewer_a, auth_headers):
    response = client.post(
        f"/finances/{finance_a['id']}/transactions",
        json={"amount": "1", "occurredAt": "2026-01-10T10:00:00", "nature": "received"},
        headers=auth_headers(viewer_a),
    )
    assert response.status_code == 403
