"""
Google sign-in tests: the callback endpoint with a fake provider, and the
HTTP client against stubbed responses.
"""
import asyncio

import pytest
import requests

from studio_api.api.deps import get_google_client
from studio_api.main import app
from studio_api.services import google_oauth
from studio_api.services.google_oauth import GoogleOAuthClient, GoogleOAuthError
from studio_api.services.tenants import set_tenant_active


class FakeGoogleClient:
    def __init__(self, email=None, error=None):
        self.email = email
        self.error = error
        self.calls = []
        self.saw_event_loop = None

    def fetch_verified_email(self, code, redirect_uri):
        self.calls.append((code, redirect_uri))
        try:
            asyncio.get_running_loop()
            self.saw_event_loop = True
        except RuntimeError:
            self.saw_event_loop = False
        if self.error:
            raise self.error
        return self.email


@pytest.fixture
def google(client):
    fake = FakeGoogleClient()
    app.dependency_overrides[get_google_client] = lambda: fake
    return fake


def _callback(client, code="auth-code"):
    return client.post(
        "/auth/google/callback",
        json={"code": code, "redirectUri": "http://localhost:3000/callback"},
    )


def test_google_login_for_existing_user(client, google, admin_a, tenant_a, issuer):
    google.email = admin_a.email

    response = _callback(client)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == admin_a.id
    assert body["tenant"]["id"] == tenant_a.id
    assert issuer.decode(body["token"]).tenant_id == tenant_a.id
    assert google.calls == [("auth-code", "http://localhost:3000/callback")]


def test_provider_calls_run_off_the_event_loop(client, google, admin_a):
    google.email = admin_a.email

    assert _callback(client).status_code == 200
    assert google.saw_event_loop is False


def test_google_login_unknown_email(client, google, admin_a):
    google.email = "stranger@example.com"

    response = _callback(client)

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"


def test_google_provider_failure(client, google):
    google.error = GoogleOAuthError("Token exchange failed: invalid_grant")

    assert _callback(client).status_code == 401


def test_google_login_inactive_tenant(client, db, google, admin_a, tenant_a):
    google.email = admin_a.email
    set_tenant_active(db, tenant_a, False)

    assert _callback(client).status_code == 401


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = str(payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def stub_google(monkeypatch):
    responses = {
        "token": FakeResponse(200, {"access_token": "google-access-token"}),
        "userinfo": FakeResponse(200, {"email": "Owner-A@Example.com", "verified_email": True}),
    }

    def fake_post(url, data=None, timeout=None):
        assert url == google_oauth.GOOGLE_TOKEN_URL
        assert data["grant_type"] == "authorization_code"
        return responses["token"]

    def fake_get(url, headers=None, timeout=None):
        assert headers["Authorization"] == "Bearer google-access-token"
        return responses["userinfo"]

    monkeypatch.setattr(google_oauth.requests, "post", fake_post)
    monkeypatch.setattr(google_oauth.requests, "get", fake_get)
    return responses


def test_client_returns_normalized_email(stub_google):
    client = GoogleOAuthClient("client-id", "client-secret")
    assert client.fetch_verified_email("code", "http://localhost/cb") == "owner-a@example.com"


def test_client_rejects_unverified_email(stub_google):
    stub_google["userinfo"] = FakeResponse(200, {"email": "x@example.com", "verified_email": False})

    with pytest.raises(GoogleOAuthError):
        GoogleOAuthClient("client-id", "client-secret").fetch_verified_email("code", "http://localhost/cb")


def test_client_reports_token_exchange_errors(stub_google):
    stub_google["token"] = FakeResponse(400, {"error": "invalid_grant"})

    with pytest.raises(GoogleOAuthError, match="invalid_grant"):
        GoogleOAuthClient("client-id", "client-secret").exchange_code("code", "http://localhost/cb")


def test_unconfigured_client_fails_without_network():
    with pytest.raises(GoogleOAuthError):
        GoogleOAuthClient("", "").exchange_code("code", "http://localhost/cb")
