"""
Tests for token issuing and decoding.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from jose import jwt

from studio_api.core.security import (
    TokenIssuer,
    ACCESS_TOKEN,
    SETUP_TOKEN,
    get_password_hash,
    verify_password,
    hash_reset_token,
)

SECRET = "unit-test-secret"
T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


def _user(**overrides):
    data = dict(id="user-1", tenant_id="tenant-1", role_id="role-1", token_version=3)
    data.update(overrides)
    return SimpleNamespace(**data)


def _issuer(clock=None, secret=SECRET):
    return TokenIssuer(
        secret_key=secret,
        access_ttl=timedelta(days=7),
        setup_ttl=timedelta(minutes=30),
        clock=clock or Clock(),
    )


def test_access_token_round_trip():
    issuer = _issuer()
    claims = issuer.decode(issuer.issue(_user(), "admin"))

    assert claims is not None
    assert claims.user_id == "user-1"
    assert claims.tenant_id == "tenant-1"
    assert claims.role == "admin"
    assert claims.role_id == "role-1"
    assert claims.ver == 3
    assert claims.type == ACCESS_TOKEN
    assert claims.exp - claims.iat == 7 * 24 * 3600


def test_each_token_has_its_own_id():
    issuer = _issuer()
    first = issuer.decode(issuer.issue(_user(), "admin"))
    second = issuer.decode(issuer.issue(_user(), "admin"))
    assert first.jti != second.jti


def test_expiry_is_absolute():
    clock = Clock()
    issuer = _issuer(clock)
    token = issuer.issue(_user(), "viewer")

    clock.now = T0 + timedelta(days=6, hours=23)
    assert issuer.decode(token) is not None

    clock.now = T0 + timedelta(days=7, seconds=1)
    assert issuer.decode(token) is None


def test_tampered_or_foreign_tokens_are_rejected():
    token = _issuer().issue(_user(), "admin")

    assert _issuer(secret="another-secret").decode(token) is None
    assert _issuer().decode(token[:-2] + "xx") is None
    assert _issuer().decode("not-a-jwt") is None
    assert _issuer().decode(None) is None
    assert _issuer().decode("") is None


def test_setup_token_is_not_a_session():
    issuer = _issuer()
    setup = issuer.issue_setup_token(_user())

    assert issuer.decode(setup) is None

    claims = issuer.decode(setup, expected_type=SETUP_TOKEN)
    assert claims.user_id == "user-1"
    assert claims.ver == 3
    assert claims.tenant_id is None
    assert claims.role is None


def test_setup_token_expires_quickly():
    clock = Clock()
    issuer = _issuer(clock)
    setup = issuer.issue_setup_token(_user())

    clock.now = T0 + timedelta(minutes=31)
    assert issuer.decode(setup, expected_type=SETUP_TOKEN) is None


def test_session_token_is_not_a_setup_token():
    issuer = _issuer()
    assert issuer.decode(issuer.issue(_user(), "admin"), expected_type=SETUP_TOKEN) is None


def test_access_token_without_tenant_is_rejected():
    exp = int((T0 + timedelta(hours=1)).timestamp())
    token = jwt.encode(
        {"sub": "user-1", "type": ACCESS_TOKEN, "ver": 0, "exp": exp, "role": "admin"},
        SECRET,
        algorithm="HS256",
    )
    assert _issuer().decode(token) is None


def test_missing_version_claim_is_rejected():
    exp = int((T0 + timedelta(hours=1)).timestamp())
    token = jwt.encode(
        {"sub": "user-1", "type": ACCESS_TOKEN, "exp": exp, "tenant_id": "t", "role": "admin"},
        SECRET,
        algorithm="HS256",
    )
    assert _issuer().decode(token) is None


def test_password_hashing():
    hashed = get_password_hash("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", None)


def test_reset_tokens_are_stored_as_digests():
    digest = hash_reset_token("abc")
    assert len(digest) == 64
    assert digest == hash_reset_token("abc")
    assert digest != hash_reset_token("abd")
