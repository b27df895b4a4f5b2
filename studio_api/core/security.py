"""
Security Module

Password hashing (passlib + bcrypt) and JWT issuing/decoding (python-jose).

Two token types are issued:
- access: carries user, tenant, role and token version; expires after
  ACCESS_TOKEN_EXPIRE_MINUTES.
- setup: lets a user with a temporary password choose a real one. It has
  no tenant or role claims and dies once the password is set, because
  setting it bumps the token version the setup token embeds.

Expiry is absolute. decode() never extends a token.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Callable
import hashlib
import secrets
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from studio_api.config import get_settings

settings = get_settings()

ACCESS_TOKEN = "access"
SETUP_TOKEN = "setup"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    With no stored hash a dummy verification still runs so that unknown
    accounts cost the same time as wrong passwords.
    """
    if not hashed_password:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt. Slow on purpose."""
    return pwd_context.hash(password)


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(9)


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as sha256 digests, never in clear."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenClaims(BaseModel):
    """Decoded, signature-checked token payload."""
    sub: str
    type: str
    ver: int
    exp: int
    iat: Optional[int] = None
    jti: Optional[str] = None
    tenant_id: Optional[str] = None
    role: Optional[str] = None
    role_id: Optional[str] = None

    @property
    def user_id(self) -> str:
        return self.sub


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Mints and decodes signed tokens.

    Held on app.state; tests construct their own with a fixed clock.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(days=7),
        setup_ttl: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.setup_ttl = setup_ttl
        self._clock = clock

    def _encode(self, claims: Dict[str, Any], ttl: timedelta) -> str:
        now = self._clock()
        to_encode = dict(claims)
        to_encode.update({
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def issue(self, user, role_name: str) -> str:
        """Session token embedding identity, tenant, role and token version."""
        return self._encode(
            {
                "sub": user.id,
                "tenant_id": user.tenant_id,
                "role": role_name,
                "role_id": user.role_id,
                "ver": user.token_version or 0,
                "type": ACCESS_TOKEN,
            },
            self.access_ttl,
        )

    def issue_setup_token(self, user) -> str:
        return self._encode(
            {
                "sub": user.id,
                "ver": user.token_version or 0,
                "type": SETUP_TOKEN,
            },
            self.setup_ttl,
        )

    def decode(self, token: Optional[str], expected_type: str = ACCESS_TOKEN) -> Optional[TokenClaims]:
        """
        Verify signature and expiry and return the claims.

        Returns None for malformed, tampered, expired or wrong-type tokens.
        Expiry is compared against the issuer's clock, not jose's.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
            claims = TokenClaims.model_validate(payload)
        except (JWTError, ValidationError):
            return None

        if claims.type != expected_type:
            return None
        if claims.exp <= int(self._clock().timestamp()):
            return None
        if expected_type == ACCESS_TOKEN and not (claims.tenant_id and claims.role):
            return None
        return claims


def build_token_issuer(clock: Callable[[], datetime] = _utcnow) -> TokenIssuer:
    return TokenIssuer(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        setup_ttl=timedelta(minutes=settings.SETUP_TOKEN_EXPIRE_MINUTES),
        clock=clock,
    )
