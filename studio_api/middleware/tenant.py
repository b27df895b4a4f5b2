"""
Tenant Context Middleware

Attaches the caller's claimed tenant and user to request.state so that
logging and rate limiting can be keyed by tenant before the route runs.

The tenant comes from the bearer token (signature and expiry checked, no
database access). This middleware NEVER authorizes anything: a request
with a bad or missing token passes through untouched, and the route's
dependencies do the full verification.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Optional
import logging

from studio_api.core.security import TokenIssuer, build_token_issuer

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an "Authorization: Bearer <token>" header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class TenantContextMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, issuer: Optional[TokenIssuer] = None):
        super().__init__(app)
        self.issuer = issuer or build_token_issuer()

    async def dispatch(self, request: Request, call_next):
        request.state.tenant_id = None
        request.state.user_id = None

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            claims = self.issuer.decode(token)
            if claims is not None:
                request.state.tenant_id = claims.tenant_id
                request.state.user_id = claims.user_id
                logger.debug(f"Request for tenant {claims.tenant_id}")

        return await call_next(request)
