"""
Rate Limiting Middleware

Token bucket rate limiting backed by Redis.

Buckets:
- authenticated requests: one bucket per tenant (tenant from
  TenantContextMiddleware);
- anonymous requests to the auth endpoints (login, password setup and
  reset, Google callback): one bucket per client address, with a much
  smaller budget to slow down credential guessing.

Redis unreachable means no rate limiting: availability wins over strict
limits.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import redis
import time
import logging

from studio_api.config import get_settings
from studio_api.core.exceptions import RateLimitExceeded
from studio_api.utils.logging import log_security_event

logger = logging.getLogger(__name__)
settings = get_settings()

AUTH_PATHS = (
    "/login",
    "/setup-password",
    "/forgot-password",
    "/reset-password",
    "/signup",
    "/auth/google/callback",
)

EXCLUDED_PATHS = (
    "/docs",
    "/redoc",
    "/openapi.json",
    "/health",
)


class TokenBucket:
    """
    Token bucket state kept in Redis.

    The bucket holds up to `burst` tokens and refills at
    `rate_per_minute`; each request takes one token.
    """

    def __init__(self, redis_client, clock=time.time):
        self.redis_client = redis_client
        self._clock = clock

    def take(self, key: str, rate_per_minute: int, burst: int) -> Tuple[bool, int]:
        """Returns (allowed, retry_after_seconds)."""
        key = f"rate_limit:{key}"
        key_timestamp = f"{key}:timestamp"

        try:
            current_tokens = self.redis_client.get(key)
            last_update = self.redis_client.get(key_timestamp)

            now = self._clock()

            if current_tokens is None:
                current_tokens = burst - 1
                self.redis_client.setex(key, 60, current_tokens)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            current_tokens = float(current_tokens)
            last_update = float(last_update) if last_update else now

            elapsed = now - last_update
            tokens_to_add = elapsed * (rate_per_minute / 60.0)
            new_tokens = min(burst, current_tokens + tokens_to_add)

            if new_tokens >= 1:
                new_tokens -= 1
                self.redis_client.setex(key, 60, new_tokens)
                self.redis_client.setex(key_timestamp, 60, now)
                return True, 0

            tokens_needed = 1 - new_tokens
            retry_after = int((tokens_needed / (rate_per_minute / 60.0)) + 1)
            return False, retry_after

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return True, 0


def _connect(url: str):
    try:
        client = redis.from_url(url, decode_responses=True, socket_connect_timeout=5)
        client.ping()
        logger.info("Redis connection established for rate limiting")
        return client
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.error(f"Redis connection failed, rate limiting disabled: {e}")
        return None


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, redis_client=None, enabled: Optional[bool] = None):
        super().__init__(app)
        enabled = settings.RATE_LIMIT_ENABLED if enabled is None else enabled

        if not enabled:
            self.bucket = None
        else:
            client = redis_client if redis_client is not None else _connect(settings.REDIS_URL)
            self.bucket = TokenBucket(client) if client is not None else None

    def _bucket_for(self, request: Request) -> Optional[Tuple[str, int, int]]:
        tenant_id = getattr(request.state, "tenant_id", None)
        if tenant_id:
            return f"tenant:{tenant_id}", settings.RATE_LIMIT_PER_MINUTE, settings.RATE_LIMIT_BURST

        if request.url.path in AUTH_PATHS:
            client_host = request.client.host if request.client else "unknown"
            return f"auth:{client_host}", settings.AUTH_RATE_LIMIT_PER_MINUTE, settings.AUTH_RATE_LIMIT_BURST

        return None

    async def dispatch(self, request: Request, call_next):
        if self.bucket is None or request.url.path.startswith(EXCLUDED_PATHS):
            return await call_next(request)

        bucket = self._bucket_for(request)
        if bucket is None:
            return await call_next(request)

        key, rate, burst = bucket
        allowed, retry_after = self.bucket.take(key, rate, burst)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"bucket": key, "path": request.url.path, "tenant_id": getattr(request.state, "tenant_id", None)},
                logger
            )
            exc = RateLimitExceeded(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "type": "rate_limit_exceeded", "retryAfter": retry_after},
                headers=exc.headers,
            )

        return await call_next(request)
