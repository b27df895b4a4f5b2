"""
Rate limiter tests against an in-memory stand-in for the Redis client.
"""
import pytest
import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from studio_api.middleware.rate_limit import TokenBucket, RateLimitMiddleware


class FakeRedis:
    """Just the two commands the token bucket uses."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = str(value)


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("connection refused")


class FakeClock:
    def __init__(self):
        self.now = 1_700_000_000.0

    def __call__(self):
        return self.now


def test_bucket_allows_burst_then_blocks():
    clock = FakeClock()
    bucket = TokenBucket(FakeRedis(), clock=clock)

    assert bucket.take("tenant:a", rate_per_minute=60, burst=2) == (True, 0)
    assert bucket.take("tenant:a", rate_per_minute=60, burst=2) == (True, 0)

    allowed, retry_after = bucket.take("tenant:a", rate_per_minute=60, burst=2)
    assert allowed is False
    assert retry_after >= 1


def test_bucket_refills_over_time():
    clock = FakeClock()
    bucket = TokenBucket(FakeRedis(), clock=clock)

    for _ in range(2):
        bucket.take("tenant:a", rate_per_minute=60, burst=2)
    assert bucket.take("tenant:a", rate_per_minute=60, burst=2)[0] is False

    clock.now += 1
    assert bucket.take("tenant:a", rate_per_minute=60, burst=2)[0] is True


def test_buckets_are_independent():
    bucket = TokenBucket(FakeRedis(), clock=FakeClock())

    bucket.take("tenant:a", rate_per_minute=60, burst=1)
    assert bucket.take("tenant:a", rate_per_minute=60, burst=1)[0] is False
    assert bucket.take("tenant:b", rate_per_minute=60, burst=1)[0] is True


def test_redis_errors_fail_open():
    bucket = TokenBucket(BrokenRedis())
    assert bucket.take("tenant:a", rate_per_minute=60, burst=1) == (True, 0)


def _app(**middleware_kwargs):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, **middleware_kwargs)

    @app.post("/login")
    async def login():
        return {"ok": True}

    @app.get("/events")
    async def events():
        return {"ok": True}

    return app


def test_auth_endpoints_limited_per_client():
    client = TestClient(_app(redis_client=FakeRedis(), enabled=True))

    statuses = [client.post("/login").status_code for _ in range(6)]

    assert statuses[:5] == [200] * 5
    assert statuses[5] == 429

    blocked = client.post("/login")
    assert blocked.json()["type"] == "rate_limit_exceeded"
    assert int(blocked.headers["Retry-After"]) >= 1


def test_anonymous_non_auth_requests_are_not_limited():
    client = TestClient(_app(redis_client=FakeRedis(), enabled=True))
    assert all(client.get("/events").status_code == 200 for _ in range(20))


@pytest.mark.parametrize("kwargs", [{"enabled": False}, {"redis_client": BrokenRedis(), "enabled": True}])
def test_disabled_or_unreachable_limiter_lets_everything_through(kwargs):
    client = TestClient(_app(**kwargs))
    assert all(client.post("/login").status_code == 200 for _ in range(10))
