import logging
from datetime import timedelta

import httpx
import pytest
from asgi_lifespan import LifespanManager

from weatherdash.core.rate_limit import RateLimitStore
from weatherdash.main import create_app
from weatherdash.services.news_service import MockNewsSource
from weatherdash.tests.conftest import UnreachableStorage


async def _exhaust(client, n=100):
    for _ in range(n):
        r = await client.get("/api/weather/city/London")
        assert r.status_code == 200
    return r


@pytest.mark.asyncio
async def test_every_response_carries_rate_limit_headers(client):
    r = await client.get("/api/weather/city/London")

    assert r.headers["RateLimit-Limit"] == "100"
    assert r.headers["RateLimit-Remaining"] == "99"
    assert r.headers["RateLimit-Reset"] == "900"
    assert r.headers["RateLimit-Policy"] == "100;w=900"

    # 400 也计数、也带头
    r = await client.get("/api/weather/coords")
    assert r.status_code == 400
    assert r.headers["RateLimit-Remaining"] == "98"


@pytest.mark.asyncio
async def test_101st_request_is_rejected_without_calling_upstream(client, upstream):
    last_ok = await _exhaust(client)
    assert last_ok.headers["RateLimit-Remaining"] == "0"
    assert len(upstream.calls) == 100

    r = await client.get("/api/weather/city/London")

    assert r.status_code == 429
    assert r.json() == {"message": "Too many requests, please try again later."}
    assert r.headers["RateLimit-Limit"] == "100"
    assert r.headers["RateLimit-Remaining"] == "0"
    assert int(r.headers["RateLimit-Reset"]) > 0
    assert r.headers["Retry-After"] == r.headers["RateLimit-Reset"]
    assert r.headers["X-Request-ID"]
    assert len(upstream.calls) == 100


@pytest.mark.asyncio
async def test_other_address_is_not_throttled(client, client_from, upstream):
    await _exhaust(client)
    assert (await client.get("/api/forecast/city/London")).status_code == 429

    async with client_from("10.0.0.2") as other:
        r = await other.get("/api/forecast/city/London")

    assert r.status_code == 200
    assert r.headers["RateLimit-Remaining"] == "99"


@pytest.mark.asyncio
async def test_throttled_address_recovers_after_window(client, clock):
    await _exhaust(client)
    assert (await client.get("/api/weather/city/London")).status_code == 429

    clock.tick(timedelta(minutes=15))

    r = await client.get("/api/weather/city/London")
    assert r.status_code == 200
    assert r.headers["RateLimit-Remaining"] == "99"


@pytest.mark.asyncio
async def test_still_throttled_just_before_window_ends(client, clock):
    await _exhaust(client)
    clock.tick(timedelta(minutes=15, seconds=-1))

    r = await client.get("/api/weather/city/London")
    assert r.status_code == 429
    assert r.headers["RateLimit-Reset"] == "1"


@pytest.mark.asyncio
async def test_forwarded_for_only_used_when_trusted(settings, upstream, clock):
    settings = settings.model_copy(update={"rate_limit_trust_forwarded": True, "rate_limit_max_requests": 1})
    app = create_app(
        settings,
        rate_limit_store=RateLimitStore.memory(),
        news_source=MockNewsSource(delay_seconds=0),
        upstream_transport=upstream.transport,
    )

    async with LifespanManager(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            a = await ac.get("/api/health/liveness", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
            b = await ac.get("/api/health/liveness", headers={"X-Forwarded-For": "203.0.113.8"})
            c = await ac.get("/api/health/liveness", headers={"X-Forwarded-For": "203.0.113.7"})

    assert (a.status_code, b.status_code, c.status_code) == (200, 200, 429)


@pytest.mark.asyncio
async def test_forwarded_for_ignored_by_default(client):
    for i in range(100):
        await client.get("/api/health/liveness", headers={"X-Forwarded-For": f"198.51.100.{i}"})

    r = await client.get("/api/health/liveness", headers={"X-Forwarded-For": "198.51.100.200"})
    assert r.status_code == 429


@pytest.mark.asyncio
async def test_requests_pass_when_rate_limit_store_is_down(settings, upstream, caplog):
    caplog.set_level(logging.WARNING, logger="weatherdash.middlewares.rate_limit")
    app = create_app(
        settings,
        rate_limit_store=RateLimitStore(UnreachableStorage(wrap_exceptions=True), name="redis"),
        news_source=MockNewsSource(delay_seconds=0),
        upstream_transport=upstream.transport,
    )

    async with LifespanManager(app):
        transport = httpx.ASGITransport(app=app, client=("192.0.2.10", 4000))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            weather = await ac.get("/api/weather/city/London")
            missing = await ac.get("/api/forecast/coords", params={"lat": "10"})

    # 放行，不是 500；没有计数也就不带 RateLimit-* 头
    assert weather.status_code == 200
    assert weather.json()["name"] == "London"
    assert "RateLimit-Remaining" not in weather.headers
    assert weather.headers["X-Request-ID"]
    assert missing.status_code == 400
    assert missing.json() == {"message": "Latitude and longitude are required"}

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("rate limit store unavailable" in m and "192.0.2.10" in m for m in warnings)
