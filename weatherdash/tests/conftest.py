# weatherdash/tests/conftest.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from freezegun import freeze_time
from limits.aio.storage import MemoryStorage

from weatherdash.core.config import Settings
from weatherdash.core.rate_limit import RateLimitStore
from weatherdash.main import create_app
from weatherdash.services.news_service import MockNewsSource

UPSTREAM_BASE_URL = "https://upstream.test"
API_KEY = "test-key"

LONDON_WEATHER: Dict[str, Any] = {
    "name": "London",
    "weather": [{"description": "clear sky", "icon": "01d"}],
    "main": {
        "temp": 18,
        "humidity": 60,
        "temp_min": 15,
        "temp_max": 20,
        "pressure": 1012,
        "feels_like": 17,
    },
    "wind": {"speed": 3, "deg": 200},
    "sys": {"country": "GB", "sunrise": 0, "sunset": 0},
    "visibility": 10000,
    "clouds": {"all": 5},
}


def make_forecast(city: str = "London") -> Dict[str, Any]:
    """5 天 x 每天 8 条，从 2025-08-05 00:00 UTC 开始"""
    start = 1754352000  # 2025-08-05 00:00:00 UTC
    entries = []
    for i in range(40):
        dt = start + i * 3 * 3600
        day, slot = divmod(i, 8)
        hour = slot * 3
        entries.append({
            "dt": dt,
            "main": {
                "temp": 15 + slot,
                "feels_like": 14 + slot,
                "temp_min": 10 + day,
                "temp_max": 20 + day,
                "pressure": 1010,
                "humidity": 55,
            },
            "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
            "wind": {"speed": 2.5, "deg": 180},
            "clouds": {"all": 0},
            "pop": 0,
            "dt_txt": f"2025-08-{5 + day:02d} {hour:02d}:00:00",
        })
    return {
        "cod": "200",
        "message": 0,
        "cnt": len(entries),
        "list": entries,
        "city": {"id": 2643743, "name": city, "country": "GB", "coord": {"lat": 51.5085, "lon": -0.1257}},
    }


class FakeUpstream:
    """
    替代 OpenWeatherMap 的 httpx handler：
    - 记录每一次调用，方便断言 "有没有打到上游"
    - unknown_cities 里的城市返回 404 city not found
    - failure 非空时直接抛出（模拟网络错误）
    - override 非空时所有请求都返回 (status, content, content_type)
    """

    def __init__(self) -> None:
        self.calls: List[httpx.Request] = []
        self.unknown_cities = {"Atlantis"}
        self.failure: Optional[Exception] = None
        self.override: Optional[Tuple[int, bytes, str]] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.failure is not None:
            raise self.failure
        if self.override is not None:
            status, content, content_type = self.override
            return httpx.Response(status, content=content, headers={"content-type": content_type})

        city = request.url.params.get("q")
        if city in self.unknown_cities:
            return httpx.Response(404, json={"cod": "404", "message": "city not found"})
        if request.url.path == "/data/2.5/weather":
            return httpx.Response(200, json=LONDON_WEATHER)
        if request.url.path == "/data/2.5/forecast":
            return httpx.Response(200, json=make_forecast(city or "London"))
        return httpx.Response(404, json={"cod": 404, "message": "Internal error"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class UnreachableStorage(MemoryStorage):
    """
    模拟 Redis 掉线：每个操作都抛连接错误。
    base_exceptions 换成 ConnectionError，limits 会把它包成 StorageError，和 RedisStorage 一样
    """

    @property
    def base_exceptions(self):
        return ConnectionError

    async def incr(self, key, expiry, amount=1):
        raise ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def get(self, key):
        raise ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def check(self):
        raise ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENWEATHER_API_KEY=API_KEY,
        OPENWEATHER_BASE_URL=UPSTREAM_BASE_URL,
        REDIS_URL=None,
        STATIC_DIR=None,
        RATE_LIMIT_TRUST_FORWARDED=False,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock():
    """
    冻结墙上时间（limits 的内存存储用 time.time 计算窗口），用 clock.tick(...) 快进；
    real_asyncio=True 让事件循环继续用真实时钟
    """
    with freeze_time("2025-08-05 12:00:00", real_asyncio=True) as frozen:
        yield frozen


@pytest.fixture
def app(settings, upstream, clock):
    return create_app(
        settings,
        rate_limit_store=RateLimitStore.memory(),
        news_source=MockNewsSource(delay_seconds=0),
        upstream_transport=upstream.transport,
    )


def _client_for(app, host: str = "127.0.0.1") -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, client=(host, 51234))
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def client(app):
    """
    提供一个可用于 async 测试的 HTTP 客户端：
    - 触发 FastAPI lifespan（startup/shutdown），创建共享的上游 httpx client
    - 上游走 FakeUpstream，不会真的访问 OpenWeatherMap
    """
    async with LifespanManager(app):
        async with _client_for(app) as ac:
            yield ac


@pytest.fixture
def client_from(app, client):
    """在同一个 lifespan 里，用别的客户端地址发请求"""

    @asynccontextmanager
    async def _make(host: str):
        async with _client_for(app, host) as ac:
            yield ac

    return _make
