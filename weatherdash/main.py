# weatherdash/main.py
"""网关入口

uvicorn weatherdash.main:create_app --factory
或者 python -m weatherdash（读取 HOST / PORT）
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from weatherdash.api.health import router as health_router
from weatherdash.api.news import router as news_router
from weatherdash.api.spa import build_spa_router
from weatherdash.api.weather import router as weather_router
from weatherdash.core.config import Settings, get_settings
from weatherdash.core.errors import (
    GatewayError,
    gateway_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from weatherdash.core.rate_limit import FixedWindowRateLimiter, RateLimitStore
from weatherdash.middlewares.logging import LoggingMiddleware, configure_logging
from weatherdash.middlewares.rate_limit import RateLimitMiddleware
from weatherdash.middlewares.request_id import RequestIdMiddleware
from weatherdash.services.news_service import MockNewsSource, NewsSource

logger = logging.getLogger(__name__)


def _build_rate_limit_store(settings: Settings) -> RateLimitStore:
    if settings.redis_url:
        return RateLimitStore.redis(settings.redis_url)
    return RateLimitStore.memory()


def create_app(
    settings: Optional[Settings] = None,
    *,
    rate_limit_store: Optional[RateLimitStore] = None,
    news_source: Optional[NewsSource] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    limiter = FixedWindowRateLimiter(
        rate_limit_store or _build_rate_limit_store(settings),
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 应用启动：创建全局 httpx.AsyncClient，所有上游请求共用
        http_client = httpx.AsyncClient(
            timeout=settings.upstream_timeout_seconds,
            transport=upstream_transport,
        )
        app.state.http_client = http_client
        logger.info(
            "gateway ready: upstream=%s rate_limit=%s/%ss store=%s",
            settings.openweather_base_url,
            settings.rate_limit_max_requests,
            settings.rate_limit_window_seconds,
            limiter.store.name,
        )
        yield
        # 应用关闭：释放 http client 和限流存储
        await http_client.aclose()
        await limiter.store.aclose()

    app = FastAPI(
        title="Weather Dashboard Gateway",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = limiter
    app.state.news_source = news_source or MockNewsSource(settings.news_delay_seconds)

    # middleware：后添加的在外层，请求依次经过 CORS -> 日志 -> request id -> 限流
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        trust_forwarded=settings.rate_limit_trust_forwarded,
    )
    app.add_middleware(RequestIdMiddleware)
    # 使用纯 ASGI 中间件，避免 BaseHTTPMiddleware 在 Python 3.11+ 中的兼容性问题
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "RateLimit-Policy",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
            "Retry-After",
        ],
    )

    # exception handlers
    app.add_exception_handler(GatewayError, gateway_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # routers
    app.include_router(weather_router)
    app.include_router(news_router)
    app.include_router(health_router)

    # 兜底路由必须最后注册
    if settings.static_dir:
        app.include_router(build_spa_router(settings.static_dir))

    return app
