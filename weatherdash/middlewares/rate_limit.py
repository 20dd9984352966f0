# weatherdash/middlewares/rate_limit.py
"""按客户端地址限流的 ASGI 中间件

- 每个 HTTP 请求都计数（包括后面会返回 400 的请求）
- 超限时直接返回 429，不会进入路由，也就不会调用上游
- 所有响应都带上 RateLimit-* 头
- 限流存储不可用（Redis 掉线）时放行请求并记 WARNING，不带 RateLimit-* 头
"""
from __future__ import annotations

import logging

from limits.errors import StorageError
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from weatherdash.core.errors import RateLimitError, gateway_error_response
from weatherdash.core.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_key(scope: Scope, *, trust_forwarded: bool = False) -> str:
    if trust_forwarded:
        forwarded = Headers(scope=scope).get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

    client = scope.get("client")
    if client:
        return client[0]
    return UNKNOWN_CLIENT


class RateLimitMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowRateLimiter,
        trust_forwarded: bool = False,
    ) -> None:
        self.app = app
        self.limiter = limiter
        self.trust_forwarded = trust_forwarded

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        key = client_key(scope, trust_forwarded=self.trust_forwarded)
        try:
            result = await self.limiter.hit(key)
        except StorageError as exc:
            logger.warning(
                "rate limit store unavailable, request not counted: client=%s path=%s error=%r",
                key,
                scope.get("path", ""),
                exc.storage_error,
            )
            await self.app(scope, receive, send)
            return

        headers = self.limiter.headers(result)

        if not result.allowed:
            logger.warning(
                "rate limit exceeded: client=%s path=%s reset_after=%ss",
                key,
                scope.get("path", ""),
                result.reset_after,
            )
            response = gateway_error_response(RateLimitError(headers=headers))
            await response(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                for name, value in headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_wrapper)
