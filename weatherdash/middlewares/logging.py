# weatherdash/middlewares/logging.py
"""访问日志中间件 - 记录请求、状态码、耗时和（截断后的）响应内容

注意：使用纯 ASGI 中间件而非 BaseHTTPMiddleware，避免 Python 3.11+ 中的
ExceptionGroup 兼容性问题。
"""
from __future__ import annotations

import json
import logging
import time

from starlette.types import ASGIApp, Receive, Scope, Send, Message

from weatherdash.middlewares.request_id import RequestIdLogFilter

logger = logging.getLogger("weatherdash.access")

MAX_LOGGED_BODY = 2000


def configure_logging(level: str = "INFO") -> None:
    """给 weatherdash.* 挂一个控制台 handler（重复调用不会重复添加）"""
    root = logging.getLogger("weatherdash")
    root.setLevel(level.upper())

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)s | %(request_id)s | %(name)s | %(message)s"
        ))
        handler.addFilter(RequestIdLogFilter())
        root.addHandler(handler)


class LoggingMiddleware:
    """
    记录每个请求的访问日志

    使用纯 ASGI 实现，避免 BaseHTTPMiddleware 在 Python 3.11+ 中的兼容性问题
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # 只处理 HTTP 请求
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method = scope.get("method", "")
        path = scope.get("path", "")
        query_string = scope.get("query_string", b"").decode("latin-1")
        client = scope.get("client")
        client_host = client[0] if client else "-"

        req_log = f">>> {method} {path}"
        if query_string:
            req_log += f"?{query_string}"
        req_log += f" | client: {client_host}"
        logger.info(req_log)

        response_status = 0
        content_type = ""
        response_body_parts: list[bytes] = []

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status, content_type
            if message["type"] == "http.response.start":
                response_status = message.get("status", 0)
                for name, value in message.get("headers", []):
                    if name.lower() == b"content-type":
                        content_type = value.decode("latin-1")
            elif message["type"] == "http.response.body":
                body = message.get("body", b"")
                # 只留前面一段，天气预报的响应体可能很大
                if body and sum(len(p) for p in response_body_parts) < MAX_LOGGED_BODY:
                    response_body_parts.append(body)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time
            resp_log = f"<<< {method} {path} | Status: {response_status} | Time: {duration:.3f}s"

            if response_status >= 400 and "json" in content_type and response_body_parts:
                # 错误响应把 message 打出来，成功响应只在 DEBUG 下看
                try:
                    payload = json.loads(b"".join(response_body_parts).decode("utf-8"))
                    if isinstance(payload, dict) and "message" in payload:
                        resp_log += f" | message: {payload['message']}"
                except ValueError:
                    pass
                logger.warning(resp_log)
            else:
                logger.info(resp_log)
                if response_body_parts and logger.isEnabledFor(logging.DEBUG):
                    body_text = b"".join(response_body_parts).decode("utf-8", errors="replace")
                    if len(body_text) > MAX_LOGGED_BODY:
                        body_text = body_text[:MAX_LOGGED_BODY] + "...[截断]"
                    logger.debug(f"    Body: {body_text}")
