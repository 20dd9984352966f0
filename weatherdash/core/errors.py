# weatherdash/core/errors.py
from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_MESSAGE = "Something went wrong"
COORDS_REQUIRED_MESSAGE = "Latitude and longitude are required"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class GatewayError(Exception):
    """网关对外的错误基类：统一渲染成 {"message": ...}"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers or {}


class ValidationError(GatewayError):
    """必填参数缺失，在调用上游之前就拒绝"""

    status_code = 400


class UpstreamError(GatewayError):
    """上游返回非 2xx 或不可达，状态码和 message 原样透传"""


class RateLimitError(GatewayError):
    status_code = 429

    def __init__(self, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(RATE_LIMIT_MESSAGE, headers=headers)


def gateway_error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers or None,
    )


async def gateway_exception_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return gateway_error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "message": "Invalid request parameters",
            "errors": jsonable_encoder(exc.errors()),
        },
    )
