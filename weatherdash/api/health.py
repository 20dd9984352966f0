from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/liveness")
async def liveness():
    # 进程活着就算 OK（给 k8s/ALB 用）
    return {"status": "ok"}


@router.get("/readiness")
async def readiness(request: Request):
    # 上游 key 在启动时已经校验过；这里只需要确认限流存储可用
    # 存储连不上时返回 503，让负载均衡先摘掉这个实例
    store = request.app.state.rate_limiter.store
    store_ok = await store.ping()
    return JSONResponse(
        {
            "status": "ok" if store_ok else "degraded",
            "upstream": "configured",
            "rateLimitStore": store.name,
        },
        status_code=200 if store_ok else 503,
    )
