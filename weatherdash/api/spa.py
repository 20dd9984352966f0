# weatherdash/api/spa.py
"""生产环境托管前端打包产物

存在的文件直接返回；其余非 /api 路径一律回退到 index.html，交给前端路由。
"""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse


def build_spa_router(static_dir: str | Path) -> APIRouter:
    root = Path(static_dir).resolve()
    index = root / "index.html"
    router = APIRouter(tags=["spa"], include_in_schema=False)

    @router.get("/{full_path:path}")
    async def spa(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")

        if full_path:
            candidate = (root / full_path).resolve()
            # 防止 ../ 跳出静态目录
            if candidate.is_relative_to(root) and candidate.is_file():
                return FileResponse(candidate)

        if not index.is_file():
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(index)

    return router
