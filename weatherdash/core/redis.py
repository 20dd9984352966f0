from __future__ import annotations

from redis.asyncio import ConnectionPool


def redis_pool(url: str) -> ConnectionPool:
    # URL 方式：支持 redis:// 和 rediss://，也支持 query 参数
    # 每个 app 自己持有连接池，关闭时 disconnect
    return ConnectionPool.from_url(url)


def limits_storage_uri(url: str) -> str:
    """limits 的 async 存储用 async+ 前缀区分：redis://h -> async+redis://h"""
    if url.startswith("async+"):
        return url
    if url.startswith("unix://"):
        return "async+redis+unix://" + url[len("unix://"):]
    return f"async+{url}"
