"""固定窗口限流

计数交给 limits（slowapi 底层用的同一个库）：
- RateLimitStore 包一层 limits 的 async 存储，给健康检查和关闭流程用
  默认进程内 MemoryStorage（重启即丢失）；多实例部署时用 RedisStorage 共享窗口
- FixedWindowRateLimiter 决定是否放行，并生成 RateLimit-* 响应头

存储出错时统一抛 limits.errors.StorageError（wrap_exceptions=True）。
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from limits import RateLimitItem, parse
from limits.aio.storage import MemoryStorage, RedisStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter as FixedWindowStrategy
from limits.errors import StorageError
from redis.asyncio import ConnectionPool

from weatherdash.core.redis import limits_storage_uri, redis_pool

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "weatherdash:rl"


class RateLimitStore:
    def __init__(
        self,
        storage: Storage,
        *,
        name: str,
        pool: Optional[ConnectionPool] = None,
    ) -> None:
        self.storage = storage
        self.name = name
        self._pool = pool

    @classmethod
    def memory(cls) -> "RateLimitStore":
        return cls(MemoryStorage(wrap_exceptions=True), name="memory")

    @classmethod
    def redis(cls, url: str, *, key_prefix: str = REDIS_KEY_PREFIX) -> "RateLimitStore":
        # 连接池由我们创建，limits 只借用；这样关闭时能释放连接
        pool = redis_pool(url)
        storage = RedisStorage(
            limits_storage_uri(url),
            wrap_exceptions=True,
            implementation="redispy",
            key_prefix=key_prefix,
            connection_pool=pool,
        )
        return cls(storage, name="redis", pool=pool)

    async def ping(self) -> bool:
        try:
            return bool(await self.storage.check())
        except StorageError as exc:
            logger.warning("rate limit store %s unreachable: %r", self.name, exc.storage_error)
            return False

    async def aclose(self) -> None:
        if self._pool is not None:
            await self._pool.disconnect()
        elif isinstance(self.storage, MemoryStorage):
            await self.storage.reset()


@dataclass(frozen=True)
class RateLimitResult:
    limit: int
    remaining: int
    # 窗口重置剩余秒数（向上取整）
    reset_after: int
    allowed: bool


class FixedWindowRateLimiter:
    """
    每个 key 一个窗口：第一次命中时开窗，窗口内计数超过 limit 即拒绝，
    到期后计数整体清零（不是滑动窗口）。

    limit / window_seconds 换算成 limits 的写法，例如 100 次 / 900 秒
    等价于 "100/15 minutes"。
    """

    def __init__(
        self,
        store: RateLimitStore,
        *,
        limit: int = 100,
        window_seconds: int = 15 * 60,
    ) -> None:
        self.store = store
        self.item: RateLimitItem = parse(f"{limit}/{window_seconds} seconds")
        self._strategy = FixedWindowStrategy(store.storage)

    @property
    def limit(self) -> int:
        return self.item.amount

    @property
    def window_seconds(self) -> int:
        return self.item.get_expiry()

    async def hit(self, key: str) -> RateLimitResult:
        allowed = await self._strategy.hit(self.item, key)
        stats = await self._strategy.get_window_stats(self.item, key)
        return RateLimitResult(
            limit=self.limit,
            remaining=stats.remaining,
            reset_after=max(0, math.ceil(stats.reset_time - time.time())),
            allowed=allowed,
        )

    async def reset(self, key: str) -> None:
        await self._strategy.clear(self.item, key)

    def headers(self, result: RateLimitResult) -> Dict[str, str]:
        headers = {
            "RateLimit-Policy": f"{self.limit};w={self.window_seconds}",
            "RateLimit-Limit": str(result.limit),
            "RateLimit-Remaining": str(result.remaining),
            "RateLimit-Reset": str(result.reset_after),
        }
        if not result.allowed:
            headers["Retry-After"] = str(result.reset_after)
        return headers
