import asyncio
from typing import Optional

from coin_market.config import (
    COINGECKO_MAX_CONCURRENT_REQUESTS,
    COINGECKO_MIN_REQUEST_INTERVAL,
    COINPAPRIKA_MAX_CONCURRENT_REQUESTS,
    COINPAPRIKA_MIN_REQUEST_INTERVAL,
    CRYPTOCOMPARE_MAX_CONCURRENT_REQUESTS,
    CRYPTOCOMPARE_MIN_REQUEST_INTERVAL,
    EXCHANGE_RATE_MAX_CONCURRENT_REQUESTS,
    EXCHANGE_RATE_MIN_REQUEST_INTERVAL,
)


class AsyncConcurrencyLimiter:
    def __init__(self, max_concurrent: int, min_interval: float = 0.0) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._max_concurrent = max_concurrent
        self._min_interval = min_interval
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sem: Optional[asyncio.Semaphore] = None
        self._lock: Optional[asyncio.Lock] = None
        self._last_acquire = 0.0

    def _bind(self, loop: asyncio.AbstractEventLoop) -> None:
        # 模块级实例会被多次 asyncio.run 复用，原语需跟随当前事件循环重建
        if self._loop is not loop:
            self._loop = loop
            self._sem = asyncio.Semaphore(self._max_concurrent)
            self._lock = asyncio.Lock()
            self._last_acquire = 0.0

    async def __aenter__(self):
        loop = asyncio.get_running_loop()
        self._bind(loop)
        await self._sem.acquire()
        if self._min_interval <= 0:
            return self

        try:
            async with self._lock:
                now = loop.time()
                elapsed = now - self._last_acquire
                wait_for = self._min_interval - elapsed
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
                    now = loop.time()
                self._last_acquire = now
        except BaseException:
            self._sem.release()
            raise

        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._sem.release()
        return False


coinpaprika_limiter = AsyncConcurrencyLimiter(
    COINPAPRIKA_MAX_CONCURRENT_REQUESTS,
    COINPAPRIKA_MIN_REQUEST_INTERVAL,
)
cryptocompare_limiter = AsyncConcurrencyLimiter(
    CRYPTOCOMPARE_MAX_CONCURRENT_REQUESTS,
    CRYPTOCOMPARE_MIN_REQUEST_INTERVAL,
)
coingecko_limiter = AsyncConcurrencyLimiter(
    COINGECKO_MAX_CONCURRENT_REQUESTS,
    COINGECKO_MIN_REQUEST_INTERVAL,
)
exchange_rate_limiter = AsyncConcurrencyLimiter(
    EXCHANGE_RATE_MAX_CONCURRENT_REQUESTS,
    EXCHANGE_RATE_MIN_REQUEST_INTERVAL,
)
