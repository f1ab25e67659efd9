import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from coin_market.config import INITIAL_RETRY_DELAY_MILLIS, MAX_RETRIES

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryExecutor:
    """
    指数退避重试：失败后等待 delay 再试，delay 每次翻倍，重试次数用尽时原样抛出最后一次的异常。

    默认对所有异常都重试；传入 should_retry 可以让不可恢复的错误直接抛出。
    """

    def __init__(
        self,
        max_retries: int = MAX_RETRIES,
        initial_delay_millis: int = INITIAL_RETRY_DELAY_MILLIS,
        should_retry: Optional[Callable[[Exception], bool]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if initial_delay_millis < 0:
            raise ValueError("initial_delay_millis must be >= 0")
        self.max_retries = max_retries
        self.initial_delay_millis = initial_delay_millis
        self._should_retry = should_retry
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
        initial_delay_millis: Optional[int] = None,
    ) -> T:
        remaining = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay_millis if initial_delay_millis is None else initial_delay_millis
        attempt = 1

        while True:
            try:
                return await operation()
            except Exception as exc:
                if remaining <= 0:
                    raise
                if self._should_retry is not None and not self._should_retry(exc):
                    raise
                logger.warning(
                    "第 %d 次请求失败（%s），%dms 后重试，剩余 %d 次",
                    attempt,
                    exc,
                    delay,
                    remaining,
                )
                await self._sleep(delay / 1000)
                delay *= 2
                remaining -= 1
                attempt += 1
