import asyncio

import pytest

from coin_market.rate_limiter import AsyncConcurrencyLimiter


async def _run_contended(limiter: AsyncConcurrencyLimiter, workers: int) -> int:
    active = 0
    peak = 0

    async def worker() -> None:
        nonlocal active, peak
        async with limiter:
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            active -= 1

    await asyncio.gather(*(worker() for _ in range(workers)))
    return peak


def test_concurrency_capped_across_event_loops():
    limiter = AsyncConcurrencyLimiter(2)

    # 同一个实例在两个独立事件循环中使用
    assert asyncio.run(_run_contended(limiter, 6)) == 2
    assert asyncio.run(_run_contended(limiter, 6)) == 2


def test_min_interval_spaces_acquisitions():
    limiter = AsyncConcurrencyLimiter(5, min_interval=0.02)

    async def stamps():
        loop = asyncio.get_running_loop()
        times = []
        for _ in range(3):
            async with limiter:
                times.append(loop.time())
        return times

    times = asyncio.run(stamps())
    assert all(later - earlier >= 0.015 for earlier, later in zip(times, times[1:]))


def test_invalid_arguments():
    with pytest.raises(ValueError):
        AsyncConcurrencyLimiter(0)
    with pytest.raises(ValueError):
        AsyncConcurrencyLimiter(1, min_interval=-1)
