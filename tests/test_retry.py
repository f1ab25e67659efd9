import pytest

from coin_market.errors import NotFoundError, RateLimitedError, ServiceUnavailableError, is_transient
from coin_market.retry import RetryExecutor


class Flaky:
    def __init__(self, failures, error=None, result="ok"):
        self.failures = failures
        self.error = error or ServiceUnavailableError("down", "test")
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures < 0 or self.calls <= self.failures:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_permanent_failure_runs_four_times_with_doubling_delays(sleep):
    operation = Flaky(failures=-1)
    executor = RetryExecutor(sleep=sleep)

    with pytest.raises(ServiceUnavailableError) as excinfo:
        await executor.execute(operation)

    assert excinfo.value is operation.error
    assert operation.calls == 4
    assert sleep.delays == [1.0, 2.0, 4.0]
    assert sum(sleep.delays) * 1000 == 7000


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures(sleep):
    operation = Flaky(failures=2)
    result = await RetryExecutor(sleep=sleep).execute(operation)

    assert result == "ok"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_call_level_overrides(sleep):
    operation = Flaky(failures=-1)
    executor = RetryExecutor(sleep=sleep)

    with pytest.raises(ServiceUnavailableError):
        await executor.execute(operation, max_retries=1, initial_delay_millis=250)

    assert operation.calls == 2
    assert sleep.delays == [0.25]


@pytest.mark.asyncio
async def test_zero_retries_raises_immediately(sleep):
    operation = Flaky(failures=-1, error=RateLimitedError("slow down"))

    with pytest.raises(RateLimitedError):
        await RetryExecutor(max_retries=0, sleep=sleep).execute(operation)

    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_default_policy_retries_not_found_too(sleep):
    operation = Flaky(failures=-1, error=NotFoundError("unknown coin"))

    with pytest.raises(NotFoundError):
        await RetryExecutor(sleep=sleep).execute(operation)

    assert operation.calls == 4


@pytest.mark.asyncio
async def test_transient_predicate_stops_on_not_found(sleep):
    operation = Flaky(failures=-1, error=NotFoundError("unknown coin"))
    executor = RetryExecutor(should_retry=is_transient, sleep=sleep)

    with pytest.raises(NotFoundError):
        await executor.execute(operation)

    assert operation.calls == 1
    assert sleep.delays == []


def test_invalid_settings_rejected():
    with pytest.raises(ValueError):
        RetryExecutor(max_retries=-1)
    with pytest.raises(ValueError):
        RetryExecutor(initial_delay_millis=-5)
