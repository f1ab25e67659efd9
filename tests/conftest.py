"""
测试共用的夹具：可控时钟、记录等待时间的 sleep、以及基于 httpx.MockTransport 的假上游。
"""

import asyncio
from typing import Any, Dict, List

import httpx
import pytest
import pytest_asyncio

from coin_market import rate_limiter

CONNECT_ERROR = "connect-error"


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeUpstream:
    """
    按 URL path 返回预设响应。

    每个 path 对应一个响应队列：dict / list 作为 200 JSON 返回，bytes 原样作为响应体，
    int 作为状态码返回，CONNECT_ERROR 抛出连接错误。队列只剩最后一项时重复使用它。
    """

    def __init__(self) -> None:
        self.routes: Dict[str, List[Any]] = {}
        self.requests: List[httpx.Request] = []

    def route(self, path: str, *responses: Any) -> None:
        self.routes[path] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        item = queue[0] if len(queue) == 1 else queue.pop(0)
        if item == CONNECT_ERROR:
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(item, int):
            return httpx.Response(item, json={"error": item})
        if isinstance(item, bytes):
            return httpx.Response(200, content=item)
        return httpx.Response(200, json=item)

    async def handle_async(self, request: httpx.Request) -> httpx.Response:
        # 让出一次事件循环，模拟真实网络等待，便于测试并发行为
        await asyncio.sleep(0)
        return self.handler(request)

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def last(self, path: str) -> httpx.Request:
        return [request for request in self.requests if request.url.path == path][-1]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle_async))


@pytest.fixture(autouse=True)
def no_request_spacing(monkeypatch):
    """测试中取消各上游的最小请求间隔。"""
    for limiter in (
        rate_limiter.coinpaprika_limiter,
        rate_limiter.cryptocompare_limiter,
        rate_limiter.coingecko_limiter,
        rate_limiter.exchange_rate_limiter,
    ):
        monkeypatch.setattr(limiter, "_min_interval", 0.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def http_client(upstream):
    """接到假上游的 AsyncClient，测试结束时关闭。"""
    async with upstream.client() as client:
        yield client


def paprika_ticker(coin_id: str, rank: int, price: float = 100.0, **extra: Any) -> Dict[str, Any]:
    name = coin_id.split("-", 1)[-1].title()
    ticker = {
        "id": coin_id,
        "name": name,
        "symbol": coin_id.split("-", 1)[0].upper(),
        "rank": rank,
        "circulating_supply": 19_000_000,
        "max_supply": 21_000_000,
        "quotes": {
            "USD": {
                "price": price,
                "volume_24h": 5_000_000,
                "market_cap": 2_000_000_000,
                "percent_change_24h": 1.25,
            }
        },
    }
    ticker.update(extra)
    return ticker


def paprika_coin(coin_id: str, description: str = "Peer-to-peer electronic cash.") -> Dict[str, Any]:
    return {
        "id": coin_id,
        "name": coin_id.split("-", 1)[-1].title(),
        "symbol": coin_id.split("-", 1)[0].upper(),
        "description": description,
    }


def histo_payload(start_seconds: int, step_seconds: int, count: int) -> Dict[str, Any]:
    return {
        "Response": "Success",
        "Data": {
            "Data": [
                {
                    "time": start_seconds + i * step_seconds,
                    "close": 100 + i,
                    "volumeto": 1000 + i,
                }
                for i in range(count)
            ]
        },
    }


def rates_payload(**rates: float) -> Dict[str, Any]:
    return {"result": "success", "base_code": "USD", "rates": {"USD": 1, **rates}}
