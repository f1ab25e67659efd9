from typing import Any, Dict, List

import httpx
import requests

from coin_market.config import EXCHANGE_RATE_BASE_URL, REQUEST_TIMEOUT
from coin_market.errors import ServiceUnavailableError, UnknownMarketDataError
from coin_market.fetchers.http import get_json
from coin_market.rate_limiter import exchange_rate_limiter

PROVIDER = "open-er-api"


def _check_result(payload: Any) -> None:
    if isinstance(payload, dict) and payload.get("result") == "error":
        reason = str(payload.get("error-type") or "未知错误")
        if reason in {"quota-reached", "service-unavailable"}:
            raise ServiceUnavailableError(reason, PROVIDER)
        raise UnknownMarketDataError(reason, PROVIDER)


def list_supported_currencies() -> List[str]:
    """列出汇率接口支持的全部币别代码（小写），供命令行参数校验使用。"""
    response = requests.get(f"{EXCHANGE_RATE_BASE_URL}/latest/USD", timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    payload = response.json()
    _check_result(payload)
    return sorted(code.lower() for code in (payload.get("rates") or {}))


async def fetch_usd_rates_async(client: httpx.AsyncClient) -> Dict[str, Any]:
    """以 USD 为基准的全部汇率：rates[X] 表示 1 USD 可兑换多少 X。"""
    payload = await get_json(
        client,
        f"{EXCHANGE_RATE_BASE_URL}/latest/USD",
        provider=PROVIDER,
        limiter=exchange_rate_limiter,
    )
    _check_result(payload)
    return payload
