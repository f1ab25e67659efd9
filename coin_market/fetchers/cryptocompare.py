from typing import Any, Dict

import httpx

from coin_market.config import CRYPTOCOMPARE_BASE_URL
from coin_market.errors import (
    MarketDataError,
    NotFoundError,
    RateLimitedError,
    UnknownMarketDataError,
)
from coin_market.fetchers.http import get_json
from coin_market.models import RangeSpec
from coin_market.rate_limiter import cryptocompare_limiter

PROVIDER = "cryptocompare"


def _error_from_body(message: str) -> MarketDataError:
    """CryptoCompare 出错时仍返回 200，只能根据 Message 文本判断类别。"""
    lowered = message.lower()
    if "rate limit" in lowered:
        return RateLimitedError(message, PROVIDER)
    if "does not exist" in lowered or "no data" in lowered:
        return NotFoundError(message, PROVIDER)
    return UnknownMarketDataError(message, PROVIDER)


async def fetch_cryptocompare_history_async(
    client: httpx.AsyncClient,
    symbol: str,
    range_spec: RangeSpec,
) -> Dict[str, Any]:
    """按区间选择对应的 histominute / histohour / histoday 接口，计价固定为 USD。"""
    payload = await get_json(
        client,
        f"{CRYPTOCOMPARE_BASE_URL}/{range_spec.endpoint}",
        provider=PROVIDER,
        limiter=cryptocompare_limiter,
        params={
            "fsym": symbol.strip().upper(),
            "tsym": "USD",
            "limit": range_spec.points,
            "aggregate": range_spec.aggregate,
        },
    )

    if isinstance(payload, dict) and payload.get("Response") == "Error":
        raise _error_from_body(str(payload.get("Message") or "未知错误"))

    return payload
