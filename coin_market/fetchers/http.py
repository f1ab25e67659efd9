import json
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

import httpx

from coin_market.config import REQUEST_TIMEOUT
from coin_market.errors import MalformedResponseError, from_http_error
from coin_market.rate_limiter import AsyncConcurrencyLimiter

logger = logging.getLogger(__name__)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    limiter: Optional[AsyncConcurrencyLimiter] = None,
    params: Optional[Mapping[str, Any]] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Any:
    """
    发起 GET 请求并解析 JSON，浮点数按 Decimal 解析，避免价格在归一化前丢失精度。

    传输层与 HTTP 状态错误统一转换为带类别的 MarketDataError。
    """
    try:
        if limiter is not None:
            async with limiter:
                response = await client.get(url, params=params, timeout=timeout)
        else:
            response = await client.get(url, params=params, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        error = from_http_error(exc, provider)
        logger.debug("请求失败 %s：%s", url, error)
        raise error from exc

    try:
        return json.loads(response.text, parse_float=Decimal)
    except ValueError as exc:
        raise MalformedResponseError(f"响应不是合法 JSON：{url}", provider) from exc
