from typing import Any, Dict, List

import httpx

from coin_market.config import COINGECKO_BASE_URL, TOP_COINS_LIMIT
from coin_market.errors import NotFoundError
from coin_market.fetchers.http import get_json
from coin_market.models import RangeSpec
from coin_market.rate_limiter import coingecko_limiter

PROVIDER = "coingecko"


async def fetch_gecko_markets_async(client: httpx.AsyncClient) -> List[Dict[str, Any]]:
    return await get_json(
        client,
        f"{COINGECKO_BASE_URL}/coins/markets",
        provider=PROVIDER,
        limiter=coingecko_limiter,
        params={
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": TOP_COINS_LIMIT,
            "page": 1,
            "sparkline": "false",
        },
    )


async def fetch_gecko_coin_async(client: httpx.AsyncClient, coin_id: str) -> Dict[str, Any]:
    """元数据与多语言描述，不含行情（行情走 markets 接口）。"""
    return await get_json(
        client,
        f"{COINGECKO_BASE_URL}/coins/{coin_id}",
        provider=PROVIDER,
        limiter=coingecko_limiter,
        params={
            "localization": "true",
            "tickers": "false",
            "market_data": "false",
            "community_data": "false",
            "developer_data": "false",
            "sparkline": "false",
        },
    )


async def fetch_gecko_quote_async(client: httpx.AsyncClient, coin_id: str) -> Dict[str, Any]:
    """单个币种的 USD 报价，markets 接口按 ids 过滤后只取第一条。"""
    rows = await get_json(
        client,
        f"{COINGECKO_BASE_URL}/coins/markets",
        provider=PROVIDER,
        limiter=coingecko_limiter,
        params={"vs_currency": "usd", "ids": coin_id},
    )
    if isinstance(rows, list):
        if not rows:
            raise NotFoundError(f"未找到币种 {coin_id}", PROVIDER)
        return rows[0]
    return rows


async def fetch_gecko_market_chart_async(
    client: httpx.AsyncClient,
    coin_id: str,
    range_spec: RangeSpec,
) -> Dict[str, Any]:
    """CoinGecko 自行决定粒度，只需传天数；历史接口以币种 id 而非代号为键。"""
    return await get_json(
        client,
        f"{COINGECKO_BASE_URL}/coins/{coin_id}/market_chart",
        provider=PROVIDER,
        limiter=coingecko_limiter,
        params={"vs_currency": "usd", "days": range_spec.selector},
    )
