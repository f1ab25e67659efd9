from typing import Any, Dict, List

import httpx

from coin_market.config import COINPAPRIKA_BASE_URL
from coin_market.fetchers.http import get_json
from coin_market.rate_limiter import coinpaprika_limiter

PROVIDER = "coinpaprika"


async def fetch_paprika_tickers_async(client: httpx.AsyncClient) -> List[Dict[str, Any]]:
    """全部币种的行情列表（未排序，排名与截取由归一化层处理）。"""
    return await get_json(
        client,
        f"{COINPAPRIKA_BASE_URL}/tickers",
        provider=PROVIDER,
        limiter=coinpaprika_limiter,
    )


async def fetch_paprika_coin_async(client: httpx.AsyncClient, coin_id: str) -> Dict[str, Any]:
    """币种元数据：名称、代号、描述。"""
    return await get_json(
        client,
        f"{COINPAPRIKA_BASE_URL}/coins/{coin_id}",
        provider=PROVIDER,
        limiter=coinpaprika_limiter,
    )


async def fetch_paprika_ticker_async(client: httpx.AsyncClient, coin_id: str) -> Dict[str, Any]:
    """单个币种的 USD 报价与供应量。"""
    return await get_json(
        client,
        f"{COINPAPRIKA_BASE_URL}/tickers/{coin_id}",
        provider=PROVIDER,
        limiter=coinpaprika_limiter,
    )
