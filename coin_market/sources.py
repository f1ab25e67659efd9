"""
数据源组合：每个来源把一组抓取函数和对应的归一化函数绑定在一起。

服务层只依赖 MarketSource 的接口，不关心具体是哪家上游返回的结构。
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List

import httpx

from coin_market.fetchers import (
    fetch_cryptocompare_history_async,
    fetch_gecko_coin_async,
    fetch_gecko_market_chart_async,
    fetch_gecko_markets_async,
    fetch_gecko_quote_async,
    fetch_paprika_coin_async,
    fetch_paprika_ticker_async,
    fetch_paprika_tickers_async,
    fetch_usd_rates_async,
)
from coin_market.models import CoinDetail, CoinSummary, PriceSeries, RangeSpec
from coin_market.normalizers import coingecko, coinpaprika, cryptocompare, to_usd_rate


@dataclass(frozen=True)
class MarketSource:
    name: str
    fetch_ranked_tickers: Callable[[httpx.AsyncClient], Awaitable[Any]]
    fetch_coin_meta: Callable[[httpx.AsyncClient, str], Awaitable[Any]]
    fetch_coin_ticker: Callable[[httpx.AsyncClient, str], Awaitable[Any]]
    fetch_history_series: Callable[[httpx.AsyncClient, str, RangeSpec], Awaitable[Any]]
    fetch_usd_rates: Callable[[httpx.AsyncClient], Awaitable[Any]]
    to_coin_summaries: Callable[[Any], List[CoinSummary]]
    to_coin_detail: Callable[[Any, Any], CoinDetail]
    to_price_series: Callable[[Any, RangeSpec], PriceSeries]
    to_usd_rate: Callable[[Any, str], Decimal]
    # 历史走势缓存键与请求参数共用的代号规范化
    history_symbol: Callable[[str], str] = str.strip


# 行情与详情来自 CoinPaprika，历史走势来自 CryptoCompare（按代号查询）
COINPAPRIKA = MarketSource(
    name="coinpaprika",
    fetch_ranked_tickers=fetch_paprika_tickers_async,
    fetch_coin_meta=fetch_paprika_coin_async,
    fetch_coin_ticker=fetch_paprika_ticker_async,
    fetch_history_series=fetch_cryptocompare_history_async,
    fetch_usd_rates=fetch_usd_rates_async,
    to_coin_summaries=coinpaprika.to_coin_summaries,
    to_coin_detail=coinpaprika.to_coin_detail,
    to_price_series=cryptocompare.to_price_series,
    to_usd_rate=to_usd_rate,
    history_symbol=lambda symbol: symbol.strip().upper(),
)

# CoinGecko 全部接口以币种 id 为键，历史走势的 symbol 参数应传 id
COINGECKO = MarketSource(
    name="coingecko",
    fetch_ranked_tickers=fetch_gecko_markets_async,
    fetch_coin_meta=fetch_gecko_coin_async,
    fetch_coin_ticker=fetch_gecko_quote_async,
    fetch_history_series=fetch_gecko_market_chart_async,
    fetch_usd_rates=fetch_usd_rates_async,
    to_coin_summaries=coingecko.to_coin_summaries,
    to_coin_detail=coingecko.to_coin_detail,
    to_price_series=coingecko.to_price_series,
    to_usd_rate=to_usd_rate,
    history_symbol=lambda coin_id: coin_id.strip().lower(),
)

SOURCES: Dict[str, MarketSource] = {
    COINPAPRIKA.name: COINPAPRIKA,
    COINGECKO.name: COINGECKO,
}


def get_source(name: str) -> MarketSource:
    try:
        return SOURCES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"未知的数据源：{name}，可选：{', '.join(sorted(SOURCES))}") from None
