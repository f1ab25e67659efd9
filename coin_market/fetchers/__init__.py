from .coingecko import (
    fetch_gecko_coin_async,
    fetch_gecko_market_chart_async,
    fetch_gecko_markets_async,
    fetch_gecko_quote_async,
)
from .coinpaprika import (
    fetch_paprika_coin_async,
    fetch_paprika_ticker_async,
    fetch_paprika_tickers_async,
)
from .cryptocompare import fetch_cryptocompare_history_async
from .exchange_rate import fetch_usd_rates_async, list_supported_currencies

__all__ = [
    "fetch_paprika_tickers_async",
    "fetch_paprika_coin_async",
    "fetch_paprika_ticker_async",
    "fetch_cryptocompare_history_async",
    "fetch_gecko_markets_async",
    "fetch_gecko_coin_async",
    "fetch_gecko_quote_async",
    "fetch_gecko_market_chart_async",
    "fetch_usd_rates_async",
    "list_supported_currencies",
]
