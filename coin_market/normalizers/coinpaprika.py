from typing import Any, List, Mapping

from coin_market.config import COINPAPRIKA_IMAGE_URL, TOP_COINS_LIMIT
from coin_market.models import CoinDetail, CoinSummary
from coin_market.normalizers.common import (
    clean_descriptions,
    freeze_mapping,
    optional_decimal,
    pick_description,
    require_field,
    require_list,
    require_mapping,
    to_decimal,
    to_int,
)

PROVIDER = "coinpaprika"


def coin_image_url(coin_id: str) -> str:
    return COINPAPRIKA_IMAGE_URL.format(coin_id=coin_id)


def _usd_quote(raw: Mapping[str, Any], context: str) -> Mapping[str, Any]:
    quotes = raw.get("quotes")
    if quotes is None:
        return {}
    quotes = require_mapping(quotes, f"{context}.quotes", PROVIDER)
    usd = quotes.get("USD")
    if usd is None:
        return {}
    return require_mapping(usd, f"{context}.quotes.USD", PROVIDER)


def to_coin_summary(raw_ticker: Any) -> CoinSummary:
    ticker = require_mapping(raw_ticker, "ticker", PROVIDER)
    coin_id = str(require_field(ticker, "id", "ticker", PROVIDER))
    usd = _usd_quote(ticker, f"ticker[{coin_id}]")
    return CoinSummary(
        id=coin_id,
        name=str(ticker.get("name") or coin_id),
        symbol=str(ticker.get("symbol") or "").upper(),
        current_price=to_decimal(usd.get("price"), provider=PROVIDER),
        market_cap=to_decimal(usd.get("market_cap"), provider=PROVIDER),
        market_cap_rank=to_int(ticker.get("rank"), provider=PROVIDER),
        price_change_pct_24h=to_decimal(usd.get("percent_change_24h"), provider=PROVIDER),
        image_url=coin_image_url(coin_id),
        volume_24h=to_decimal(usd.get("volume_24h"), provider=PROVIDER),
    )


def _rank_key(summary: CoinSummary):
    # CoinPaprika 用 rank=0 表示未排名，放到最后
    ranked = summary.market_cap_rank > 0
    return (not ranked, summary.market_cap_rank if ranked else 0)


def to_coin_summaries(raw_tickers: Any, limit: int = TOP_COINS_LIMIT) -> List[CoinSummary]:
    """按排名升序（稳定排序，同名次保持接口原顺序），截取前 limit 个。"""
    entries = require_list(raw_tickers, "tickers", PROVIDER)
    summaries = [to_coin_summary(entry) for entry in entries]
    summaries.sort(key=_rank_key)
    return summaries[:limit]


def to_coin_detail(raw_meta: Any, raw_ticker: Any) -> CoinDetail:
    meta = require_mapping(raw_meta, "coin", PROVIDER)
    ticker = require_mapping(raw_ticker, "ticker", PROVIDER)
    coin_id = str(require_field(meta, "id", "coin", PROVIDER))
    usd = _usd_quote(ticker, f"ticker[{coin_id}]")

    text = meta.get("description")
    descriptions = clean_descriptions({"en": text} if isinstance(text, str) else {})

    max_supply = optional_decimal(ticker.get("max_supply"), PROVIDER)
    if max_supply is not None and max_supply == 0:
        # CoinPaprika 用 0 表示没有供应上限
        max_supply = None

    return CoinDetail(
        id=coin_id,
        name=str(meta.get("name") or coin_id),
        symbol=str(meta.get("symbol") or "").upper(),
        image_large_url=str(meta.get("logo") or coin_image_url(coin_id)),
        description=descriptions,
        preferred_description=pick_description(descriptions),
        current_price_by_currency=freeze_mapping({"usd": to_decimal(usd.get("price"), provider=PROVIDER)}),
        market_cap_by_currency=freeze_mapping({"usd": to_decimal(usd.get("market_cap"), provider=PROVIDER)}),
        volume_24h_by_currency=freeze_mapping({"usd": to_decimal(usd.get("volume_24h"), provider=PROVIDER)}),
        price_change_pct_24h=to_decimal(usd.get("percent_change_24h"), provider=PROVIDER),
        circulating_supply=to_decimal(ticker.get("circulating_supply"), provider=PROVIDER),
        max_supply=max_supply,
    )
