from typing import Any, List, Mapping

from coin_market.config import TOP_COINS_LIMIT
from coin_market.errors import MalformedResponseError
from coin_market.models import CoinDetail, CoinSummary, PriceSeries, PricePoint, RangeSpec
from coin_market.normalizers.common import (
    build_series,
    clean_descriptions,
    freeze_mapping,
    optional_decimal,
    pick_description,
    require_field,
    require_list,
    require_mapping,
    to_decimal,
    to_int,
    to_millis,
)

PROVIDER = "coingecko"


def to_coin_summary(raw_market: Any) -> CoinSummary:
    market = require_mapping(raw_market, "market", PROVIDER)
    coin_id = str(require_field(market, "id", "market", PROVIDER))
    return CoinSummary(
        id=coin_id,
        name=str(market.get("name") or coin_id),
        symbol=str(market.get("symbol") or "").upper(),
        current_price=to_decimal(market.get("current_price"), provider=PROVIDER),
        market_cap=to_decimal(market.get("market_cap"), provider=PROVIDER),
        market_cap_rank=to_int(market.get("market_cap_rank"), provider=PROVIDER),
        price_change_pct_24h=to_decimal(market.get("price_change_percentage_24h"), provider=PROVIDER),
        image_url=str(market.get("image") or ""),
        volume_24h=to_decimal(market.get("total_volume"), provider=PROVIDER),
    )


def to_coin_summaries(raw_markets: Any, limit: int = TOP_COINS_LIMIT) -> List[CoinSummary]:
    entries = require_list(raw_markets, "markets", PROVIDER)
    summaries = [to_coin_summary(entry) for entry in entries]
    # market_cap_rank 为空的排到最后，其余按名次稳定排序
    summaries.sort(key=lambda s: (s.market_cap_rank <= 0, s.market_cap_rank))
    return summaries[:limit]


def _image_large(meta: Mapping[str, Any]) -> str:
    image = meta.get("image")
    if isinstance(image, Mapping):
        return str(image.get("large") or image.get("small") or "")
    return str(image or "")


def to_coin_detail(raw_meta: Any, raw_quote: Any) -> CoinDetail:
    meta = require_mapping(raw_meta, "coin", PROVIDER)
    quote = require_mapping(raw_quote, "quote", PROVIDER)
    coin_id = str(require_field(meta, "id", "coin", PROVIDER))

    raw_descriptions = meta.get("description") or {}
    descriptions = clean_descriptions(require_mapping(raw_descriptions, "coin.description", PROVIDER))

    return CoinDetail(
        id=coin_id,
        name=str(meta.get("name") or coin_id),
        symbol=str(meta.get("symbol") or "").upper(),
        image_large_url=_image_large(meta),
        description=descriptions,
        preferred_description=pick_description(descriptions),
        current_price_by_currency=freeze_mapping({"usd": to_decimal(quote.get("current_price"), provider=PROVIDER)}),
        market_cap_by_currency=freeze_mapping({"usd": to_decimal(quote.get("market_cap"), provider=PROVIDER)}),
        volume_24h_by_currency=freeze_mapping({"usd": to_decimal(quote.get("total_volume"), provider=PROVIDER)}),
        price_change_pct_24h=to_decimal(quote.get("price_change_percentage_24h"), provider=PROVIDER),
        circulating_supply=to_decimal(quote.get("circulating_supply"), provider=PROVIDER),
        max_supply=optional_decimal(quote.get("max_supply"), PROVIDER),
    )


def _pairs(raw: Any, context: str) -> List[List[Any]]:
    rows = require_list(raw, context, PROVIDER)
    for row in rows:
        if not isinstance(row, list) or len(row) < 2:
            raise MalformedResponseError(f"{context}：期望 [时间, 数值]，得到 {row!r}", PROVIDER)
    return rows


def to_price_series(raw: Any, range_spec: RangeSpec) -> PriceSeries:
    """
    market_chart 的 prices / total_volumes 按下标对齐合并，时间戳已是毫秒。

    CoinGecko 按天数自行选择粒度，不按区间点数截断。
    """
    payload = require_mapping(raw, "market_chart", PROVIDER)
    prices = _pairs(payload.get("prices", []), "market_chart.prices")
    volumes = _pairs(payload.get("total_volumes", []), "market_chart.total_volumes")

    points = []
    for index, (stamp, price) in enumerate(row[:2] for row in prices):
        volume = volumes[index][1] if index < len(volumes) else None
        points.append(
            PricePoint(
                timestamp_millis=to_millis(stamp, unit="ms", provider=PROVIDER),
                price=to_decimal(price, provider=PROVIDER),
                volume=optional_decimal(volume, PROVIDER),
            )
        )
    return build_series(points)
