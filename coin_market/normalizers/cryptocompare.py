from typing import Any

from coin_market.models import PriceSeries, PricePoint, RangeSpec
from coin_market.normalizers.common import (
    build_series,
    optional_decimal,
    require_field,
    require_list,
    require_mapping,
    to_decimal,
    to_millis,
)

PROVIDER = "cryptocompare"


def to_price_series(raw: Any, range_spec: RangeSpec) -> PriceSeries:
    """
    histo* 接口的 {"Data": {"Data": [...]}} 结构转为价格序列。

    time 为秒级时间戳；close 作为价格，volumeto（以 USD 计的成交额）作为成交量。
    接口会多返回一根（limit + 1），按区间点数只保留最近的部分。
    """
    payload = require_mapping(raw, "history", PROVIDER)
    outer = require_mapping(require_field(payload, "Data", "history", PROVIDER), "history.Data", PROVIDER)
    buckets = require_list(outer.get("Data", []), "history.Data.Data", PROVIDER)

    points = []
    for bucket in buckets:
        bucket = require_mapping(bucket, "history bucket", PROVIDER)
        points.append(
            PricePoint(
                timestamp_millis=to_millis(bucket.get("time"), unit="s", provider=PROVIDER),
                price=to_decimal(require_field(bucket, "close", "history bucket", PROVIDER), provider=PROVIDER),
                volume=optional_decimal(bucket.get("volumeto"), PROVIDER),
            )
        )
    return build_series(points, max_points=range_spec.points)
