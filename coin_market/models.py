"""
统一的内部数据模型。

各上游返回的结构互不兼容，归一化层把它们都转换成这里的实体。
金额字段统一使用 Decimal，缓存中的实体一律以 USD 计价。
"""

from dataclasses import dataclass, fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Mapping, Optional, Tuple, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class RangeSpec:
    selector: str
    endpoint: str
    bucket_millis: int
    points: int
    aggregate: int = 1


@dataclass(frozen=True)
class CoinSummary:
    id: str
    name: str
    symbol: str
    current_price: Decimal
    market_cap: Decimal
    market_cap_rank: int
    price_change_pct_24h: Decimal
    image_url: str
    volume_24h: Decimal = Decimal(0)


@dataclass(frozen=True)
class CoinDetail:
    id: str
    name: str
    symbol: str
    image_large_url: str
    description: Mapping[str, str]
    preferred_description: str
    current_price_by_currency: Mapping[str, Decimal]
    market_cap_by_currency: Mapping[str, Decimal]
    volume_24h_by_currency: Mapping[str, Decimal]
    price_change_pct_24h: Decimal
    circulating_supply: Decimal
    # None 表示无上限，与 0 区分
    max_supply: Optional[Decimal] = None


@dataclass(frozen=True)
class PricePoint:
    timestamp_millis: int
    price: Decimal
    volume: Optional[Decimal] = None


PriceSeries = Tuple[PricePoint, ...]


@dataclass(frozen=True)
class ExchangeRate:
    currency: str
    rate: Decimal
    fetched_at_millis: int


class FetchStatus(str, Enum):
    CACHE_HIT = "cache_hit"
    CACHED_FRESH = "cached_fresh"
    STALE_FALLBACK = "stale_fallback"


@dataclass(frozen=True)
class FetchResult(Generic[V]):
    value: V
    status: FetchStatus
    fetched_at_millis: int

    @property
    def stale(self) -> bool:
        return self.status is FetchStatus.STALE_FALLBACK


def to_jsonable(obj: Any) -> Any:
    """把实体（及其嵌套结构）转换成可 json.dumps 的基本类型，Decimal 转为字符串。"""
    if isinstance(obj, FetchResult):
        return {
            "value": to_jsonable(obj.value),
            "status": obj.status.value,
            "stale": obj.stale,
            "fetched_at_millis": obj.fetched_at_millis,
        }
    if is_dataclass(obj):
        # 不用 asdict：它会深拷贝字段，而只读映射无法被拷贝
        return {field.name: to_jsonable(getattr(obj, field.name)) for field in fields(obj)}
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Mapping):
        return {key: to_jsonable(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    return obj
