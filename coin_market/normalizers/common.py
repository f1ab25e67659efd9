"""
各上游共用的结构校验、缺省值策略与换汇逻辑。

缺字段的处理集中在这里：必填字段缺失抛 MalformedResponseError，
行情数值缺失按 0 处理（保持运算可进行），供应上限缺失保持 None（表示无上限）。
"""

from dataclasses import replace
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from coin_market.config import DESCRIPTION_LANGUAGES, NO_DESCRIPTION
from coin_market.errors import MalformedResponseError
from coin_market.models import CoinDetail, CoinSummary, PricePoint

T = TypeVar("T")

ZERO = Decimal(0)
ONE = Decimal(1)


def require_mapping(raw: Any, context: str, provider: Optional[str] = None) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(f"{context}：期望对象，得到 {type(raw).__name__}", provider)
    return raw


def require_list(raw: Any, context: str, provider: Optional[str] = None) -> List[Any]:
    if not isinstance(raw, list):
        raise MalformedResponseError(f"{context}：期望列表，得到 {type(raw).__name__}", provider)
    return raw


def require_field(raw: Mapping[str, Any], key: str, context: str, provider: Optional[str] = None) -> Any:
    value = raw.get(key)
    if value is None or value == "":
        raise MalformedResponseError(f"{context}：缺少字段 {key}", provider)
    return value


def to_decimal(value: Any, default: Decimal = ZERO, provider: Optional[str] = None) -> Decimal:
    """数值字段转 Decimal；None 使用 default，无法解析的值视为格式错误。"""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise MalformedResponseError(f"数值字段不应为布尔值：{value!r}", provider)
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise MalformedResponseError(f"无法解析数值：{value!r}", provider) from exc
    # json 会把 NaN / Infinity 解析成 float，这里一并拒绝
    if not number.is_finite():
        raise MalformedResponseError(f"数值不是有限数：{value!r}", provider)
    return number


def optional_decimal(value: Any, provider: Optional[str] = None) -> Optional[Decimal]:
    if value is None:
        return None
    return to_decimal(value, provider=provider)


def to_int(value: Any, default: int = 0, provider: Optional[str] = None) -> int:
    if value is None or value == "":
        return default
    try:
        return int(to_decimal(value, provider=provider))
    except (InvalidOperation, ValueError, OverflowError) as exc:
        raise MalformedResponseError(f"无法解析整数：{value!r}", provider) from exc


def to_millis(value: Any, unit: str = "ms", provider: Optional[str] = None) -> int:
    """把时间戳统一为毫秒；unit 为 "s" 时乘以 1000。"""
    if value is None:
        raise MalformedResponseError("时间戳缺失", provider)
    stamp = to_decimal(value, provider=provider)
    if unit == "s":
        stamp = stamp * 1000
    elif unit != "ms":
        raise ValueError(f"unknown timestamp unit: {unit}")
    return int(stamp)


def pick_description(
    descriptions: Mapping[str, str],
    languages: Sequence[str] = DESCRIPTION_LANGUAGES,
) -> str:
    for language in languages:
        text = descriptions.get(language)
        if text and text.strip():
            return text
    return NO_DESCRIPTION


def clean_descriptions(raw: Mapping[str, Any]) -> Mapping[str, str]:
    return freeze_mapping(
        {
            str(language): text
            for language, text in raw.items()
            if isinstance(text, str) and text.strip()
        }
    )


def freeze_mapping(values: Mapping[str, T]) -> Mapping[str, T]:
    """实体里的字典字段用只读视图保存，缓存中的对象不会被调用方改写。"""
    return MappingProxyType(dict(values))


def build_series(points: Iterable[PricePoint], max_points: Optional[int] = None) -> Tuple[PricePoint, ...]:
    """按时间升序排列，重复时间戳保留第一条；max_points 只保留最近的若干点。"""
    seen = set()
    ordered: List[PricePoint] = []
    for point in sorted(points, key=lambda p: p.timestamp_millis):
        if point.timestamp_millis in seen:
            continue
        seen.add(point.timestamp_millis)
        ordered.append(point)
    if max_points is not None and len(ordered) > max_points:
        ordered = ordered[-max_points:]
    return tuple(ordered)


def _scale_map(values: Mapping[str, Decimal], rate: Decimal, currency: Optional[str]) -> Mapping[str, Decimal]:
    if currency is None:
        return freeze_mapping({code: value * rate for code, value in values.items()})
    return freeze_mapping({currency.lower(): value * rate for value in values.values()})


def apply_exchange_rate(entity: T, rate: Decimal, currency: Optional[str] = None) -> T:
    """
    把实体中的所有金额字段乘以汇率。

    支持 CoinSummary、CoinDetail、PricePoint 以及它们组成的 list / tuple。
    rate 为 1 且不改币别时直接返回原对象。CoinDetail 的按币别字典由归一化层
    生成时只有 "usd" 一项，传入 currency 时换成对应币别的键。
    """
    rate = to_decimal(rate)
    if rate == ONE and currency is None:
        return entity

    if isinstance(entity, (list, tuple)):
        return type(entity)(apply_exchange_rate(item, rate, currency) for item in entity)
    if isinstance(entity, CoinSummary):
        return replace(
            entity,
            current_price=entity.current_price * rate,
            market_cap=entity.market_cap * rate,
            volume_24h=entity.volume_24h * rate,
        )
    if isinstance(entity, CoinDetail):
        return replace(
            entity,
            current_price_by_currency=_scale_map(entity.current_price_by_currency, rate, currency),
            market_cap_by_currency=_scale_map(entity.market_cap_by_currency, rate, currency),
            volume_24h_by_currency=_scale_map(entity.volume_24h_by_currency, rate, currency),
        )
    if isinstance(entity, PricePoint):
        return replace(
            entity,
            price=entity.price * rate,
            volume=entity.volume * rate if entity.volume is not None else None,
        )
    raise TypeError(f"cannot convert {type(entity).__name__}")
