from decimal import Decimal
from typing import Any

from coin_market.errors import MalformedResponseError, NotFoundError
from coin_market.normalizers.common import require_field, require_mapping, to_decimal

PROVIDER = "open-er-api"


def to_usd_rate(raw: Any, currency: str) -> Decimal:
    """从 {"rates": {"TWD": 31.5, ...}} 中取出 1 USD 兑换目标币别的数量。"""
    payload = require_mapping(raw, "rates payload", PROVIDER)
    rates = require_mapping(require_field(payload, "rates", "rates payload", PROVIDER), "rates", PROVIDER)
    code = currency.strip().upper()
    if code not in rates:
        raise NotFoundError(f"不支持的币别：{currency}", PROVIDER)
    rate = to_decimal(rates[code], default=Decimal(-1), provider=PROVIDER)
    if rate <= 0:
        raise MalformedResponseError(f"汇率数值异常：{code}={rates[code]!r}", PROVIDER)
    return rate
