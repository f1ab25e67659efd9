import os
from dataclasses import dataclass
from typing import Dict, Tuple

from coin_market.models import RangeSpec

# 上游基础 URL
COINPAPRIKA_BASE_URL = "https://api.coinpaprika.com/v1"
COINPAPRIKA_IMAGE_URL = "https://static.coinpaprika.com/coin/{coin_id}/logo.png"
CRYPTOCOMPARE_BASE_URL = "https://min-api.cryptocompare.com/data/v2"
COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
EXCHANGE_RATE_BASE_URL = "https://open.er-api.com/v6"

REQUEST_TIMEOUT = 15.0
TOP_COINS_LIMIT = 100

COINPAPRIKA_MAX_CONCURRENT_REQUESTS = 10
CRYPTOCOMPARE_MAX_CONCURRENT_REQUESTS = 10
COINGECKO_MAX_CONCURRENT_REQUESTS = 5
EXCHANGE_RATE_MAX_CONCURRENT_REQUESTS = 2
COINPAPRIKA_MIN_REQUEST_INTERVAL = 0.05
CRYPTOCOMPARE_MIN_REQUEST_INTERVAL = 0.05
# CoinGecko 免费接口限流较严
COINGECKO_MIN_REQUEST_INTERVAL = 0.5
EXCHANGE_RATE_MIN_REQUEST_INTERVAL = 0.0

# 缓存有效期（毫秒）
LISTING_TTL_MILLIS = 60_000
DETAIL_TTL_MILLIS = 60_000
HISTORY_TTL_MILLIS = 5 * 60_000
EXCHANGE_RATE_TTL_MILLIS = 60 * 60_000

# 重试策略：3 次重试，1s 起步，每次翻倍
MAX_RETRIES = 3
INITIAL_RETRY_DELAY_MILLIS = 1000

DEFAULT_PROVIDER = "coinpaprika"
BASE_CURRENCY = "usd"

# 描述语言回退顺序，第一个非空的生效
DESCRIPTION_LANGUAGES: Tuple[str, ...] = ("zh-tw", "zh", "en")
NO_DESCRIPTION = "暂无描述"

MAX_HISTORY_DAYS = 365

MINUTE_MILLIS = 60_000
HOUR_MILLIS = 60 * MINUTE_MILLIS
DAY_MILLIS = 24 * HOUR_MILLIS

HISTORY_RANGES: Dict[str, RangeSpec] = {
    "1": RangeSpec("1", "histominute", 10 * MINUTE_MILLIS, 144, aggregate=10),
    "7": RangeSpec("7", "histohour", HOUR_MILLIS, 168),
    "14": RangeSpec("14", "histohour", HOUR_MILLIS, 336),
    "30": RangeSpec("30", "histohour", HOUR_MILLIS, 720),
}


def resolve_range(selector) -> RangeSpec:
    """
    把区间选择器（"1"、"7"、"30"、"max" 等）解析为分桶宽度和点数。

    未在表中的正整数天数按日线处理，"max" 使用 MAX_HISTORY_DAYS。
    """
    token = str(selector).strip().lower()
    if token.isdigit():
        # "07" 与 "7" 是同一个区间
        token = str(int(token))
    if token in HISTORY_RANGES:
        return HISTORY_RANGES[token]
    if token == "max":
        return RangeSpec("max", "histoday", DAY_MILLIS, MAX_HISTORY_DAYS)
    if token.isdigit() and token != "0":
        return RangeSpec(token, "histoday", DAY_MILLIS, int(token))
    raise ValueError(f"不支持的时间区间：{selector!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {name} 需要整数，得到 {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    provider: str = DEFAULT_PROVIDER
    listing_ttl_millis: int = LISTING_TTL_MILLIS
    detail_ttl_millis: int = DETAIL_TTL_MILLIS
    history_ttl_millis: int = HISTORY_TTL_MILLIS
    exchange_rate_ttl_millis: int = EXCHANGE_RATE_TTL_MILLIS
    max_retries: int = MAX_RETRIES
    initial_retry_delay_millis: int = INITIAL_RETRY_DELAY_MILLIS
    coalesce_requests: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """读取 COIN_MARKET_* 环境变量覆盖默认值。"""
        coalesce = os.environ.get("COIN_MARKET_COALESCE_REQUESTS", "1")
        return cls(
            provider=os.environ.get("COIN_MARKET_PROVIDER", DEFAULT_PROVIDER),
            listing_ttl_millis=_env_int("COIN_MARKET_LISTING_TTL_MS", LISTING_TTL_MILLIS),
            detail_ttl_millis=_env_int("COIN_MARKET_DETAIL_TTL_MS", DETAIL_TTL_MILLIS),
            history_ttl_millis=_env_int("COIN_MARKET_HISTORY_TTL_MS", HISTORY_TTL_MILLIS),
            exchange_rate_ttl_millis=_env_int(
                "COIN_MARKET_EXCHANGE_RATE_TTL_MS", EXCHANGE_RATE_TTL_MILLIS
            ),
            max_retries=_env_int("COIN_MARKET_MAX_RETRIES", MAX_RETRIES),
            initial_retry_delay_millis=_env_int(
                "COIN_MARKET_RETRY_DELAY_MS", INITIAL_RETRY_DELAY_MILLIS
            ),
            coalesce_requests=coalesce.strip().lower() not in {"0", "false", "no"},
        )
