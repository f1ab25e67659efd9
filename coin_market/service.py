"""
行情数据服务：缓存、重试、归一化与降级策略都在这里组合。

每个读取操作的流程相同：
1. 缓存未过期，直接返回（CACHE_HIT）
2. 否则经重试器调用上游，归一化后写入缓存（CACHED_FRESH）
3. 重试用尽仍失败时，若有过期缓存则返回旧值（STALE_FALLBACK），否则抛出带类别的错误

缓存中的实体一律以 USD 计价，换汇只在返回前做一次。
"""

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar, Union

import httpx

from coin_market.cache import CacheEntry, TTLCache
from coin_market.config import BASE_CURRENCY, DEFAULT_PROVIDER, Settings, resolve_range
from coin_market.errors import MarketDataError
from coin_market.models import (
    CoinDetail,
    CoinSummary,
    ExchangeRate,
    FetchResult,
    FetchStatus,
    PriceSeries,
)
from coin_market.normalizers import apply_exchange_rate
from coin_market.retry import RetryExecutor
from coin_market.sources import MarketSource, get_source

T = TypeVar("T")

logger = logging.getLogger(__name__)

TOP_COINS_KEY = "top_coins"


class MarketDataService:
    def __init__(
        self,
        client: httpx.AsyncClient,
        source: Union[str, MarketSource] = DEFAULT_PROVIDER,
        *,
        listing_cache: Optional[TTLCache] = None,
        detail_cache: Optional[TTLCache] = None,
        history_cache: Optional[TTLCache] = None,
        rate_cache: Optional[TTLCache] = None,
        retry: Optional[RetryExecutor] = None,
        coalesce_requests: bool = True,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        defaults = Settings()
        self._client = client
        self._source = get_source(source) if isinstance(source, str) else source
        # 空的 TTLCache 为假值，这里必须用 is None 判断
        if listing_cache is None:
            listing_cache = TTLCache(defaults.listing_ttl_millis, clock)
        if detail_cache is None:
            detail_cache = TTLCache(defaults.detail_ttl_millis, clock)
        if history_cache is None:
            history_cache = TTLCache(defaults.history_ttl_millis, clock)
        if rate_cache is None:
            rate_cache = TTLCache(defaults.exchange_rate_ttl_millis, clock)
        self._listing_cache = listing_cache
        self._detail_cache = detail_cache
        self._history_cache = history_cache
        self._rate_cache = rate_cache
        self._retry = retry if retry is not None else RetryExecutor()
        self._coalesce = coalesce_requests
        self._inflight: Dict[str, asyncio.Future] = {}

    @property
    def source(self) -> MarketSource:
        return self._source

    async def get_top_coins(
        self,
        display_currency: str = BASE_CURRENCY,
        limit: Optional[int] = None,
        page: int = 1,
    ) -> FetchResult[Tuple[CoinSummary, ...]]:
        """排名前 100 的币种；limit / page 在缓存的完整列表上分页。"""
        if limit is not None and limit < 1:
            raise ValueError("limit must be >= 1")
        if page < 1:
            raise ValueError("page must be >= 1")

        async def refresh() -> Tuple[CoinSummary, ...]:
            raw = await self._retry.execute(lambda: self._source.fetch_ranked_tickers(self._client))
            return tuple(self._source.to_coin_summaries(raw))

        result = await self._load(self._listing_cache, TOP_COINS_KEY, refresh)
        coins = result.value
        if limit is not None:
            start = (page - 1) * limit
            coins = coins[start : start + limit]
        return await self._convert(result, coins, display_currency)

    async def get_coin_detail(
        self,
        coin_id: str,
        display_currency: str = BASE_CURRENCY,
    ) -> FetchResult[CoinDetail]:
        coin_id = coin_id.strip()
        if not coin_id:
            raise ValueError("coin_id must not be empty")

        async def refresh() -> CoinDetail:
            # 元数据与报价并发请求，各自重试，任一失败则整体失败
            meta, ticker = await asyncio.gather(
                self._retry.execute(lambda: self._source.fetch_coin_meta(self._client, coin_id)),
                self._retry.execute(lambda: self._source.fetch_coin_ticker(self._client, coin_id)),
            )
            return self._source.to_coin_detail(meta, ticker)

        result = await self._load(self._detail_cache, f"detail:{coin_id}", refresh)
        return await self._convert(result, result.value, display_currency)

    async def get_price_history(
        self,
        symbol: str,
        range_selector: Any,
        display_currency: str = BASE_CURRENCY,
    ) -> FetchResult[PriceSeries]:
        """空序列是合法结果（例如新上线的币种），同样会被缓存。"""
        symbol = self._source.history_symbol(symbol)
        if not symbol:
            raise ValueError("symbol must not be empty")
        range_spec = resolve_range(range_selector)

        async def refresh() -> PriceSeries:
            raw = await self._retry.execute(
                lambda: self._source.fetch_history_series(self._client, symbol, range_spec)
            )
            return self._source.to_price_series(raw, range_spec)

        key = f"history:{symbol}:{range_spec.selector}"
        result = await self._load(self._history_cache, key, refresh)
        return await self._convert(result, result.value, display_currency)

    async def get_exchange_rate(self, target_currency: str) -> FetchResult[ExchangeRate]:
        code = target_currency.strip().lower()
        if not code:
            raise ValueError("target_currency must not be empty")
        if code == BASE_CURRENCY:
            now = self._rate_cache.now()
            return FetchResult(ExchangeRate(code, Decimal(1), now), FetchStatus.CACHED_FRESH, now)

        async def refresh() -> ExchangeRate:
            raw = await self._retry.execute(lambda: self._source.fetch_usd_rates(self._client))
            rate = self._source.to_usd_rate(raw, code)
            return ExchangeRate(code, rate, self._rate_cache.now())

        return await self._load(self._rate_cache, f"rate:{code}", refresh)

    async def _convert(self, result: FetchResult, value: T, display_currency: str) -> FetchResult[T]:
        currency = display_currency.strip().lower()
        if currency == BASE_CURRENCY:
            if value is result.value:
                return result
            return replace(result, value=value)

        rate_result = await self.get_exchange_rate(currency)
        converted = apply_exchange_rate(value, rate_result.value.rate, currency)
        stale = result.stale or rate_result.stale
        return FetchResult(
            converted,
            FetchStatus.STALE_FALLBACK if stale else result.status,
            min(result.fetched_at_millis, rate_result.fetched_at_millis),
        )

    async def _load(
        self,
        cache: TTLCache,
        key: str,
        refresh: Callable[[], Awaitable[Any]],
    ) -> FetchResult:
        entry = cache.get_entry(key)
        if entry is not None:
            logger.debug("缓存命中：%s", key)
            return FetchResult(entry.value, FetchStatus.CACHE_HIT, entry.fetched_at_millis)

        try:
            entry = await self._single_flight(key, lambda: self._refresh(cache, key, refresh))
        except MarketDataError as exc:
            stale = cache.get_stale_entry(key)
            if stale is None:
                logger.error("获取 %s 失败，且没有可用的缓存：%s", key, exc)
                raise
            logger.warning("获取 %s 失败，返回过期缓存（抓取于 %d）：%s", key, stale.fetched_at_millis, exc)
            return FetchResult(stale.value, FetchStatus.STALE_FALLBACK, stale.fetched_at_millis)

        return FetchResult(entry.value, FetchStatus.CACHED_FRESH, entry.fetched_at_millis)

    async def _refresh(
        self,
        cache: TTLCache,
        key: str,
        refresh: Callable[[], Awaitable[Any]],
    ) -> CacheEntry:
        logger.info("从 %s 获取 %s", self._source.name, key)
        value = await refresh()
        return cache.put(key, value)

    async def _single_flight(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """同一个 key 的并发未命中共享一次上游请求。"""
        if not self._coalesce:
            return await factory()

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task

            def _forget(done: asyncio.Future, key: str = key) -> None:
                if self._inflight.get(key) is done:
                    del self._inflight[key]

            task.add_done_callback(_forget)
        # shield：某个调用方被取消时不影响其它等待同一请求的调用方
        return await asyncio.shield(task)


def create_service(
    client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], int]] = None,
) -> MarketDataService:
    """按配置构造服务，每个缓存域使用各自的 TTL。"""
    settings = settings or Settings.from_env()
    return MarketDataService(
        client,
        settings.provider,
        listing_cache=TTLCache(settings.listing_ttl_millis, clock),
        detail_cache=TTLCache(settings.detail_ttl_millis, clock),
        history_cache=TTLCache(settings.history_ttl_millis, clock),
        rate_cache=TTLCache(settings.exchange_rate_ttl_millis, clock),
        retry=RetryExecutor(settings.max_retries, settings.initial_retry_delay_millis),
        coalesce_requests=settings.coalesce_requests,
    )
