"""
加密货币行情命令行工具。

功能：
- top：排名前 100 的币种行情，可分页、按名称或代号筛选
- detail：单个币种的详情（描述、各币别价格、供应量）
- history：价格与成交量走势（1 / 7 / 14 / 30 / 90 / 365 天或 max）
- rate：USD 兑目标币别汇率，--list 列出支持的币别

结果以 JSON 输出到 stdout；数据为过期缓存时 stale 字段为 true。
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

import httpx
import requests

from coin_market.config import BASE_CURRENCY, Settings
from coin_market.errors import MarketDataError
from coin_market.fetchers import list_supported_currencies
from coin_market.logging_config import setup_logging
from coin_market.models import CoinSummary, FetchResult, to_jsonable
from coin_market.service import create_service
from coin_market.sources import SOURCES


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        description="从公开行情接口获取币种列表、详情、历史走势与汇率（带缓存、重试与降级）"
    )
    parser.add_argument(
        "--provider",
        choices=sorted(SOURCES),
        help="数据源，默认读取 COIN_MARKET_PROVIDER，未设置时为 coinpaprika",
    )
    parser.add_argument("--currency", default=BASE_CURRENCY, help="显示币别，如 usd、twd，默认 usd")
    parser.add_argument("--log-level", default="WARNING", help="日志级别，默认 WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    top = sub.add_parser("top", help="排名前 100 的币种")
    top.add_argument("--limit", type=int, help="每页条数，不传则返回全部")
    top.add_argument("--page", type=int, default=1, help="页码，默认 1")
    top.add_argument("--search", help="按名称或代号筛选（不区分大小写）")

    detail = sub.add_parser("detail", help="单个币种详情")
    detail.add_argument("coin_id", help="币种 id，如 btc-bitcoin（CoinGecko 为 bitcoin）")

    history = sub.add_parser("history", help="历史价格走势")
    history.add_argument("symbol", help="币种代号，如 BTC（CoinGecko 传币种 id）")
    history.add_argument("--days", default="7", help="时间区间：1、7、14、30、90、365 或 max，默认 7")

    rate = sub.add_parser("rate", help="USD 兑目标币别汇率")
    rate.add_argument("target", nargs="?", help="目标币别，默认使用 --currency")
    rate.add_argument("--list", action="store_true", help="列出支持的全部币别")

    return parser.parse_args(argv)


def filter_coins(coins: Iterable[CoinSummary], query: Optional[str]) -> List[CoinSummary]:
    """名称或代号包含 query 的币种，query 为空时原样返回。"""
    coins = list(coins)
    if not query or not query.strip():
        return coins
    needle = query.strip().lower()
    return [coin for coin in coins if needle in coin.name.lower() or needle in coin.symbol.lower()]


def main(argv: Optional[Sequence[str]] = None) -> None:
    """主函数：解析参数、执行查询并输出 JSON。"""
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        if args.command == "rate" and args.list:
            print(json.dumps(list_supported_currencies(), ensure_ascii=False))
            return
        output = asyncio.run(_async_main(args))
    except MarketDataError as exc:
        print(f"执行失败：{exc.user_message}（{exc}）", file=sys.stderr)
        sys.exit(2)
    except (ValueError, httpx.HTTPError, requests.RequestException) as exc:
        print(f"执行失败：{exc}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(output, ensure_ascii=False, indent=2))


async def _async_main(args: argparse.Namespace) -> dict:
    settings = Settings.from_env()
    if args.provider:
        settings = replace(settings, provider=args.provider)

    async with httpx.AsyncClient() as client:
        service = create_service(client, settings)

        if args.command == "top":
            result = await service.get_top_coins(args.currency, limit=args.limit, page=args.page)
            matched = filter_coins(result.value, args.search)
            return to_jsonable(FetchResult(tuple(matched), result.status, result.fetched_at_millis))
        if args.command == "detail":
            return to_jsonable(await service.get_coin_detail(args.coin_id, args.currency))
        if args.command == "history":
            return to_jsonable(await service.get_price_history(args.symbol, args.days, args.currency))
        return to_jsonable(await service.get_exchange_rate(args.target or args.currency))


if __name__ == "__main__":
    main()
