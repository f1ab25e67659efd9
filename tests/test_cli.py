import json
from decimal import Decimal
from unittest import mock

import pytest

from coin_market import cli
from coin_market.errors import RateLimitedError
from coin_market.fetchers import exchange_rate
from coin_market.models import CoinSummary


def _coin(name, symbol):
    return CoinSummary(name.lower(), name, symbol, Decimal(1), Decimal(1), 1, Decimal(0), "")


def test_parse_top_arguments():
    args = cli.parse_args(["--currency", "twd", "top", "--limit", "20", "--page", "2", "--search", "bit"])

    assert args.command == "top"
    assert args.currency == "twd"
    assert args.limit == 20
    assert args.page == 2
    assert args.search == "bit"
    assert args.provider is None


def test_parse_history_defaults_to_seven_days():
    args = cli.parse_args(["--provider", "coingecko", "history", "bitcoin"])
    assert args.provider == "coingecko"
    assert args.days == "7"


def test_unknown_provider_rejected():
    with pytest.raises(SystemExit):
        cli.parse_args(["--provider", "nowhere", "top"])


def test_filter_coins_matches_name_or_symbol():
    coins = [_coin("Bitcoin", "BTC"), _coin("Ethereum", "ETH"), _coin("Wrapped Bitcoin", "WBTC")]

    assert [c.symbol for c in cli.filter_coins(coins, "btc")] == ["BTC", "WBTC"]
    assert [c.symbol for c in cli.filter_coins(coins, "ETHER")] == ["ETH"]
    assert cli.filter_coins(coins, "  ") == coins


def test_rate_list_prints_supported_currencies(capsys):
    response = mock.Mock()
    response.json.return_value = {"result": "success", "rates": {"USD": 1, "TWD": 31.5, "EUR": 0.9}}

    with mock.patch.object(exchange_rate.requests, "get", return_value=response) as get:
        cli.main(["rate", "--list"])

    assert get.call_args[0][0].endswith("/latest/USD")
    assert json.loads(capsys.readouterr().out) == ["eur", "twd", "usd"]


def test_market_data_error_exits_with_user_message(monkeypatch, capsys):
    async def failing(args):
        raise RateLimitedError("GET /tickers", "coinpaprika", 429)

    monkeypatch.setattr(cli, "_async_main", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["top"])

    assert excinfo.value.code == 2
    assert RateLimitedError("x").user_message in capsys.readouterr().err


def test_output_is_json(monkeypatch, capsys):
    async def succeed(args):
        return {"value": {"currency": "twd", "rate": "31.5"}, "status": "cached_fresh", "stale": False}

    monkeypatch.setattr(cli, "_async_main", succeed)
    cli.main(["rate", "twd"])

    assert json.loads(capsys.readouterr().out)["value"]["rate"] == "31.5"
