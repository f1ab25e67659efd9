import httpx
import pytest

from coin_market.errors import (
    ErrorKind,
    MalformedResponseError,
    NetworkUnreachableError,
    NotFoundError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownMarketDataError,
    from_http_error,
    is_transient,
)
from coin_market.fetchers.cryptocompare import _error_from_body


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.test/v1/tickers")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


@pytest.mark.parametrize(
    "status, expected",
    [
        (429, RateLimitedError),
        (503, ServiceUnavailableError),
        (502, ServiceUnavailableError),
        (404, NotFoundError),
        (500, UnknownMarketDataError),
        (400, UnknownMarketDataError),
    ],
)
def test_http_status_mapping(status, expected):
    error = from_http_error(_status_error(status), "coinpaprika")

    assert type(error) is expected
    assert error.status_code == status
    assert error.provider == "coinpaprika"


def test_transport_errors_are_network_unreachable():
    request = httpx.Request("GET", "https://api.example.test")
    for exc in (httpx.ConnectError("refused", request=request), httpx.ReadTimeout("slow", request=request)):
        assert isinstance(from_http_error(exc), NetworkUnreachableError)


def test_user_message_depends_on_kind():
    assert RateLimitedError("x").user_message != UnknownMarketDataError("x").user_message
    assert ServiceUnavailableError("x").kind is ErrorKind.SERVICE_UNAVAILABLE


def test_str_includes_provider_kind_and_status():
    text = str(RateLimitedError("GET /tickers", "coinpaprika", 429))
    assert "coinpaprika" in text
    assert "rate_limited" in text
    assert "429" in text


def test_transient_predicate():
    assert is_transient(RateLimitedError("x"))
    assert is_transient(NetworkUnreachableError("x"))
    assert not is_transient(NotFoundError("x"))
    assert not is_transient(MalformedResponseError("x"))


@pytest.mark.parametrize(
    "message, expected",
    [
        ("You are over your rate limit please upgrade your account!", RateLimitedError),
        ("fsym param is invalid: market does not exist for this coin pair", NotFoundError),
        ("Something else went wrong", UnknownMarketDataError),
    ],
)
def test_cryptocompare_error_body_classification(message, expected):
    assert type(_error_from_body(message)) is expected
