"""
行情数据层的错误类型。

上游抓取函数抛出带类别的 MarketDataError，重试器原样重抛最后一次的错误，
服务层在没有旧缓存可用时把它交给调用方，调用方可按 kind 给出对应提示。
"""

from enum import Enum
from typing import Dict, Optional, Type

import httpx


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_UNREACHABLE = "network_unreachable"
    MALFORMED_RESPONSE = "malformed_response"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


USER_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: "请求过于频繁，请稍后再试。",
    ErrorKind.SERVICE_UNAVAILABLE: "行情服务目前不可用，请稍后再试。",
    ErrorKind.NETWORK_UNREACHABLE: "网络连接错误，请检查您的网络连线。",
    ErrorKind.MALFORMED_RESPONSE: "行情服务返回的数据格式异常。",
    ErrorKind.NOT_FOUND: "找不到对应的币种或币别。",
    ErrorKind.UNKNOWN: "无法取得数据，请稍后再试。",
}


class MarketDataError(Exception):
    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        status = f" (HTTP {self.status_code})" if self.status_code else ""
        return f"{prefix}{self.kind.value}: {self.message}{status}"


class RateLimitedError(MarketDataError):
    kind = ErrorKind.RATE_LIMITED


class ServiceUnavailableError(MarketDataError):
    kind = ErrorKind.SERVICE_UNAVAILABLE


class NetworkUnreachableError(MarketDataError):
    kind = ErrorKind.NETWORK_UNREACHABLE


class MalformedResponseError(MarketDataError):
    kind = ErrorKind.MALFORMED_RESPONSE


class NotFoundError(MarketDataError):
    kind = ErrorKind.NOT_FOUND


class UnknownMarketDataError(MarketDataError):
    kind = ErrorKind.UNKNOWN


_STATUS_ERRORS: Dict[int, Type[MarketDataError]] = {
    404: NotFoundError,
    429: RateLimitedError,
    502: ServiceUnavailableError,
    503: ServiceUnavailableError,
    504: ServiceUnavailableError,
}


def from_http_error(exc: httpx.HTTPError, provider: Optional[str] = None) -> MarketDataError:
    """把 httpx 异常映射为带类别的 MarketDataError。"""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        error_cls = _STATUS_ERRORS.get(status, UnknownMarketDataError)
        return error_cls(f"{exc.request.method} {exc.request.url}", provider, status)
    if isinstance(exc, httpx.TransportError):
        return NetworkUnreachableError(f"{type(exc).__name__}: {exc}", provider)
    return UnknownMarketDataError(f"{type(exc).__name__}: {exc}", provider)


def is_transient(exc: BaseException) -> bool:
    """
    可选的重试判定：找不到和格式错误不会因重试而好转。

    默认重试策略并不使用它（所有错误一律重试），需要时传给 RetryExecutor。
    """
    if isinstance(exc, (NotFoundError, MalformedResponseError)):
        return False
    return True
