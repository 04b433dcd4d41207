# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import os
import ssl
from typing import TYPE_CHECKING, Any, Callable, Mapping, Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sucuri.codec.converters import Converter, JsonConverter
from sucuri.exceptions import ConfigurationError
from sucuri.rpc.http.interceptors import RequestInterceptor, ResponseInterceptor
from sucuri.rpc.http.rate_limit import RateLimiter, SimpleRateLimiter

if TYPE_CHECKING:
    from sucuri.rpc.http.client import HttpRpcClient

logger = logging.getLogger(__name__)

RetryCallback = Callable[[int, Exception, float], None]


class ClientConfig(BaseModel):
    """
    Immutable settings shared by every call of an :class:`HttpRpcClient`.

    Timeouts are in milliseconds.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str | None = None
    # RequestInterceptor / ResponseInterceptor instances, in registration order
    request_interceptors: tuple[Any, ...] = ()
    response_interceptors: tuple[Any, ...] = ()
    ssl_context: ssl.SSLContext | None = None
    ignore_ssl: bool = False
    connect_timeout: int = Field(default=10000, ge=0)
    read_timeout: int = Field(default=30000, ge=0)
    write_timeout: int = Field(default=30000, ge=0)
    max_retries: int = Field(default=0, ge=0)
    follow_redirects: bool = True
    proxy: str | None = None
    # RateLimiter
    rate_limiter: Any = None
    # Converter
    converter: Any = Field(default_factory=JsonConverter)
    transport: httpx.BaseTransport | None = None
    on_retry: RetryCallback | None = None


class RestClientEnvConfig(BaseModel):
    """Client settings read from environment variables."""

    REST_CLIENT_BASE_URL: str | None = None
    REST_CLIENT_CONNECT_TIMEOUT_MS: int | None = None
    REST_CLIENT_READ_TIMEOUT_MS: int | None = None
    REST_CLIENT_WRITE_TIMEOUT_MS: int | None = None
    REST_CLIENT_MAX_RETRIES: int | None = None
    REST_CLIENT_FOLLOW_REDIRECTS: bool | None = None
    REST_CLIENT_PROXY_URL: str | None = None
    REST_CLIENT_RATE_LIMIT_PER_MINUTE: int | None = None
    REST_CLIENT_IGNORE_SSL: bool | None = None


class HttpRpcClientBuilder:
    """
    Fluent builder for :class:`HttpRpcClient`::

        client = (
            HttpRpcClientBuilder()
            .base_url("https://api.example.com")
            .connect_timeout(5000)
            .max_retries(2)
            .add_request_interceptor(BearerTokenAuth(token))
            .build()
        )
    """

    def __init__(self) -> None:
        self._base_url: str | None = None
        self._request_interceptors: list[RequestInterceptor] = []
        self._response_interceptors: list[ResponseInterceptor] = []
        self._ssl_context: ssl.SSLContext | None = None
        self._ignore_ssl = False
        self._connect_timeout = 10000
        self._read_timeout = 30000
        self._write_timeout = 30000
        self._max_retries = 0
        self._follow_redirects = True
        self._proxy: str | None = None
        self._rate_limiter: RateLimiter | None = None
        self._converter: Converter | None = None
        self._transport: httpx.BaseTransport | None = None
        self._on_retry: RetryCallback | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        try:
            env = RestClientEnvConfig.model_validate(
                {**(os.environ if environ is None else environ)}
            )
        except ValidationError as err:
            raise ConfigurationError(f"Invalid client environment: {err}") from err

        builder = cls()
        if env.REST_CLIENT_BASE_URL is not None:
            builder.base_url(env.REST_CLIENT_BASE_URL)
        if env.REST_CLIENT_CONNECT_TIMEOUT_MS is not None:
            builder.connect_timeout(env.REST_CLIENT_CONNECT_TIMEOUT_MS)
        if env.REST_CLIENT_READ_TIMEOUT_MS is not None:
            builder.read_timeout(env.REST_CLIENT_READ_TIMEOUT_MS)
        if env.REST_CLIENT_WRITE_TIMEOUT_MS is not None:
            builder.write_timeout(env.REST_CLIENT_WRITE_TIMEOUT_MS)
        if env.REST_CLIENT_MAX_RETRIES is not None:
            builder.max_retries(env.REST_CLIENT_MAX_RETRIES)
        if env.REST_CLIENT_FOLLOW_REDIRECTS is not None:
            builder.follow_redirects(env.REST_CLIENT_FOLLOW_REDIRECTS)
        if env.REST_CLIENT_PROXY_URL is not None:
            builder.proxy_url(env.REST_CLIENT_PROXY_URL)
        if env.REST_CLIENT_RATE_LIMIT_PER_MINUTE is not None:
            builder.rate_limiter(env.REST_CLIENT_RATE_LIMIT_PER_MINUTE)
        if env.REST_CLIENT_IGNORE_SSL:
            builder.trust_all_ssl()
        return builder

    def base_url(self, base_url: str) -> Self:
        self._base_url = base_url
        return self

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> Self:
        self._request_interceptors.append(interceptor)
        return self

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> Self:
        self._response_interceptors.append(interceptor)
        return self

    def ssl_context(self, context: ssl.SSLContext) -> Self:
        self._ssl_context = context
        return self

    def ignore_ssl(self, ignore: bool = True) -> Self:
        """
        Skip hostname verification on TLS connections.

        When combined with ``ssl_context``, the supplied context gets
        ``check_hostname`` switched off when the client is built.
        """
        self._ignore_ssl = ignore
        return self

    def trust_all_ssl(self) -> Self:
        """Accept any server certificate and skip hostname verification."""
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        self._ssl_context = context
        self._ignore_ssl = True
        return self

    def connect_timeout(self, timeout_ms: int) -> Self:
        self._connect_timeout = timeout_ms
        return self

    def read_timeout(self, timeout_ms: int) -> Self:
        self._read_timeout = timeout_ms
        return self

    def write_timeout(self, timeout_ms: int) -> Self:
        self._write_timeout = timeout_ms
        return self

    def max_retries(self, max_retries: int) -> Self:
        self._max_retries = max_retries
        return self

    def follow_redirects(self, follow: bool) -> Self:
        self._follow_redirects = follow
        return self

    def proxy(self, host: str, port: int) -> Self:
        return self.proxy_url(f"http://{host}:{port}")

    def proxy_url(self, url: str) -> Self:
        self._proxy = url
        return self

    def rate_limiter(self, limiter: int | RateLimiter) -> Self:
        if isinstance(limiter, int):
            limiter = SimpleRateLimiter(limiter)
        self._rate_limiter = limiter
        return self

    def converter(self, converter: Converter) -> Self:
        self._converter = converter
        return self

    def transport(self, transport: httpx.BaseTransport) -> Self:
        self._transport = transport
        return self

    def on_retry(self, callback: RetryCallback) -> Self:
        self._on_retry = callback
        return self

    def build_config(self) -> ClientConfig:
        try:
            return ClientConfig(
                base_url=self._base_url,
                request_interceptors=tuple(self._request_interceptors),
                response_interceptors=tuple(self._response_interceptors),
                ssl_context=self._ssl_context,
                ignore_ssl=self._ignore_ssl,
                connect_timeout=self._connect_timeout,
                read_timeout=self._read_timeout,
                write_timeout=self._write_timeout,
                max_retries=self._max_retries,
                follow_redirects=self._follow_redirects,
                proxy=self._proxy,
                rate_limiter=self._rate_limiter,
                converter=self._converter or JsonConverter(),
                transport=self._transport,
                on_retry=self._on_retry,
            )
        except ValidationError as err:
            raise ConfigurationError(f"Invalid client configuration: {err}") from err

    def build(self) -> "HttpRpcClient":
        from sucuri.rpc.http.client import HttpRpcClient

        config = self.build_config()
        logger.debug(
            "Building client for %s (max_retries=%s, follow_redirects=%s)",
            config.base_url,
            config.max_retries,
            config.follow_redirects,
        )
        return HttpRpcClient(config)


__all__ = [
    "ClientConfig",
    "RestClientEnvConfig",
    "HttpRpcClientBuilder",
    "RetryCallback",
]
