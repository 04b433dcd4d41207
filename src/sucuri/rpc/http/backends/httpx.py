# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import io
import logging
import ssl
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, BinaryIO, Generator, Iterable, Iterator

import httpx

from sucuri.exceptions import (
    ConfigurationError,
    TransportError,
    TransportTimeoutError,
    WriteTimeoutError,
)

if TYPE_CHECKING:
    from sucuri.rpc.http.config import ClientConfig

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 8192


@contextmanager
def map_transport_errors() -> Generator[None, None, None]:
    try:
        yield
    except httpx.TimeoutException as err:
        raise TransportTimeoutError(f"Request timed out: {err}") from err
    except httpx.TransportError as err:
        raise TransportError(f"Network error: {err}") from err


def build_ssl_verify(config: "ClientConfig") -> ssl.SSLContext | bool:
    """
    Return the httpx ``verify`` value for the configured TLS settings.

    With ``ignore_ssl`` set, hostname checking is switched off on the context
    in use. A context supplied through ``ssl_context`` is that same object, so
    the caller's context is modified and should not be shared with code that
    expects hostname checks.
    """
    if config.ssl_context is None and not config.ignore_ssl:
        return True

    context = config.ssl_context or ssl.create_default_context()
    if config.ignore_ssl:
        context.check_hostname = False
    return context


def build_client_kwargs(config: "ClientConfig") -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "timeout": httpx.Timeout(
            connect=config.connect_timeout / 1000,
            read=config.read_timeout / 1000,
            write=config.write_timeout / 1000,
            pool=None,
        ),
        "follow_redirects": config.follow_redirects,
        "verify": build_ssl_verify(config),
    }
    if config.proxy:
        kwargs["proxy"] = config.proxy
    if config.transport is not None:
        kwargs["transport"] = config.transport
    return kwargs


def iter_stream_body(
    stream: BinaryIO, write_timeout_ms: int, chunk_size: int = STREAM_CHUNK_SIZE
) -> Iterator[bytes]:
    start_time = time.monotonic()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk
        if (time.monotonic() - start_time) * 1000 > write_timeout_ms:
            raise WriteTimeoutError("Write timeout exceeded")


class HTTPXResponseStream(io.RawIOBase):
    """Readable binary stream over a live httpx response. Closing it closes the response."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        with map_transport_errors():
            while not self._pending:
                chunk = next(self._chunks, None)
                if chunk is None:
                    return 0
                self._pending = chunk
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self.response.close()
        super().close()


class HTTPXHttpRPCBackend:
    """Blocking transport built on a single ``httpx.Client`` per HTTP client."""

    def __init__(self, config: "ClientConfig"):
        self._client = httpx.Client(**build_client_kwargs(config))

    def build_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: bytes | Iterable[bytes] | None,
    ) -> httpx.Request:
        try:
            return self._client.build_request(
                method, url, headers=headers, content=content
            )
        except httpx.InvalidURL as err:
            raise ConfigurationError(f"Invalid URL {url!r}: {err}") from err

    def send(self, request: httpx.Request) -> httpx.Response:
        start_time = time.monotonic()
        with map_transport_errors():
            response = self._client.send(request, stream=True)
        logger.debug(
            "%s %s -> %s in %.3fs",
            request.method,
            request.url,
            response.status_code,
            time.monotonic() - start_time,
        )
        return response

    def close(self) -> None:
        self._client.close()


__all__ = [
    "STREAM_CHUNK_SIZE",
    "HTTPXHttpRPCBackend",
    "HTTPXResponseStream",
    "build_client_kwargs",
    "build_ssl_verify",
    "iter_stream_body",
    "map_transport_errors",
]
