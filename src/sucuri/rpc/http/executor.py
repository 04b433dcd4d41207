# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import threading
from typing import Any, Iterable
from urllib.parse import urljoin

import httpx

from sucuri.codec.converters import Converter
from sucuri.exceptions import (
    NON_RETRYABLE_ERRORS,
    BodyNotReplayableError,
    RedirectExhaustedError,
    RequestInterruptedError,
    RetriesExhaustedError,
)
from sucuri.rpc.http.backends.httpx import (
    HTTPXHttpRPCBackend,
    iter_stream_body,
    map_transport_errors,
)
from sucuri.rpc.http.config import ClientConfig
from sucuri.rpc.http.descriptors import MethodDescriptor, RequestSpec
from sucuri.rpc.http.pipeline import ResponsePipeline
from sucuri.rpc.http.resolver import is_raw_body

logger = logging.getLogger(__name__)


class RequestBody:
    """
    Body of one call, produced again for every attempt and redirect.

    Seekable streams are rewound to the position they had when the call
    started. A non-seekable stream can only be sent once.
    """

    def __init__(self, body: Any, converter: Converter, write_timeout_ms: int):
        self._body = body
        self._converter = converter
        self._write_timeout_ms = write_timeout_ms
        self._is_stream = is_raw_body(body) and not isinstance(
            body, (bytes, bytearray, memoryview)
        )
        self._start: int | None = None
        self._consumed = False
        if self._is_stream and _is_seekable(body):
            self._start = body.tell()

    @property
    def replayable(self) -> bool:
        return not self._is_stream or not self._consumed or self._start is not None

    def content(self) -> bytes | Iterable[bytes] | None:
        if self._body is None:
            return None
        if isinstance(self._body, (bytes, bytearray, memoryview)):
            return bytes(self._body)
        if not self._is_stream:
            return self._converter.write(self._body)

        if self._consumed:
            if self._start is None:
                raise BodyNotReplayableError(
                    "Stream body was already sent and cannot be rewound"
                )
            self._body.seek(self._start)
        self._consumed = True
        return iter_stream_body(self._body, self._write_timeout_ms)


def _is_seekable(stream: Any) -> bool:
    seekable = getattr(stream, "seekable", None)
    return callable(seekable) and bool(seekable())


class ReliabilityExecutor:
    """
    Runs one resolved request with the client's reliability policies.

    Each attempt waits for the rate limiter, sends the request (following
    301/302/303 by hand when the transport does not), and runs the response
    pipeline. Any failure of an attempt is retried with exponential backoff
    (``BASE_DELAY * 2 ** attempt``) until ``max_retries`` is exhausted, except
    for the errors in ``NON_RETRYABLE_ERRORS``.
    """

    MAX_REDIRECTS = 5
    BASE_DELAY = 0.1
    REDIRECT_STATUSES = frozenset({301, 302, 303})

    def __init__(
        self,
        config: ClientConfig,
        backend: HTTPXHttpRPCBackend,
        interrupted: threading.Event | None = None,
    ):
        self._config = config
        self._backend = backend
        self._pipeline = ResponsePipeline(
            converter=config.converter,
            interceptors=config.response_interceptors,
        )
        self._interrupted = interrupted or threading.Event()

    def execute(self, spec: RequestSpec, descriptor: MethodDescriptor) -> Any:
        attempts = self._config.max_retries + 1
        errors: list[Exception] = []
        body = RequestBody(
            spec.body, self._config.converter, self._config.write_timeout
        )

        for attempt in range(attempts):
            try:
                return self._execute_once(spec, descriptor, body)
            except NON_RETRYABLE_ERRORS:
                raise
            except Exception as err:
                errors.append(err)

                if attempt >= attempts - 1:
                    logger.error(
                        "%s %s failed after %s attempt(s): %s",
                        spec.verb,
                        spec.url,
                        attempts,
                        err,
                    )
                    raise RetriesExhaustedError(attempts, errors) from err

                if not body.replayable:
                    logger.error(
                        "%s %s failed and its stream body cannot be sent again: %s",
                        spec.verb,
                        spec.url,
                        err,
                    )
                    raise RetriesExhaustedError(attempt + 1, errors) from err

                delay = self.BASE_DELAY * (2**attempt)
                logger.warning(
                    "Request %s %s failed: %s, retrying in %.2fs (attempt %s/%s)",
                    spec.verb,
                    spec.url,
                    err,
                    delay,
                    attempt + 1,
                    attempts,
                )
                if self._config.on_retry is not None:
                    self._config.on_retry(attempt, err, delay)
                self._sleep(delay)

        # This should never be reached
        raise RuntimeError("Unexpected error in retry logic")

    def _sleep(self, delay: float) -> None:
        if self._interrupted.wait(delay):
            raise RequestInterruptedError("Request interrupted")

    def _execute_once(
        self, spec: RequestSpec, descriptor: MethodDescriptor, body: RequestBody
    ) -> Any:
        if self._config.rate_limiter is not None:
            self._config.rate_limiter.acquire()

        url = spec.url
        redirect_count = 0

        while True:
            response = self._send(spec, url, body)

            location = response.headers.get("Location")
            if (
                not self._config.follow_redirects
                and response.status_code in self.REDIRECT_STATUSES
                and location
            ):
                response.close()
                if redirect_count >= self.MAX_REDIRECTS:
                    raise RedirectExhaustedError(url, self.MAX_REDIRECTS)
                url = urljoin(url, location)
                redirect_count += 1
                logger.debug("Following redirect %s to %s", redirect_count, url)
                continue

            with map_transport_errors():
                return self._pipeline.process(response, descriptor)

    def _send(
        self, spec: RequestSpec, url: str, body: RequestBody
    ) -> httpx.Response:
        request = self._backend.build_request(
            spec.verb, url, spec.headers, body.content()
        )

        for interceptor in self._config.request_interceptors:
            interceptor.on_request(request)

        return self._backend.send(request)


__all__ = ["ReliabilityExecutor", "RequestBody"]
