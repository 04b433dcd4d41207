# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Sequence


class RestClientError(Exception):
    """Base class for every error raised by sucuri."""


class ConfigurationError(RestClientError):
    """Raised when a contract, a record or the client itself is misconfigured.

    Configuration errors are never retried.
    """


class FormatError(RestClientError, ValueError):
    """Raised when wire text cannot be decoded into the requested type."""


class UnsupportedTypeError(RestClientError, TypeError):

    def __init__(self, type_: Any, message: str | None = None):
        self.type_ = type_
        super().__init__(message or f"Unsupported type: {type_!r}")


class TransportError(RestClientError):
    """Raised when the network exchange fails (connect, read, write)."""


class TransportTimeoutError(TransportError):
    """Raised when a connect, read or write operation times out"""


class WriteTimeoutError(TransportTimeoutError):
    """Raised when streaming a request body takes longer than the write timeout"""


class RequestInterruptedError(TransportError):
    """Raised when a backoff sleep or a rate limiter wait is interrupted"""


class HttpStatusError(RestClientError):

    def __init__(self, status_code: int, text: str):
        self.status_code = status_code
        self.text = text
        super().__init__(f"HTTP error code: {status_code}, response: {text}")


class RedirectExhaustedError(RestClientError):

    def __init__(self, url: str, max_redirects: int):
        self.url = url
        self.max_redirects = max_redirects
        super().__init__(f"Maximum redirects exceeded ({max_redirects}) at {url}")


class BodyNotReplayableError(RestClientError):
    """Raised when a consumed, non-seekable stream body would have to be sent again"""


class RetriesExhaustedError(RestClientError):
    """Terminal failure of a call after every attempt failed.

    The last attempt's error is also chained as ``__cause__``.
    """

    def __init__(self, attempts: int, errors: Sequence[Exception]):
        self.attempts = attempts
        self.errors = list(errors)
        super().__init__(
            f"Request failed after {attempts} attempt(s): {self.last_error}"
        )

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None


NON_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    ConfigurationError,
    UnsupportedTypeError,
    RedirectExhaustedError,
    RequestInterruptedError,
    BodyNotReplayableError,
)


__all__ = [
    "RestClientError",
    "ConfigurationError",
    "FormatError",
    "UnsupportedTypeError",
    "TransportError",
    "TransportTimeoutError",
    "WriteTimeoutError",
    "RequestInterruptedError",
    "HttpStatusError",
    "RedirectExhaustedError",
    "BodyNotReplayableError",
    "RetriesExhaustedError",
    "NON_RETRYABLE_ERRORS",
]
