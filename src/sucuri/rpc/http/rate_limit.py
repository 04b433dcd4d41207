# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import threading
import time
from typing import Protocol, runtime_checkable

from sucuri.exceptions import ConfigurationError, RequestInterruptedError

logger = logging.getLogger(__name__)


@runtime_checkable
class RateLimiter(Protocol):
    """Grants permission to send a request, blocking until a slot is free."""

    def acquire(self) -> None: ...


class SimpleRateLimiter(RateLimiter):
    """
    Fixed-window limiter: at most ``max_requests_per_minute`` grants per
    ``WINDOW_SECONDS`` window.

    One instance is shared by every call of a client; its state is guarded by
    a single condition variable. Waiters wake when the window ends (or on
    ``interrupt``) and re-check the count under the lock.
    """

    WINDOW_SECONDS: float = 60.0

    def __init__(self, max_requests_per_minute: int):
        if max_requests_per_minute < 1:
            raise ConfigurationError(
                f"max_requests_per_minute must be positive, got {max_requests_per_minute}"
            )
        self.max_requests_per_minute = max_requests_per_minute
        self._condition = threading.Condition()
        self._window_start = time.monotonic()
        self._request_count = 0
        self._interrupted = False

    def acquire(self) -> None:
        with self._condition:
            while True:
                if self._interrupted:
                    raise RequestInterruptedError("Request interrupted by rate limiter")

                now = time.monotonic()
                elapsed = now - self._window_start
                if elapsed >= self.WINDOW_SECONDS:
                    self._window_start = now
                    self._request_count = 0
                    elapsed = 0.0

                if self._request_count < self.max_requests_per_minute:
                    self._request_count += 1
                    return

                wait_time = self.WINDOW_SECONDS - elapsed
                logger.debug(
                    "Rate limit of %s requests reached, waiting %.2fs",
                    self.max_requests_per_minute,
                    wait_time,
                )
                self._condition.wait(wait_time)

    def interrupt(self) -> None:
        """Wake every waiter and make current and future ``acquire`` calls fail."""
        with self._condition:
            self._interrupted = True
            self._condition.notify_all()


__all__ = ["RateLimiter", "SimpleRateLimiter"]
