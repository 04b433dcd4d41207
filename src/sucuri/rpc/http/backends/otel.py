# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import httpx
from opentelemetry import context, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from sucuri.rpc.http.interceptors import RequestInterceptor


class TracedRequestInterceptor(RequestInterceptor):
    """Propagates the current trace context and baggage through request headers."""

    def on_request(self, request: httpx.Request) -> None:
        span = trace.get_current_span()
        if not span.get_span_context().is_valid:
            return

        ctx = context.get_current()
        headers: dict[str, str] = {}
        W3CBaggagePropagator().inject(headers, ctx)
        TraceContextTextMapPropagator().inject(headers, ctx)

        for key, value in headers.items():
            request.headers[key] = value


__all__ = ["TracedRequestInterceptor"]
