# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Pytest configuration and fixtures for sucuri tests.
"""

from typing import Callable, Generator

import httpx
import pytest

from sucuri.rpc.http import HttpRpcClient, HttpRpcClientBuilder

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Handler):
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


@pytest.fixture
def make_client() -> Generator[
    Callable[..., tuple[HttpRpcClient, RecordingTransport]], None, None
]:
    """Build clients backed by a recording mock transport; closed after the test."""
    clients: list[HttpRpcClient] = []

    def factory(
        handler: Handler,
        configure: Callable[[HttpRpcClientBuilder], HttpRpcClientBuilder] | None = None,
    ) -> tuple[HttpRpcClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        builder = (
            HttpRpcClient.builder()
            .base_url("https://api.example.com")
            .transport(transport)
        )
        if configure is not None:
            builder = configure(builder)
        client = builder.build()
        clients.append(client)
        return client, transport

    yield factory

    for client in clients:
        client.close()
