# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
End-to-end tests of the HTTP RPC client against a mock transport.
"""

import io
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable

import httpx
import pytest

from sucuri.exceptions import (
    BodyNotReplayableError,
    ConfigurationError,
    FormatError,
    HttpStatusError,
    RedirectExhaustedError,
    RequestInterruptedError,
    RetriesExhaustedError,
    TransportError,
    TransportTimeoutError,
    UnsupportedTypeError,
)
from sucuri.rpc.http import (
    Body,
    Delete,
    Get,
    Head,
    PathParam,
    Post,
    Query,
    RestClient,
)


@dataclass
class User:
    id: int | None = None
    name: str | None = None


class UserService:
    @Get("/users/{id}")
    @PathParam("id")
    def get_user(self, id: int) -> User: ...

    @Get("/users")
    @Query("name")
    def find_users(self, name: str | None = None) -> list[User]: ...

    @Post("/users")
    @Body("user")
    def create_user(self, user: User) -> User: ...

    @Delete("/users/{id}")
    @PathParam("id")
    def delete_user(self, id: int) -> None: ...

    @Head("/users")
    def head_users(self) -> None: ...

    @Get("/users/{id}/avatar")
    @PathParam("id")
    def avatar(self, id: int) -> bytes: ...

    @Get("/users/{id}/export")
    @PathParam("id")
    def export(self, id: int) -> BinaryIO: ...

    @Post("/upload")
    @Body("data")
    def upload(self, data: Any) -> str: ...

    @Get("/motd")
    def motd(self) -> str: ...

    @Get("/count")
    def count(self) -> int: ...

    @Get("/ambiguous")
    def ambiguous(self) -> int | str: ...

    def not_mapped(self) -> str: ...


@RestClient("https://other.example.com/v2")
class OtherService:
    @Get("/ping")
    def ping(self) -> str: ...


class UnboundService:
    @Get("/ping")
    def ping(self) -> str: ...


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


class TestServiceProxy:
    """Test suite for contract proxies and typed results."""

    def test_typed_get(self, make_client: Callable[..., Any]) -> None:
        """Test a GET returning a decoded record."""
        client, transport = make_client(
            lambda request: json_response({"id": 1, "name": "ana", "extra": True})
        )
        service = client.create(UserService)

        user = service.get_user(1)

        assert user == User(id=1, name="ana")
        request = transport.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.example.com/users/1"

    def test_list_result(self, make_client: Callable[..., Any]) -> None:
        """Test a GET returning a list of records with a query parameter."""
        client, transport = make_client(
            lambda request: json_response([{"id": 1}, {"id": 2}])
        )

        users = client.create(UserService).find_users(name="bia")

        assert users == [User(id=1), User(id=2)]
        assert transport.requests[0].url.params["name"] == "bia"

    def test_omitted_optional_query(self, make_client: Callable[..., Any]) -> None:
        """Test that a defaulted None query parameter is not sent."""
        client, transport = make_client(lambda request: json_response([]))

        assert client.create(UserService).find_users() == []
        assert str(transport.requests[0].url) == "https://api.example.com/users"

    def test_post_json_body(self, make_client: Callable[..., Any]) -> None:
        """Test that record bodies are sent as JSON."""
        client, transport = make_client(
            lambda request: json_response({"id": 9, **json.loads(request.content)})
        )

        created = client.create(UserService).create_user(User(name="ana"))

        assert created == User(id=9, name="ana")
        request = transport.requests[0]
        assert request.content == b'{"name":"ana"}'
        assert request.headers["Content-Type"] == "application/json"

    def test_raw_stream_body(self, make_client: Callable[..., Any]) -> None:
        """Test that file-like bodies are streamed as octet streams."""
        client, transport = make_client(lambda request: httpx.Response(200, text="ok"))

        assert client.create(UserService).upload(io.BytesIO(b"payload")) == "ok"

        request = transport.requests[0]
        assert request.content == b"payload"
        assert request.headers["Content-Type"] == "application/octet-stream"

    def test_bytes_body(self, make_client: Callable[..., Any]) -> None:
        """Test that bytes bodies are sent verbatim."""
        client, transport = make_client(lambda request: httpx.Response(200, text="ok"))

        client.create(UserService).upload(b"\x00\x01")

        assert transport.requests[0].content == b"\x00\x01"

    def test_void_ignores_status(self, make_client: Callable[..., Any]) -> None:
        """Test that void methods return None whatever the status code."""
        client, transport = make_client(lambda request: httpx.Response(500, text="boom"))
        service = client.create(UserService)

        assert service.delete_user(3) is None
        assert service.head_users() is None
        assert [r.method for r in transport.requests] == ["DELETE", "HEAD"]

    def test_bytes_result(self, make_client: Callable[..., Any]) -> None:
        """Test that bytes results are returned raw."""
        client, _ = make_client(lambda request: httpx.Response(404, content=b"\x89PNG"))

        assert client.create(UserService).avatar(1) == b"\x89PNG"

    def test_stream_result(self, make_client: Callable[..., Any]) -> None:
        """Test that stream results can be read incrementally."""
        client, _ = make_client(lambda request: httpx.Response(200, content=b"a,b\n1,2\n"))

        stream = client.create(UserService).export(1)
        try:
            assert stream.status_code == 200
            assert stream.read(4) == b"a,b\n"
            assert stream.read() == b"1,2\n"
        finally:
            stream.close()
        assert stream.closed

    def test_text_result_uses_declared_charset(self, make_client: Callable[..., Any]) -> None:
        """Test that text is decoded with the response charset."""
        client, _ = make_client(
            lambda request: httpx.Response(
                200,
                content="olá".encode("latin-1"),
                headers={"Content-Type": "text/plain; charset=ISO-8859-1"},
            )
        )

        assert client.create(UserService).motd() == "olá"

    def test_text_result_defaults_to_utf8(self, make_client: Callable[..., Any]) -> None:
        """Test that text without a charset is decoded as UTF-8."""
        client, _ = make_client(
            lambda request: httpx.Response(200, content="olá".encode("utf-8"))
        )

        assert client.create(UserService).motd() == "olá"

    def test_non_success_status(self, make_client: Callable[..., Any]) -> None:
        """Test that non-2xx responses raise HttpStatusError."""
        client, _ = make_client(lambda request: httpx.Response(404, text="not found"))

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).get_user(1)

        error = exc_info.value.last_error
        assert isinstance(error, HttpStatusError)
        assert error.status_code == 404
        assert error.text == "not found"
        assert str(error) == "HTTP error code: 404, response: not found"
        assert exc_info.value.__cause__ is error

    def test_contract_base_url_overrides_client(self, make_client: Callable[..., Any]) -> None:
        """Test that @RestClient base URLs take precedence."""
        client, transport = make_client(lambda request: httpx.Response(200, text="pong"))

        assert client.create(OtherService).ping() == "pong"
        assert str(transport.requests[0].url) == "https://other.example.com/v2/ping"

    def test_missing_base_url(self, make_client: Callable[..., Any]) -> None:
        """Test that calls fail when no base URL is known."""
        client, transport = make_client(
            lambda request: httpx.Response(200),
            lambda builder: builder.base_url(""),
        )

        with pytest.raises(ConfigurationError):
            client.create(UnboundService).ping()
        assert transport.requests == []

    def test_unmapped_method(self, make_client: Callable[..., Any]) -> None:
        """Test that calling a method without a verb fails without a request."""
        client, transport = make_client(lambda request: httpx.Response(200))

        with pytest.raises(ConfigurationError):
            client.create(UserService).not_mapped()
        assert transport.requests == []

    def test_create_requires_class(self, make_client: Callable[..., Any]) -> None:
        """Test that only classes can be turned into proxies."""
        client, _ = make_client(lambda request: httpx.Response(200))

        with pytest.raises(ConfigurationError):
            client.create(UserService())


class TestProxyCache:
    """Test suite for proxy memoization."""

    def test_same_contract_same_proxy(self, make_client: Callable[..., Any]) -> None:
        """Test that repeated create calls return the same proxy."""
        client, _ = make_client(lambda request: httpx.Response(200))

        assert client.create(UserService) is client.create(UserService)
        assert client.create(UserService) is not client.create(OtherService)

    def test_concurrent_create(self, make_client: Callable[..., Any]) -> None:
        """Test that concurrent create calls agree on one proxy."""
        client, _ = make_client(lambda request: httpx.Response(200))
        barrier = threading.Barrier(8)
        results: list[Any] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            proxy = client.create(UserService)
            with lock:
                results.append(proxy)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len({id(proxy) for proxy in results}) == 1

    def test_proxy_repr(self, make_client: Callable[..., Any]) -> None:
        """Test the proxy representation."""
        client, _ = make_client(lambda request: httpx.Response(200))

        assert "UserService" in repr(client.create(UserService))


class TestRetries:
    """Test suite for retry with exponential backoff."""

    def test_retries_until_exhausted(self, make_client: Callable[..., Any]) -> None:
        """Test that every attempt is made and the last error is reported."""
        calls: list[tuple[int, Exception, float]] = []
        client, transport = make_client(
            lambda request: httpx.Response(503, text="unavailable"),
            lambda builder: builder.max_retries(2).on_retry(
                lambda attempt, err, delay: calls.append((attempt, err, delay))
            ),
        )

        start = time.monotonic()
        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).count()

        assert len(transport.requests) == 3
        assert exc_info.value.attempts == 3
        assert len(exc_info.value.errors) == 3
        assert isinstance(exc_info.value.last_error, HttpStatusError)
        assert [(attempt, delay) for attempt, _, delay in calls] == [(0, 0.1), (1, 0.2)]
        assert time.monotonic() - start >= 0.28

    def test_recovers_after_failures(self, make_client: Callable[..., Any]) -> None:
        """Test that a later successful attempt returns its result."""
        statuses = iter([500, 502, 200])
        client, transport = make_client(
            lambda request: httpx.Response(next(statuses), text="7"),
            lambda builder: builder.max_retries(3),
        )

        assert client.create(UserService).count() == 7
        assert len(transport.requests) == 3

    def test_retry_resends_seekable_stream_body(
        self, make_client: Callable[..., Any]
    ) -> None:
        """Test that a seekable stream is rewound before every attempt."""
        statuses = iter([503, 200])
        client, transport = make_client(
            lambda request: httpx.Response(next(statuses), text="ok"),
            lambda builder: builder.max_retries(1),
        )
        data = io.BytesIO(b"xxpayload")
        data.seek(2)

        assert client.create(UserService).upload(data) == "ok"
        assert [r.content for r in transport.requests] == [b"payload", b"payload"]

    def test_retry_stops_on_spent_stream_body(
        self, make_client: Callable[..., Any]
    ) -> None:
        """Test that a non-seekable stream is not sent again empty."""
        client, transport = make_client(
            lambda request: httpx.Response(503, text="unavailable"),
            lambda builder: builder.max_retries(2),
        )

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).upload(SlowReader([b"payload"], 0))

        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.last_error, HttpStatusError)
        assert [r.content for r in transport.requests] == [b"payload"]

    def test_no_retries_by_default(self, make_client: Callable[..., Any]) -> None:
        """Test that a single attempt is made by default."""
        client, transport = make_client(lambda request: httpx.Response(500))

        with pytest.raises(RetriesExhaustedError):
            client.create(UserService).count()
        assert len(transport.requests) == 1

    def test_format_errors_are_retried(self, make_client: Callable[..., Any]) -> None:
        """Test that undecodable bodies count as failed attempts."""
        client, transport = make_client(
            lambda request: httpx.Response(200, text="not a number"),
            lambda builder: builder.max_retries(1),
        )

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).count()
        assert isinstance(exc_info.value.last_error, FormatError)
        assert len(transport.requests) == 2

    def test_unsupported_types_are_not_retried(self, make_client: Callable[..., Any]) -> None:
        """Test that configuration problems fail fast."""
        client, transport = make_client(
            lambda request: httpx.Response(200, text="1"),
            lambda builder: builder.max_retries(3),
        )

        with pytest.raises(UnsupportedTypeError):
            client.create(UserService).ambiguous()
        assert len(transport.requests) == 1

    def test_timeouts_are_mapped(self, make_client: Callable[..., Any]) -> None:
        """Test that httpx timeouts surface as TransportTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client, transport = make_client(handler, lambda builder: builder.max_retries(1))

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).count()
        assert isinstance(exc_info.value.last_error, TransportTimeoutError)
        assert len(transport.requests) == 2

    def test_network_errors_are_mapped(self, make_client: Callable[..., Any]) -> None:
        """Test that httpx network errors surface as TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(handler)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).count()
        assert isinstance(exc_info.value.last_error, TransportError)

    def test_close_interrupts_backoff(self, make_client: Callable[..., Any]) -> None:
        """Test that closing the client interrupts a pending backoff sleep."""
        holder: list[Any] = []
        client, transport = make_client(
            lambda request: httpx.Response(503),
            lambda builder: builder.max_retries(5).on_retry(
                lambda attempt, err, delay: holder[0].close()
            ),
        )
        holder.append(client)

        with pytest.raises(RequestInterruptedError):
            client.create(UserService).count()
        assert len(transport.requests) == 1


class TestRedirects:
    """Test suite for redirect handling."""

    def test_manual_redirect(self, make_client: Callable[..., Any]) -> None:
        """Test that 301/302/303 are followed when httpx does not follow them."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/motd":
                return httpx.Response(302, headers={"Location": "/moved"})
            if request.url.path == "/moved":
                return httpx.Response(303, headers={"Location": "https://cdn.example.com/final"})
            return httpx.Response(200, text="done")

        client, transport = make_client(
            handler, lambda builder: builder.follow_redirects(False)
        )

        assert client.create(UserService).motd() == "done"
        assert [str(r.url) for r in transport.requests] == [
            "https://api.example.com/motd",
            "https://api.example.com/moved",
            "https://cdn.example.com/final",
        ]

    def test_redirect_limit(self, make_client: Callable[..., Any]) -> None:
        """Test that redirect loops stop after five follows and are not retried."""
        client, transport = make_client(
            lambda request: httpx.Response(301, headers={"Location": "/loop"}),
            lambda builder: builder.follow_redirects(False).max_retries(2),
        )

        with pytest.raises(RedirectExhaustedError):
            client.create(UserService).motd()
        assert len(transport.requests) == 6

    def test_redirect_without_location(self, make_client: Callable[..., Any]) -> None:
        """Test that a redirect status without Location is a plain response."""
        client, transport = make_client(
            lambda request: httpx.Response(302, text="nowhere"),
            lambda builder: builder.follow_redirects(False),
        )

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).motd()
        assert isinstance(exc_info.value.last_error, HttpStatusError)
        assert len(transport.requests) == 1

    def test_manual_redirect_resends_stream_body(
        self, make_client: Callable[..., Any]
    ) -> None:
        """Test that a seekable stream body follows a manual redirect intact."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/upload":
                return httpx.Response(302, headers={"Location": "/stored"})
            return httpx.Response(200, text="ok")

        client, transport = make_client(
            handler, lambda builder: builder.follow_redirects(False)
        )

        assert client.create(UserService).upload(io.BytesIO(b"payload")) == "ok"
        assert [r.content for r in transport.requests] == [b"payload", b"payload"]

    def test_manual_redirect_with_spent_stream_body(
        self, make_client: Callable[..., Any]
    ) -> None:
        """Test that a non-seekable stream body cannot follow a redirect."""
        client, transport = make_client(
            lambda request: httpx.Response(302, headers={"Location": "/stored"}),
            lambda builder: builder.follow_redirects(False).max_retries(2),
        )

        with pytest.raises(BodyNotReplayableError):
            client.create(UserService).upload(SlowReader([b"payload"], 0))
        assert len(transport.requests) == 1

    def test_httpx_follows_redirects(self, make_client: Callable[..., Any]) -> None:
        """Test that redirects are followed by httpx by default."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/motd":
                return httpx.Response(302, headers={"Location": "/final"})
            return httpx.Response(200, text="done")

        client, transport = make_client(handler)

        assert client.create(UserService).motd() == "done"
        assert len(transport.requests) == 2


class SlowReader:
    """File-like body that takes a while to produce each chunk."""

    def __init__(self, chunks: list[bytes], delay: float):
        self.chunks = list(chunks)
        self.delay = delay

    def read(self, size: int = -1) -> bytes:
        time.sleep(self.delay)
        return self.chunks.pop(0) if self.chunks else b""


class TestWriteTimeout:
    """Test suite for streamed body write timeouts."""

    def test_slow_stream_body(self, make_client: Callable[..., Any]) -> None:
        """Test that a body streaming past the write timeout fails the call."""
        client, _ = make_client(
            lambda request: httpx.Response(200, text="ok"),
            lambda builder: builder.write_timeout(1),
        )

        with pytest.raises(RetriesExhaustedError) as exc_info:
            client.create(UserService).upload(SlowReader([b"a", b"b", b"c"], 0.02))
        assert isinstance(exc_info.value.last_error, TransportTimeoutError)
