# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import base64
import logging
from typing import Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)


@runtime_checkable
class RequestInterceptor(Protocol):
    """Called with the outgoing request before its body is sent."""

    def on_request(self, request: httpx.Request) -> None: ...


@runtime_checkable
class ResponseInterceptor(Protocol):
    """Called with the status code and decoded body text; returns the text to keep."""

    def on_response(self, status_code: int, text: str) -> str: ...


class LoggingInterceptor(RequestInterceptor, ResponseInterceptor):

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def on_request(self, request: httpx.Request) -> None:
        logger.log(self.level, "Request: %s %s", request.method, request.url)

    def on_response(self, status_code: int, text: str) -> str:
        logger.log(self.level, "Response: %s - %s", status_code, text)
        return text


class AuthenticationInterceptor(RequestInterceptor):
    """Base class for interceptors that add credentials to every request"""

    def on_request(self, request: httpx.Request) -> None:
        self.add_auth(request)

    def add_auth(self, request: httpx.Request) -> None:
        raise NotImplementedError


class BearerTokenAuth(AuthenticationInterceptor):

    def __init__(self, token: str):
        self.token = token

    def add_auth(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = f"Bearer {self.token}"


class BasicAuth(AuthenticationInterceptor):

    def __init__(self, username: str, password: str):
        self.credentials = base64.b64encode(f"{username}:{password}".encode()).decode()

    def add_auth(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = f"Basic {self.credentials}"


class ApiKeyAuth(AuthenticationInterceptor):

    def __init__(self, api_key: str, header_name: str = "X-API-Key"):
        self.api_key = api_key
        self.header_name = header_name

    def add_auth(self, request: httpx.Request) -> None:
        request.headers[self.header_name] = self.api_key


__all__ = [
    "RequestInterceptor",
    "ResponseInterceptor",
    "LoggingInterceptor",
    "AuthenticationInterceptor",
    "BearerTokenAuth",
    "BasicAuth",
    "ApiKeyAuth",
]
