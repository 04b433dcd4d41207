# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Literal

from sucuri.reflect.decorators import StackableDecorator

HttpVerb = Literal["GET", "POST", "PUT", "DELETE", "HEAD", "PATCH"]

BindingKind = Literal["path", "query", "header", "body"]


class HttpMapping(StackableDecorator):

    def __init__(self, method: HttpVerb, path: str = ""):
        self.method = method
        self.path = path

    @classmethod
    def decorator_key(cls) -> Any:
        return HttpMapping


class Get(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("GET", path)


class Post(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("POST", path)


class Put(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("PUT", path)


class Delete(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("DELETE", path)


class Head(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("HEAD", path)


class Patch(HttpMapping):

    def __init__(self, path: str = ""):
        super().__init__("PATCH", path)


class RequestAttribute(StackableDecorator):
    """
    Binds a method parameter to a part of the request.

    ``name`` is the wire name (path placeholder, query key or header name).
    ``param`` is the Python parameter carrying the value and defaults to
    ``name``::

        @Get("/users/{id}")
        @PathParam("id")
        @Query("page-size", param="page_size")
        def list_users(self, id: str, page_size: int) -> list[User]: ...
    """

    def __init__(self, attribute_type: BindingKind, name: str, param: str | None = None):
        self.attribute_type = attribute_type
        self.name = name
        self.param = param or name

    @classmethod
    def decorator_key(cls) -> Any:
        return RequestAttribute


class PathParam(RequestAttribute):

    def __init__(self, name: str, param: str | None = None):
        super().__init__("path", name, param)


class Query(RequestAttribute):

    def __init__(self, name: str, param: str | None = None):
        super().__init__("query", name, param)


class Header(RequestAttribute):

    def __init__(self, name: str, param: str | None = None):
        super().__init__("header", name, param)


class Body(RequestAttribute):

    def __init__(self, param: str):
        super().__init__("body", param, param)


class Headers(StackableDecorator):
    """Static ``"Name: Value"`` headers sent with every call of a method."""

    def __init__(self, *headers: str):
        self.headers = headers


class RestClient(StackableDecorator):
    """
    Marks a class as a service contract.

    A non-empty ``base_url`` overrides the base URL configured on the client.
    """

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url


BaseUrl = RestClient


__all__ = [
    "HttpVerb",
    "BindingKind",
    "HttpMapping",
    "Get",
    "Post",
    "Put",
    "Delete",
    "Head",
    "Patch",
    "RequestAttribute",
    "PathParam",
    "Query",
    "Header",
    "Body",
    "Headers",
    "RestClient",
    "BaseUrl",
]
