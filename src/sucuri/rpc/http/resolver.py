# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import io
import logging
from typing import Any, Iterable
from urllib.parse import urlencode

from sucuri.codec.converters import Converter
from sucuri.exceptions import ConfigurationError
from sucuri.rpc.http.descriptors import MethodDescriptor, RequestSpec

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


def stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_raw_body(body: Any) -> bool:
    return isinstance(body, (bytes, bytearray, memoryview, io.IOBase)) or (
        callable(getattr(body, "read", None))
    )


def join_urls(base_url: str, path: str) -> str:
    if not path:
        return base_url
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def build_query_string(params: Iterable[tuple[str, str]]) -> str:
    return urlencode(
        [
            (key, value)
            for key, value in params
            if value and value.lower() != "null"
        ]
    )


def parse_static_header(header: str) -> tuple[str, str] | None:
    name, separator, value = header.partition(":")
    if not separator:
        return None
    return name.strip(), value.strip()


def resolve(
    descriptor: MethodDescriptor,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    *,
    base_url: str | None,
    converter: Converter,
) -> RequestSpec:
    """
    Turn one contract call into a :class:`RequestSpec`.

    Header bindings come first, then the guessed ``Content-Type`` (unless a
    binding already set it), then the static ``@Headers`` which override both.
    Calls without a body get the converter's content type.
    """
    if descriptor.verb is None:
        raise ConfigurationError(
            f"{descriptor.name}: HTTP method decorator is required"
        )
    if not base_url:
        raise ConfigurationError(f"{descriptor.name}: Base URL is not specified")

    arguments = descriptor.bind_arguments(args, kwargs)

    path_params: dict[str, str] = {}
    query_params: list[tuple[str, str]] = []
    headers: dict[str, str] = {}
    body: Any = None
    content_type = converter.content_type(None)

    for binding in descriptor.bindings:
        value = arguments[binding.param]
        if binding.kind == "path":
            path_params[binding.name] = stringify(value)
        elif binding.kind == "query":
            text = stringify(value)
            if text:
                query_params.append((binding.name, text))
        elif binding.kind == "header":
            headers[binding.name] = stringify(value)
        elif binding.kind == "body" and value is not None:
            body = value
            content_type = (
                OCTET_STREAM if is_raw_body(value) else converter.content_type(value)
            )

    if "Content-Type" not in headers:
        headers["Content-Type"] = content_type

    for header in descriptor.static_headers:
        parsed = parse_static_header(header)
        if parsed is None:
            logger.warning(
                "%s: ignoring malformed static header %r", descriptor.name, header
            )
            continue
        headers[parsed[0]] = parsed[1]

    path = descriptor.path_template
    for name, value in path_params.items():
        path = path.replace("{" + name + "}", value)

    url = join_urls(base_url, path)
    query_string = build_query_string(query_params)
    if query_string:
        url += "?" + query_string

    logger.debug(
        "Resolved %s into %s %s (headers=%s, body=%s)",
        descriptor.name,
        descriptor.verb,
        url,
        headers,
        type(body).__name__ if body is not None else None,
    )

    return RequestSpec(verb=descriptor.verb, url=url, headers=headers, body=body)


__all__ = [
    "OCTET_STREAM",
    "stringify",
    "is_raw_body",
    "join_urls",
    "build_query_string",
    "parse_static_header",
    "resolve",
]
