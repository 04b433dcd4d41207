# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import codecs
import logging
from typing import Any, Sequence

import httpx

from sucuri.codec.converters import Converter
from sucuri.exceptions import HttpStatusError
from sucuri.rpc.http.backends.httpx import HTTPXResponseStream
from sucuri.rpc.http.descriptors import MethodDescriptor, ReturnShape
from sucuri.rpc.http.interceptors import ResponseInterceptor

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


def response_charset(content_type: str | None) -> str:
    if not content_type:
        return DEFAULT_CHARSET
    for part in content_type.split(";"):
        part = part.strip()
        if part.lower().startswith("charset="):
            name = part[len("charset=") :].strip().strip('"')
            try:
                return codecs.lookup(name).name
            except LookupError:
                logger.debug("Unknown charset %r, using %s", name, DEFAULT_CHARSET)
    return DEFAULT_CHARSET


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class ResponsePipeline:
    """
    Turns a received response into the value a contract method returns.

    Void, bytes and stream return shapes skip text decoding and response
    interceptors. Every other shape buffers the body, decodes it with the
    declared charset, runs the response interceptors in order and then
    either returns the text, decodes it through the converter, or raises
    :class:`HttpStatusError` for non-2xx statuses.
    """

    def __init__(
        self,
        converter: Converter,
        interceptors: Sequence[ResponseInterceptor] = (),
    ):
        self._converter = converter
        self._interceptors = interceptors

    def process(self, response: httpx.Response, descriptor: MethodDescriptor) -> Any:
        shape = descriptor.return_shape

        if shape is ReturnShape.VOID:
            response.close()
            return None

        if shape is ReturnShape.STREAM:
            return HTTPXResponseStream(response)

        try:
            data = response.read()
        finally:
            response.close()

        if shape is ReturnShape.BYTES:
            return data

        charset = response_charset(response.headers.get("Content-Type"))
        text = data.decode(charset, errors="replace")

        for interceptor in self._interceptors:
            text = interceptor.on_response(response.status_code, text)

        if not is_success(response.status_code):
            logger.debug(
                "%s returned HTTP %s: %s",
                descriptor.name,
                response.status_code,
                text,
            )
            raise HttpStatusError(response.status_code, text)

        if shape is ReturnShape.TEXT:
            return text

        return self._converter.read(text.encode("utf-8"), descriptor.return_type)


__all__ = ["DEFAULT_CHARSET", "ResponsePipeline", "response_charset", "is_success"]
