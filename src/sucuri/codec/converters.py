# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from functools import lru_cache
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from sucuri.codec import json_codec
from sucuri.exceptions import FormatError


class Converter(Protocol):
    """Serializes request bodies and deserializes typed responses."""

    def content_type(self, body: Any) -> str: ...

    def write(self, body: Any) -> bytes: ...

    def read(self, data: bytes, type_: Any) -> Any: ...


class JsonConverter(Converter):
    """Default converter, backed by the structural JSON codec."""

    def content_type(self, body: Any) -> str:
        return json_codec.CONTENT_TYPE

    def write(self, body: Any) -> bytes:
        return json_codec.encode(body).encode("utf-8")

    def read(self, data: bytes, type_: Any) -> Any:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise FormatError(f"Response body is not valid UTF-8: {err}") from err
        return json_codec.decode(text, type_)


@lru_cache(maxsize=256)
def _type_adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


class PydanticConverter(Converter):
    """
    Converter that validates through pydantic instead of the structural codec.

    Useful when the contract exchanges pydantic models and the caller wants
    full validation of responses.
    """

    def content_type(self, body: Any) -> str:
        return json_codec.CONTENT_TYPE

    def write(self, body: Any) -> bytes:
        return _type_adapter(type(body)).dump_json(body, by_alias=True)

    def read(self, data: bytes, type_: Any) -> Any:
        try:
            return _type_adapter(type_).validate_json(data)
        except ValidationError as err:
            raise FormatError(str(err)) from err


__all__ = ["Converter", "JsonConverter", "PydanticConverter"]
