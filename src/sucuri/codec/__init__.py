# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .converters import Converter, JsonConverter, PydanticConverter
from .fields import JsonField, JsonObject, json_object_name, record_fields
from .json_codec import decode, encode
from .types import Char, Float32, Float64, Int8, Int16, Int32, Int64

__all__ = [
    "encode",
    "decode",
    "Converter",
    "JsonConverter",
    "PydanticConverter",
    "JsonField",
    "JsonObject",
    "json_object_name",
    "record_fields",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    "Char",
]
