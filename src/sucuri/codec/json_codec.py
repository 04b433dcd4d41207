# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Structural JSON codec.

``encode`` turns any value of the supported type universe into JSON text and
``decode`` rebuilds a value from JSON text, always driven by an explicit
target type (``list[User]``, ``dict[str, int]``, ``deque[UUID]``...), never by
guessing from the text itself.

Records are ``@dataclass`` classes or pydantic models, walked through the
field table built by :func:`sucuri.codec.fields.record_fields`.
"""

import collections.abc
import logging
import math
import re
import types
import typing
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, get_args, get_origin
from uuid import UUID

from sucuri.codec.fields import (
    is_record_type,
    new_record,
    record_fields,
    strip_annotated,
)
from sucuri.codec.types import CharLiteral, FloatWidth, IntegerWidth
from sucuri.exceptions import ConfigurationError, FormatError, UnsupportedTypeError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_INTEGER_RE = re.compile(r"-?(?:0|[1-9]\d*)\Z")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?\Z")

_SEQUENCE_ORIGINS: dict[Any, Callable[[Iterable[Any]], Any]] = {
    list: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
    deque: deque,
    set: set,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
    frozenset: frozenset,
}

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def escape_string(value: str) -> str:
    chars: list[str] = []
    for char in value:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            chars.append(escaped)
        elif char < " ":
            chars.append("\\u%04x" % ord(char))
        else:
            chars.append(char)
    return '"' + "".join(chars) + '"'


def encode(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return encode(value.value)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FormatError(f"Cannot encode non-finite number {value!r}")
        return repr(float(value))
    if isinstance(value, str):
        return escape_string(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            raise FormatError(
                f"Cannot encode date-time with an offset: {value.isoformat()}"
            )
        return escape_string(value.isoformat())
    if isinstance(value, UUID):
        return escape_string(str(value))
    if is_record_type(type(value)):
        return _encode_record(value)
    if isinstance(value, collections.abc.Mapping):
        return (
            "{"
            + ",".join(
                f"{escape_string(_key_text(key))}:{encode(item)}"
                for key, item in value.items()
            )
            + "}"
        )
    if isinstance(value, (collections.abc.Sequence, collections.abc.Set)) and not (
        isinstance(value, (bytes, bytearray))
    ):
        return "[" + ",".join(encode(item) for item in value) + "]"

    raise UnsupportedTypeError(type(value))


def _key_text(key: Any) -> str:
    if isinstance(key, Enum):
        key = key.value
    if key is None:
        return "null"
    return str(key)


def _encode_record(record: Any) -> str:
    members: list[str] = []
    for field in record_fields(type(record)):
        value = field.get(record)
        if value is None:
            continue
        members.append(f"{escape_string(field.wire_name)}:{encode(value)}")
    return "{" + ",".join(members) + "}"


# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------


def parse_string_literal(text: str) -> str:
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise FormatError(f"Invalid JSON string: {text}")

    body = text[1:-1]
    chars: list[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == '"':
            raise FormatError(f"Unescaped quote in JSON string: {text}")
        if char != "\\":
            chars.append(char)
            index += 1
            continue

        index += 1
        if index >= len(body):
            raise FormatError(f"Dangling escape in JSON string: {text}")
        escape = body[index]
        if escape in _UNESCAPES:
            chars.append(_UNESCAPES[escape])
            index += 1
        elif escape == "u":
            code = _read_hex4(body, index + 1, text)
            index += 5
            # Surrogate pair
            if 0xD800 <= code < 0xDC00 and body[index : index + 2] == "\\u":
                low = _read_hex4(body, index + 2, text)
                if 0xDC00 <= low < 0xE000:
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    index += 6
            chars.append(chr(code))
        else:
            raise FormatError(f"Invalid escape '\\{escape}' in JSON string: {text}")

    return "".join(chars)


def _read_hex4(body: str, start: int, text: str) -> int:
    digits = body[start : start + 4]
    if len(digits) != 4:
        raise FormatError(f"Truncated unicode escape in JSON string: {text}")
    try:
        return int(digits, 16)
    except ValueError as err:
        raise FormatError(f"Invalid unicode escape in JSON string: {text}") from err


def _string_end(text: str, start: int) -> int:
    """Index of the quote closing the string literal opened at ``start``."""
    escape = False
    for index in range(start + 1, len(text)):
        char = text[index]
        if escape:
            escape = False
        elif char == "\\":
            escape = True
        elif char == '"':
            return index
    raise FormatError(f"Unterminated JSON string: {text}")


def split_top_level(content: str) -> list[str]:
    """
    Split the inside of a JSON array or object on the commas that sit at
    nesting depth zero, outside of any string literal.
    """
    parts: list[str] = []
    depth = 0
    in_string = False
    escape = False
    start = 0

    for index, char in enumerate(content):
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth < 0:
                raise FormatError(f"Unbalanced brackets in JSON: {content}")
        elif char == "," and depth == 0:
            parts.append(content[start:index].strip())
            start = index + 1

    if in_string or depth != 0:
        raise FormatError(f"Unbalanced JSON content: {content}")

    parts.append(content[start:].strip())
    if any(not part for part in parts):
        raise FormatError(f"Empty element in JSON content: {content}")
    return parts


def _enclosed_content(text: str, opening: str, closing: str, kind: str) -> str:
    if not text.startswith(opening) or not text.endswith(closing):
        raise FormatError(f"Invalid JSON {kind}: {text}")
    return text[1:-1].strip()


def parse_array(text: str) -> list[str]:
    content = _enclosed_content(text, "[", "]", "array")
    if not content:
        return []
    return split_top_level(content)


def parse_object(text: str) -> list[tuple[str, str]]:
    """Return the object's members as ``(key, raw value text)`` pairs, in order."""
    content = _enclosed_content(text, "{", "}", "object")
    if not content:
        return []

    members: list[tuple[str, str]] = []
    for member in split_top_level(content):
        if not member.startswith('"'):
            raise FormatError(f"Object keys must be strings: {member}")
        key_end = _string_end(member, 0)
        key = parse_string_literal(member[: key_end + 1])
        rest = member[key_end + 1 :].lstrip()
        if not rest.startswith(":"):
            raise FormatError(f"Missing ':' after key {key!r}: {member}")
        raw_value = rest[1:].strip()
        if not raw_value:
            raise FormatError(f"Missing value for key {key!r}")
        members.append((key, raw_value))
    return members


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode(text: str, target: Any) -> Any:
    value = text.strip() if text is not None else ""
    if not value or value == "null":
        return None

    target, metadata = strip_annotated(target)
    origin = get_origin(target)

    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in get_args(target) if arg is not type(None)]
        if len(members) != 1:
            raise UnsupportedTypeError(target)
        return decode(value, members[0])

    if origin is not None:
        return _decode_generic(value, target, origin)

    if target is bool:
        return _decode_bool(value)
    if isinstance(target, type) and issubclass(target, Enum):
        return _decode_enum(value, target)
    if target is int:
        return _decode_int(value, metadata)
    if target is float:
        return _decode_float(value, metadata)
    if target is str:
        return _decode_str(value, metadata)
    if target is datetime:
        return _decode_datetime(value)
    if target is UUID:
        return _decode_uuid(value)
    if is_record_type(target):
        return _decode_record(value, target)

    raise UnsupportedTypeError(target)


def _decode_bool(value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise FormatError(f"Invalid boolean value: {value}")


def _decode_int(value: str, metadata: tuple[Any, ...]) -> int:
    if not _INTEGER_RE.match(value):
        raise FormatError(f"Invalid integer value: {value}")
    result = int(value)
    for meta in metadata:
        if isinstance(meta, IntegerWidth) and not meta.accepts(result):
            raise FormatError(
                f"Value {result} out of range for a {meta.bits}-bit integer"
            )
    return result


def _decode_float(value: str, metadata: tuple[Any, ...]) -> float:
    if not _NUMBER_RE.match(value):
        raise FormatError(f"Invalid number value: {value}")
    result = float(value)
    for meta in metadata:
        if isinstance(meta, FloatWidth):
            result = meta.narrow(result)
    return result


def _decode_str(value: str, metadata: tuple[Any, ...]) -> str:
    if any(isinstance(meta, CharLiteral) for meta in metadata):
        if not value.startswith('"'):
            raise FormatError(f"Invalid character value: {value}")
        char = parse_string_literal(value)
        if len(char) != 1:
            raise FormatError(f"Invalid character value: {value}")
        return char
    if value.startswith('"'):
        return parse_string_literal(value)
    # Non-string literal read into a text target keeps its raw text
    return value


def _decode_enum(value: str, enum_type: type[Enum]) -> Enum:
    raw: Any
    if value.startswith('"'):
        raw = parse_string_literal(value)
    elif _INTEGER_RE.match(value):
        raw = int(value)
    elif _NUMBER_RE.match(value):
        raw = float(value)
    else:
        raise FormatError(f"Invalid {enum_type.__name__} value: {value}")
    try:
        return enum_type(raw)
    except ValueError as err:
        raise FormatError(f"Invalid {enum_type.__name__} value: {value}") from err


def _decode_datetime(value: str) -> datetime:
    text = parse_string_literal(value) if value.startswith('"') else value
    if "T" not in text:
        raise FormatError(f"Invalid date-time value: {value}")
    try:
        result = datetime.fromisoformat(text)
    except ValueError as err:
        raise FormatError(f"Invalid date-time value: {value}") from err
    if result.tzinfo is not None:
        raise FormatError(f"Date-time values must not carry an offset: {value}")
    return result


def _decode_uuid(value: str) -> UUID:
    text = parse_string_literal(value) if value.startswith('"') else value
    try:
        return UUID(text)
    except ValueError as err:
        raise FormatError(f"Invalid UUID value: {value}") from err


def _decode_generic(value: str, target: Any, origin: Any) -> Any:
    args = get_args(target)

    if origin is tuple:
        return _decode_tuple(value, target, args)

    if origin in _SEQUENCE_ORIGINS:
        if len(args) != 1:
            raise UnsupportedTypeError(target)
        factory = _SEQUENCE_ORIGINS[origin]
        return factory(decode(element, args[0]) for element in parse_array(value))

    if origin in _MAPPING_ORIGINS:
        if len(args) != 2:
            raise UnsupportedTypeError(target)
        key_type, value_type = args
        if strip_annotated(key_type)[0] is not str:
            raise ConfigurationError(
                f"Only str keys are supported in mappings, got {key_type!r}"
            )
        return {key: decode(raw, value_type) for key, raw in parse_object(value)}

    raise UnsupportedTypeError(target)


def _decode_tuple(value: str, target: Any, args: tuple[Any, ...]) -> tuple[Any, ...]:
    elements = parse_array(value)
    if len(args) == 2 and args[1] is Ellipsis:
        return tuple(decode(element, args[0]) for element in elements)
    if not args:
        raise UnsupportedTypeError(target)
    if len(args) != len(elements):
        raise FormatError(
            f"Expected {len(args)} elements for {target!r}, got {len(elements)}"
        )
    return tuple(decode(element, arg) for element, arg in zip(elements, args))


def _decode_record(value: str, record_type: type) -> Any:
    by_wire_name = {field.wire_name: field for field in record_fields(record_type)}
    values: dict[str, Any] = {}

    for key, raw in parse_object(value):
        field = by_wire_name.get(key)
        if field is None:
            logger.debug("Skipping unknown key %r for %s", key, record_type.__name__)
            continue
        values[field.name] = decode(raw, field.type_)

    return new_record(record_type, values)


__all__ = [
    "CONTENT_TYPE",
    "encode",
    "decode",
    "escape_string",
    "parse_string_literal",
    "parse_array",
    "parse_object",
    "split_top_level",
]
