# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import dataclasses
import inspect
import logging
from dataclasses import dataclass
from functools import cache
from typing import Annotated, Any, Callable, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from sucuri.exceptions import ConfigurationError
from sucuri.reflect.decorators import StackableDecorator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JsonField:
    """
    Overrides the wire key of a record field::

        @dataclass
        class User:
            user_name: Annotated[str | None, JsonField("userName")] = None

    An empty value keeps the attribute name.
    """

    value: str = ""


class JsonObject(StackableDecorator):
    """Names the root object of a record. Informational only."""

    def __init__(self, value: str = ""):
        self.value = value


def json_object_name(record_type: type) -> str | None:
    marker = JsonObject.get_bound_from_type(record_type)
    if marker is None or not marker.value:
        return None
    return marker.value


_NO_DEFAULT: Any = dataclasses.MISSING


@dataclass(frozen=True)
class RecordField:
    name: str
    wire_name: str
    type_: Any
    # _NO_DEFAULT when the field has no default value
    default: Any
    default_factory: Callable[[], Any] | None = None

    def get(self, instance: Any) -> Any:
        return getattr(instance, self.name)

    def set(self, instance: Any, value: Any) -> None:
        # object.__setattr__ also works on frozen dataclasses
        object.__setattr__(instance, self.name, value)

    def zero_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not _NO_DEFAULT:
            return self.default
        return None


def is_record_type(subject: Any) -> bool:
    if not isinstance(subject, type):
        return False
    return dataclasses.is_dataclass(subject) or issubclass(subject, BaseModel)


def _json_field_name(annotation: Any) -> str | None:
    if get_origin(annotation) is Annotated:
        for meta in annotation.__metadata__:
            if isinstance(meta, JsonField) and meta.value:
                return meta.value
        return None
    # Optional[Annotated[X, JsonField(...)]]
    for arg in get_args(annotation):
        if (found := _json_field_name(arg)) is not None:
            return found
    return None


def _wire_name(name: str, annotation: Any, alias: str | None) -> str:
    if (custom := _json_field_name(annotation)) is not None:
        return custom
    if alias:
        return alias
    return name


def _declaration_order(record_type: type, names: set[str]) -> list[str]:
    ordered: list[str] = []
    # Most-derived class first, then its bases
    for klass in record_type.__mro__:
        for name in inspect.get_annotations(klass):
            if name in names and name not in ordered:
                ordered.append(name)
    return ordered


def _pydantic_metadata_alias(model_field: Any) -> str | None:
    for meta in model_field.metadata:
        if isinstance(meta, JsonField) and meta.value:
            return meta.value
    return model_field.alias


@cache
def record_fields(record_type: type) -> tuple[RecordField, ...]:
    """
    Build the field table of a record type once.

    Supports ``@dataclass`` classes and pydantic models. Fields are listed
    most-derived class first; each entry exposes the wire name and typed
    getter/setter used by the codec.
    """
    if not is_record_type(record_type):
        raise ConfigurationError(f"{record_type!r} is not a record type")

    table: dict[str, RecordField] = {}

    if dataclasses.is_dataclass(record_type):
        try:
            hints = get_type_hints(record_type, include_extras=True)
        except NameError as err:
            raise ConfigurationError(
                f"Could not resolve field annotations of {record_type.__qualname__}: {err}"
            ) from err

        for dc_field in dataclasses.fields(record_type):
            annotation = hints.get(dc_field.name, Any)
            default_factory = (
                dc_field.default_factory
                if dc_field.default_factory is not dataclasses.MISSING
                else None
            )
            table[dc_field.name] = RecordField(
                name=dc_field.name,
                wire_name=_wire_name(dc_field.name, annotation, None),
                type_=annotation,
                default=dc_field.default,
                default_factory=default_factory,
            )
    else:
        model_fields = record_type.model_fields  # type: ignore[attr-defined]
        for name, model_field in model_fields.items():
            # pydantic keeps Annotated extras apart from the bare annotation
            annotation = model_field.annotation
            if model_field.metadata:
                annotation = Annotated[(annotation, *model_field.metadata)]
            default = _NO_DEFAULT
            factory = None
            if not model_field.is_required():
                if model_field.default_factory is not None:
                    factory = model_field.default_factory
                else:
                    default = model_field.default
            table[name] = RecordField(
                name=name,
                wire_name=_wire_name(
                    name, annotation, _pydantic_metadata_alias(model_field)
                ),
                type_=annotation,
                default=default,
                default_factory=factory,
            )

    ordered = tuple(
        table[name] for name in _declaration_order(record_type, set(table))
    )
    logger.debug(
        "Built field table for %s: %s",
        record_type.__qualname__,
        [field.wire_name for field in ordered],
    )
    return ordered


def new_record(record_type: type, values: dict[str, Any]) -> Any:
    """
    Allocate a record with every field zero-initialized, then apply ``values``
    (keyed by attribute name).
    """
    fields = record_fields(record_type)

    if issubclass(record_type, BaseModel):
        data = {field.name: field.zero_value() for field in fields}
        data.update(values)
        return record_type.model_construct(**data)

    instance = object.__new__(record_type)
    for field in fields:
        field.set(instance, values.get(field.name, field.zero_value()))
    return instance


def strip_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(annotation) is Annotated:
        args = get_args(annotation)
        return args[0], tuple(annotation.__metadata__)
    return annotation, ()


__all__ = [
    "JsonField",
    "JsonObject",
    "RecordField",
    "json_object_name",
    "is_record_type",
    "record_fields",
    "new_record",
    "strip_annotated",
]
