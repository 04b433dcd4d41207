# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import enum
import inspect
import io
import logging
import typing
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, get_type_hints

from sucuri.exceptions import ConfigurationError
from sucuri.rpc.http.decorators import (
    BindingKind,
    Headers,
    HttpMapping,
    HttpVerb,
    RequestAttribute,
    RestClient,
)

logger = logging.getLogger(__name__)


class ReturnShape(enum.Enum):
    VOID = "void"
    BYTES = "bytes"
    STREAM = "stream"
    TEXT = "text"
    TYPED = "typed"


_STREAM_ANNOTATIONS: tuple[Any, ...] = (typing.BinaryIO, typing.IO[bytes], typing.IO)


def return_shape_of(annotation: Any) -> ReturnShape:
    if annotation is inspect.Signature.empty or annotation is str:
        return ReturnShape.TEXT
    if annotation is None or annotation is type(None):
        return ReturnShape.VOID
    if annotation is bytes:
        return ReturnShape.BYTES
    if annotation in _STREAM_ANNOTATIONS or (
        isinstance(annotation, type) and issubclass(annotation, io.IOBase)
    ):
        return ReturnShape.STREAM
    return ReturnShape.TYPED


@dataclass(frozen=True)
class ParameterBinding:
    kind: BindingKind
    name: str
    param: str
    position: int


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    verb: HttpVerb | None
    path_template: str
    static_headers: tuple[str, ...]
    bindings: tuple[ParameterBinding, ...]
    return_type: Any
    return_shape: ReturnShape
    signature: inspect.Signature = field(compare=False, repr=False)

    @property
    def body_binding(self) -> ParameterBinding | None:
        for binding in self.bindings:
            if binding.kind == "body":
                return binding
        return None

    def bind_arguments(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
        # The first parameter is the contract's ``self``
        bound = self.signature.bind(None, *args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)


@dataclass(frozen=True)
class ContractDescriptor:
    contract: type
    base_url: str | None
    methods: Mapping[str, MethodDescriptor]


def _return_annotation(func: Callable[..., Any], signature: inspect.Signature) -> Any:
    try:
        hints = get_type_hints(func, include_extras=True)
    except NameError:
        logger.debug(
            "Could not resolve type hints of %s, using raw annotation",
            func.__qualname__,
        )
        return signature.return_annotation
    return hints.get("return", inspect.Signature.empty)


def describe_method(func: Callable[..., Any]) -> MethodDescriptor:
    signature = inspect.signature(func)
    parameters = list(signature.parameters)[1:]

    mapping = HttpMapping.get_last(func)
    static_headers: list[str] = []
    for headers in Headers.get(func):
        static_headers.extend(headers.headers)

    bindings: list[ParameterBinding] = []
    for attribute in RequestAttribute.get(func):
        if attribute.param not in parameters:
            raise ConfigurationError(
                f"{func.__qualname__}: @{type(attribute).__name__}({attribute.name!r}) "
                f"refers to unknown parameter {attribute.param!r}"
            )
        bindings.append(
            ParameterBinding(
                kind=attribute.attribute_type,
                name=attribute.name,
                param=attribute.param,
                position=parameters.index(attribute.param),
            )
        )

    if sum(1 for binding in bindings if binding.kind == "body") > 1:
        raise ConfigurationError(f"{func.__qualname__}: only one @Body is allowed")

    # Parameter order, as it reads in the signature
    bindings.sort(key=lambda binding: binding.position)

    return_type = _return_annotation(func, signature)

    return MethodDescriptor(
        name=func.__name__,
        verb=mapping.method if mapping is not None else None,
        path_template=mapping.path if mapping is not None else "",
        static_headers=tuple(static_headers),
        bindings=tuple(bindings),
        return_type=return_type,
        return_shape=return_shape_of(return_type),
        signature=signature,
    )


def describe_contract(contract: type) -> ContractDescriptor:
    """
    Build the descriptor table of a service contract.

    Every public plain method of the contract (inherited ones included) gets a
    descriptor. Methods without a verb decorator are kept so that calling them
    reports a configuration error.
    """
    if not isinstance(contract, type):
        raise ConfigurationError(f"Service contract must be a class, got {contract!r}")

    rest_client = RestClient.get_bound_from_type(contract)

    methods: dict[str, MethodDescriptor] = {}
    for name in dir(contract):
        if name.startswith("_"):
            continue
        member = inspect.getattr_static(contract, name)
        if not inspect.isfunction(member):
            continue
        methods[name] = describe_method(member)

    logger.debug(
        "Described contract %s: %s",
        contract.__qualname__,
        {name: (desc.verb, desc.path_template) for name, desc in methods.items()},
    )

    return ContractDescriptor(
        contract=contract,
        base_url=(rest_client.base_url or None) if rest_client else None,
        methods=MappingProxyType(methods),
    )


@dataclass
class RequestSpec:
    verb: HttpVerb
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None


__all__ = [
    "ReturnShape",
    "return_shape_of",
    "ParameterBinding",
    "MethodDescriptor",
    "ContractDescriptor",
    "describe_method",
    "describe_contract",
    "RequestSpec",
]
