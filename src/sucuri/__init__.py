from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sucuri.codec.converters import Converter, JsonConverter, PydanticConverter
    from sucuri.codec.fields import JsonField, JsonObject
    from sucuri.codec.types import (
        Char,
        Float32,
        Float64,
        Int8,
        Int16,
        Int32,
        Int64,
    )
    from sucuri.exceptions import (
        BodyNotReplayableError,
        ConfigurationError,
        FormatError,
        HttpStatusError,
        RedirectExhaustedError,
        RequestInterruptedError,
        RestClientError,
        RetriesExhaustedError,
        TransportError,
        TransportTimeoutError,
        UnsupportedTypeError,
        WriteTimeoutError,
    )
    from sucuri.rpc.http import (
        ApiKeyAuth,
        AuthenticationInterceptor,
        BaseUrl,
        BasicAuth,
        BearerTokenAuth,
        Body,
        ClientConfig,
        Delete,
        Get,
        Head,
        Header,
        Headers,
        HttpRpcClient,
        HttpRpcClientBuilder,
        LoggingInterceptor,
        Patch,
        PathParam,
        Post,
        Put,
        Query,
        RateLimiter,
        RequestInterceptor,
        ResponseInterceptor,
        RestClient,
        RestClientEnvConfig,
        SimpleRateLimiter,
    )

__SPEC_PARENT__: str = __spec__.parent  # type: ignore
# A mapping of {<member name>: (package, <module name>, <real name>)} defining dynamic imports
_dynamic_imports: "dict[str, tuple[str, str, str | None]]" = {
    "HttpRpcClient": (__SPEC_PARENT__, "rpc.http", None),
    "HttpRpcClientBuilder": (__SPEC_PARENT__, "rpc.http", None),
    "ClientConfig": (__SPEC_PARENT__, "rpc.http", None),
    "RestClientEnvConfig": (__SPEC_PARENT__, "rpc.http", None),
    "RestClient": (__SPEC_PARENT__, "rpc.http", None),
    "BaseUrl": (__SPEC_PARENT__, "rpc.http", None),
    "Get": (__SPEC_PARENT__, "rpc.http", None),
    "Post": (__SPEC_PARENT__, "rpc.http", None),
    "Put": (__SPEC_PARENT__, "rpc.http", None),
    "Delete": (__SPEC_PARENT__, "rpc.http", None),
    "Head": (__SPEC_PARENT__, "rpc.http", None),
    "Patch": (__SPEC_PARENT__, "rpc.http", None),
    "PathParam": (__SPEC_PARENT__, "rpc.http", None),
    "Query": (__SPEC_PARENT__, "rpc.http", None),
    "Header": (__SPEC_PARENT__, "rpc.http", None),
    "Headers": (__SPEC_PARENT__, "rpc.http", None),
    "Body": (__SPEC_PARENT__, "rpc.http", None),
    "RequestInterceptor": (__SPEC_PARENT__, "rpc.http", None),
    "ResponseInterceptor": (__SPEC_PARENT__, "rpc.http", None),
    "LoggingInterceptor": (__SPEC_PARENT__, "rpc.http", None),
    "AuthenticationInterceptor": (__SPEC_PARENT__, "rpc.http", None),
    "BearerTokenAuth": (__SPEC_PARENT__, "rpc.http", None),
    "BasicAuth": (__SPEC_PARENT__, "rpc.http", None),
    "ApiKeyAuth": (__SPEC_PARENT__, "rpc.http", None),
    "RateLimiter": (__SPEC_PARENT__, "rpc.http", None),
    "SimpleRateLimiter": (__SPEC_PARENT__, "rpc.http", None),
    "Converter": (__SPEC_PARENT__, "codec.converters", None),
    "JsonConverter": (__SPEC_PARENT__, "codec.converters", None),
    "PydanticConverter": (__SPEC_PARENT__, "codec.converters", None),
    "JsonField": (__SPEC_PARENT__, "codec.fields", None),
    "JsonObject": (__SPEC_PARENT__, "codec.fields", None),
    "Int8": (__SPEC_PARENT__, "codec.types", None),
    "Int16": (__SPEC_PARENT__, "codec.types", None),
    "Int32": (__SPEC_PARENT__, "codec.types", None),
    "Int64": (__SPEC_PARENT__, "codec.types", None),
    "Float32": (__SPEC_PARENT__, "codec.types", None),
    "Float64": (__SPEC_PARENT__, "codec.types", None),
    "Char": (__SPEC_PARENT__, "codec.types", None),
    "RestClientError": (__SPEC_PARENT__, "exceptions", None),
    "ConfigurationError": (__SPEC_PARENT__, "exceptions", None),
    "FormatError": (__SPEC_PARENT__, "exceptions", None),
    "UnsupportedTypeError": (__SPEC_PARENT__, "exceptions", None),
    "TransportError": (__SPEC_PARENT__, "exceptions", None),
    "TransportTimeoutError": (__SPEC_PARENT__, "exceptions", None),
    "WriteTimeoutError": (__SPEC_PARENT__, "exceptions", None),
    "RequestInterruptedError": (__SPEC_PARENT__, "exceptions", None),
    "HttpStatusError": (__SPEC_PARENT__, "exceptions", None),
    "RedirectExhaustedError": (__SPEC_PARENT__, "exceptions", None),
    "RetriesExhaustedError": (__SPEC_PARENT__, "exceptions", None),
    "BodyNotReplayableError": (__SPEC_PARENT__, "exceptions", None),
}

__all__ = list(_dynamic_imports)


def __getattr__(attr_name: str) -> object:

    dynamic_attr = _dynamic_imports.get(attr_name)
    if dynamic_attr is None:
        raise AttributeError(f"module {__name__!r} has no attribute {attr_name!r}")

    package, module_name, realname = dynamic_attr

    module = import_module(f"{package}.{module_name}", package=package)
    result = getattr(module, attr_name if realname is None else realname)
    g = globals()
    g[attr_name] = result
    for k, (_, v_module_name, v_realname) in _dynamic_imports.items():
        if v_module_name == module_name:
            g[k] = getattr(module, k if v_realname is None else v_realname)
    return result


def __dir__() -> "list[str]":
    return list(__all__)
