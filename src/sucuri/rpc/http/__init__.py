# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# HTTP RPC Module - Declarative blocking REST client
"""
This module provides the declarative REST client:
- HTTP method decorators (@Get, @Post, @Put, @Delete, @Head, @Patch)
- Request parameter decorators (@PathParam, @Query, @Header, @Body, @Headers)
- Client builder, configuration and service proxies
- Reliability policies (retries, manual redirects, rate limiting, TLS, proxy)
- Request/response interceptors
"""

from .backends.httpx import HTTPXHttpRPCBackend, HTTPXResponseStream
from .client import HttpRpcClient, ServiceProxy
from .config import ClientConfig, HttpRpcClientBuilder, RestClientEnvConfig
from .decorators import (
    BaseUrl,
    Body,
    Delete,
    Get,
    Head,
    Header,
    Headers,
    HttpMapping,
    Patch,
    PathParam,
    Post,
    Put,
    Query,
    RequestAttribute,
    RestClient,
)
from .descriptors import (
    ContractDescriptor,
    MethodDescriptor,
    ParameterBinding,
    RequestSpec,
    ReturnShape,
    describe_contract,
)
from .executor import ReliabilityExecutor
from .interceptors import (
    ApiKeyAuth,
    AuthenticationInterceptor,
    BasicAuth,
    BearerTokenAuth,
    LoggingInterceptor,
    RequestInterceptor,
    ResponseInterceptor,
)
from .pipeline import ResponsePipeline
from .rate_limit import RateLimiter, SimpleRateLimiter
from .resolver import resolve

__all__ = [
    # HTTP Method decorators
    "Get",
    "Post",
    "Put",
    "Delete",
    "Head",
    "Patch",
    "HttpMapping",
    # Request parameter decorators
    "PathParam",
    "Query",
    "Header",
    "Body",
    "Headers",
    "RequestAttribute",
    # Contract decorators
    "RestClient",
    "BaseUrl",
    # Client builder and core classes
    "HttpRpcClient",
    "HttpRpcClientBuilder",
    "ServiceProxy",
    "ClientConfig",
    "RestClientEnvConfig",
    # Descriptors
    "ContractDescriptor",
    "MethodDescriptor",
    "ParameterBinding",
    "RequestSpec",
    "ReturnShape",
    "describe_contract",
    "resolve",
    # Execution
    "ReliabilityExecutor",
    "ResponsePipeline",
    "RateLimiter",
    "SimpleRateLimiter",
    # Interceptors
    "RequestInterceptor",
    "ResponseInterceptor",
    "LoggingInterceptor",
    "AuthenticationInterceptor",
    "BearerTokenAuth",
    "BasicAuth",
    "ApiKeyAuth",
    # Backend
    "HTTPXHttpRPCBackend",
    "HTTPXResponseStream",
]
