# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import threading
from typing import Any, Callable, TypeVar, cast

from sucuri.exceptions import ConfigurationError
from sucuri.rpc.http.backends.httpx import HTTPXHttpRPCBackend
from sucuri.rpc.http.config import ClientConfig, HttpRpcClientBuilder
from sucuri.rpc.http.descriptors import (
    ContractDescriptor,
    MethodDescriptor,
    describe_contract,
)
from sucuri.rpc.http.executor import ReliabilityExecutor
from sucuri.rpc.http.rate_limit import SimpleRateLimiter
from sucuri.rpc.http.resolver import resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceProxy:
    """
    Dispatch handler bound to one service contract.

    Exposes one callable attribute per contract method; each call is resolved
    into a request and executed by the owning client.
    """

    def __init__(self, client: "HttpRpcClient", contract: ContractDescriptor):
        self._client = client
        self._contract = contract

        for name, descriptor in contract.methods.items():
            setattr(self, name, self._create_method(descriptor))

    def _create_method(self, descriptor: MethodDescriptor) -> Callable[..., Any]:

        def rpc_method(*args: Any, **kwargs: Any) -> Any:
            logger.debug(
                "Calling RPC method %s.%s with args=%s kwargs=%s",
                self._contract.contract.__name__,
                descriptor.name,
                args,
                kwargs,
            )
            return self._client.invoke(self._contract, descriptor, args, kwargs)

        rpc_method.__name__ = descriptor.name
        rpc_method.__qualname__ = f"{self._contract.contract.__qualname__}.{descriptor.name}"
        return rpc_method

    def __repr__(self) -> str:
        return f"<ServiceProxy for {self._contract.contract.__qualname__}>"


class HttpRpcClient:
    """
    Entry point of the declarative client.

    ``create`` returns one memoized :class:`ServiceProxy` per contract class.
    The client owns a single httpx connection pool; ``close`` releases it and
    interrupts pending backoff sleeps and rate limiter waits.
    """

    def __init__(self, config: ClientConfig):
        self.config = config
        self._backend = HTTPXHttpRPCBackend(config)
        self._interrupted = threading.Event()
        self._executor = ReliabilityExecutor(
            config, self._backend, interrupted=self._interrupted
        )
        self._services: dict[type, ServiceProxy] = {}
        self._services_lock = threading.Lock()

    @staticmethod
    def builder() -> HttpRpcClientBuilder:
        return HttpRpcClientBuilder()

    def create(self, contract: type[T]) -> T:
        if not isinstance(contract, type):
            raise ConfigurationError(
                f"Service contract must be a class, got {contract!r}"
            )

        with self._services_lock:
            proxy = self._services.get(contract)
            if proxy is None:
                proxy = ServiceProxy(self, describe_contract(contract))
                self._services[contract] = proxy
                logger.debug("Created service proxy for %s", contract.__qualname__)
        return cast(T, proxy)

    def invoke(
        self,
        contract: ContractDescriptor,
        descriptor: MethodDescriptor,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        spec = resolve(
            descriptor,
            args,
            kwargs,
            base_url=contract.base_url or self.config.base_url,
            converter=self.config.converter,
        )
        return self._executor.execute(spec, descriptor)

    def close(self) -> None:
        self._interrupted.set()
        if isinstance(self.config.rate_limiter, SimpleRateLimiter):
            self.config.rate_limiter.interrupt()
        self._backend.close()

    def __enter__(self) -> "HttpRpcClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


__all__ = ["HttpRpcClient", "ServiceProxy"]
