# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Name resolution for the connect chain.

``Resolver.resolve(host, port)`` turns a host:port pair into the ordered
list of ``Endpoint`` candidates the transport will try. It uses the loop's
``getaddrinfo`` (thread pool backed), so it never blocks the loop.

Errors (``socket.gaierror``, any ``OSError``, an empty result) are reported
as ``ResolutionError``.
"""

from __future__ import annotations

import asyncio
import logging
import socket

from .datastructures import Endpoint
from .exceptions import ResolutionError

__all__ = ["Resolver"]

logger = logging.getLogger("genro_wsclient.resolver")


class Resolver:
    """
    Async resolver over ``loop.getaddrinfo``.

    Attributes:
        family: Restrict results to one address family (0 = any).

    Example:
        >>> endpoints = await Resolver().resolve("localhost", 80)
        >>> endpoints[0]
        Endpoint(host='127.0.0.1', port=80)
    """

    __slots__ = ("family",)

    def __init__(self, family: int = 0) -> None:
        self.family = family

    async def resolve(self, host: str, port: int) -> list[Endpoint]:
        """
        Resolve host:port to stream endpoints, duplicates removed.

        Raises:
            ResolutionError: If resolution fails or yields nothing.
        """
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                host, port, family=self.family, type=socket.SOCK_STREAM
            )
        except OSError as e:
            raise ResolutionError(host, port, str(e)) from e

        endpoints: list[Endpoint] = []
        for family, _type, _proto, _canonname, sockaddr in infos:
            endpoint = Endpoint(str(sockaddr[0]), int(sockaddr[1]), family)
            if endpoint not in endpoints:
                endpoints.append(endpoint)

        if not endpoints:
            raise ResolutionError(host, port, "no addresses found")

        logger.debug(f"Resolved {host}:{port} -> {', '.join(map(str, endpoints))}")
        return endpoints

    def __repr__(self) -> str:
        return f"Resolver(family={self.family})"
