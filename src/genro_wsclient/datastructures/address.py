# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Resolved endpoint wrapper.

Purpose
=======
Wraps one result of name resolution: the numeric address, the port and the
socket family. Provides named attribute access instead of getaddrinfo
tuple indexing.

Resolver Mapping::

    getaddrinfo(...)[i] = (family, type, proto, canonname, sockaddr)
                                     sockaddr = ("93.184.216.34", 80)
                                              →  Endpoint(host, port, family)

Definition::

    class Endpoint:
        __slots__ = ("host", "port", "family")

        def __init__(self, host: str, port: int, family: int = 0) -> None
        def __repr__(self) -> str
        def __eq__(self, other: object) -> bool
            # Compares with Endpoint or (host, port) tuple

Example::

    from genro_wsclient.datastructures import Endpoint

    ep = Endpoint("127.0.0.1", 8080)
    assert ep == ("127.0.0.1", 8080)

Design Notes
============
- Uses ``__slots__`` for memory efficiency
- ``family`` is informative and ignored by equality
- ``__str__`` brackets IPv6 literals (``[::1]:80``) for log lines
"""

__all__ = ["Endpoint"]


class Endpoint:
    """
    One candidate address for the transport connect phase.

    Attributes:
        host: Numeric IP address.
        port: Port number.
        family: Socket address family (``socket.AF_INET``, ...), 0 if unknown.

    Example:
        >>> ep = Endpoint("::1", 9000)
        >>> str(ep)
        '[::1]:9000'
    """

    __slots__ = ("host", "port", "family")

    def __init__(self, host: str, port: int, family: int = 0) -> None:
        self.host = host
        self.port = port
        self.family = family

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def __repr__(self) -> str:
        return f"Endpoint(host={self.host!r}, port={self.port})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Endpoint):
            return self.host == other.host and self.port == other.port
        if isinstance(other, tuple) and len(other) == 2:
            return bool(self.host == other[0] and self.port == other[1])
        return False

    def __hash__(self) -> int:
        return hash((self.host, self.port))
