# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Connection factory: target URL to ready-to-configure ``Connection``.

Parsing Schema::

    "ws://example.com/chat?x=1"
        │
        ↓ parse_target()
    Target(scheme="ws", host="example.com", port=80,
           path="/chat?x=1", tls=False)
        │
        ↓ create_connection()
    Connection(state=CREATED, transport=PlainTransport)

Rules:
- Only ``ws`` and ``wss`` schemes are accepted.
- Port defaults to 80 (ws) or 443 (wss).
- Path defaults to "/"; the query string is appended verbatim.
- Anything else (other scheme, missing host, bad port, unparsable string)
  raises ``InvalidTarget``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import ClientConfig
from .connection import Connection
from .datastructures import URL
from .exceptions import InvalidTarget
from .resolver import Resolver
from .transport import PlainTransport, TlsTransport, Transport

if TYPE_CHECKING:
    from .loop import EventLoop

__all__ = ["Target", "parse_target", "create_connection", "DEFAULT_PORTS"]

DEFAULT_PORTS = {"ws": 80, "wss": 443}


@dataclass(frozen=True)
class Target:
    """
    Parsed WebSocket target.

    Attributes:
        scheme: "ws" or "wss".
        host: Host name or address literal (IPv6 without brackets).
        port: Explicit or default port.
        path: Request target, query included.
        tls: True for wss.
    """

    scheme: str
    host: str
    port: int
    path: str
    tls: bool

    @property
    def uri(self) -> str:
        """Normalized URI with explicit port."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}{self.path}"


def parse_target(url: str) -> Target:
    """
    Parse a ws:// or wss:// URL.

    Raises:
        InvalidTarget: If the URL is not a usable WebSocket target.

    Example:
        >>> parse_target("ws://example.com/chat?x=1")
        Target(scheme='ws', host='example.com', port=80, path='/chat?x=1', tls=False)
    """
    if not isinstance(url, str):
        raise InvalidTarget(url, "expected a string")
    try:
        parsed = URL(url.strip())
        scheme = parsed.scheme.lower()
        host = parsed.hostname
        port = parsed.port
    except ValueError as e:
        raise InvalidTarget(url, str(e)) from e

    if scheme not in DEFAULT_PORTS:
        raise InvalidTarget(url, f"unsupported scheme {scheme!r}" if scheme else "missing scheme")
    if not host:
        raise InvalidTarget(url, "missing host")
    if port == 0:
        raise InvalidTarget(url, "port must be in range 1-65535")

    return Target(
        scheme=scheme,
        host=host,
        port=port if port is not None else DEFAULT_PORTS[scheme],
        path=parsed.target,
        tls=parsed.secure,
    )


def create_connection(
    url: str,
    loop: EventLoop,
    config: ClientConfig | None = None,
    resolver: Resolver | None = None,
) -> Connection:
    """
    Build a ``Connection`` in state CREATED for ``url``.

    The TLS variant uses the loop's shared SSL context.

    Raises:
        InvalidTarget: If ``url`` is rejected by ``parse_target()``.
    """
    target = parse_target(url)
    config = config or loop.config
    transport: Transport
    if target.tls:
        transport = TlsTransport(
            loop.ssl_context,
            sni_with_port=config.sni_with_port,
            handshake_timeout=config.tls_timeout,
        )
    else:
        transport = PlainTransport()
    return Connection(
        target.host,
        target.path,
        target.port,
        transport,
        loop,
        config=config,
        resolver=resolver,
    )
