# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Byte-stream transports for WebSocket connections.

Purpose
=======
A ``Connection`` is one state machine parameterized over a ``Transport``
capability. The two variants differ only in the optional pre-upgrade
security step::

    Transport (ABC)
    ├── PlainTransport   secure() is a no-op          ws://
    └── TlsTransport     secure() runs the TLS         wss://
                         handshake with SNI

Definition::

    class Transport(ABC):
        is_tls: bool

        async def connect(self, endpoints: Sequence[Endpoint]) -> Endpoint
        async def secure(self, host: str, port: int) -> None
        async def read(self, size: int) -> bytes      # b"" on EOF
        def write(self, data: bytes) -> None
        async def drain(self) -> None
        def write_eof(self) -> None
        async def close(self) -> None
        def abort(self) -> None
        @property is_open -> bool
        @property endpoint -> Endpoint | None

Error Mapping
=============
- ``connect()`` raises ``TransportConnectError`` after every endpoint failed.
- ``secure()`` raises ``TlsHandshakeError`` (SNI cannot be set, negotiation
  or certificate verification failed, handshake timed out).
- ``read()``, ``drain()`` propagate ``OSError``; the connection decides
  whether that is a ``ReadError``, ``WriteError`` or ``CloseError``.

Design Notes
============
- Built on asyncio streams. ``TlsTransport`` upgrades the connected stream
  in place with ``StreamWriter.start_tls()`` so that the TCP connect and the
  TLS handshake stay two separate stages.
- ``abort()`` drops the socket immediately; a pending ``read()`` then
  returns EOF, which is how the connection stops its read loop.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from abc import ABC, abstractmethod
from typing import Sequence

from .datastructures import Endpoint
from .exceptions import TlsHandshakeError, TransportConnectError

__all__ = ["Transport", "PlainTransport", "TlsTransport"]

logger = logging.getLogger("genro_wsclient.transport")


class Transport(ABC):
    """
    Abstract stream transport.

    Subclasses only need to implement ``secure()``; the TCP part is shared.

    Attributes:
        is_tls: True for the TLS variant.
    """

    is_tls: bool = False

    def __init__(self) -> None:
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._endpoint: Endpoint | None = None

    @property
    def endpoint(self) -> Endpoint | None:
        """Endpoint the transport is connected to."""
        return self._endpoint

    @property
    def is_open(self) -> bool:
        """True while the underlying socket is connected and not closing."""
        return self._writer is not None and not self._writer.is_closing()

    async def connect(self, endpoints: Sequence[Endpoint]) -> Endpoint:
        """
        Connect to the first reachable endpoint, in order.

        Raises:
            TransportConnectError: If every endpoint failed.
        """
        if not endpoints:
            raise TransportConnectError("no endpoints to connect to")

        last_error: OSError | None = None
        for endpoint in endpoints:
            try:
                reader, writer = await asyncio.open_connection(endpoint.host, endpoint.port)
            except OSError as e:
                logger.debug(f"Connect to {endpoint} failed: {e}")
                last_error = e
                continue
            self._reader = reader
            self._writer = writer
            self._endpoint = endpoint
            return endpoint

        raise TransportConnectError(str(last_error)) from last_error

    @abstractmethod
    async def secure(self, host: str, port: int) -> None:
        """Run the pre-upgrade security step, if any."""
        ...

    async def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes. Returns b"" on EOF."""
        if self._reader is None:
            raise ConnectionError("transport is not connected")
        return await self._reader.read(size)

    def write(self, data: bytes) -> None:
        """Buffer ``data`` for sending."""
        if self._writer is None:
            raise ConnectionError("transport is not connected")
        self._writer.write(data)

    async def drain(self) -> None:
        """Wait until the write buffer is flushed enough."""
        if self._writer is None:
            raise ConnectionError("transport is not connected")
        await self._writer.drain()

    def write_eof(self) -> None:
        """Half-close the stream when the transport supports it."""
        if self._writer is not None and self._writer.can_write_eof():
            self._writer.write_eof()

    async def close(self) -> None:
        """Close the stream gracefully."""
        if self._writer is None:
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing transport: {e}")

    def abort(self) -> None:
        """Drop the connection immediately."""
        if self._writer is not None:
            self._writer.transport.abort()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(endpoint={self._endpoint!r}, open={self.is_open})"


class PlainTransport(Transport):
    """Raw TCP stream (ws://)."""

    is_tls = False

    async def secure(self, host: str, port: int) -> None:
        """Nothing to do for plain TCP."""
        return None


class TlsTransport(Transport):
    """
    TLS-wrapped TCP stream (wss://).

    Attributes:
        ssl_context: Client context, usually ``EventLoop.ssl_context``.
        sni_with_port: Advertise ``host:port`` instead of ``host``.
        handshake_timeout: Seconds allowed for the TLS handshake. None uses
            asyncio's default.

    Example:
        >>> transport = TlsTransport(ssl.create_default_context())
        >>> transport.server_name("example.com", 443)
        'example.com'
    """

    is_tls = True

    def __init__(
        self,
        ssl_context: ssl.SSLContext,
        sni_with_port: bool = False,
        handshake_timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.ssl_context = ssl_context
        self.sni_with_port = sni_with_port
        self.handshake_timeout = handshake_timeout

    def server_name(self, host: str, port: int) -> str:
        """Server Name Indication advertised for ``host``."""
        if self.sni_with_port:
            return f"{host}:{port}"
        return host

    async def secure(self, host: str, port: int) -> None:
        """
        Set SNI and run the TLS handshake on the connected stream.

        Raises:
            TlsHandshakeError: If SNI cannot be set or the handshake fails.
        """
        name = self.server_name(host, port)
        try:
            name.encode("idna")
        except UnicodeError as e:
            raise TlsHandshakeError(f"Cannot set SNI {name!r}: {e}") from e

        if self._writer is None:
            raise TlsHandshakeError("transport is not connected")

        try:
            await self._writer.start_tls(
                self.ssl_context,
                server_hostname=name,
                ssl_handshake_timeout=self.handshake_timeout,
            )
        except (OSError, ValueError) as e:
            # ssl.SSLError and ssl.CertificateError land here
            raise TlsHandshakeError(f"SSL Handshake Error: {e}") from e
