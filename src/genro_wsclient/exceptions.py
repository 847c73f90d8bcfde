# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for genro-wsclient connections and the host binding.

Module Structure
----------------
All exceptions inherit from ``WebSocketClientError``::

    WebSocketClientError
    ├── HandshakeError              terminal for a connect() attempt
    │   ├── ResolutionError         DNS lookup failed or returned nothing
    │   ├── TransportConnectError   TCP connect failed (or timed out)
    │   ├── TlsHandshakeError       SNI setup or TLS negotiation failed
    │   └── ProtocolHandshakeError  HTTP upgrade rejected or malformed
    ├── ReadError                   steady-state read loop terminated
    ├── WriteError                  a queued frame could not be sent
    ├── CloseError                  the close request could not be sent
    ├── InvalidTarget               target URL rejected by the factory
    └── BindingError                host boundary only
        ├── InvalidHandle
        └── InvalidCallback

Propagation
-----------
Handshake errors, ``ReadError``, ``WriteError`` and ``CloseError`` are raised
inside the connection's own tasks and never reach the caller: the
connection logs them and turns them into a disconnect notification (or
nothing, see ``Connection``). ``InvalidTarget`` and the ``BindingError``
family are raised synchronously at the call site.

Example:
    >>> try:
    ...     handle = binding.create("ftp://example.com")
    ... except InvalidTarget as e:
    ...     print(e.target)
    ftp://example.com
"""

from __future__ import annotations

__all__ = [
    "WebSocketClientError",
    "HandshakeError",
    "ResolutionError",
    "TransportConnectError",
    "TlsHandshakeError",
    "ProtocolHandshakeError",
    "ReadError",
    "WriteError",
    "CloseError",
    "InvalidTarget",
    "BindingError",
    "InvalidHandle",
    "InvalidCallback",
]


class WebSocketClientError(Exception):
    """Base exception for genro-wsclient."""


class HandshakeError(WebSocketClientError):
    """
    Failure of one stage of the connect chain.

    Any subclass is terminal for the attempt: the connection moves to
    FAILED and a new Connection is required to retry.
    """

    stage = "handshake"


class ResolutionError(HandshakeError):
    """Host name could not be resolved to any endpoint."""

    stage = "resolve"

    def __init__(self, host: str, port: int, detail: str = "") -> None:
        self.host = host
        self.port = port
        self.detail = detail
        message = f"Error resolving {host}:{port}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ResolutionError(host={self.host!r}, port={self.port}, detail={self.detail!r})"


class TransportConnectError(HandshakeError):
    """
    TCP connection could not be established.

    Attributes:
        timeout: True when the connect phase exceeded its deadline.
    """

    stage = "connect"

    def __init__(self, detail: str = "", timeout: bool = False) -> None:
        self.detail = detail
        self.timeout = timeout
        super().__init__(detail or ("connect timed out" if timeout else "connect failed"))

    def __repr__(self) -> str:
        return f"TransportConnectError(detail={self.detail!r}, timeout={self.timeout})"


class TlsHandshakeError(HandshakeError):
    """SNI could not be set or the TLS negotiation failed."""

    stage = "tls"


class ProtocolHandshakeError(HandshakeError):
    """
    WebSocket upgrade failed.

    Attributes:
        status: HTTP status of the server response, or None when no valid
            response was received.
    """

    stage = "upgrade"

    def __init__(self, detail: str = "", status: int | None = None) -> None:
        self.detail = detail
        self.status = status
        super().__init__(detail)

    def __repr__(self) -> str:
        return f"ProtocolHandshakeError(detail={self.detail!r}, status={self.status})"


class ReadError(WebSocketClientError):
    """
    The read loop could not obtain another message.

    Attributes:
        code: Close code received from the peer, if any.
        reason: Close reason received from the peer, if any.
    """

    def __init__(
        self,
        detail: str = "",
        code: int | None = None,
        reason: str = "",
    ) -> None:
        self.detail = detail
        self.code = code
        self.reason = reason
        super().__init__(detail)

    def __repr__(self) -> str:
        return f"ReadError(detail={self.detail!r}, code={self.code}, reason={self.reason!r})"


class WriteError(WebSocketClientError):
    """A frame could not be written. Logged only."""


class CloseError(WebSocketClientError):
    """The close frame could not be written. Logged only."""


class InvalidTarget(WebSocketClientError, ValueError):
    """
    The target string is not a usable ws:// or wss:// URL.

    Attributes:
        target: The rejected input.
        detail: Why it was rejected.
    """

    def __init__(self, target: object, detail: str = "") -> None:
        self.target = target
        self.detail = detail
        message = f"Invalid websocket URL: {target}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)

    def __repr__(self) -> str:
        return f"InvalidTarget(target={self.target!r}, detail={self.detail!r})"


class BindingError(WebSocketClientError):
    """Error reported synchronously at the host boundary."""


class InvalidHandle(BindingError, KeyError):
    """The handle does not name a live connection."""

    def __init__(self, handle: object) -> None:
        self.handle = handle
        super().__init__(f"Invalid WebSocket handle {handle!r}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class InvalidCallback(BindingError, TypeError):
    """The handler provided by the host is not callable."""

    def __init__(self, callback: object) -> None:
        self.callback = callback
        super().__init__(f"Invalid handler callback provided: {callback!r}")
