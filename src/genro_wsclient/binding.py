# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Host binding adapter.

Purpose
=======
``WebSocketBinding`` is the surface a host (a scripting runtime, a game
server, a GUI) uses to drive connections by integer handle. It hides
``Connection`` objects behind a ``HandleRegistry`` and re-enters the host's
own context for every callback through a ``DeferredDispatcher``.

Operations::

    create(url) -> handle                      InvalidTarget
    connect(handle)                            InvalidHandle
    set_header(handle, name, value)            InvalidHandle
    set_connect_callback(handle, cb, data)     InvalidHandle, InvalidCallback
    set_disconnect_callback(handle, cb, data)  InvalidHandle, InvalidCallback
    set_read_callback(handle, mode, cb, data)  InvalidHandle, InvalidCallback
    write(handle, document)                    InvalidHandle, TypeError
    write_string(handle, text)                 InvalidHandle
    close(handle)                              InvalidHandle
    delete(handle)                             InvalidHandle
    run_pending() -> int
    shutdown()

Callback Signatures
===================
::

    on_connect(handle, data)
    on_disconnect(handle, data)
    on_read(handle, message, data)   # message: str (STRING) or document (JSON)

In JSON mode a message that does not parse is logged and delivered as None.
In STRING mode invalid UTF-8 sequences are replaced.

Example::

    loop = EventLoop()
    loop.start()
    ws = WebSocketBinding(loop)

    handle = ws.create("wss://example.com/feed")
    ws.set_header(handle, "Authorization", "Bearer abc")
    ws.set_read_callback(handle, ReadMode.JSON, on_message, data=42)
    ws.set_disconnect_callback(handle, on_gone)
    ws.connect(handle)

    while running:
        ws.run_pending()      # host thread: callbacks run here
        ...

    ws.delete(handle)
    loop.stop()

Design Notes
============
- Every callback is deferred, even when the host and the loop share a
  thread, so handlers never run inside the connection's completion path.
- A deferred call whose handle was deleted in the meantime is dropped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import ClientConfig
from .connection import Connection
from .dispatch import DeferredDispatcher
from .documents import DocumentError, decode_document, encode_document
from .exceptions import InvalidCallback
from .factory import create_connection
from .registry import HandleRegistry
from .resolver import Resolver
from .types import HostEventCallback, HostReadCallback

if TYPE_CHECKING:
    from .loop import EventLoop

__all__ = ["ReadMode", "WebSocketBinding"]

logger = logging.getLogger("genro_wsclient.binding")


class ReadMode(Enum):
    """How received messages are handed to the host read callback."""

    JSON = "json"
    STRING = "string"


class WebSocketBinding:
    """
    Handle-based adapter between a host and the connection core.

    Attributes:
        loop: EventLoop driving every connection of this binding.
        config: ClientConfig used for new connections.
        dispatcher: Queue of host callbacks, drained by ``run_pending()``.
    """

    __slots__ = ("loop", "config", "dispatcher", "_registry", "_resolver")

    def __init__(
        self,
        loop: EventLoop,
        config: ClientConfig | None = None,
        dispatcher: DeferredDispatcher | None = None,
        resolver: Resolver | None = None,
    ) -> None:
        self.loop = loop
        self.config = config or loop.config
        self.dispatcher = dispatcher or DeferredDispatcher()
        self._registry = HandleRegistry()
        self._resolver = resolver

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create(self, url: str) -> int:
        """
        Create a connection for ``url`` and return its handle.

        Raises:
            InvalidTarget: If ``url`` is not a ws:// or wss:// URL.
        """
        connection = create_connection(url, self.loop, self.config, self._resolver)
        handle = self._registry.add(connection)
        logger.debug(f"Created handle {handle} for {connection.uri}")
        return handle

    def connect(self, handle: int) -> None:
        """Start connecting. Non-blocking."""
        self._registry.get(handle).connect()

    def close(self, handle: int) -> None:
        """Start the close handshake. The handle stays valid."""
        self._registry.get(handle).close()

    def delete(self, handle: int) -> None:
        """
        Invalidate ``handle`` immediately.

        A live connection is closed and finalized once its in-flight
        operations have completed.
        """
        self._registry.destroy(handle)

    def shutdown(self) -> None:
        """Delete every live handle and drop pending callbacks."""
        self._registry.close_all()
        dropped = self.dispatcher.clear()
        if dropped:
            logger.debug(f"Dropped {dropped} pending callbacks on shutdown")

    def run_pending(self, limit: int | None = None) -> int:
        """Run deferred callbacks on the calling (host) thread."""
        return self.dispatcher.run_pending(limit)

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_header(self, handle: int, name: str, value: str) -> None:
        """Set an upgrade request header. Only before ``connect()``."""
        self._registry.get(handle).set_header(name, value)

    def set_connect_callback(
        self, handle: int, callback: HostEventCallback, data: Any = None
    ) -> None:
        """Install ``callback(handle, data)`` for a successful handshake."""
        connection = self._registry.get(handle)
        _require_callable(callback)
        connection.set_connect_callback(
            lambda: self.dispatcher.defer(self._deliver, handle, callback, data)
        )

    def set_disconnect_callback(
        self, handle: int, callback: HostEventCallback, data: Any = None
    ) -> None:
        """Install ``callback(handle, data)`` for a failed or lost connection."""
        connection = self._registry.get(handle)
        _require_callable(callback)
        connection.set_disconnect_callback(
            lambda: self.dispatcher.defer(self._deliver, handle, callback, data)
        )

    def set_read_callback(
        self,
        handle: int,
        mode: ReadMode | str,
        callback: HostReadCallback,
        data: Any = None,
    ) -> None:
        """
        Install ``callback(handle, message, data)`` for received messages.

        Raises:
            ValueError: If ``mode`` is not a ReadMode.
        """
        connection = self._registry.get(handle)
        _require_callable(callback)
        mode = ReadMode(mode)

        def on_read(payload: bytes) -> None:
            message: Any
            if mode is ReadMode.JSON:
                try:
                    message = decode_document(payload)
                except DocumentError as e:
                    logger.error(f"Invalid JSON from handle {handle}: {e}")
                    message = None
            else:
                message = payload.decode("utf-8", errors="replace")
            self.dispatcher.defer(self._deliver, handle, callback, message, data)

        connection.set_read_callback(on_read)

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self, handle: int, document: Any) -> None:
        """
        Send a document serialized as JSON text.

        Raises:
            TypeError: If the document cannot be serialized.
        """
        connection = self._registry.get(handle)
        connection.write(encode_document(document))

    def write_string(self, handle: int, text: str) -> None:
        """Send ``text`` as a text frame."""
        self._registry.get(handle).write(text)

    # =========================================================================
    # Introspection
    # =========================================================================

    def connection(self, handle: int) -> Connection:
        """The connection behind ``handle``."""
        return self._registry.get(handle)

    def is_connected(self, handle: int) -> bool:
        """True while the handle's WebSocket is open."""
        return self._registry.get(handle).connected

    @property
    def handles(self) -> list[int]:
        """Live handles."""
        return self._registry.handles

    def _deliver(self, handle: int, callback: Any, *args: Any) -> None:
        if handle not in self._registry:
            logger.debug(f"Dropping callback for deleted handle {handle}")
            return
        callback(handle, *args)

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"WebSocketBinding(handles={len(self._registry)}, pending={len(self.dispatcher)})"


def _require_callable(callback: Any) -> None:
    if not callable(callback):
        raise InvalidCallback(callback)
