# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Handle registry: opaque integer handles for connections.

Purpose
=======
The host never holds a ``Connection``; it holds an ``int`` handle. The
registry owns the strong references and implements the destruction protocol
so that a connection is never finalized while one of its operations is
still in flight.

Definition::

    class HandleRegistry:
        __slots__ = ("_connections", "_abandoned", "_next", "_lock")

        def add(self, connection: Connection) -> int
        def get(self, handle: int) -> Connection          # InvalidHandle
        def remove(self, handle: int) -> Connection       # InvalidHandle
        def destroy(self, handle: int) -> None            # InvalidHandle
        def close_all(self) -> None
        @property handles -> list[int]

Destruction Protocol::

    destroy(h)
      │  handle invalid immediately (get(h) raises)
      ↓
    connection moved to "abandoned"  ──>  connection.dispose()
                                              │ idle: release() now
                                              │ busy: pending_delete + close()
                                              ↓
                                         release listener
                                              ↓
                                    abandoned entry dropped (last reference)

Example::

    registry = HandleRegistry()
    handle = registry.add(create_connection("ws://example.com/", loop))
    registry.get(handle).connect()
    registry.destroy(handle)

Design Notes
============
- Handles start at 1 and are never reused within a registry.
- Operations are guarded by a lock: the host thread adds and destroys while
  release listeners fire on the loop thread.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from .exceptions import InvalidHandle

if TYPE_CHECKING:
    from .connection import Connection

__all__ = ["HandleRegistry"]

logger = logging.getLogger("genro_wsclient.registry")


class HandleRegistry:
    """
    Map of live handles to connections, plus abandoned connections that are
    still winding down.

    Example:
        >>> registry = HandleRegistry()
        >>> handle = registry.add(conn)
        >>> registry.get(handle) is conn
        True
        >>> registry.destroy(handle)
        >>> handle in registry
        False
    """

    __slots__ = ("_connections", "_abandoned", "_next", "_lock")

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._connections: dict[int, Connection] = {}
        self._abandoned: set[Connection] = set()
        self._next = 1
        self._lock = threading.Lock()

    def add(self, connection: Connection) -> int:
        """Register a connection and return its new handle."""
        with self._lock:
            handle = self._next
            self._next += 1
            self._connections[handle] = connection
        return handle

    def get(self, handle: int) -> Connection:
        """
        Return the connection for ``handle``.

        Raises:
            InvalidHandle: If the handle is unknown or already destroyed.
        """
        try:
            return self._connections[handle]
        except (KeyError, TypeError):
            raise InvalidHandle(handle) from None

    def remove(self, handle: int) -> Connection:
        """
        Unregister ``handle`` without touching the connection.

        Raises:
            InvalidHandle: If the handle is unknown.
        """
        with self._lock:
            try:
                return self._connections.pop(handle)
            except (KeyError, TypeError):
                raise InvalidHandle(handle) from None

    def destroy(self, handle: int) -> None:
        """
        Invalidate ``handle`` now and dispose its connection once safe.

        Raises:
            InvalidHandle: If the handle is unknown.
        """
        connection = self.remove(handle)
        if connection.released:
            return
        with self._lock:
            self._abandoned.add(connection)
        # runs at once if the loop thread released it meanwhile
        connection.add_release_listener(self._forget)
        logger.debug(f"Destroying handle {handle}: {connection!r}")
        connection.dispose()

    def close_all(self) -> None:
        """Destroy every live handle."""
        for handle in self.handles:
            self.destroy(handle)

    @property
    def handles(self) -> list[int]:
        """Live handles, in creation order."""
        with self._lock:
            return list(self._connections)

    @property
    def abandoned(self) -> int:
        """Number of destroyed connections still winding down."""
        return len(self._abandoned)

    def _forget(self, connection: Connection) -> None:
        with self._lock:
            self._abandoned.discard(connection)

    def __contains__(self, handle: object) -> bool:
        return handle in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __repr__(self) -> str:
        return f"HandleRegistry(live={len(self._connections)}, abandoned={len(self._abandoned)})"
