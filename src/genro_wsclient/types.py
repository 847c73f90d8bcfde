# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Callback type definitions for genro-wsclient.

Purpose
=======
Type aliases for the three callback slots of a ``Connection`` and for the
handlers accepted by the host binding.

Connection level (loop thread, raw bytes only)::

    ConnectCallback    = Callable[[], None]
    DisconnectCallback = Callable[[], None]
    ReadCallback       = Callable[[bytes], None]

Host level (host thread, via DeferredDispatcher)::

    HostEventCallback = Callable[[int, Any], None]          # (handle, data)
    HostReadCallback  = Callable[[int, Any, Any], None]     # (handle, message, data)

``ReleaseListener`` receives the connection being finalized.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .connection import Connection

__all__ = [
    "ConnectCallback",
    "DisconnectCallback",
    "ReadCallback",
    "ReleaseListener",
    "HostEventCallback",
    "HostReadCallback",
]

ConnectCallback = Callable[[], None]
DisconnectCallback = Callable[[], None]
ReadCallback = Callable[[bytes], None]

ReleaseListener = Callable[["Connection"], None]

HostEventCallback = Callable[[int, Any], None]
HostReadCallback = Callable[[int, Any, Any], None]
