# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Deferred dispatch of host callbacks.

Connection events are produced on the loop thread, but host handlers must
run in the host's own context. ``DeferredDispatcher`` is the hand-off point:
the loop thread ``defer()``s a call, the host thread drains the queue with
``run_pending()`` (typically once per frame or tick).

::

    loop thread                        host thread
    ───────────                        ───────────
    defer(cb, handle, msg, data) ──>   [queue]  ──>  run_pending()
                                                        cb(handle, msg, data)

Calls run in the order they were deferred. A failing handler is logged with
traceback and does not prevent the following ones from running.

An optional ``wakeup`` callable is invoked (on the deferring thread) every
time the queue goes from empty to non-empty, so a host with its own event
loop can schedule a drain instead of polling.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable

__all__ = ["DeferredDispatcher"]

logger = logging.getLogger("genro_wsclient.dispatch")


class DeferredDispatcher:
    """
    Thread-safe FIFO of pending host calls.

    Example:
        >>> dispatcher = DeferredDispatcher()
        >>> dispatcher.defer(print, "hello")
        >>> dispatcher.run_pending()
        hello
        1
    """

    __slots__ = ("_pending", "_lock", "_wakeup")

    def __init__(self, wakeup: Callable[[], None] | None = None) -> None:
        self._pending: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._lock = threading.Lock()
        self._wakeup = wakeup

    def defer(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` for the next ``run_pending()``."""
        with self._lock:
            was_empty = not self._pending
            self._pending.append((fn, args))
        if was_empty and self._wakeup is not None:
            self._wakeup()

    def run_pending(self, limit: int | None = None) -> int:
        """
        Run queued calls on the current thread.

        Calls deferred while draining are picked up in the same pass unless
        ``limit`` stops it first.

        Returns:
            Number of calls executed.
        """
        count = 0
        while limit is None or count < limit:
            with self._lock:
                if not self._pending:
                    break
                fn, args = self._pending.popleft()
            count += 1
            try:
                fn(*args)
            except Exception:
                logger.exception(f"Error in deferred callback {fn!r}")
        return count

    def clear(self) -> int:
        """Drop all pending calls and return how many were dropped."""
        with self._lock:
            dropped = len(self._pending)
            self._pending.clear()
        return dropped

    def __len__(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return f"DeferredDispatcher(pending={len(self._pending)})"
