# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Shared event loop injected into every connection.

Purpose
=======
All connections of a process are driven by one asyncio loop. Instead of a
module-level global, the loop is wrapped in an ``EventLoop`` object that is
passed to each ``Connection`` at construction. The wrapper offers:

- thread-safe scheduling (``call_soon``, ``run_on_loop``) so the host can
  call connect/write/close from its own thread without blocking
- task creation on the loop thread (``create_task``)
- the SSL context shared by all TLS transports

Two modes::

    Threaded                          Attached
    ────────                          ────────
    loop = EventLoop()                loop = EventLoop.attach()   # inside a coroutine
    loop.start()   # background       # uses the already running asyncio loop
    ...                               # (tests, asyncio applications)
    loop.stop()

Definition::

    class EventLoop:
        __slots__ = ("config", "_loop", "_thread", "_owned", "_ssl_context")

        def __init__(self, config: ClientConfig | None = None,
                     loop: asyncio.AbstractEventLoop | None = None) -> None
        @classmethod attach(cls, config=None) -> EventLoop
        def start(self) -> None
        def stop(self, timeout: float | None = 5.0) -> None
        @property loop -> asyncio.AbstractEventLoop
        @property is_running -> bool
        def in_loop_thread(self) -> bool
        def call_soon(self, callback, *args) -> None
        def run_on_loop(self, callback, *args) -> None
        def create_task(self, coro, name=None) -> asyncio.Task
        def run_coroutine(self, coro) -> concurrent.futures.Future
        @property ssl_context -> ssl.SSLContext

Design Notes
============
- ``call_soon`` always goes through ``call_soon_threadsafe``: it is the one
  entry point the host thread is allowed to use.
- ``run_on_loop`` executes immediately when already on the loop thread.
- The SSL context is created lazily from ``ClientConfig.verify_tls`` and
  ``ClientConfig.ca_file`` and reused by every TLS connection.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import ssl
import threading
from typing import Any, Callable, Coroutine

from .config import ClientConfig

__all__ = ["EventLoop"]

logger = logging.getLogger("genro_wsclient.loop")


class EventLoop:
    """
    Injected executor for all connections.

    Attributes:
        config: ClientConfig shared by connections created on this loop.

    Example:
        >>> loop = EventLoop()
        >>> loop.start()
        >>> conn = create_connection("ws://example.com/chat", loop)
        >>> conn.connect()
        >>> ...
        >>> loop.stop()
    """

    __slots__ = ("config", "_loop", "_thread", "_owned", "_ssl_context")

    def __init__(
        self,
        config: ClientConfig | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize EventLoop.

        Args:
            config: Shared client configuration (defaults if None).
            loop: Existing asyncio loop to drive. When None, a new loop is
                created and must be started with ``start()``.
        """
        self.config = config or ClientConfig()
        self._owned = loop is None
        self._loop = loop if loop is not None else asyncio.new_event_loop()
        self._thread: threading.Thread | None = None
        self._ssl_context: ssl.SSLContext | None = None

    @classmethod
    def attach(cls, config: ClientConfig | None = None) -> EventLoop:
        """
        Wrap the asyncio loop running in the current thread.

        Raises:
            RuntimeError: If no loop is running.
        """
        return cls(config=config, loop=asyncio.get_running_loop())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Run the owned loop forever in a daemon thread.

        Raises:
            RuntimeError: If the loop is attached or already started.
        """
        if not self._owned:
            raise RuntimeError("Cannot start an attached loop")
        if self._thread is not None:
            raise RuntimeError("EventLoop already started")

        ready = threading.Event()

        def run() -> None:
            asyncio.set_event_loop(self._loop)
            self._loop.call_soon(ready.set)
            self._loop.run_forever()

        self._thread = threading.Thread(target=run, name="genro-wsclient-loop", daemon=True)
        self._thread.start()
        ready.wait()
        logger.debug("Event loop started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Cancel pending tasks, stop the owned loop and join its thread.

        A no-op for attached loops.
        """
        if not self._owned or self._thread is None:
            return

        async def cancel_all() -> None:
            current = asyncio.current_task()
            tasks = [t for t in asyncio.all_tasks() if t is not current]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        try:
            self.run_coroutine(cancel_all()).result(timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Timed out cancelling pending tasks")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        self._thread = None
        self._loop.close()
        logger.debug("Event loop stopped")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The wrapped asyncio loop."""
        return self._loop

    @property
    def is_running(self) -> bool:
        """True while the wrapped loop is running."""
        return self._loop.is_running()

    # =========================================================================
    # Scheduling
    # =========================================================================

    def in_loop_thread(self) -> bool:
        """True if called from the thread running the loop."""
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule ``callback(*args)`` on the loop from any thread."""
        self._loop.call_soon_threadsafe(callback, *args)

    def run_on_loop(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run ``callback(*args)`` now if on the loop thread, else schedule it."""
        if self.in_loop_thread():
            callback(*args)
        else:
            self.call_soon(callback, *args)

    def create_task(
        self,
        coro: Coroutine[Any, Any, Any],
        name: str | None = None,
    ) -> asyncio.Task[Any]:
        """Create a task. Must be called on the loop thread."""
        return self._loop.create_task(coro, name=name)

    def run_coroutine(
        self, coro: Coroutine[Any, Any, Any]
    ) -> concurrent.futures.Future[Any]:
        """Submit a coroutine from another thread and get a concurrent Future."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    # =========================================================================
    # TLS
    # =========================================================================

    @property
    def ssl_context(self) -> ssl.SSLContext:
        """Client SSL context shared by all TLS transports."""
        if self._ssl_context is None:
            context = ssl.create_default_context(
                ssl.Purpose.SERVER_AUTH, cafile=self.config.ca_file
            )
            if not self.config.verify_tls:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            self._ssl_context = context
        return self._ssl_context

    def __repr__(self) -> str:
        mode = "owned" if self._owned else "attached"
        return f"EventLoop(mode={mode}, running={self.is_running})"
