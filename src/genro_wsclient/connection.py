# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""WebSocket client connection state machine.

Purpose
=======
``Connection`` drives one client WebSocket through its whole life on the
injected ``EventLoop``: name resolution, transport connect, optional TLS
handshake, HTTP upgrade, steady-state read loop, writes and close. It is a
single state machine parameterized over a ``Transport``; the plain and TLS
variants differ only in ``Transport.secure()``.

Framing and the upgrade handshake are delegated to the sans-I/O
``websockets.client.ClientProtocol``; this module owns the I/O, the stages,
the callbacks and the lifetime rules.

Connection flow::

    Caller                      Connection (loop thread)                 Peer
    ──────                      ────────────────────────                 ────
    connect() ───────────────>  RESOLVING        Resolver.resolve()
                                CONNECTING       Transport.connect()  ──> TCP
                                [TLS_HANDSHAKING Transport.secure()]  ──> TLS
                                UPGRADING        GET path + headers   ──> HTTP 101
                                OPEN             on_connect()
                                   │             read loop  <──────────── frames
    write(data) ─────────────>     │             outbox ───────────────>  frames
    close() ─────────────────>     │             close 1000 ───────────>
                                CLOSED           on_disconnect()  <────── EOF

Any handshake stage failure goes to FAILED and fires ``on_disconnect`` once.

Connection States
=================
::

    CREATED ──> RESOLVING ──> CONNECTING ──> [TLS_HANDSHAKING] ──> UPGRADING ──> OPEN ──> CLOSED
                    │              │                │                  │
                    └──────────────┴────────────────┴──────────────────┴──────> FAILED

Lifetime
========
A connection never destroys itself behind its owner's back. The owner
either calls ``release()`` when nothing is in flight, or ``dispose()``,
which sets ``pending_delete`` and issues ``close()``. With
``pending_delete`` set, the next operation that terminates with an error
(read loop, handshake stage, close request) calls ``release()`` instead of
notifying anyone. ``release()`` runs once: it cancels the connection's
tasks, aborts the transport, drops the callbacks and notifies the release
listeners, which is where the owner (e.g. ``HandleRegistry``) drops its last
reference.

Callback Rules
==============
- ``on_connect`` fires once, after a successful upgrade.
- ``on_disconnect`` fires at most once per connection: on a handshake
  failure, or when the read loop terminates.
- ``on_read`` receives an owned ``bytes`` copy of each complete message.
- Write and close failures are logged only; they fire nothing.
- Nothing fires after ``release()``.
- Exceptions raised by callbacks are logged and do not affect the state
  machine.

Example::

    loop = EventLoop()
    loop.start()
    conn = create_connection("ws://example.com/chat?x=1", loop)
    conn.set_header("Authorization", "Bearer abc")
    conn.set_read_callback(lambda data: print(data))
    conn.set_disconnect_callback(lambda: print("gone"))
    conn.connect()
    conn.write("hello")
    ...
    conn.dispose()
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections import deque
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, Coroutine, NamedTuple

from websockets.client import ClientProtocol
from websockets.exceptions import InvalidHandshake, InvalidState, InvalidURI
from websockets.frames import CloseCode, Frame, Opcode
from websockets.http11 import Request, Response
from websockets.protocol import State
from websockets.uri import parse_uri

from .config import ClientConfig
from .datastructures import HeaderSet
from .exceptions import (
    CloseError,
    HandshakeError,
    ProtocolHandshakeError,
    ReadError,
    TransportConnectError,
    WriteError,
)
from .resolver import Resolver
from .types import ConnectCallback, DisconnectCallback, ReadCallback, ReleaseListener

if TYPE_CHECKING:
    from .loop import EventLoop
    from .transport import Transport

__all__ = ["Connection", "ConnectionState"]

logger = logging.getLogger("genro_wsclient.connection")

# Seconds to wait for the peer to drop TCP once the close handshake is done
CLOSE_TIMEOUT = 10.0


class ConnectionState(IntEnum):
    """
    Connection lifecycle state.

    Values follow the progression of the connect chain; FAILED is the
    terminal state of an unsuccessful attempt, CLOSED of an opened one.
    """

    CREATED = 0
    RESOLVING = 1
    CONNECTING = 2
    TLS_HANDSHAKING = 3
    UPGRADING = 4
    OPEN = 5
    CLOSED = 6
    FAILED = 7


_IN_FLIGHT = frozenset(
    {
        ConnectionState.RESOLVING,
        ConnectionState.CONNECTING,
        ConnectionState.TLS_HANDSHAKING,
        ConnectionState.UPGRADING,
        ConnectionState.OPEN,
    }
)


class _Outgoing(NamedTuple):
    """One outbox entry: a data frame, or a close request (payload None)."""

    payload: bytes | None
    binary: bool = False


class Connection:
    """
    Client WebSocket connection over a plain or TLS transport.

    Attributes:
        host: Target host name (also the Host header of the upgrade).
        port: Target port.
        path: Resource target of the upgrade request, query included.
        tls: True when driven by a TLS transport.
        state: Current ConnectionState.
        connected: True between a successful upgrade and the end of the
            read loop.
        pending_delete: Set by the owner to hand destruction over to the
            next failing operation. Cannot be cleared.
        released: True once ``release()`` ran.

    Example:
        >>> conn = Connection("example.com", "/chat", 80, PlainTransport(), loop)
        >>> conn.state
        <ConnectionState.CREATED: 0>
        >>> conn.tls
        False
    """

    __slots__ = (
        "_host",
        "_path",
        "_port",
        "_transport",
        "_loop",
        "_config",
        "_resolver",
        "_headers",
        "_state",
        "_connected",
        "_pending_delete",
        "_released",
        "_disconnect_notified",
        "_on_connect",
        "_on_disconnect",
        "_on_read",
        "_protocol",
        "_buffer",
        "_events",
        "_outbox",
        "_tasks",
        "_writer_task",
        "_keepalive_task",
        "_pings",
        "_close_timer",
        "_abort_reason",
        "_release_listeners",
        "_listener_lock",
    )

    def __init__(
        self,
        host: str,
        path: str,
        port: int,
        transport: Transport,
        loop: EventLoop,
        config: ClientConfig | None = None,
        resolver: Resolver | None = None,
    ) -> None:
        """
        Initialize a connection in state CREATED.

        Args:
            host: Host to resolve, also sent as Host header.
            path: Resource target, including any query string.
            port: Port to connect to.
            transport: Exclusively owned transport (plain or TLS).
            loop: Injected event loop.
            config: Tunables, defaults to ``loop.config``.
            resolver: Name resolver, defaults to ``Resolver()``.
        """
        self._host = host
        self._path = path or "/"
        self._port = port
        self._transport = transport
        self._loop = loop
        self._config = config or loop.config
        self._resolver = resolver or Resolver()
        self._headers = HeaderSet()
        self._state = ConnectionState.CREATED
        self._connected = False
        self._pending_delete = False
        self._released = False
        self._disconnect_notified = False
        self._on_connect: ConnectCallback | None = None
        self._on_disconnect: DisconnectCallback | None = None
        self._on_read: ReadCallback | None = None
        self._protocol: ClientProtocol | None = None
        self._buffer = bytearray()
        self._events: deque[Frame] = deque()
        self._outbox: deque[_Outgoing] = deque()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._writer_task: asyncio.Task[Any] | None = None
        self._keepalive_task: asyncio.Task[Any] | None = None
        self._pings: dict[bytes, asyncio.Future[None]] = {}
        self._close_timer: asyncio.TimerHandle | None = None
        self._abort_reason = ""
        self._release_listeners: list[ReleaseListener] | None = []
        self._listener_lock = threading.Lock()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def host(self) -> str:
        """Target host."""
        return self._host

    @property
    def port(self) -> int:
        """Target port."""
        return self._port

    @property
    def path(self) -> str:
        """Resource target of the upgrade request."""
        return self._path

    @property
    def tls(self) -> bool:
        """True for wss:// connections."""
        return self._transport.is_tls

    @property
    def transport(self) -> Transport:
        """The owned transport."""
        return self._transport

    @property
    def uri(self) -> str:
        """Normalized ws:// or wss:// URI of the target."""
        host = f"[{self._host}]" if ":" in self._host else self._host
        scheme = "wss" if self.tls else "ws"
        return f"{scheme}://{host}:{self._port}{self._path}"

    @property
    def headers(self) -> HeaderSet:
        """Headers merged into the upgrade request."""
        return self._headers

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def connected(self) -> bool:
        """True while the upgrade is complete and no terminal event occurred."""
        return self._connected

    @property
    def pending_delete(self) -> bool:
        """True once the owner abandoned the connection."""
        return self._pending_delete

    @pending_delete.setter
    def pending_delete(self, value: bool) -> None:
        if not value:
            raise ValueError("pending_delete cannot be cleared once set")
        self._pending_delete = True

    @property
    def released(self) -> bool:
        """True once the connection has been finalized."""
        return self._released

    @property
    def busy(self) -> bool:
        """True while an asynchronous operation is outstanding."""
        return bool(self._tasks) or self._state in _IN_FLIGHT

    # =========================================================================
    # Configuration (before connect)
    # =========================================================================

    def set_header(self, name: str, value: str) -> None:
        """
        Set a header for the upgrade request.

        Raises:
            RuntimeError: If connect() was already called.
        """
        if self._state is not ConnectionState.CREATED:
            raise RuntimeError(
                f"Cannot set header: connection in {self._state.name} state"
            )
        self._headers.set(name, value)

    def set_connect_callback(self, callback: ConnectCallback | None) -> None:
        """Install (or clear) the connect callback, replacing the previous one."""
        self._on_connect = callback

    def set_disconnect_callback(self, callback: DisconnectCallback | None) -> None:
        """Install (or clear) the disconnect callback, replacing the previous one."""
        self._on_disconnect = callback

    def set_read_callback(self, callback: ReadCallback | None) -> None:
        """Install (or clear) the read callback, replacing the previous one."""
        self._on_read = callback

    def add_release_listener(self, listener: ReleaseListener) -> None:
        """
        Register a listener called once when the connection is released.

        Safe from any thread. A listener added after release runs at once.
        """
        with self._listener_lock:
            if self._release_listeners is not None:
                self._release_listeners.append(listener)
                return
        listener(self)

    # =========================================================================
    # Public operations (any thread, non-blocking)
    # =========================================================================

    def connect(self) -> None:
        """
        Start the connect chain.

        Returns immediately; progress happens on the event loop.

        Raises:
            RuntimeError: If the connection is not in CREATED state.
        """
        if self._state is not ConnectionState.CREATED or self._released:
            raise RuntimeError(
                f"Cannot connect: connection in {self._state.name} state"
            )
        self._headers.freeze()
        self._state = ConnectionState.RESOLVING
        self._loop.call_soon(self._start_handshake)

    def write(self, data: bytes | bytearray | memoryview | str, binary: bool = False) -> None:
        """
        Queue one message for sending.

        ``str`` is UTF-8 encoded. Bytes are sent as a text frame unless
        ``binary`` is True. The data is copied, so the caller may reuse its
        buffer. Failures are logged, never raised.
        """
        if isinstance(data, str):
            payload = data.encode("utf-8")
        else:
            payload = bytes(data)
        self._loop.call_soon(self._enqueue, _Outgoing(payload, binary))

    def close(self) -> None:
        """
        Queue a normal closure (1000) behind any pending writes.

        Failures are logged; with ``pending_delete`` set they release the
        connection.
        """
        self._loop.call_soon(self._enqueue, _Outgoing(None))

    def dispose(self) -> None:
        """
        Close and destroy once safe.

        Releases at once when nothing is in flight, otherwise sets
        ``pending_delete`` and issues ``close()``.
        """
        if self._loop.is_running:
            self._loop.run_on_loop(self._dispose)
        else:
            self._dispose()

    def release(self) -> None:
        """
        Finalize the connection. Runs at most once.

        Call on the loop thread (or with the loop stopped). Cancels the
        connection's tasks, aborts the transport, drops callbacks and
        notifies release listeners.
        """
        if self._released:
            return
        self._released = True
        self._connected = False
        if self._state in _IN_FLIGHT:
            self._state = ConnectionState.CLOSED

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in list(self._tasks):
            if task is not current:
                task.cancel()

        if self._close_timer is not None:
            self._close_timer.cancel()
            self._close_timer = None
        for waiter in self._pings.values():
            waiter.cancel()
        self._pings.clear()

        if self._transport.is_open:
            self._transport.abort()

        self._outbox.clear()
        self._events.clear()
        self._buffer.clear()
        self._on_connect = None
        self._on_disconnect = None
        self._on_read = None

        logger.debug(f"Released connection {self._host}:{self._port}")

        with self._listener_lock:
            listeners, self._release_listeners = self._release_listeners or [], None
        for listener in listeners:
            try:
                listener(self)
            except Exception:
                logger.exception("Error in release listener")

    # =========================================================================
    # Handshake chain
    # =========================================================================

    def _start_handshake(self) -> None:
        if self._released:
            return
        self._spawn(self._run(), "handshake")

    async def _run(self) -> None:
        """Handshake chain followed by the read loop, strictly sequential."""
        try:
            endpoints = await self._resolve()
            await self._connect_transport(endpoints)
            if self._transport.is_tls:
                await self._secure()
            await self._upgrade()
        except HandshakeError as exc:
            self._handshake_failed(exc)
            return

        self._opened()
        await self._read_loop()

    async def _resolve(self) -> list[Any]:
        self._state = ConnectionState.RESOLVING
        logger.info(f"Init Connect {self._host}:{self._port}")
        endpoints = await self._resolver.resolve(self._host, self._port)
        logger.debug(f"Resolved {self._host}:{self._port}")
        return endpoints

    async def _connect_transport(self, endpoints: list[Any]) -> None:
        self._state = ConnectionState.CONNECTING
        timeout = self._config.connect_timeout
        try:
            endpoint = await asyncio.wait_for(self._transport.connect(endpoints), timeout)
        except TimeoutError as e:
            raise TransportConnectError(
                f"Error connecting to {self._host}: timed out after {timeout}s",
                timeout=True,
            ) from e
        logger.debug(f"Connected to {self._host}:{self._port} via {endpoint}")

    async def _secure(self) -> None:
        self._state = ConnectionState.TLS_HANDSHAKING
        await self._transport.secure(self._host, self._port)
        logger.debug(f"TLS established with {self._host}:{self._port}")

    async def _upgrade(self) -> None:
        """Send the upgrade request and wait for the 101 response."""
        self._state = ConnectionState.UPGRADING
        try:
            self._protocol = ClientProtocol(
                parse_uri(self.uri),
                max_size=self._config.max_message_size,
                logger=logging.getLogger("genro_wsclient.protocol"),
            )
        except InvalidURI as e:
            raise ProtocolHandshakeError(f"WebSocket Handshake Error: {e}") from e

        request = self._protocol.connect()
        self._decorate(request)
        self._protocol.send_request(request)
        try:
            await self._flush()
        except OSError as e:
            raise ProtocolHandshakeError(f"WebSocket Handshake Error: {e}") from e

        while self._protocol.state is State.CONNECTING:
            try:
                data = await self._transport.read(self._config.read_chunk_size)
            except OSError as e:
                raise ProtocolHandshakeError(f"WebSocket Handshake Error: {e}") from e
            if not data:
                self._protocol.receive_eof()
                raise ProtocolHandshakeError(
                    "WebSocket Handshake Error: connection closed during upgrade"
                )
            self._protocol.receive_data(data)
            events = self._protocol.events_received()
            exc = self._protocol.handshake_exc
            if exc is not None:
                raise ProtocolHandshakeError(
                    f"WebSocket Handshake Error: {exc}", status=_status_of(exc)
                ) from exc
            # frames sent right after the 101 arrive in the same chunk
            self._events.extend(e for e in events if isinstance(e, Frame))
            self._flush_nowait()
            if self._protocol.close_expected():
                self._arm_close_timer()

    def _decorate(self, request: Request) -> None:
        """Inject Host, User-Agent and the caller headers into the request."""
        headers = request.headers
        if "Host" in headers:
            del headers["Host"]
        headers["Host"] = f"[{self._host}]" if ":" in self._host else self._host
        user_agent = self._config.user_agent
        if user_agent and "User-Agent" not in self._headers and "User-Agent" not in headers:
            headers["User-Agent"] = user_agent
        for name, value in self._headers.items():
            if name in headers:
                del headers[name]
            headers[name] = value

    def _handshake_failed(self, exc: HandshakeError) -> None:
        self._transport.abort()
        if self._pending_delete:
            logger.debug(f"Handshake aborted for abandoned connection: {exc}")
            self.release()
            return
        logger.error(f"{exc}")
        self._state = ConnectionState.FAILED
        self._connected = False
        self._notify_disconnect()

    def _opened(self) -> None:
        self._buffer.clear()
        self._state = ConnectionState.OPEN
        self._invoke("connect", self._on_connect)
        self._connected = True
        self._start_keepalive()
        logger.info(f"On Handshaked {self._host}:{self._port}")

    # =========================================================================
    # Read loop
    # =========================================================================

    async def _read_loop(self) -> None:
        while not self._released:
            try:
                size = await self._read_message()
            except ReadError as exc:
                self._read_failed(exc)
                return
            callback = self._on_read
            if callback is not None:
                self._invoke("read", callback, bytes(self._buffer[:size]))
            del self._buffer[:size]

    async def _read_message(self) -> int:
        """Accumulate one complete message in the buffer; return its size."""
        while True:
            while self._events:
                frame = self._events.popleft()
                if frame.opcode in (Opcode.TEXT, Opcode.BINARY, Opcode.CONT):
                    self._buffer += frame.data
                    if frame.fin:
                        return len(self._buffer)
                elif frame.opcode is Opcode.PONG:
                    self._pong_received(bytes(frame.data))
                elif frame.opcode is Opcode.CLOSE:
                    logger.debug(f"Close frame received from {self._host}:{self._port}")
            await self._receive_more()

    async def _receive_more(self) -> None:
        assert self._protocol is not None
        try:
            data = await self._transport.read(self._config.read_chunk_size)
        except OSError as e:
            raise ReadError(str(e) or type(e).__name__) from e

        if not data:
            self._protocol.receive_eof()
            close = self._protocol.close_rcvd
            detail = self._abort_reason or "connection closed"
            if close is not None:
                raise ReadError(detail, code=int(close.code), reason=close.reason)
            raise ReadError(detail)

        self._protocol.receive_data(data)
        self._events.extend(self._protocol.events_received())
        self._flush_nowait()
        if self._protocol.parser_exc is not None:
            raise ReadError(f"protocol error: {self._protocol.parser_exc}")
        if self._protocol.close_expected():
            self._arm_close_timer()

    def _read_failed(self, exc: ReadError) -> None:
        self._stop_keepalive()
        if self._close_timer is not None:
            self._close_timer.cancel()
            self._close_timer = None
        self._transport.abort()
        if self._pending_delete:
            self.release()
            return
        if exc.code == CloseCode.NORMAL_CLOSURE:
            logger.info(f"WebSocket closed by {self._host}:{self._port}: {exc.reason or exc}")
        else:
            logger.error(f"WebSocket read error: {exc}")
        self._state = ConnectionState.CLOSED
        self._notify_disconnect()
        self._connected = False

    # =========================================================================
    # Outbox: writes and close, one at a time
    # =========================================================================

    def _enqueue(self, item: _Outgoing) -> None:
        if self._released:
            return
        self._outbox.append(item)
        if self._writer_task is None or self._writer_task.done():
            self._writer_task = self._spawn(self._drain_outbox(), "writer")

    async def _drain_outbox(self) -> None:
        while self._outbox:
            item = self._outbox.popleft()
            if item.payload is None:
                try:
                    await self._send_close()
                except CloseError as exc:
                    logger.error(f"WebSocket close error: {exc}")
                    if self._pending_delete:
                        self.release()
                        return
            else:
                try:
                    await self._send_frame(item.payload, item.binary)
                except WriteError as exc:
                    logger.error(f"WebSocket write error: {exc}")

    async def _send_frame(self, payload: bytes, binary: bool) -> None:
        protocol = self._protocol
        if protocol is None or protocol.state is not State.OPEN:
            raise WriteError(f"connection in {self._state.name} state")
        try:
            if binary:
                protocol.send_binary(payload)
            else:
                protocol.send_text(payload)
            await self._flush()
        except (InvalidState, OSError) as e:
            raise WriteError(str(e) or type(e).__name__) from e
        logger.debug(f"Sent {len(payload)} bytes to {self._host}:{self._port}")

    async def _send_close(self) -> None:
        protocol = self._protocol
        if protocol is None or protocol.state is not State.OPEN:
            raise CloseError(f"connection in {self._state.name} state")
        try:
            protocol.send_close(CloseCode.NORMAL_CLOSURE)
            await self._flush()
        except (InvalidState, OSError) as e:
            raise CloseError(str(e) or type(e).__name__) from e
        if protocol.close_expected():
            self._arm_close_timer()
        logger.debug(f"Close sent to {self._host}:{self._port}")

    def _flush_nowait(self) -> None:
        assert self._protocol is not None
        for data in self._protocol.data_to_send():
            if data:
                self._transport.write(data)
            else:
                self._transport.write_eof()

    async def _flush(self) -> None:
        self._flush_nowait()
        await self._transport.drain()

    def _arm_close_timer(self) -> None:
        if self._close_timer is None:
            self._close_timer = self._loop.loop.call_later(CLOSE_TIMEOUT, self._close_timed_out)

    def _close_timed_out(self) -> None:
        self._close_timer = None
        if self._transport.is_open:
            self._abort_reason = "close handshake timed out"
            self._transport.abort()

    # =========================================================================
    # Keep-alive
    # =========================================================================

    def _start_keepalive(self) -> None:
        if self._config.ping_interval is None:
            return
        self._keepalive_task = self._spawn(self._keepalive(), "keepalive")

    def _stop_keepalive(self) -> None:
        task = self._keepalive_task
        self._keepalive_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _keepalive(self) -> None:
        interval = self._config.ping_interval
        timeout = self._config.ping_timeout
        assert interval is not None
        while True:
            await asyncio.sleep(interval)
            protocol = self._protocol
            if protocol is None or protocol.state is not State.OPEN:
                return
            payload = os.urandom(4)
            protocol.send_ping(payload)
            self._flush_nowait()
            if timeout is None:
                continue
            waiter: asyncio.Future[None] = self._loop.loop.create_future()
            self._pings[payload] = waiter
            try:
                await asyncio.wait_for(waiter, timeout)
            except TimeoutError:
                self._pings.pop(payload, None)
                logger.warning(f"Keep-alive ping to {self._host}:{self._port} timed out")
                self._abort_reason = "keep-alive ping timed out"
                self._transport.abort()
                return

    def _pong_received(self, payload: bytes) -> None:
        waiter = self._pings.pop(payload, None)
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _dispose(self) -> None:
        if self._released:
            return
        if not self.busy:
            self.release()
            return
        self._pending_delete = True
        self._enqueue(_Outgoing(None))

    def _notify_disconnect(self) -> None:
        if self._disconnect_notified:
            return
        self._disconnect_notified = True
        self._invoke("disconnect", self._on_disconnect)

    def _invoke(self, kind: str, callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Error in {kind} callback for {self._host}:{self._port}")

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[Any]:
        task = self._loop.create_task(coro, name=f"wsclient-{name}-{self._host}:{self._port}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Unexpected error in {task.get_name()}", exc_info=exc)

    def __repr__(self) -> str:
        return (
            f"Connection(uri={self.uri!r}, state={self._state.name}, "
            f"connected={self._connected})"
        )


def _status_of(exc: InvalidHandshake) -> int | None:
    """HTTP status carried by an upgrade failure, if any."""
    response = getattr(exc, "response", None)
    if isinstance(response, Response):
        return response.status_code
    return None
