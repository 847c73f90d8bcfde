# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Shared fixtures: a local WebSocket server with scripted behaviours.

Paths understood by the server:

    /hello     send "hello", then close normally
    /binary    send b"\\x00\\x01\\x00", then close normally
    /echo...   echo every message until the client closes
    /silent    accept and wait for the client to close
    /forbidden reject the upgrade with HTTP 403

``wss_server`` serves the same paths over TLS with the certificate in
``tests/certs`` (CN localhost, issued by ``ca.pem``).
"""

from __future__ import annotations

import asyncio
import socket
import ssl
from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request
from websockets.utils import accept_key

from genro_wsclient import ClientConfig

CERTS = Path(__file__).parent / "certs"


class ScriptedServer:
    """Records upgrade requests and serves the scripted paths."""

    def __init__(self, scheme: str = "ws", host: str = "127.0.0.1") -> None:
        self.scheme = scheme
        self.host = host
        self.port = 0
        self.requests: list[Request] = []
        self.received: list[str | bytes] = []

    @property
    def base(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def url(self, path: str) -> str:
        return f"{self.base}{path}"

    def process_request(self, connection: ServerConnection, request: Request) -> Any:
        self.requests.append(request)
        if request.path.startswith("/forbidden"):
            return connection.respond(HTTPStatus.FORBIDDEN, "Forbidden\n")
        return None

    async def handler(self, ws: ServerConnection) -> None:
        path = ws.request.path
        if path.startswith("/hello"):
            await ws.send("hello")
            await ws.close()
        elif path.startswith("/binary"):
            await ws.send(b"\x00\x01\x00")
            await ws.close()
        elif path.startswith("/echo"):
            async for message in ws:
                self.received.append(message)
                await ws.send(message)
        else:
            await ws.wait_closed()


@pytest_asyncio.fixture
async def ws_server():
    server_state = ScriptedServer()
    async with serve(
        server_state.handler,
        "127.0.0.1",
        0,
        process_request=server_state.process_request,
        ping_interval=None,
    ) as server:
        server_state.port = server.sockets[0].getsockname()[1]
        yield server_state


@pytest.fixture
def config() -> ClientConfig:
    """Fast config: short timeouts, no keep-alive."""
    return ClientConfig(connect_timeout=5.0, tls_timeout=1.0, ping_interval=None)


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll ``predicate`` until true, failing the test after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def eventually() -> Callable[..., Any]:
    return wait_for


@pytest_asyncio.fixture
async def wss_server():
    """ScriptedServer over TLS, addressed as ``wss://localhost:<port>``."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(CERTS / "server.pem", CERTS / "server-key.pem")
    server_state = ScriptedServer(scheme="wss", host="localhost")
    async with serve(
        server_state.handler,
        "127.0.0.1",
        0,
        ssl=context,
        process_request=server_state.process_request,
        ping_interval=None,
    ) as server:
        server_state.port = server.sockets[0].getsockname()[1]
        yield server_state


@pytest.fixture
def tls_config() -> ClientConfig:
    """Fast config trusting the test CA."""
    return ClientConfig(
        connect_timeout=5.0,
        tls_timeout=5.0,
        ping_interval=None,
        ca_file=str(CERTS / "ca.pem"),
    )


async def accept_upgrade(reader: asyncio.StreamReader) -> bytes:
    """Read a client upgrade request and build the matching 101 response."""
    request = await reader.readuntil(b"\r\n\r\n")
    key = ""
    for line in request.decode().split("\r\n"):
        if line.lower().startswith("sec-websocket-key:"):
            key = line.split(":", 1)[1].strip()
    return (
        b"HTTP/1.1 101 Switching Protocols\r\n"
        b"Upgrade: websocket\r\nConnection: Upgrade\r\n"
        + f"Sec-WebSocket-Accept: {accept_key(key)}\r\n\r\n".encode()
    )


@pytest.fixture
def upgrader() -> Callable[[asyncio.StreamReader], Any]:
    """``accept_upgrade`` for hand-written servers."""
    return accept_upgrade
