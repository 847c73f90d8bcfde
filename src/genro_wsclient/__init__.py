# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""genro-wsclient - Asynchronous WebSocket client with a callback API.

Main components:
    EventLoop: Injected asyncio loop shared by every connection
    Connection: ws:// / wss:// client state machine
    create_connection: URL to Connection factory

Host binding:
    WebSocketBinding: Integer handles, deferred callbacks, JSON documents
    ReadMode: STRING or JSON delivery of received messages

Usage:
    from genro_wsclient import EventLoop, WebSocketBinding, ReadMode

    loop = EventLoop()
    loop.start()
    ws = WebSocketBinding(loop)
    handle = ws.create("wss://example.com/feed")
    ws.set_read_callback(handle, ReadMode.STRING, on_message)
    ws.connect(handle)
    ...
    ws.run_pending()

See genro-wsclient.toml for configuration options.
"""

__version__ = "0.1.0"

from .binding import ReadMode, WebSocketBinding
from .config import ClientConfig, ConfigError
from .connection import Connection, ConnectionState
from .datastructures import URL, Endpoint, HeaderSet
from .dispatch import DeferredDispatcher
from .exceptions import (
    BindingError,
    CloseError,
    HandshakeError,
    InvalidCallback,
    InvalidHandle,
    InvalidTarget,
    ProtocolHandshakeError,
    ReadError,
    ResolutionError,
    TlsHandshakeError,
    TransportConnectError,
    WebSocketClientError,
    WriteError,
)
from .factory import Target, create_connection, parse_target
from .loop import EventLoop
from .registry import HandleRegistry
from .resolver import Resolver
from .transport import PlainTransport, TlsTransport, Transport

__all__ = [
    "__version__",
    # Core
    "EventLoop",
    "Connection",
    "ConnectionState",
    "create_connection",
    "parse_target",
    "Target",
    "Resolver",
    "Transport",
    "PlainTransport",
    "TlsTransport",
    # Host binding
    "WebSocketBinding",
    "ReadMode",
    "HandleRegistry",
    "DeferredDispatcher",
    # Configuration
    "ClientConfig",
    "ConfigError",
    # Data structures
    "URL",
    "Endpoint",
    "HeaderSet",
    # Exceptions
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
