# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for parse_target() and create_connection()."""

from __future__ import annotations

import pytest

from genro_wsclient import (
    ClientConfig,
    ConnectionState,
    EventLoop,
    InvalidTarget,
    PlainTransport,
    TlsTransport,
    create_connection,
    parse_target,
)


class TestParseTarget:
    """Tests for URL -> Target."""

    def test_ws_defaults(self) -> None:
        target = parse_target("ws://example.com/chat?x=1")
        assert target.scheme == "ws"
        assert target.host == "example.com"
        assert target.port == 80
        assert target.path == "/chat?x=1"
        assert target.tls is False

    def test_wss_defaults(self) -> None:
        target = parse_target("wss://example.com")
        assert target.port == 443
        assert target.path == "/"
        assert target.tls is True

    def test_explicit_port(self) -> None:
        assert parse_target("ws://localhost:8765/").port == 8765

    def test_multi_query(self) -> None:
        assert parse_target("wss://h/feed?a=1&b=2").path == "/feed?a=1&b=2"

    def test_scheme_case_insensitive(self) -> None:
        assert parse_target("WSS://example.com/").tls is True

    def test_ipv6(self) -> None:
        target = parse_target("ws://[::1]:9000/x")
        assert target.host == "::1"
        assert target.uri == "ws://[::1]:9000/x"

    def test_uri(self) -> None:
        assert parse_target("ws://example.com/chat?x=1").uri == "ws://example.com:80/chat?x=1"

    @pytest.mark.parametrize(
        "url",
        [
            "http://example.com/",
            "ftp://example.com/",
            "example.com/chat",
            "ws:///nohost",
            "ws://example.com:notaport/",
            "ws://example.com:70000/",
            "ws://example.com:0/",
            "",
        ],
    )
    def test_invalid(self, url: str) -> None:
        with pytest.raises(InvalidTarget):
            parse_target(url)

    def test_not_a_string(self) -> None:
        with pytest.raises(InvalidTarget):
            parse_target(None)  # type: ignore[arg-type]

    def test_invalid_target_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_target("gopher://x")


class TestCreateConnection:
    """Tests for the connection factory."""

    @pytest.fixture
    def loop(self):
        loop = EventLoop(ClientConfig(ping_interval=None))
        yield loop
        loop.loop.close()

    def test_plain(self, loop: EventLoop) -> None:
        conn = create_connection("ws://example.com/chat?x=1", loop)
        assert isinstance(conn.transport, PlainTransport)
        assert conn.state is ConnectionState.CREATED
        assert conn.host == "example.com"
        assert conn.port == 80
        assert conn.path == "/chat?x=1"
        assert conn.tls is False
        assert conn.connected is False

    def test_tls(self, loop: EventLoop) -> None:
        conn = create_connection("wss://example.com/", loop)
        assert isinstance(conn.transport, TlsTransport)
        assert conn.tls is True
        assert conn.port == 443
        assert conn.transport.ssl_context is loop.ssl_context

    def test_tls_options_from_config(self, loop: EventLoop) -> None:
        config = ClientConfig(sni_with_port=True, tls_timeout=3)
        conn = create_connection("wss://example.com:8443/", loop, config)
        transport = conn.transport
        assert isinstance(transport, TlsTransport)
        assert transport.sni_with_port is True
        assert transport.handshake_timeout == 3
        assert transport.server_name("example.com", 8443) == "example.com:8443"

    def test_invalid(self, loop: EventLoop) -> None:
        with pytest.raises(InvalidTarget):
            create_connection("http://example.com/", loop)
