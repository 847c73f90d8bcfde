# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for the genro-wsclient command line."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from genro_wsclient import __version__
from genro_wsclient.__main__ import build_parser, main


@pytest.fixture
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """No discoverable config file; returns an explicit one."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GENRO_WSCLIENT_CONFIG", raising=False)
    config_file = tmp_path / "client.toml"
    config_file.write_text("[connection]\nconnectTimeout = 5\n\n[keepalive]\ninterval = 0\n")
    return config_file


class TestMain:
    """Top-level dispatch."""

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--help"]) == 0
        assert "Usage: genro-wsclient connect" in capsys.readouterr().out

    def test_no_args(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 0
        assert "Usage" in capsys.readouterr().out

    def test_unknown_subcommand(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["listen"]) == 1
        assert "unknown subcommand 'listen'" in capsys.readouterr().err

    def test_help_after_subcommand(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["connect", "--help"]) == 0
        assert "Usage" in capsys.readouterr().out

    def test_flags_among_connect_options_are_not_global(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # argparse rejects the bare "-v" value instead of printing the version
        assert main(["connect", "ws://localhost/", "--send", "-v"]) == 2
        assert __version__ not in capsys.readouterr().out
        assert main(["connect", "ws://localhost/", "--send", "-h"]) == 2
        assert "Usage: genro-wsclient connect <url>" not in capsys.readouterr().out


class TestConnectArguments:
    """Argument errors reported before any connection is made."""

    def test_parser_headers(self) -> None:
        args = build_parser().parse_args(
            ["ws://h/", "-H", "X-Token: abc", "--header", "Accept:a:b"]
        )
        assert args.header == [("X-Token", "abc"), ("Accept", "a:b")]

    def test_parser_send_dash_value(self) -> None:
        args = build_parser().parse_args(["ws://h/", "--send=-v", "--send=--help"])
        assert args.send == ["-v", "--help"]

    def test_bad_header(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["connect", "ws://localhost/", "-H", "novalue"]) == 2
        assert "NAME:VALUE" in capsys.readouterr().err

    def test_missing_url(self) -> None:
        assert main(["connect"]) == 2

    def test_invalid_url(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["connect", "http://localhost/"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_unknown_log_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["connect", "ws://localhost/", "--log-level", "chatty"]) == 1
        assert "unknown log level" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        missing = tmp_path / "nope.toml"
        assert main(["connect", "ws://localhost/", "--config", str(missing)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_json_send(self, isolated: Path, capsys: pytest.CaptureFixture[str]) -> None:
        argv = ["connect", "ws://localhost/", "--config", str(isolated), "--json", "--send", "{"]
        assert main(argv) == 1
        assert "not valid JSON" in capsys.readouterr().err


class TestConnectSession:
    """End-to-end runs against the local server (CLI runs in a worker thread)."""

    @pytest.mark.asyncio
    async def test_prints_messages(
        self, ws_server, isolated: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["connect", ws_server.url("/hello"), "--config", str(isolated), "-H", "X-Run:1"]
        assert await asyncio.to_thread(main, argv) == 0
        captured = capsys.readouterr()
        assert captured.out.splitlines() == ["hello"]
        assert "Connected to" in captured.err
        assert "Disconnected" in captured.err
        assert ws_server.requests[0].headers["X-Run"] == "1"

    @pytest.mark.asyncio
    async def test_json_mode_prints_null_for_text(
        self, ws_server, isolated: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["connect", ws_server.url("/hello"), "--config", str(isolated), "--json"]
        assert await asyncio.to_thread(main, argv) == 0
        assert capsys.readouterr().out.splitlines() == ["null"]

    @pytest.mark.asyncio
    async def test_refused(
        self, closed_port: int, isolated: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["connect", f"ws://127.0.0.1:{closed_port}/", "--config", str(isolated)]
        assert await asyncio.to_thread(main, argv) == 1
        assert "Disconnected" in capsys.readouterr().err
