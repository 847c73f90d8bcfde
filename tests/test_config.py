# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for ClientConfig and TOML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from genro_wsclient.config import (
    DEFAULT_CONNECT_TIMEOUT,
    ClientConfig,
    ConfigError,
    find_config_file,
    load_config,
    validate_keys,
)


def write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestClientConfig:
    """Tests for ClientConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = ClientConfig()
        assert config.connect_timeout == DEFAULT_CONNECT_TIMEOUT == 30.0
        assert config.tls_timeout is None
        assert config.ping_interval == 20.0
        assert config.max_message_size == 16 * 1024 * 1024
        assert config.verify_tls is True
        assert config.sni_with_port is False

    def test_zero_disables(self) -> None:
        config = ClientConfig(connect_timeout=0, ping_interval=0)
        assert config.connect_timeout is None
        assert config.ping_interval is None

    def test_negative_rejected(self) -> None:
        with pytest.raises(ConfigError, match="connect_timeout"):
            ClientConfig(connect_timeout=-1)

    def test_chunk_size_must_be_positive(self) -> None:
        with pytest.raises(ConfigError):
            ClientConfig(read_chunk_size=0)

    def test_frozen(self) -> None:
        config = ClientConfig()
        with pytest.raises(AttributeError):
            config.connect_timeout = 1.0  # type: ignore[misc]

    def test_with_options(self) -> None:
        config = ClientConfig().with_options(verify_tls=False)
        assert config.verify_tls is False
        assert ClientConfig().verify_tls is True

    def test_as_dict(self) -> None:
        data = ClientConfig().as_dict()
        assert data["read_chunk_size"] == 65536
        assert "user_agent" in data


class TestFromMapping:
    """Tests for ClientConfig.from_mapping()."""

    def test_sections(self) -> None:
        config = ClientConfig.from_mapping(
            {
                "connection": {"connectTimeout": 5, "userAgent": "bot/1"},
                "keepalive": {"interval": 0},
                "tls": {"verify": False, "sniport": True},
            }
        )
        assert config.connect_timeout == 5
        assert config.user_agent == "bot/1"
        assert config.ping_interval is None
        assert config.verify_tls is False
        assert config.sni_with_port is True

    def test_overrides_win(self) -> None:
        config = ClientConfig.from_mapping(
            {"connection": {"connectTimeout": 5}}, connect_timeout=7
        )
        assert config.connect_timeout == 7

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="connection.bogus"):
            ClientConfig.from_mapping({"connection": {"bogus": 1}})

    def test_section_must_be_table(self) -> None:
        with pytest.raises(ConfigError):
            ClientConfig.from_mapping({"connection": 3})


class TestLoadConfig:
    """Tests for TOML loading."""

    def test_load(self, tmp_path: Path) -> None:
        path = write(tmp_path / "c.toml", '[connection]\nconnectTimeout = 12\n')
        config = ClientConfig.load(path)
        assert config.connect_timeout == 12

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = write(tmp_path / "c.toml", "[connection\n")
        with pytest.raises(ConfigError, match="parse"):
            load_config(path)

    def test_underscore_rejected(self, tmp_path: Path) -> None:
        path = write(tmp_path / "c.toml", "[connection]\nconnect_timeout = 1\n")
        with pytest.raises(ConfigError, match="underscore"):
            load_config(path)

    def test_env_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WSCLIENT_UA", "agent/9")
        path = write(
            tmp_path / "c.toml",
            '[connection]\nuserAgent = "${WSCLIENT_UA}"\n'
            '[tls]\ncafile = "${WSCLIENT_CA:-/etc/ca.pem}"\n',
        )
        monkeypatch.delenv("WSCLIENT_CA", raising=False)
        config = ClientConfig.load(path)
        assert config.user_agent == "agent/9"
        assert config.ca_file == "/etc/ca.pem"

    def test_required_env_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WSCLIENT_MISSING", raising=False)
        path = write(tmp_path / "c.toml", '[connection]\nuserAgent = "${WSCLIENT_MISSING}"\n')
        with pytest.raises(ConfigError, match="WSCLIENT_MISSING"):
            load_config(path)


class TestValidateKeys:
    """Tests for validate_keys()."""

    def test_nested_path_in_message(self) -> None:
        with pytest.raises(ConfigError, match="a.b_c"):
            validate_keys({"a": {"b_c": 1}})

    def test_lists(self) -> None:
        with pytest.raises(ConfigError, match=r"a\[0\].x_y"):
            validate_keys({"a": [{"x_y": 1}]})

    def test_valid(self) -> None:
        validate_keys({"connection": {"connectTimeout": 1}, "list": [1, {"ok": 2}]})


class TestFindConfigFile:
    """Tests for find_config_file()."""

    def test_env_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = write(tmp_path / "custom.toml", "")
        monkeypatch.setenv("GENRO_WSCLIENT_CONFIG", str(path))
        found = find_config_file()
        assert found is not None
        assert found.resolve() == path.resolve()

    def test_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GENRO_WSCLIENT_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        path = write(tmp_path / "genro-wsclient.toml", "")
        found = find_config_file()
        assert found is not None
        assert found.resolve() == path.resolve()

    def test_load_without_file_uses_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("GENRO_WSCLIENT_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        config = ClientConfig.load(ping_interval=None)
        assert config.ping_interval is None
        assert config.connect_timeout == 30.0

    def test_generic_config_toml_is_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("GENRO_WSCLIENT_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        write(tmp_path / "config.toml", '[database]\nurl = "postgres://db"\n')
        assert find_config_file() is None
        assert ClientConfig.load().connect_timeout == 30.0
