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

"""
Configuration for genro-wsclient.

``ClientConfig`` holds the tunables shared by every connection created on an
``EventLoop``. Values come from, in increasing priority:

    hardcoded defaults < TOML file < explicit keyword arguments

Key constraints:
- TOML keys CANNOT contain underscore (_); use camelCase or single words
- String values support ${VAR} and ${VAR:-default} environment expansion

Example TOML structure:
    [connection]
    connectTimeout = 30
    maxMessage = 16777216
    userAgent = "my-bot/1.0"

    [keepalive]
    interval = 20
    timeout = 20

    [tls]
    verify = true
    cafile = "${CA_BUNDLE:-/etc/ssl/certs/ca-certificates.crt}"
    sniport = false

A keep-alive interval of 0 disables pings. Timeouts of 0 mean "no timeout".
"""

from __future__ import annotations

import os
import re
import sys
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from . import __version__

__all__ = [
    "ClientConfig",
    "ConfigError",
    "load_config",
    "find_config_file",
    "validate_keys",
]

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_MAX_MESSAGE_SIZE = 16 * 1024 * 1024

# (section, key) -> ClientConfig field
TOML_KEYS: dict[tuple[str, str], str] = {
    ("connection", "connectTimeout"): "connect_timeout",
    ("connection", "maxMessage"): "max_message_size",
    ("connection", "chunk"): "read_chunk_size",
    ("connection", "userAgent"): "user_agent",
    ("keepalive", "interval"): "ping_interval",
    ("keepalive", "timeout"): "ping_timeout",
    ("tls", "timeout"): "tls_timeout",
    ("tls", "verify"): "verify_tls",
    ("tls", "cafile"): "ca_file",
    ("tls", "sniport"): "sni_with_port",
}


class ConfigError(Exception):
    """Configuration error."""


@dataclass(frozen=True)
class ClientConfig:
    """
    Tunables for connections, transports and keep-alive.

    Attributes:
        connect_timeout: Deadline in seconds for the transport connect phase.
            None disables it.
        tls_timeout: Deadline for the TLS handshake. None (default) applies
            no deadline of our own (asyncio keeps its built-in one).
        ping_interval: Seconds between keep-alive pings while OPEN. None
            disables keep-alive.
        ping_timeout: Seconds to wait for the matching pong. None waits forever.
        max_message_size: Largest accepted incoming message. None for no limit.
        read_chunk_size: Bytes requested from the transport per read.
        user_agent: User-Agent sent with the upgrade request unless the caller
            sets one. None sends no User-Agent.
        verify_tls: Verify server certificates and host names.
        ca_file: Extra CA bundle for verification.
        sni_with_port: Advertise ``host:port`` instead of ``host`` as SNI.
    """

    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT
    tls_timeout: float | None = None
    ping_interval: float | None = 20.0
    ping_timeout: float | None = 20.0
    max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE
    read_chunk_size: int = 65536
    user_agent: str | None = f"genro-wsclient/{__version__}"
    verify_tls: bool = True
    ca_file: str | None = None
    sni_with_port: bool = False

    def __post_init__(self) -> None:
        if self.read_chunk_size <= 0:
            raise ConfigError("read_chunk_size must be > 0")
        for name in ("connect_timeout", "tls_timeout", "ping_interval", "ping_timeout"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigError(f"{name} must be >= 0")
            # 0 means disabled
            if value == 0:
                object.__setattr__(self, name, None)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], **overrides: Any) -> ClientConfig:
        """
        Build a config from a parsed TOML document.

        Args:
            data: Dict as returned by ``load_config()``.
            **overrides: ClientConfig fields that win over the file.

        Raises:
            ConfigError: On unknown sections/keys or wrongly typed values.
        """
        values: dict[str, Any] = {}
        for section, table in data.items():
            if not isinstance(table, dict):
                raise ConfigError(f"Expected table [{section}], got {type(table).__name__}")
            for key, value in table.items():
                field_name = TOML_KEYS.get((section, key))
                if field_name is None:
                    raise ConfigError(f"Unknown configuration key '{section}.{key}'")
                values[field_name] = value
        values.update(overrides)
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def load(cls, path: str | Path | None = None, **overrides: Any) -> ClientConfig:
        """
        Load from ``path``, or from the first discovered config file.

        Falls back to defaults (plus overrides) when nothing is found.
        """
        config_path = Path(path) if path is not None else find_config_file()
        if config_path is None:
            return cls(**overrides)
        return cls.from_mapping(load_config(config_path), **overrides)

    def with_options(self, **changes: Any) -> ClientConfig:
        """Return a copy with some fields changed."""
        return replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        """Plain dict of all fields."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def validate_keys(data: Any, path: str = "") -> None:
    """
    Reject keys containing an underscore, anywhere in the document.

    Raises:
        ConfigError: Naming the dotted path of the first offending key.
    """
    if isinstance(data, list):
        for i, item in enumerate(data):
            validate_keys(item, f"{path}[{i}]")
        return
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        key_path = f"{path}.{key}" if path else key
        if "_" in key:
            raise ConfigError(
                f"Invalid key '{key_path}': underscore (_) is not allowed in keys, "
                f"write it in camelCase (e.g. connectTimeout)"
            )
        validate_keys(value, key_path)


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Read a TOML file, validate its keys and expand ``${...}`` references.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, uses an
            underscore in a key or references an unset variable.
    """
    path = Path(path)
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse TOML {path}: {e}") from e

    validate_keys(raw)
    return _expand(raw)


_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def _expand(value: Any) -> Any:
    # ${VAR} is required, ${VAR:-default} falls back
    if isinstance(value, dict):
        return {k: _expand(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand(v) for v in value]
    if isinstance(value, str):
        return _ENV_REF.sub(_env_value, value)
    return value


def _env_value(match: re.Match[str]) -> str:
    name, default = match.group("name"), match.group("default")
    value = os.environ.get(name, default)
    if value is None:
        raise ConfigError(f"Required environment variable not set: {name}")
    return value


def find_config_file() -> Path | None:
    """
    First existing config file, or None.

    Looked up in order: ``$GENRO_WSCLIENT_CONFIG``, ``./genro-wsclient.toml``,
    ``~/.config/genro-wsclient/config.toml``. A bare ``./config.toml`` is
    not searched.
    """
    candidates = []
    env_config = os.environ.get("GENRO_WSCLIENT_CONFIG")
    if env_config:
        candidates.append(Path(env_config))
    candidates += [
        Path.cwd() / "genro-wsclient.toml",
        Path.home() / ".config" / "genro-wsclient" / "config.toml",
    ]
    return next((path for path in candidates if path.is_file()), None)


if __name__ == "__main__":
    import argparse

    import orjson

    parser = argparse.ArgumentParser(description="Load and validate a genro-wsclient config")
    parser.add_argument("config", nargs="?", help="Config file path (default: discovered)")
    args = parser.parse_args()

    try:
        config = ClientConfig.load(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(orjson.dumps(config.as_dict(), option=orjson.OPT_INDENT_2).decode())
