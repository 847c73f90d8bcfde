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
genro-wsclient CLI entry point.

Usage:
    genro-wsclient connect ws://localhost:8765/chat
    genro-wsclient connect wss://example.com/feed -H "Authorization:Bearer abc"
    genro-wsclient connect ws://localhost:8765/ --send hello --send world
    genro-wsclient connect ws://localhost:8765/ --json --send '{"op": "ping"}'

Every received message is printed on its own line. The client exits when the
connection is lost, or on Ctrl-C.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import Any

HELP = """\
Usage: genro-wsclient connect <url> [options]

Arguments:
  url                   ws:// or wss:// target

Options:
  -H, --header NAME:VALUE   Add an upgrade request header (repeatable)
  --send TEXT               Send TEXT once connected (repeatable)
                            (use --send=TEXT when TEXT starts with "-")
  --json                    Parse received messages (and --send) as JSON
  --config PATH             TOML configuration file
  --log-level LEVEL         Logging level (default: WARNING)
  --version, -v             Show version
  --help, -h                Show this help"""


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME:VALUE, got {value!r}")
    return name.strip(), header_value.strip()


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the ``connect`` subcommand."""
    parser = argparse.ArgumentParser(prog="genro-wsclient connect", add_help=False)
    parser.add_argument("url")
    parser.add_argument("-H", "--header", action="append", default=[], type=_parse_header)
    parser.add_argument("--send", action="append", default=[])
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--config", default=None)
    parser.add_argument("--log-level", default="WARNING")
    return parser


def cmd_connect(argv: list[str]) -> int:
    """Connect, send the --send messages and print what comes back."""
    import orjson

    from .binding import ReadMode, WebSocketBinding
    from .config import ClientConfig, ConfigError
    from .exceptions import InvalidTarget
    from .factory import parse_target
    from .loop import EventLoop

    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    try:
        parse_target(args.url)
    except InvalidTarget as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    level = logging.getLevelName(args.log_level.upper())
    if not isinstance(level, int):
        print(f"Error: unknown log level '{args.log_level}'", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ClientConfig.load(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    outgoing: list[Any] = []
    for text in args.send:
        if args.json:
            try:
                outgoing.append(orjson.loads(text))
            except orjson.JSONDecodeError as e:
                print(f"Error: --send {text!r} is not valid JSON: {e}", file=sys.stderr)
                return 1
        else:
            outgoing.append(text)

    loop = EventLoop(config)
    binding = WebSocketBinding(loop)
    handle = binding.create(args.url)

    done = threading.Event()
    state = {"connected": False}

    def on_connect(handle: int, data: Any) -> None:
        state["connected"] = True
        print(f"Connected to {binding.connection(handle).uri}", file=sys.stderr, flush=True)
        for message in outgoing:
            if args.json:
                binding.write(handle, message)
            else:
                binding.write_string(handle, message)

    def on_disconnect(handle: int, data: Any) -> None:
        print("Disconnected", file=sys.stderr, flush=True)
        done.set()

    def on_read(handle: int, message: Any, data: Any) -> None:
        if args.json:
            message = orjson.dumps(message).decode("utf-8")
        print(message, flush=True)

    for name, value in args.header:
        binding.set_header(handle, name, value)
    binding.set_connect_callback(handle, on_connect)
    binding.set_disconnect_callback(handle, on_disconnect)
    binding.set_read_callback(handle, ReadMode.JSON if args.json else ReadMode.STRING, on_read)

    loop.start()
    binding.connect(handle)
    try:
        while not done.is_set():
            binding.run_pending()
            done.wait(0.05)
        binding.run_pending()
    except KeyboardInterrupt:
        print("\nShutdown.", file=sys.stderr)
    finally:
        binding.shutdown()
        loop.stop()

    return 0 if state["connected"] else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv

    # global flags only count before or right after the subcommand
    head = argv[:2] if argv[:1] == ["connect"] else argv[:1]

    if "--version" in head or "-v" in head:
        from . import __version__

        print(f"genro-wsclient {__version__}")
        return 0

    if not argv or "--help" in head or "-h" in head:
        print(HELP)
        return 0

    subcommand = argv[0]
    if subcommand != "connect":
        print(f"Error: unknown subcommand '{subcommand}'", file=sys.stderr)
        return 1

    return cmd_connect(argv[1:])


if __name__ == "__main__":
    sys.exit(main())
