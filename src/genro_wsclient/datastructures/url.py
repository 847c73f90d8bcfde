# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Target URL of a WebSocket connection.

Purpose
=======
Splits a ``ws://`` / ``wss://`` string into the pieces a client needs to
open a connection: the host to resolve, the port to dial and the request
target to put on the upgrade request line.

::

    wss://example.com:8443/chat/room?x=1&y=2
    ───   ─────────── ──── ──────────────────
    scheme  hostname  port   target (path + "?" + query)

Example::

    url = URL("ws://example.com/chat?x=1")
    url.hostname   # "example.com"
    url.port       # None (scheme default applies)
    url.target     # "/chat?x=1"
    url.secure     # False

Design Notes
============
- Nothing is unquoted or re-encoded. ``path`` and ``query`` go on the wire
  exactly as the caller wrote them.
- Validation of the scheme is left to the caller (see ``factory``). This
  class only reports what ``urlsplit`` found.
- Malformed input raises ``ValueError`` from urllib, at construction for a
  bad IPv6 literal and on ``port`` access for a bad port.
"""

from urllib.parse import urlsplit

__all__ = ["URL"]


class URL:
    """
    Parsed view of a URL string.

    Example:
        >>> url = URL("wss://example.com:8443/feed?since=10")
        >>> (url.hostname, url.port, url.target, url.secure)
        ('example.com', 8443, '/feed?since=10', True)
    """

    __slots__ = ("_raw", "_split")

    def __init__(self, url: str) -> None:
        self._raw = url
        self._split = urlsplit(url)

    @property
    def scheme(self) -> str:
        return self._split.scheme

    @property
    def secure(self) -> bool:
        """True for schemes that run over TLS."""
        return self._split.scheme.lower() in ("wss", "https")

    @property
    def netloc(self) -> str:
        return self._split.netloc

    @property
    def hostname(self) -> str | None:
        """Lowercased host without brackets, or None."""
        return self._split.hostname

    @property
    def port(self) -> int | None:
        """Explicit port, or None. Raises ValueError when malformed."""
        return self._split.port

    @property
    def path(self) -> str:
        """Raw path, still percent-encoded. May be empty."""
        return self._split.path

    @property
    def query(self) -> str:
        return self._split.query

    @property
    def fragment(self) -> str:
        """Fragment. Never sent to the server."""
        return self._split.fragment

    @property
    def target(self) -> str:
        """Request target for the upgrade request line."""
        path = self._split.path or "/"
        return f"{path}?{self._split.query}" if self._split.query else path

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"URL({self._raw!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, URL):
            return self._raw == other._raw
        if isinstance(other, str):
            return self._raw == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)
