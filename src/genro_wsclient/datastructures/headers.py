# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Case-insensitive header set for the WebSocket upgrade request.

Purpose
=======
A connection carries caller-configured headers that are merged into the
upgrade request at handshake time. Header names are case-insensitive
(RFC 7230); setting a name that is already present replaces its value,
the same way the upgrade request decorator replaces library defaults.

Processing Schema::

    set("X-Token", "a")  ─┐
    set("x-token", "b")  ─┴──>  {"x-token": ("X-Token", "b")}
                                       │
                                  items()
                                       ↓
                               [("X-Token", "b")]   (first spelling kept)

Definition::

    class HeaderSet:
        __slots__ = ("_headers", "_frozen")

        def __init__(self, headers: Mapping[str, str] | None = None) -> None
        def set(self, name: str, value: str) -> None
        def get(self, name: str, default: str | None = None) -> str | None
        def remove(self, name: str) -> None
        def freeze(self) -> None
        @property frozen -> bool
        def keys(self) -> list[str]
        def items(self) -> list[tuple[str, str]]
        def __getitem__ / __contains__ / __iter__ / __len__ / __repr__

Design Notes
============
- Insertion order is preserved but carries no meaning.
- ``freeze()`` is called by the connection when connect() starts; any
  later mutation raises ``RuntimeError``.
- Names and values are validated against CR/LF so a caller cannot inject
  extra header lines into the upgrade request.
"""

from collections.abc import Mapping
from typing import Iterator

__all__ = ["HeaderSet"]


def _check(text: str, what: str) -> str:
    if not isinstance(text, str):
        raise TypeError(f"Header {what} must be str, got {type(text).__name__}")
    if "\r" in text or "\n" in text:
        raise ValueError(f"Header {what} must not contain CR or LF: {text!r}")
    return text


class HeaderSet:
    """
    Mutable, case-insensitive header mapping with replace semantics.

    Example:
        >>> headers = HeaderSet()
        >>> headers.set("Authorization", "Bearer abc")
        >>> headers.get("authorization")
        'Bearer abc'
        >>> headers.set("AUTHORIZATION", "Bearer xyz")
        >>> headers.items()
        [('Authorization', 'Bearer xyz')]
    """

    __slots__ = ("_headers", "_frozen")

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        """
        Initialize HeaderSet.

        Args:
            headers: Optional initial name/value pairs.
        """
        self._headers: dict[str, tuple[str, str]] = {}
        self._frozen = False
        if headers:
            for name, value in headers.items():
                self.set(name, value)

    def set(self, name: str, value: str) -> None:
        """
        Set a header, replacing any previous value for the same name.

        Raises:
            RuntimeError: If the set has been frozen.
            ValueError: If name is empty or name/value contain CR/LF.
        """
        if self._frozen:
            raise RuntimeError("Cannot set header: headers are frozen after connect()")
        _check(name, "name")
        _check(value, "value")
        if not name.strip():
            raise ValueError("Header name must not be empty")
        key = name.lower()
        previous = self._headers.get(key)
        spelling = previous[0] if previous else name
        self._headers[key] = (spelling, value)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get a header value (case-insensitive)."""
        entry = self._headers.get(name.lower())
        return entry[1] if entry else default

    def remove(self, name: str) -> None:
        """Remove a header if present."""
        if self._frozen:
            raise RuntimeError("Cannot remove header: headers are frozen after connect()")
        self._headers.pop(name.lower(), None)

    def freeze(self) -> None:
        """Reject any further mutation."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """True once freeze() has been called."""
        return self._frozen

    def keys(self) -> list[str]:
        """Header names as first set."""
        return [spelling for spelling, _ in self._headers.values()]

    def items(self) -> list[tuple[str, str]]:
        """(name, value) pairs."""
        return list(self._headers.values())

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"HeaderSet({self.items()!r})"
