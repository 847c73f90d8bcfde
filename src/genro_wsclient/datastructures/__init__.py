# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Data structures for genro-wsclient.

Mapping from raw values to genro-wsclient classes::

    Raw Data                               genro-wsclient Classes
    ─────────────────                      ──────────────────────
    "wss://example.com/feed?x=1"       →  URL (parsed)
    {"Authorization": "Bearer ..."}    →  HeaderSet (case-insensitive)
    getaddrinfo sockaddr               →  Endpoint(host, port, family)

Public Exports
==============
::

    from genro_wsclient.datastructures import Endpoint, HeaderSet, URL
"""

from .address import Endpoint
from .headers import HeaderSet
from .url import URL

__all__ = [
    "Endpoint",
    "HeaderSet",
    "URL",
]
