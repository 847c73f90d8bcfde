# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Structured documents carried as JSON text frames.

The host exchanges documents (dicts, lists, scalars) rather than raw text.
Encoding and decoding go through orjson; decode errors surface as
``orjson.JSONDecodeError``, which is a ``ValueError``.
"""

from __future__ import annotations

from typing import Any

import orjson

__all__ = ["encode_document", "decode_document", "DocumentError"]

DocumentError = orjson.JSONDecodeError


def encode_document(document: Any) -> bytes:
    """
    Serialize a document to UTF-8 JSON.

    Raises:
        TypeError: If the document is not JSON-serializable.
    """
    try:
        return orjson.dumps(document)
    except orjson.JSONEncodeError as e:
        raise TypeError(f"Document is not JSON-serializable: {e}") from e


def decode_document(data: bytes | str) -> Any:
    """
    Parse a received message.

    Raises:
        DocumentError: If the message is not valid JSON.
    """
    return orjson.loads(data)
