# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for EventLoop and the JSON document helpers."""

from __future__ import annotations

import asyncio
import ssl
import threading

import pytest

from genro_wsclient import ClientConfig, EventLoop
from genro_wsclient.documents import DocumentError, decode_document, encode_document


class TestThreadedLoop:
    """EventLoop owning a background thread."""

    def test_start_stop(self) -> None:
        loop = EventLoop()
        loop.start()
        try:
            assert loop.is_running
            assert not loop.in_loop_thread()
        finally:
            loop.stop()
        assert not loop.is_running
        assert loop.loop.is_closed()

    def test_start_twice(self) -> None:
        loop = EventLoop()
        loop.start()
        try:
            with pytest.raises(RuntimeError):
                loop.start()
        finally:
            loop.stop()

    def test_call_soon_runs_on_loop_thread(self) -> None:
        loop = EventLoop()
        loop.start()
        try:
            seen: list[bool] = []
            done = threading.Event()

            def probe() -> None:
                seen.append(loop.in_loop_thread())
                done.set()

            loop.call_soon(probe)
            assert done.wait(5)
            assert seen == [True]
        finally:
            loop.stop()

    def test_run_coroutine(self) -> None:
        loop = EventLoop()
        loop.start()
        try:

            async def answer() -> int:
                await asyncio.sleep(0)
                return 42

            assert loop.run_coroutine(answer()).result(5) == 42
        finally:
            loop.stop()

    def test_stop_cancels_pending_tasks(self) -> None:
        loop = EventLoop()
        loop.start()
        cancelled = threading.Event()

        async def forever() -> None:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        loop.call_soon(loop.create_task, forever())
        loop.stop()
        assert cancelled.is_set()

    def test_stop_without_start(self) -> None:
        loop = EventLoop()
        loop.stop()
        loop.loop.close()


class TestAttachedLoop:
    """EventLoop wrapping the running loop."""

    @pytest.mark.asyncio
    async def test_attach(self) -> None:
        loop = EventLoop.attach()
        assert loop.loop is asyncio.get_running_loop()
        assert loop.in_loop_thread()
        with pytest.raises(RuntimeError):
            loop.start()
        loop.stop()  # no-op for attached loops
        assert loop.is_running

    @pytest.mark.asyncio
    async def test_run_on_loop_is_immediate(self) -> None:
        loop = EventLoop.attach()
        calls: list[int] = []
        loop.run_on_loop(calls.append, 1)
        assert calls == [1]

    def test_attach_without_running_loop(self) -> None:
        with pytest.raises(RuntimeError):
            EventLoop.attach()


class TestSslContext:
    """Shared client SSL context."""

    def test_verifying_by_default(self) -> None:
        loop = EventLoop()
        try:
            context = loop.ssl_context
            assert context.verify_mode == ssl.CERT_REQUIRED
            assert context.check_hostname is True
            assert loop.ssl_context is context
        finally:
            loop.loop.close()

    def test_verify_disabled(self) -> None:
        loop = EventLoop(ClientConfig(verify_tls=False))
        try:
            assert loop.ssl_context.verify_mode == ssl.CERT_NONE
            assert loop.ssl_context.check_hostname is False
        finally:
            loop.loop.close()


class TestDocuments:
    """orjson encode/decode helpers."""

    def test_encode(self) -> None:
        assert encode_document({"a": 1, "b": [True, None]}) == b'{"a":1,"b":[true,null]}'

    def test_encode_unserializable(self) -> None:
        with pytest.raises(TypeError):
            encode_document({"a": object()})

    def test_decode(self) -> None:
        assert decode_document(b'{"x": [1, 2]}') == {"x": [1, 2]}
        assert decode_document("3") == 3

    def test_decode_invalid(self) -> None:
        with pytest.raises(DocumentError):
            decode_document(b"hello")
        with pytest.raises(ValueError):
            decode_document(b"{")
