"""Tests for notification sinks, the dispatcher and sink selection."""

from __future__ import annotations

import asyncio
import io
import json

import httpx
import pytest

from kubeinformer.models.config import (
    ConsoleNotifierConfig,
    NotifierConfig,
    WebhookNotifierConfig,
)
from kubeinformer.notifications import (
    ConsoleSink,
    NotificationDispatcher,
    NotificationSink,
    WebhookSink,
    build_notification_sink,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _ExplodingSink(NotificationSink):
    @property
    def sink_name(self) -> str:
        return "exploding"

    async def send(self, message: str) -> bool:
        raise RuntimeError("transport blew up")


class _SlowSink(NotificationSink):
    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.finished = False

    @property
    def sink_name(self) -> str:
        return "slow"

    async def send(self, message: str) -> bool:
        self.started.set()
        await asyncio.sleep(3600)
        self.finished = True
        return True


def _webhook(handler, **kwargs) -> WebhookSink:  # type: ignore[no-untyped-def]
    return WebhookSink(url="https://hooks.example.test/alert", transport=httpx.MockTransport(handler), **kwargs)


# ===========================================================================
# ConsoleSink
# ===========================================================================


class TestConsoleSink:
    async def test_prints_prefixed_line(self) -> None:
        stream = io.StringIO()
        sink = ConsoleSink(stream=stream)

        assert await sink.send("❌ [pod] default/p1: boom") is True
        assert stream.getvalue() == "[CONSOLE] ❌ [pod] default/p1: boom\n"

    async def test_defaults_to_stdout(self, capsys) -> None:  # type: ignore[no-untyped-def]
        assert await ConsoleSink().send("") is True
        assert capsys.readouterr().out == "[CONSOLE] \n"


# ===========================================================================
# WebhookSink
# ===========================================================================


class TestWebhookSink:
    async def test_posts_json_content(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        assert await _webhook(handler).send("⚠️ [node] n1: Node has disk pressure") is True
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].headers["content-type"] == "application/json"
        assert json.loads(seen[0].content) == {"content": "⚠️ [node] n1: Node has disk pressure"}

    async def test_custom_payload_key_and_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        sink = _webhook(handler, payload_key="text", headers={"Authorization": "Bearer t"})
        assert await sink.send("hello") is True
        assert json.loads(seen[0].content) == {"text": "hello"}
        assert seen[0].headers["authorization"] == "Bearer t"

    async def test_non_2xx_returns_false(self) -> None:
        sink = _webhook(lambda request: httpx.Response(500, text="internal"))
        assert await sink.send("msg") is False

    async def test_transport_error_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await _webhook(handler).send("msg") is False

    async def test_timeout_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        assert await _webhook(handler).send("msg") is False

    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError):
            WebhookSink(url="")


# ===========================================================================
# NotificationDispatcher
# ===========================================================================


class TestNotificationDispatcher:
    async def test_dispatch_does_not_block_and_delivers(self, sink) -> None:  # type: ignore[no-untyped-def]
        dispatcher = NotificationDispatcher(sink)

        task = dispatcher.dispatch("one")
        assert sink.messages == []  # scheduled, not yet run

        assert await task is True
        assert sink.messages == ["one"]
        assert dispatcher.pending == 0

    async def test_sink_exception_is_contained(self) -> None:
        dispatcher = NotificationDispatcher(_ExplodingSink())

        assert await dispatcher.dispatch("msg") is False

    async def test_sink_failure_is_reported(self, sink) -> None:  # type: ignore[no-untyped-def]
        sink.succeed = False
        dispatcher = NotificationDispatcher(sink)

        assert await dispatcher.dispatch("msg") is False
        assert sink.messages == ["msg"]

    async def test_drain_abandons_slow_sends(self) -> None:
        slow = _SlowSink()
        dispatcher = NotificationDispatcher(slow)
        task = dispatcher.dispatch("msg")
        await slow.started.wait()

        await dispatcher.drain(timeout=0.01)

        assert task.cancelled()
        assert slow.finished is False
        assert dispatcher.pending == 0

    async def test_drain_waits_for_fast_sends(self, sink) -> None:  # type: ignore[no-untyped-def]
        dispatcher = NotificationDispatcher(sink)
        dispatcher.dispatch("a")
        dispatcher.dispatch("b")

        await dispatcher.drain(timeout=1.0)

        assert sorted(sink.messages) == ["a", "b"]


# ===========================================================================
# build_notification_sink
# ===========================================================================


class TestBuildNotificationSink:
    def test_defaults_to_console_when_nothing_enabled(self) -> None:
        assert isinstance(build_notification_sink(NotifierConfig()), ConsoleSink)

    def test_console_when_enabled(self) -> None:
        config = NotifierConfig(console=ConsoleNotifierConfig(enabled=True))
        assert isinstance(build_notification_sink(config), ConsoleSink)

    def test_webhook_when_enabled(self) -> None:
        config = NotifierConfig(webhook=WebhookNotifierConfig(enabled=True, url="https://x.test/hook"))
        sink = build_notification_sink(config)
        assert isinstance(sink, WebhookSink)
        assert sink.sink_name == "webhook"

    def test_webhook_wins_over_console(self) -> None:
        config = NotifierConfig(
            console=ConsoleNotifierConfig(enabled=True),
            webhook=WebhookNotifierConfig(enabled=True, url="https://x.test/hook"),
        )
        assert isinstance(build_notification_sink(config), WebhookSink)

    def test_disabled_webhook_url_is_ignored(self) -> None:
        config = NotifierConfig(webhook=WebhookNotifierConfig(enabled=False, url="https://x.test/hook"))
        assert isinstance(build_notification_sink(config), ConsoleSink)
