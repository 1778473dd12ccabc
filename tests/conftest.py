"""Shared fixtures for kubeinformer tests.

Provides a recording notification sink, a controllable clock and a fully
wired engine so tests can drive the alert pipeline with virtual time and
without a Kubernetes cluster.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from kubeinformer.engine import AlertEngine, DeduplicationGate
from kubeinformer.notifications import NotificationDispatcher, NotificationSink

_START = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)


class RecordingSink(NotificationSink):
    """Test double that records every message it is asked to send."""

    def __init__(self, succeed: bool = True) -> None:
        self.messages: list[str] = []
        self.succeed = succeed

    @property
    def sink_name(self) -> str:
        return "recording"

    async def send(self, message: str) -> bool:
        self.messages.append(message)
        return self.succeed


class FakeClock:
    """Mutable clock for driving the dedup gate through virtual time."""

    def __init__(self, start: datetime = _START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def gate(clock: FakeClock) -> DeduplicationGate:
    return DeduplicationGate(clock=clock)


@pytest.fixture
def dispatcher(sink: RecordingSink) -> NotificationDispatcher:
    return NotificationDispatcher(sink)


@pytest.fixture
def engine(gate: DeduplicationGate, dispatcher: NotificationDispatcher) -> AlertEngine:
    return AlertEngine(gate=gate, dispatcher=dispatcher, workers=3, queue_size=100, drain_timeout=1.0)
