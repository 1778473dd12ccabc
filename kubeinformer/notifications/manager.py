"""Notification sink interface and background dispatcher.

NotificationSink       -- ABC every sink must implement.
NotificationDispatcher -- Delivers formatted messages to the active sink in
                          background tasks; sink failures never reach the
                          evaluation pipeline.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import structlog

from kubeinformer.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.manager")


class NotificationSink(ABC):
    """Abstract base class for all notification sinks.

    Every concrete sink must implement ``send``, which should not raise;
    return ``False`` instead.
    """

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Human-readable sink identifier used in metrics and logs."""

    @abstractmethod
    async def send(self, message: str) -> bool:
        """Deliver *message* via this sink.

        Returns:
            True  -- message accepted.
            False -- delivery failed (already logged inside implementation).
        """

    async def close(self) -> None:  # noqa: B027
        """Release transport resources.  Default is a no-op."""


class NotificationDispatcher:
    """Fire-and-forget delivery to a single sink.

    * Never raises: exceptions from the sink are caught and logged.
    * Never blocks the caller: ``dispatch`` schedules delivery as a tracked
      asyncio task so a slow sink cannot stall evaluation.
    * ``drain`` lets in-flight deliveries finish for a bounded time and
      abandons the rest.
    """

    def __init__(self, sink: NotificationSink) -> None:
        self._sink = sink
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, message: str) -> asyncio.Task[bool]:
        """Schedule delivery of *message* as a background task."""
        task = asyncio.create_task(self._send(message), name=f"notify-{self._sink.sink_name}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, message: str) -> bool:
        """Deliver to the sink, recording metrics regardless of outcome."""
        try:
            success = await self._sink.send(message)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_sink_unexpected_error",
                sink=self._sink.sink_name,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        notifications_total.labels(sink=self._sink.sink_name, success=label).inc()

        if success:
            _log.info("notification_sent", sink=self._sink.sink_name)
        else:
            _log.warning("notification_failed", sink=self._sink.sink_name, message=message)
        return success

    async def drain(self, timeout: float) -> None:
        """Wait up to *timeout* seconds for pending deliveries, then cancel them."""
        if not self._pending:
            return
        pending = list(self._pending)
        _done, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            await asyncio.gather(*not_done, return_exceptions=True)
            _log.warning("notifications_abandoned", count=len(not_done))

    async def stop(self) -> None:
        """Abandon pending deliveries and close the sink."""
        await self.drain(timeout=0)
        await self._sink.close()
