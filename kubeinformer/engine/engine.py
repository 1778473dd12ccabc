"""Alert evaluation engine.

Consumes typed ResourceEvents from a bounded asyncio queue, evaluates each
snapshot, passes candidate alerts through the DeduplicationGate and hands the
formatted survivors to the NotificationDispatcher.

Every event is an independent unit of work processed by one of a small pool
of worker tasks.  An exception while processing one event is logged and
contained; it never stops the worker.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import structlog

from kubeinformer.engine.dedup import DeduplicationGate
from kubeinformer.evaluators import evaluate
from kubeinformer.models.alerts import Alert
from kubeinformer.models.resources import ResourceEvent
from kubeinformer.notifications.manager import NotificationDispatcher
from kubeinformer.observability.metrics import (
    alerts_evaluated_total,
    alerts_suppressed_total,
    event_errors_total,
    watch_events_total,
)

_log = structlog.get_logger(component="engine")

_DEFAULT_WORKERS = 3
_DEFAULT_QUEUE_SIZE = 1000


class AlertEngine:
    """Owns the event queue, the worker pool and the history sweeper.

    Args:
        gate:           Deduplication gate (owns the alert history).
        dispatcher:     Background notification dispatcher.
        workers:        Number of concurrent worker tasks.
        queue_size:     Bound of the event queue; producers wait when full.
        drain_timeout:  Seconds in-flight notifications may run after stop().
        sweep_interval: Seconds between history sweeps.  Defaults to the
                        gate's cooldown.
    """

    def __init__(
        self,
        gate: DeduplicationGate,
        dispatcher: NotificationDispatcher,
        workers: int = _DEFAULT_WORKERS,
        queue_size: int = _DEFAULT_QUEUE_SIZE,
        drain_timeout: float = 5.0,
        sweep_interval: float | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._gate = gate
        self._dispatcher = dispatcher
        self._worker_count = workers
        self._queue: asyncio.Queue[ResourceEvent] = asyncio.Queue(maxsize=queue_size)
        self._drain_timeout = drain_timeout
        self._sweep_interval = (
            sweep_interval if sweep_interval is not None else gate.cooldown.total_seconds()
        )
        self._tasks: list[asyncio.Task[None]] = []
        self._running = False

    @property
    def queue(self) -> asyncio.Queue[ResourceEvent]:
        """The channel watchers publish into."""
        return self._queue

    @property
    def running(self) -> bool:
        return self._running

    async def publish(self, event: ResourceEvent) -> None:
        """Enqueue *event*, waiting while the queue is full."""
        await self._queue.put(event)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def process_event(self, event: ResourceEvent, now: datetime | None = None) -> list[Alert]:
        """Evaluate one event and dispatch every alert the gate lets through.

        Returns the alerts that were emitted.  A dispatched alert counts as
        emitted whether or not the sink later succeeds.
        """
        kind = event.kind.value
        watch_events_total.labels(kind=kind).inc()

        emitted: list[Alert] = []
        for alert in evaluate(event.state):
            alerts_evaluated_total.labels(kind=kind, level=alert.level.value).inc()
            if not self._gate.should_emit(alert, now):
                alerts_suppressed_total.labels(kind=kind, level=alert.level.value).inc()
                continue

            emitted.append(alert)
            _log.info(
                "alert_emitted",
                level=alert.level.value,
                resource_kind=alert.resource_kind.value,
                identity=alert.identity,
                message=alert.message,
                queue_latency_s=_queue_latency(event),
            )
            self._dispatcher.dispatch(alert.format_message())
        return emitted

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the worker pool and the history sweeper.  Idempotent."""
        if self._running:
            return
        self._running = True
        for i in range(self._worker_count):
            self._tasks.append(asyncio.create_task(self._worker(i), name=f"engine-worker-{i}"))
        self._tasks.append(asyncio.create_task(self._sweeper(), name="engine-history-sweeper"))
        _log.info("engine_started", workers=self._worker_count)

    async def stop(self) -> None:
        """Stop consuming events, then drain in-flight notifications.

        Events still queued are dropped.
        """
        if not self._running and not self._tasks:
            return
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await self._dispatcher.drain(self._drain_timeout)
        _log.info("engine_stopped", dropped_events=self._queue.qsize())

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()

    async def _worker(self, worker_id: int) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.process_event(event)
            except Exception as exc:  # noqa: BLE001
                event_errors_total.labels(kind=event.kind.value).inc()
                _log.error(
                    "event_processing_failed",
                    worker=worker_id,
                    kind=event.kind.value,
                    identity=getattr(event.state, "identity", ""),
                    error=str(exc),
                    queue_latency_s=_queue_latency(event),
                )
            finally:
                self._queue.task_done()

    async def _sweeper(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self._gate.sweep()


def _queue_latency(event: ResourceEvent) -> float:
    """Wall-clock seconds between a watcher publishing *event* and now."""
    return round((datetime.now(tz=UTC) - event.received_at).total_seconds(), 3)
