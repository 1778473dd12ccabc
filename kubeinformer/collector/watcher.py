"""BaseWatcher: list, watch, resync and reconnect for one resource kind.

Lifecycle:
    start()  -- initial list (fatal on failure), publish every object, mark
                ready, then spawn the background watch loop.
    stop()   -- cancel the watch loop.

The watch loop streams from the last seen resourceVersion with
``timeout_seconds=resync_seconds``.  When a stream ends the watcher relists
and republishes every object, so conditions that never change are still
re-evaluated once their cooldown has elapsed.  Stream errors back off
exponentially; 410 Gone clears the resourceVersion and forces a relist.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import structlog
from kubernetes_asyncio import watch
from kubernetes_asyncio.client.exceptions import ApiException

from kubeinformer.models.alerts import ResourceKind
from kubeinformer.models.resources import ResourceEvent, ResourceState, WatchEventType

_BACKOFF_MIN_S = 1.0
_BACKOFF_MAX_S = 60.0
_DEFAULT_RESYNC_S = 30

_DELIVERED_TYPES = {"ADDED": WatchEventType.ADDED, "MODIFIED": WatchEventType.MODIFIED}


class WatchSubscriptionError(Exception):
    """Raised when the watch for a resource kind cannot be established."""

    def __init__(self, kind: ResourceKind, cause: Exception) -> None:
        super().__init__(f"Cannot watch {kind.value} resources: {cause}")
        self.kind = kind
        self.cause = cause


class _ResourceExpired(Exception):
    """The stored resourceVersion is too old (HTTP 410 Gone)."""


class BaseWatcher(ABC):
    """Publishes ResourceEvents for one kind onto the engine queue.

    Subclasses provide the list call and the raw-dict to snapshot builder.
    """

    kind: ResourceKind

    def __init__(
        self,
        api: Any,
        queue: asyncio.Queue[ResourceEvent],
        namespace: str = "",
        resync_seconds: int = _DEFAULT_RESYNC_S,
    ) -> None:
        self._api = api
        self._queue = queue
        self._namespace = namespace
        self._resync_seconds = resync_seconds
        self._resource_version = ""
        self._backoff_s = _BACKOFF_MIN_S
        self._ready = asyncio.Event()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._log = structlog.get_logger(component=f"collector.{self.kind.value}_watcher")

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _list_call(self) -> tuple[Callable[..., Any], dict[str, Any]]:
        """Return the list function and its keyword arguments."""

    @abstractmethod
    def _build_state(self, raw: dict[str, Any]) -> ResourceState | None:
        """Convert a camelCase API object into a snapshot, or None if unusable."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        """True once the initial full state has been published."""
        return self._ready.is_set()

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def start(self) -> None:
        """List once, publish the initial state, then watch in the background.

        Raises:
            WatchSubscriptionError: if the initial list fails.
        """
        if self._task is not None:
            return
        try:
            self._resource_version = await self._list_and_publish()
        except Exception as exc:
            raise WatchSubscriptionError(self.kind, exc) from exc

        self._ready.set()
        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"{self.kind.value}-watcher")
        self._log.info("watcher_started", namespace=self._namespace or "*")

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self._log.info("watcher_stopped")

    # ------------------------------------------------------------------
    # Watch loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while self._running:
            try:
                await self._watch_once()
                # Stream ended at its timeout: resync.
                self._resource_version = await self._list_and_publish()
                self._reset_backoff()
            except asyncio.CancelledError:
                raise
            except _ResourceExpired:
                await self._relist("410")
            except ApiException as exc:
                await self._handle_api_exception(exc)
            except Exception as exc:  # noqa: BLE001
                self._log.warning("watch_stream_error", error=str(exc))
                await self._backoff("stream_error")

    async def _watch_once(self) -> None:
        func, kwargs = self._list_call()
        w = watch.Watch()
        try:
            async with w.stream(
                func,
                resource_version=self._resource_version,
                timeout_seconds=self._resync_seconds,
                **kwargs,
            ) as stream:
                async for event in stream:
                    await self._handle_watch_event(event)
        finally:
            w.stop()

    async def _handle_watch_event(self, event: dict[str, Any]) -> None:
        event_type = str(event.get("type", ""))
        raw = event.get("raw_object")
        if not isinstance(raw, dict):
            return

        if event_type == "ERROR":
            if raw.get("code") == 410:
                raise _ResourceExpired(str(raw.get("message", "")))
            self._log.warning("watch_error_event", code=raw.get("code"), message=raw.get("message"))
            return

        rv = _extract_rv(raw)
        if rv:
            self._resource_version = rv
        await self._handle_event(event_type, raw)

    async def _handle_event(self, event_type: str, raw: dict[str, Any]) -> None:
        """Publish ADDED and MODIFIED objects; ignore DELETED and BOOKMARK."""
        delivered = _DELIVERED_TYPES.get(event_type)
        if delivered is None:
            return
        state = self._build_state(raw)
        if state is None:
            self._log.debug("watch_object_skipped", event_type=event_type)
            return
        await self._queue.put(ResourceEvent(kind=self.kind, state=state, event_type=delivered))

    async def _list_and_publish(self) -> str:
        """List every object, publish each one, return the list resourceVersion."""
        func, kwargs = self._list_call()
        result = await func(**kwargs)
        serialize = self._api.api_client.sanitize_for_serialization
        for item in result.items or []:
            await self._handle_event("MODIFIED", serialize(item))
        return str(getattr(result.metadata, "resource_version", "") or "")

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def _handle_api_exception(self, exc: ApiException) -> None:
        if exc.status == 410:
            await self._relist("410")
            return
        self._log.warning("watch_api_error", status=exc.status, reason=exc.reason)
        await self._backoff(f"http_{exc.status}")

    async def _relist(self, reason: str) -> None:
        self._log.info("watch_relist", reason=reason)
        self._resource_version = ""
        try:
            self._resource_version = await self._list_and_publish()
            self._reset_backoff()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._log.warning("watch_relist_failed", reason=reason, error=str(exc))
            await self._backoff("relist_failed")

    async def _backoff(self, reason: str) -> None:
        delay = self._backoff_s
        self._log.debug("watch_backoff", reason=reason, delay_s=delay)
        await asyncio.sleep(delay)
        self._backoff_s = min(self._backoff_s * 2, _BACKOFF_MAX_S)

    def _reset_backoff(self) -> None:
        self._backoff_s = _BACKOFF_MIN_S


def _extract_rv(raw: dict[str, Any]) -> str:
    metadata = raw.get("metadata")
    if not isinstance(metadata, dict):
        return ""
    return str(metadata.get("resourceVersion", "") or "")


def _metadata(raw: dict[str, Any]) -> tuple[str, str]:
    """Return ``(namespace, name)`` from a raw object; empty strings if absent."""
    metadata = raw.get("metadata")
    if not isinstance(metadata, dict):
        return "", ""
    return str(metadata.get("namespace") or ""), str(metadata.get("name") or "")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
