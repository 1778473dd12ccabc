"""Application bootstrap for kubeinformer.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → metrics → K8s client → dedup gate
              → notifications → engine → watchers → readiness

Shutdown is graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single component failure does not prevent the rest from shutting down.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from kubeinformer.collector import DeploymentWatcher, NodeWatcher, PodWatcher, WatchSubscriptionError
from kubeinformer.config import ConfigError, load_config
from kubeinformer.engine import AlertEngine, DeduplicationGate
from kubeinformer.models.config import KubeInformerConfig
from kubeinformer.notifications import NotificationDispatcher, build_notification_sink
from kubeinformer.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from kubeinformer.collector import BaseWatcher

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeInformerApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that was never started or has
    already stopped.
    """

    def __init__(self, config: KubeInformerConfig | None = None) -> None:
        self.config = config

        self._api_client: Any | None = None
        self._core_v1: Any | None = None
        self._apps_v1: Any | None = None
        self._gate: DeduplicationGate | None = None
        self._dispatcher: NotificationDispatcher | None = None
        self._engine: AlertEngine | None = None
        self._watchers: list[BaseWatcher] = []

        self._running = False
        self._stopped = asyncio.Event()
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        The caller (main()) turns this into a non-zero exit.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except ConfigError as exc:
                raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info(
            "kubeinformer starting",
            version=_kubeinformer_version(),
            pods=self.config.checker.check_pods,
            nodes=self.config.checker.check_nodes,
            deployments=self.config.checker.check_deployments,
        )

        # --- 3. Metrics endpoint ----------------------------------------
        self._start_metrics()

        # --- 4. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 5. Deduplication gate ---------------------------------------
        self._gate = DeduplicationGate(max_entries=self.config.engine.history_max_entries)

        # --- 6. Notification sink ----------------------------------------
        self._start_notifications()

        # --- 7. Evaluation engine ----------------------------------------
        await self._start_engine()

        # --- 8. Watchers + readiness -------------------------------------
        await self._start_watchers()

        self._running = True
        self._log.info("kubeinformer started", watchers=[w.kind.value for w in self._watchers])

    # ------------------------------------------------------------------
    # Component startup helpers
    # ------------------------------------------------------------------

    def _start_metrics(self) -> None:
        assert self._log is not None
        assert self.config is not None
        if not self.config.metrics.enabled:
            return
        try:
            from kubeinformer.observability.metrics import start_metrics_server

            start_metrics_server(self.config.metrics.port)
            self._log.info("metrics endpoint started", port=self.config.metrics.port)
        except OSError as exc:
            # Metrics are optional; alerting keeps working without them.
            self._log.warning("metrics endpoint failed to start", error=str(exc))

    async def _start_k8s_client(self) -> None:
        """Initialise the kubernetes-asyncio client from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config
            from kubernetes_asyncio import client as k8s_client

            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            self._api_client = k8s_client.ApiClient()
            self._core_v1 = k8s_client.CoreV1Api(self._api_client)
            self._apps_v1 = k8s_client.AppsV1Api(self._api_client)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_notifications(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            sink = build_notification_sink(self.config.notifiers)
        except ValueError as exc:
            raise _ComponentError("notifications", exc) from exc
        self._dispatcher = NotificationDispatcher(sink)
        self._log.info("notifications started", sink=sink.sink_name)

    async def _start_engine(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._gate is not None
        assert self._dispatcher is not None
        engine_cfg = self.config.engine
        self._engine = AlertEngine(
            gate=self._gate,
            dispatcher=self._dispatcher,
            workers=engine_cfg.workers,
            queue_size=engine_cfg.queue_size,
            drain_timeout=float(engine_cfg.drain_timeout_seconds),
        )
        await self._engine.start()

    async def _start_watchers(self) -> None:
        """Start the watchers and wait for their initial state under one deadline.

        The initial lists and readiness must complete within
        ``watch.ready_timeout_seconds``; a hanging list is as fatal as a failed one.
        """
        assert self.config is not None
        timeout = self.config.watch.ready_timeout_seconds
        try:
            await asyncio.wait_for(self._subscribe_watchers(), timeout=timeout)
        except TimeoutError as exc:
            raise _ComponentError("watch_readiness", TimeoutError(f"not ready after {timeout}s")) from exc

    async def _subscribe_watchers(self) -> None:
        """Start one watcher per enabled kind.  Any subscription failure is fatal."""
        assert self._log is not None
        assert self.config is not None
        assert self._engine is not None
        checker = self.config.checker
        watch_cfg = self.config.watch
        queue = self._engine.queue

        candidates: list[tuple[bool, type[BaseWatcher], Any]] = [
            (checker.check_pods, PodWatcher, self._core_v1),
            (checker.check_nodes, NodeWatcher, self._core_v1),
            (checker.check_deployments, DeploymentWatcher, self._apps_v1),
        ]
        for enabled, watcher_cls, api in candidates:
            if not enabled:
                continue
            watcher = watcher_cls(
                api,
                queue,
                namespace=watch_cfg.namespace,
                resync_seconds=watch_cfg.resync_seconds,
            )
            try:
                await watcher.start()
            except WatchSubscriptionError as exc:
                raise _ComponentError(f"{exc.kind.value}_watcher", exc.cause) from exc
            self._watchers.append(watcher)

        if not self._watchers:
            self._log.warning("no resource kinds enabled; nothing will be watched")
        await asyncio.gather(*(w.wait_ready() for w in self._watchers))

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if self._stopped.is_set():
            return
        if not self._running and self._log is None:
            # Never started: nothing to do
            self._stopped.set()
            return
        log = self._log or get_logger("app")
        log.info("kubeinformer shutting down")
        self._running = False

        # Watchers first so nothing new is enqueued while consumers stop.
        for watcher in reversed(self._watchers):
            await self._stop_component(f"{watcher.kind.value}_watcher", watcher)
        self._watchers.clear()

        await self._stop_component("engine", self._engine)
        await self._stop_component("notifications", self._dispatcher)
        await self._stop_k8s_client()

        self._stopped.set()
        log.info("kubeinformer stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._api_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._api_client.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._api_client = None


def _kubeinformer_version() -> str:
    from kubeinformer import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: KubeInformerConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeInformerApp(config)
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        await app.wait_stopped()
    except _ComponentError as exc:
        if app._log is None:
            setup_logging()
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
