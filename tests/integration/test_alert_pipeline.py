"""Integration tests for the full alert pipeline.

Watchers list from a fake cluster API, publish onto the running engine's
queue, the engine evaluates and deduplicates on a virtual clock and the
recording sink captures what would have been sent.  Resyncs are driven
explicitly by relisting, as happens when a watch stream reaches its timeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, patch

import pytest

from kubeinformer.collector import BaseWatcher, DeploymentWatcher, NodeWatcher, PodWatcher
from kubeinformer.engine import AlertEngine
from kubeinformer.models.alerts import ResourceKind
from kubeinformer.models.resources import PodState, ResourceEvent
from kubeinformer.notifications import NotificationDispatcher

from .conftest import FakeClusterApi, make_raw_deployment, make_raw_node, make_raw_pod

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
async def running_engine(engine: AlertEngine) -> AsyncIterator[AlertEngine]:
    await engine.start()
    yield engine
    await engine.stop()


async def _start(watcher: BaseWatcher) -> BaseWatcher:
    # The background watch loop is not exercised here; resyncs are explicit.
    with patch.object(type(watcher), "_run", new=AsyncMock()):
        await watcher.start()
    return watcher


async def _resync(watcher: BaseWatcher) -> None:
    await watcher._list_and_publish()


async def _settle(engine: AlertEngine, dispatcher: NotificationDispatcher) -> None:
    await asyncio.wait_for(engine.join(), timeout=5.0)
    await dispatcher.drain(timeout=1.0)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestCrashLoopScenario:
    async def test_repeat_suppressed_until_cooldown_elapses(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink, clock  # type: ignore[no-untyped-def]
    ) -> None:
        cluster.pods = [make_raw_pod(waiting_reason="CrashLoopBackOff", restart_count=2)]
        watcher = await _start(PodWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
            assert sink.messages == ["❌ [pod] default/p1: Container is in CrashLoopBackOff"]

            clock.advance(seconds=1)
            await _resync(watcher)
            await _settle(running_engine, dispatcher)
            assert len(sink.messages) == 1

            clock.advance(minutes=6)
            await _resync(watcher)
            await _settle(running_engine, dispatcher)
            assert len(sink.messages) == 2
        finally:
            await watcher.stop()

    async def test_recovered_pod_stops_alerting(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink, clock  # type: ignore[no-untyped-def]
    ) -> None:
        cluster.pods = [make_raw_pod(waiting_reason="ImagePullBackOff", phase="Pending")]
        watcher = await _start(PodWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
            assert sink.messages == ["❌ [pod] default/p1: Image pull failed: ImagePullBackOff"]

            cluster.pods = [make_raw_pod()]
            clock.advance(minutes=10)
            await _resync(watcher)
            await _settle(running_engine, dispatcher)
            assert len(sink.messages) == 1
        finally:
            await watcher.stop()


class TestNodeScenario:
    async def test_not_ready_with_disk_pressure(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        cluster.nodes = [make_raw_node(ready="False", disk_pressure="True"), make_raw_node(name="n2")]
        watcher = await _start(NodeWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
        finally:
            await watcher.stop()

        assert sorted(sink.messages) == sorted(
            [
                "🚨 [node] n1: Node is not ready: KubeletNotReady",
                "⚠️ [node] n1: Node has disk pressure",
            ]
        )


class TestDeploymentScenario:
    async def test_under_replicated_after_change(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        cluster.deployments = [
            make_raw_deployment(available=3),
            make_raw_deployment(name="d2", desired=None, available=0),
        ]
        watcher = await _start(DeploymentWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
            assert sink.messages == []

            cluster.deployments = [make_raw_deployment(available=2)]
            await _resync(watcher)
            await _settle(running_engine, dispatcher)
        finally:
            await watcher.stop()

        assert sink.messages == ["⚠️ [deployment] default/d1: Replicas not ready: 2/3 available"]


class TestKeyIndependence:
    async def test_distinct_resources_and_levels_alert_independently(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        cluster.pods = [
            make_raw_pod(name="p1", waiting_reason="CrashLoopBackOff", restart_count=9),
            make_raw_pod(name="p2", waiting_reason="CrashLoopBackOff"),
            make_raw_pod(name="p1", namespace="other", waiting_reason="CrashLoopBackOff"),
        ]
        cluster.nodes = [make_raw_node(name="p1", ready="False")]
        pods = await _start(PodWatcher(cluster, running_engine.queue))
        nodes = await _start(NodeWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
        finally:
            await pods.stop()
            await nodes.stop()

        # default/p1 error + warning, default/p2 error, other/p1 error, node p1 critical.
        assert len(sink.messages) == 5


class TestConcurrentDuplicates:
    async def test_simultaneous_identical_events_notify_once(
        self, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        pod = PodState(namespace="default", name="p1", phase="Failed", reason="Evicted")
        for _ in range(50):
            await running_engine.publish(ResourceEvent(kind=ResourceKind.POD, state=pod))

        await _settle(running_engine, dispatcher)

        assert sink.messages == ["❌ [pod] default/p1: Pod failed: Evicted"]


class TestWatchEvents:
    async def test_added_delivered_deleted_ignored(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        watcher = await _start(PodWatcher(cluster, running_engine.queue))
        try:
            await watcher._handle_watch_event(
                {"type": "DELETED", "raw_object": make_raw_pod(name="gone", phase="Failed")}
            )
            await watcher._handle_watch_event(
                {"type": "ADDED", "raw_object": make_raw_pod(name="new", waiting_reason="ErrImagePull")}
            )
            await _settle(running_engine, dispatcher)
        finally:
            await watcher.stop()

        assert sink.messages == ["❌ [pod] default/new: Image pull failed: ErrImagePull"]


class TestSinkFailure:
    async def test_failing_sink_does_not_stall_pipeline(
        self, cluster: FakeClusterApi, running_engine, dispatcher, sink  # type: ignore[no-untyped-def]
    ) -> None:
        sink.succeed = False
        cluster.pods = [
            make_raw_pod(name="p1", waiting_reason="CrashLoopBackOff"),
            make_raw_pod(name="p2", waiting_reason="CrashLoopBackOff"),
        ]
        watcher = await _start(PodWatcher(cluster, running_engine.queue))
        try:
            await _settle(running_engine, dispatcher)
            await _resync(watcher)
            await _settle(running_engine, dispatcher)
        finally:
            await watcher.stop()

        # Failed deliveries still count as emitted; the resync is suppressed.
        assert len(sink.messages) == 2
