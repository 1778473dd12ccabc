"""Shared fixtures for kubeinformer integration tests.

Wires a mocked Kubernetes API into real watchers, a running engine, the
dedup gate on a virtual clock and a recording sink, so tests exercise the
full list → evaluate → deduplicate → notify pipeline without a cluster.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# ---------------------------------------------------------------------------
# Raw object factories (camelCase, as returned by sanitize_for_serialization)
# ---------------------------------------------------------------------------


def make_raw_pod(
    name: str = "p1",
    namespace: str = "default",
    phase: str = "Running",
    waiting_reason: str | None = None,
    restart_count: int = 0,
) -> dict[str, Any]:
    state: dict[str, Any] = {"waiting": {"reason": waiting_reason}} if waiting_reason else {"running": {}}
    return {
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": "1"},
        "status": {
            "phase": phase,
            "containerStatuses": [{"name": "app", "restartCount": restart_count, "state": state}],
        },
    }


def make_raw_node(name: str = "n1", ready: str = "True", disk_pressure: str = "False") -> dict[str, Any]:
    return {
        "kind": "Node",
        "metadata": {"name": name, "resourceVersion": "1"},
        "status": {
            "conditions": [
                {"type": "Ready", "status": ready, "reason": "KubeletNotReady" if ready != "True" else "KubeletReady"},
                {"type": "DiskPressure", "status": disk_pressure},
            ]
        },
    }


def make_raw_deployment(
    name: str = "d1", namespace: str = "default", desired: int | None = 3, available: int = 3
) -> dict[str, Any]:
    spec: dict[str, Any] = {} if desired is None else {"replicas": desired}
    return {
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": "1"},
        "spec": spec,
        "status": {"availableReplicas": available},
    }


class FakeClusterApi:
    """Minimal stand-in for CoreV1Api/AppsV1Api list calls.

    Tests mutate ``pods``, ``nodes`` and ``deployments`` between relists to
    simulate cluster state changes.
    """

    def __init__(self) -> None:
        self.pods: list[dict[str, Any]] = []
        self.nodes: list[dict[str, Any]] = []
        self.deployments: list[dict[str, Any]] = []
        self.api_client = MagicMock()
        self.api_client.sanitize_for_serialization = lambda obj: obj
        self.list_pod_for_all_namespaces = AsyncMock(side_effect=lambda **_: self._result(self.pods))
        self.list_node = AsyncMock(side_effect=lambda **_: self._result(self.nodes))
        self.list_deployment_for_all_namespaces = AsyncMock(side_effect=lambda **_: self._result(self.deployments))

    @staticmethod
    def _result(items: list[dict[str, Any]]) -> MagicMock:
        return MagicMock(items=list(items), metadata=MagicMock(resource_version="100"))


@pytest.fixture
def cluster() -> FakeClusterApi:
    return FakeClusterApi()
