"""PodWatcher: publishes pod phase and container status snapshots."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubeinformer.collector.watcher import BaseWatcher, _as_dict, _as_list, _metadata
from kubeinformer.models.alerts import ResourceKind
from kubeinformer.models.resources import ContainerStatus, PodState


class PodWatcher(BaseWatcher):
    """Watches pods cluster-wide or in a single namespace (CoreV1Api)."""

    kind = ResourceKind.POD

    def _list_call(self) -> tuple[Callable[..., Any], dict[str, Any]]:
        if self._namespace:
            return self._api.list_namespaced_pod, {"namespace": self._namespace}
        return self._api.list_pod_for_all_namespaces, {}

    def _build_state(self, raw: dict[str, Any]) -> PodState | None:
        return build_pod_state(raw)


def build_pod_state(raw: dict[str, Any]) -> PodState | None:
    """Build a PodState from a camelCase pod object; None when it has no name."""
    namespace, name = _metadata(raw)
    if not name:
        return None
    status = _as_dict(raw.get("status"))
    containers = tuple(
        _build_container_status(cs) for cs in _as_list(status.get("containerStatuses")) if isinstance(cs, dict)
    )
    return PodState(
        namespace=namespace,
        name=name,
        phase=status.get("phase"),
        reason=str(status.get("reason") or ""),
        container_statuses=containers,
    )


def _build_container_status(raw: dict[str, Any]) -> ContainerStatus:
    state = _as_dict(raw.get("state"))
    waiting = state.get("waiting")
    waiting_reason = None
    if isinstance(waiting, dict):
        waiting_reason = str(waiting.get("reason") or "")
    return ContainerStatus(
        name=str(raw.get("name") or ""),
        restart_count=int(raw.get("restartCount") or 0),
        waiting_reason=waiting_reason,
    )
