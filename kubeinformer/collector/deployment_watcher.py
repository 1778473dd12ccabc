"""DeploymentWatcher: publishes desired/available replica snapshots."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubeinformer.collector.watcher import BaseWatcher, _as_dict, _metadata
from kubeinformer.models.alerts import ResourceKind
from kubeinformer.models.resources import DeploymentState


class DeploymentWatcher(BaseWatcher):
    """Watches deployments cluster-wide or in a single namespace (AppsV1Api)."""

    kind = ResourceKind.DEPLOYMENT

    def _list_call(self) -> tuple[Callable[..., Any], dict[str, Any]]:
        if self._namespace:
            return self._api.list_namespaced_deployment, {"namespace": self._namespace}
        return self._api.list_deployment_for_all_namespaces, {}

    def _build_state(self, raw: dict[str, Any]) -> DeploymentState | None:
        return build_deployment_state(raw)


def build_deployment_state(raw: dict[str, Any]) -> DeploymentState | None:
    namespace, name = _metadata(raw)
    if not name:
        return None
    spec = _as_dict(raw.get("spec"))
    status = _as_dict(raw.get("status"))
    replicas = spec.get("replicas")
    return DeploymentState(
        namespace=namespace,
        name=name,
        desired_replicas=int(replicas) if replicas is not None else None,
        available_replicas=int(status.get("availableReplicas") or 0),
    )
