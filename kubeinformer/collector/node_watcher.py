"""NodeWatcher: publishes node condition snapshots."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubeinformer.collector.watcher import BaseWatcher, _as_dict, _as_list, _metadata
from kubeinformer.models.alerts import ResourceKind
from kubeinformer.models.resources import NodeCondition, NodeState


class NodeWatcher(BaseWatcher):
    """Watches nodes (CoreV1Api).  Nodes are cluster-scoped; namespace is ignored."""

    kind = ResourceKind.NODE

    def _list_call(self) -> tuple[Callable[..., Any], dict[str, Any]]:
        return self._api.list_node, {}

    def _build_state(self, raw: dict[str, Any]) -> NodeState | None:
        return build_node_state(raw)


def build_node_state(raw: dict[str, Any]) -> NodeState | None:
    _, name = _metadata(raw)
    if not name:
        return None
    status = _as_dict(raw.get("status"))
    conditions = tuple(
        NodeCondition(
            type=str(cond.get("type") or ""),
            status=str(cond.get("status") or ""),
            reason=str(cond.get("reason") or ""),
        )
        for cond in _as_list(status.get("conditions"))
        if isinstance(cond, dict)
    )
    return NodeState(name=name, conditions=conditions)
