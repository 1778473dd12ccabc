"""Node evaluator: readiness and pressure conditions."""

from __future__ import annotations

from kubeinformer.models.alerts import Alert, AlertLevel, ResourceKind
from kubeinformer.models.resources import NodeState

_CONDITION_TRUE = "True"


def evaluate_node(node: NodeState) -> list[Alert]:
    """Map a node snapshot to candidate alerts, one per matching condition."""
    alerts: list[Alert] = []
    for cond in node.conditions:
        if cond.type == "Ready" and cond.status != _CONDITION_TRUE:
            alerts.append(_alert(AlertLevel.CRITICAL, node.identity, f"Node is not ready: {cond.reason}"))
        elif cond.type == "MemoryPressure" and cond.status == _CONDITION_TRUE:
            alerts.append(_alert(AlertLevel.WARNING, node.identity, "Node has memory pressure"))
        elif cond.type == "DiskPressure" and cond.status == _CONDITION_TRUE:
            alerts.append(_alert(AlertLevel.WARNING, node.identity, "Node has disk pressure"))
    return alerts


def _alert(level: AlertLevel, identity: str, message: str) -> Alert:
    return Alert(level=level, resource_kind=ResourceKind.NODE, identity=identity, message=message)
