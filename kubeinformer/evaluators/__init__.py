"""Evaluators: pure functions from a resource snapshot to candidate alerts.

Exposes:
    evaluate            -- Dispatch a snapshot to the evaluator for its kind.
    evaluate_pod        -- Failed phase, CrashLoopBackOff, restarts, image pulls.
    evaluate_node       -- Ready, MemoryPressure, DiskPressure conditions.
    evaluate_deployment -- Available replicas below desired.
"""

from __future__ import annotations

from kubeinformer.evaluators.deployment import evaluate_deployment
from kubeinformer.evaluators.node import evaluate_node
from kubeinformer.evaluators.pod import evaluate_pod
from kubeinformer.models.alerts import Alert
from kubeinformer.models.resources import DeploymentState, NodeState, PodState, ResourceState

__all__ = [
    "evaluate",
    "evaluate_deployment",
    "evaluate_node",
    "evaluate_pod",
]


def evaluate(state: ResourceState) -> list[Alert]:
    """Evaluate *state* with the evaluator matching its snapshot type."""
    if isinstance(state, PodState):
        return evaluate_pod(state)
    if isinstance(state, NodeState):
        return evaluate_node(state)
    if isinstance(state, DeploymentState):
        return evaluate_deployment(state)
    raise TypeError(f"No evaluator for snapshot type {type(state).__name__}")
