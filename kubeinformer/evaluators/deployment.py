"""Deployment evaluator: available vs desired replicas."""

from __future__ import annotations

from kubeinformer.models.alerts import Alert, AlertLevel, ResourceKind
from kubeinformer.models.resources import DeploymentState


def evaluate_deployment(deployment: DeploymentState) -> list[Alert]:
    """Return a warning when fewer replicas are available than desired.

    An unset desired replica count is not evaluable and yields nothing.
    """
    desired = deployment.desired_replicas
    if desired is None:
        return []

    available = deployment.available_replicas
    if available >= desired:
        return []

    return [
        Alert(
            level=AlertLevel.WARNING,
            resource_kind=ResourceKind.DEPLOYMENT,
            identity=deployment.identity,
            message=f"Replicas not ready: {available}/{desired} available",
        )
    ]
