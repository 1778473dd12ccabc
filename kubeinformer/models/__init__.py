"""Core data structures for kubeinformer."""

from kubeinformer.models.alerts import Alert, AlertLevel, DedupKey, ResourceKind
from kubeinformer.models.config import KubeInformerConfig
from kubeinformer.models.resources import (
    ContainerStatus,
    DeploymentState,
    NodeCondition,
    NodeState,
    PodState,
    ResourceEvent,
    ResourceState,
    WatchEventType,
)

__all__ = [
    "Alert",
    "AlertLevel",
    "ContainerStatus",
    "DedupKey",
    "DeploymentState",
    "KubeInformerConfig",
    "NodeCondition",
    "NodeState",
    "PodState",
    "ResourceEvent",
    "ResourceKind",
    "ResourceState",
    "WatchEventType",
]
