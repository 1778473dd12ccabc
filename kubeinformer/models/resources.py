"""Resource snapshots delivered by the watch source.

Snapshots are rebuilt from the API object on every event and are never
mutated or retained by the evaluation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from kubeinformer.models.alerts import ResourceKind


class WatchEventType(StrEnum):
    """Watch event types delivered to the engine."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"


@dataclass(frozen=True)
class ContainerStatus:
    """Observed state of one container in a pod."""

    name: str
    restart_count: int = 0
    waiting_reason: str | None = None


@dataclass(frozen=True)
class PodState:
    """Observed state of a pod."""

    namespace: str
    name: str
    phase: str | None = None
    reason: str = ""
    container_statuses: tuple[ContainerStatus, ...] = ()

    @property
    def identity(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class NodeCondition:
    """A single entry of node.status.conditions."""

    type: str
    status: str
    reason: str = ""


@dataclass(frozen=True)
class NodeState:
    """Observed state of a node."""

    name: str
    conditions: tuple[NodeCondition, ...] = ()

    @property
    def identity(self) -> str:
        return self.name


@dataclass(frozen=True)
class DeploymentState:
    """Observed replica counts of a deployment.

    ``desired_replicas`` is None when spec.replicas is unset.
    """

    namespace: str
    name: str
    desired_replicas: int | None = None
    available_replicas: int = 0

    @property
    def identity(self) -> str:
        return f"{self.namespace}/{self.name}"


ResourceState = PodState | NodeState | DeploymentState


@dataclass(frozen=True)
class ResourceEvent:
    """A typed "state updated" event placed on the engine queue by a watcher."""

    kind: ResourceKind
    state: ResourceState
    event_type: WatchEventType = WatchEventType.MODIFIED
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
