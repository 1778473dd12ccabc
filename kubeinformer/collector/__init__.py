"""Collector package for kubeinformer.

Provides Kubernetes watch-stream collectors that publish typed resource
snapshots onto the engine queue.

Submodules
----------
watcher            -- BaseWatcher: list/watch/resync, back-off, 410 relist.
pod_watcher        -- PodWatcher: phase and container statuses.
node_watcher       -- NodeWatcher: node conditions.
deployment_watcher -- DeploymentWatcher: desired vs available replicas.
"""

from kubeinformer.collector.deployment_watcher import DeploymentWatcher, build_deployment_state
from kubeinformer.collector.node_watcher import NodeWatcher, build_node_state
from kubeinformer.collector.pod_watcher import PodWatcher, build_pod_state
from kubeinformer.collector.watcher import BaseWatcher, WatchSubscriptionError

__all__ = [
    "BaseWatcher",
    "DeploymentWatcher",
    "NodeWatcher",
    "PodWatcher",
    "WatchSubscriptionError",
    "build_deployment_state",
    "build_node_state",
    "build_pod_state",
]
