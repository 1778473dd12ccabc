"""Pod evaluator.

Each matching condition yields its own alert. Conditions are checked per
container, so one pod can produce several alerts with the same identity in a
single pass; the deduplication gate collapses them.
"""

from __future__ import annotations

from kubeinformer.models.alerts import Alert, AlertLevel, ResourceKind
from kubeinformer.models.resources import PodState

_PHASE_FAILED = "Failed"
_CRASH_LOOP_REASON = "CrashLoopBackOff"
_IMAGE_PULL_REASONS = frozenset({"ImagePullBackOff", "ErrImagePull"})
_RESTART_COUNT_THRESHOLD = 5


def evaluate_pod(pod: PodState) -> list[Alert]:
    """Map a pod snapshot to candidate alerts."""
    identity = pod.identity
    alerts: list[Alert] = []

    if pod.phase == _PHASE_FAILED:
        alerts.append(_alert(AlertLevel.ERROR, identity, f"Pod failed: {pod.reason}"))

    for cs in pod.container_statuses:
        if cs.waiting_reason == _CRASH_LOOP_REASON:
            alerts.append(_alert(AlertLevel.ERROR, identity, "Container is in CrashLoopBackOff"))

        if cs.restart_count > _RESTART_COUNT_THRESHOLD:
            alerts.append(_alert(AlertLevel.WARNING, identity, f"High restart count: {cs.restart_count}"))

        if cs.waiting_reason in _IMAGE_PULL_REASONS:
            alerts.append(_alert(AlertLevel.ERROR, identity, f"Image pull failed: {cs.waiting_reason}"))

    return alerts


def _alert(level: AlertLevel, identity: str, message: str) -> Alert:
    return Alert(level=level, resource_kind=ResourceKind.POD, identity=identity, message=message)
