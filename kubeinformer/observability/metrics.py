"""Prometheus instruments.

All instruments live on the default registry.  ``start_metrics_server`` is
only called by the application bootstrap when metrics are enabled.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, start_http_server

watch_events_total = Counter(
    "kubeinformer_watch_events_total",
    "Resource update events received from the watch source",
    ["kind"],
)

alerts_evaluated_total = Counter(
    "kubeinformer_alerts_evaluated_total",
    "Candidate alerts produced by evaluators",
    ["kind", "level"],
)

alerts_suppressed_total = Counter(
    "kubeinformer_alerts_suppressed_total",
    "Candidate alerts suppressed by the deduplication gate",
    ["kind", "level"],
)

event_errors_total = Counter(
    "kubeinformer_event_errors_total",
    "Events whose processing raised an unexpected error",
    ["kind"],
)

notifications_total = Counter(
    "kubeinformer_notifications_total",
    "Notification deliveries by sink and outcome",
    ["sink", "success"],
)

alert_history_entries = Gauge(
    "kubeinformer_alert_history_entries",
    "Dedup keys currently held in the alert history",
)


def start_metrics_server(port: int) -> None:
    """Expose /metrics on *port* from a daemon thread."""
    start_http_server(port)
