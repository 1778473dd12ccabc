"""kubeinformer: Kubernetes health watcher with deduplicated alerting."""

__version__ = "0.1.0"
