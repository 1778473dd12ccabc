"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CheckerConfig:
    """Which resource kinds are watched."""

    check_pods: bool = True
    check_nodes: bool = True
    check_deployments: bool = True


@dataclass
class ConsoleNotifierConfig:
    """Console sink configuration."""

    enabled: bool = False


@dataclass
class WebhookNotifierConfig:
    """Webhook sink configuration."""

    enabled: bool = False
    url: str = ""
    timeout_seconds: int = 10
    payload_key: str = "content"


@dataclass
class NotifierConfig:
    """Notification sink selection."""

    console: ConsoleNotifierConfig = field(default_factory=ConsoleNotifierConfig)
    webhook: WebhookNotifierConfig = field(default_factory=WebhookNotifierConfig)


@dataclass
class WatchConfig:
    """Watch source configuration."""

    namespace: str = ""  # empty means all namespaces
    resync_seconds: int = 30
    ready_timeout_seconds: int = 60


@dataclass
class EngineConfig:
    """Evaluation engine configuration."""

    workers: int = 3
    queue_size: int = 1000
    history_max_entries: int = 10_000
    drain_timeout_seconds: int = 5


@dataclass
class MetricsConfig:
    """Prometheus metrics endpoint configuration."""

    enabled: bool = False
    port: int = 9090


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class KubeInformerConfig:
    """Top-level kubeinformer configuration."""

    checker: CheckerConfig = field(default_factory=CheckerConfig)
    notifiers: NotifierConfig = field(default_factory=NotifierConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
