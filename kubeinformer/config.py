"""Configuration loading from a YAML file and environment variables.

Precedence: KUBEINFORMER_* environment variables > YAML file > defaults.
The YAML layout uses ``checker`` / ``notifiers`` sections:

    checker:
      check_pods: true
      check_nodes: true
      check_deployments: true
    notifiers:
      console:
        enabled: true
      webhook:
        enabled: false
        url: https://discord.com/api/webhooks/...
"""

from __future__ import annotations

import os
from typing import Any

import yaml

from kubeinformer.models.config import (
    CheckerConfig,
    ConsoleNotifierConfig,
    EngineConfig,
    KubeInformerConfig,
    LogConfig,
    MetricsConfig,
    NotifierConfig,
    WatchConfig,
    WebhookNotifierConfig,
)
from kubeinformer.observability.logging import LOG_FORMATS

_ENV_PREFIX = "KUBEINFORMER_"
_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded or is invalid."""


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"{_ENV_PREFIX}{key}", default)


def _parse_bool(key: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r}")


def _env_bool(key: str, default: bool = False) -> bool:
    return _parse_bool(key, _env(key, str(default).lower()))


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {key}: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ConfigError(f"Invalid log format: {value}. Must be one of {LOG_FORMATS}")
    return value.lower()


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _section(doc: dict[str, Any], *path: str) -> dict[str, Any]:
    """Walk nested mappings; missing or non-mapping levels yield ``{}``."""
    node: Any = doc
    for key in path:
        node = node.get(key) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


def _file_bool(section: dict[str, Any], key: str, default: bool) -> bool:
    if key not in section or section[key] is None:
        return default
    return _parse_bool(key, section[key])


def _file_int(section: dict[str, Any], key: str, default: int) -> int:
    if key not in section or section[key] is None:
        return default
    try:
        return int(section[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid integer for {key}: {section[key]!r}") from exc


def _file_str(section: dict[str, Any], key: str, default: str) -> str:
    value = section.get(key)
    return default if value is None else str(value)


def read_config_file(path: str) -> dict[str, Any]:
    """Read a YAML configuration file.  An empty file yields ``{}``."""
    try:
        with open(path, encoding="utf-8") as fh:
            doc = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return doc


def load_config(path: str | None = None) -> KubeInformerConfig:
    """Load configuration from an optional YAML file and KUBEINFORMER_* variables.

    Args:
        path: YAML file path.  Falls back to ``KUBEINFORMER_CONFIG_FILE``;
              when neither is set only defaults and env vars apply.

    Raises:
        ConfigError: on unreadable files, malformed values, or a webhook
                     sink enabled without a URL.
    """
    path = path or _env("CONFIG_FILE") or None
    doc = read_config_file(path) if path else {}

    checker = _section(doc, "checker")
    console = _section(doc, "notifiers", "console")
    webhook = _section(doc, "notifiers", "webhook")
    watch = _section(doc, "watch")
    engine = _section(doc, "engine")
    metrics = _section(doc, "metrics")
    log = _section(doc, "log")

    config = KubeInformerConfig(
        checker=CheckerConfig(
            check_pods=_env_bool("CHECK_PODS", _file_bool(checker, "check_pods", True)),
            check_nodes=_env_bool("CHECK_NODES", _file_bool(checker, "check_nodes", True)),
            check_deployments=_env_bool("CHECK_DEPLOYMENTS", _file_bool(checker, "check_deployments", True)),
        ),
        notifiers=NotifierConfig(
            console=ConsoleNotifierConfig(
                enabled=_env_bool("CONSOLE_ENABLED", _file_bool(console, "enabled", False)),
            ),
            webhook=WebhookNotifierConfig(
                enabled=_env_bool("WEBHOOK_ENABLED", _file_bool(webhook, "enabled", False)),
                url=_env("WEBHOOK_URL", _file_str(webhook, "url", "")),
                timeout_seconds=_env_int(
                    "WEBHOOK_TIMEOUT", _file_int(webhook, "timeout_seconds", 10), min_val=1, max_val=60
                ),
                payload_key=_env("WEBHOOK_PAYLOAD_KEY", _file_str(webhook, "payload_key", "content")),
            ),
        ),
        watch=WatchConfig(
            namespace=_env("WATCH_NAMESPACE", _file_str(watch, "namespace", "")),
            resync_seconds=_env_int(
                "WATCH_RESYNC_SECONDS", _file_int(watch, "resync_seconds", 30), min_val=5, max_val=3600
            ),
            ready_timeout_seconds=_env_int(
                "WATCH_READY_TIMEOUT", _file_int(watch, "ready_timeout_seconds", 60), min_val=1, max_val=600
            ),
        ),
        engine=EngineConfig(
            workers=_env_int("ENGINE_WORKERS", _file_int(engine, "workers", 3), min_val=1, max_val=64),
            queue_size=_env_int("ENGINE_QUEUE_SIZE", _file_int(engine, "queue_size", 1000), min_val=1),
            history_max_entries=_env_int(
                "ENGINE_HISTORY_MAX_ENTRIES", _file_int(engine, "history_max_entries", 10_000), min_val=1
            ),
            drain_timeout_seconds=_env_int(
                "ENGINE_DRAIN_TIMEOUT", _file_int(engine, "drain_timeout_seconds", 5), min_val=0, max_val=60
            ),
        ),
        metrics=MetricsConfig(
            enabled=_env_bool("METRICS_ENABLED", _file_bool(metrics, "enabled", False)),
            port=_env_int("METRICS_PORT", _file_int(metrics, "port", 9090), min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", _file_str(log, "level", "info"))),
            format=_validate_log_format(_env("LOG_FORMAT", _file_str(log, "format", "json"))),
        ),
    )

    if config.notifiers.webhook.enabled and not config.notifiers.webhook.url:
        raise ConfigError("Webhook notifier is enabled but no url is configured")
    return config
