"""Notification system for kubeinformer.

Delivers formatted alert lines to exactly one active sink.

Exports:
    NotificationSink       -- Abstract base for all sink implementations.
    NotificationDispatcher -- Sends messages to the sink without blocking the
                              evaluation pipeline.
    ConsoleSink            -- Prints to stdout (default sink).
    WebhookSink            -- JSON POST webhook sink.
    build_notification_sink -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kubeinformer.notifications.console import ConsoleSink
from kubeinformer.notifications.manager import NotificationDispatcher, NotificationSink
from kubeinformer.notifications.webhook import WebhookSink

if TYPE_CHECKING:
    from kubeinformer.models.config import NotifierConfig

_log = structlog.get_logger(component="notifications")

__all__ = [
    "ConsoleSink",
    "NotificationDispatcher",
    "NotificationSink",
    "WebhookSink",
    "build_notification_sink",
]


def build_notification_sink(config: NotifierConfig) -> NotificationSink:
    """Select the single active sink from configuration.

    The webhook sink wins when enabled; the console sink is used when it is
    enabled or when no sink is enabled at all.

    Raises:
        ValueError: if the webhook sink is enabled without a URL.
    """
    webhook = config.webhook
    if webhook.enabled:
        sink = WebhookSink(
            url=webhook.url,
            timeout=float(webhook.timeout_seconds),
            payload_key=webhook.payload_key,
        )
        if config.console.enabled:
            _log.warning("multiple_sinks_enabled", active="webhook", ignored="console")
        _log.info("webhook_sink_enabled")
        return sink

    if config.console.enabled:
        _log.info("console_sink_enabled")
    else:
        _log.info("no_sink_enabled_using_console")
    return ConsoleSink()
