"""Alert data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AlertLevel(StrEnum):
    """Alert severity.

    Ordered informally critical > error > warning > info; levels are never
    compared numerically.
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ResourceKind(StrEnum):
    """Resource kinds an alert can refer to."""

    POD = "pod"
    NODE = "node"
    DEPLOYMENT = "deployment"
    SERVICE = "service"  # vocabulary only, no evaluator produces it


_LEVEL_INDICATOR: dict[AlertLevel, str] = {
    AlertLevel.CRITICAL: "🚨",
    AlertLevel.ERROR: "❌",
    AlertLevel.WARNING: "⚠️",
    AlertLevel.INFO: "ℹ️",
}

_FALLBACK_INDICATOR = "📢"

DedupKey = tuple[AlertLevel, ResourceKind, str]


@dataclass(frozen=True)
class Alert:
    """Produced by an evaluator from a single observation, consumed by the gate.

    Immutable and self-contained: an Alert never refers to earlier state.
    """

    level: AlertLevel
    resource_kind: ResourceKind
    identity: str
    message: str

    @property
    def dedup_key(self) -> DedupKey:
        """Key used to collapse repeated alerts.

        The message is deliberately not part of the key, so two different
        conditions at the same level for the same resource share one
        cooldown.
        """
        return (self.level, self.resource_kind, self.identity)

    @property
    def indicator(self) -> str:
        return _LEVEL_INDICATOR.get(self.level, _FALLBACK_INDICATOR)

    def format_message(self) -> str:
        """Render the single-line notification text."""
        return f"{self.indicator} [{self.resource_kind.value}] {self.identity}: {self.message}"
