"""Alert evaluation engine and deduplication gate."""

from kubeinformer.engine.dedup import DEFAULT_COOLDOWN, DeduplicationGate
from kubeinformer.engine.engine import AlertEngine

__all__ = [
    "DEFAULT_COOLDOWN",
    "AlertEngine",
    "DeduplicationGate",
]
