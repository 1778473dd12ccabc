"""Deduplication gate for candidate alerts.

DeduplicationGate -- Enforces a 5-minute cooldown per
                     (level, resource_kind, identity).

The history is bounded two ways: ``sweep`` drops entries older than
``SWEEP_FACTOR`` cooldowns, and inserting beyond ``max_entries`` evicts the
least recently emitted keys.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from kubeinformer.models.alerts import Alert, DedupKey
from kubeinformer.observability.metrics import alert_history_entries

_log = structlog.get_logger(component="engine.dedup")

DEFAULT_COOLDOWN = timedelta(minutes=5)
SWEEP_FACTOR = 3
DEFAULT_MAX_ENTRIES = 10_000


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class DeduplicationGate:
    """Suppresses repeated alerts within a cooldown window.

    The key is ``(level, resource_kind, identity)``; the alert message is not
    part of it.  State is held in-process and resets on restart.

    ``should_emit`` is a check-and-record operation guarded by a single lock,
    so concurrent callers can never both observe "no recent alert" for the
    same key.

    ``reset`` and ``last_emitted`` are inspection hooks for operators and
    tests; the engine only uses ``should_emit`` and ``sweep``.
    """

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._cooldown = cooldown
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        # key -> last emitted timestamp, oldest emission first
        self._last_sent: OrderedDict[DedupKey, datetime] = OrderedDict()

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_sent)

    def should_emit(self, alert: Alert, now: datetime | None = None) -> bool:
        """Return True if *alert* should be dispatched, recording *now* if so.

        A False return means an alert with the same key was emitted less than
        one cooldown ago; the history is left untouched in that case.
        """
        if now is None:
            now = self._clock()
        key = alert.dedup_key

        with self._lock:
            last = self._last_sent.get(key)
            if last is not None and (now - last) < self._cooldown:
                _log.debug(
                    "alert_suppressed",
                    level=alert.level.value,
                    resource_kind=alert.resource_kind.value,
                    identity=alert.identity,
                    seconds_remaining=int((self._cooldown - (now - last)).total_seconds()),
                )
                return False

            self._last_sent[key] = now
            self._last_sent.move_to_end(key)
            while len(self._last_sent) > self._max_entries:
                evicted, _ = self._last_sent.popitem(last=False)
                _log.debug("alert_history_evicted", key=_format_key(evicted))
            alert_history_entries.set(len(self._last_sent))
            return True

    def sweep(self, now: datetime | None = None) -> int:
        """Drop entries older than ``SWEEP_FACTOR`` cooldowns.

        Returns the number of removed entries.
        """
        if now is None:
            now = self._clock()
        horizon = now - self._cooldown * SWEEP_FACTOR

        with self._lock:
            stale = [key for key, ts in self._last_sent.items() if ts < horizon]
            for key in stale:
                del self._last_sent[key]
            alert_history_entries.set(len(self._last_sent))

        if stale:
            _log.debug("alert_history_swept", removed=len(stale))
        return len(stale)

    def reset(self, alert: Alert) -> None:
        """Remove the cooldown entry so the next matching alert is emitted."""
        with self._lock:
            self._last_sent.pop(alert.dedup_key, None)
            alert_history_entries.set(len(self._last_sent))

    def last_emitted(self, alert: Alert) -> datetime | None:
        """Timestamp of the last emission for the alert's key, if any."""
        with self._lock:
            return self._last_sent.get(alert.dedup_key)


def _format_key(key: DedupKey) -> str:
    level, kind, identity = key
    return f"{level.value}:{kind.value}:{identity}"
