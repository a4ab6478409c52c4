"""Thread-safe counters describing what happened to submitted records.

Purpose
-------
Give every drop a counted, labelled home so overflow, encoding failures, and
shutdown losses are never silent.

Contents
--------
* :class:`DeliveryMonitor` - mutable counters guarded by a lock.
* :class:`DeliverySnapshot` - immutable view returned to callers.
* :data:`DROP_REASONS` - stable drop-reason labels.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock
from types import MappingProxyType
from typing import Iterable, Mapping

from .levels import LogLevel

DROP_REASONS: tuple[str, ...] = (
    "below_threshold",
    "queue_full",
    "closed",
    "encoding_error",
    "shutdown_timeout",
    "discarded",
)
"""Drop-reason labels seeded into every monitor."""


@dataclass(frozen=True)
class DeliverySnapshot:
    """Point-in-time copy of the monitor counters."""

    accepted: Mapping[str, int]
    delivered: int
    dropped: Mapping[str, int]
    sink_failures: Mapping[str, int]

    @property
    def total_accepted(self) -> int:
        return sum(self.accepted.values())

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped.values())


class DeliveryMonitor:
    """Track accepted, delivered, and dropped records plus sink failures.

    Examples
    --------
    >>> monitor = DeliveryMonitor()
    >>> monitor.record_accepted(LogLevel.INFO)
    >>> monitor.record_drop(LogLevel.DEBUG, "below_threshold")
    >>> snap = monitor.snapshot()
    >>> snap.accepted["info"], snap.dropped["below_threshold"]
    (1, 1)
    """

    def __init__(self, *, drop_reasons: Iterable[str] = DROP_REASONS) -> None:
        self._lock = Lock()
        self._accepted: Counter[str] = Counter({level.severity: 0 for level in LogLevel})
        self._dropped: Counter[str] = Counter({reason: 0 for reason in drop_reasons})
        self._dropped_by_level: Counter[tuple[str, str]] = Counter()
        self._sink_failures: Counter[str] = Counter()
        self._delivered = 0

    def record_accepted(self, level: LogLevel) -> None:
        with self._lock:
            self._accepted[level.severity] += 1

    def record_delivered(self) -> None:
        with self._lock:
            self._delivered += 1

    def record_drop(self, level: LogLevel | None, reason: str, count: int = 1) -> None:
        """Count ``count`` records dropped for ``reason``."""
        if count <= 0:
            return
        with self._lock:
            self._dropped[reason] += count
            if level is not None:
                self._dropped_by_level[(level.severity, reason)] += count

    def record_sink_failure(self, sink_name: str) -> None:
        with self._lock:
            self._sink_failures[sink_name] += 1

    def dropped_for(self, level: LogLevel, reason: str) -> int:
        """Return how many records of ``level`` were dropped for ``reason``."""
        with self._lock:
            return self._dropped_by_level[(level.severity, reason)]

    def snapshot(self) -> DeliverySnapshot:
        with self._lock:
            return DeliverySnapshot(
                accepted=MappingProxyType(dict(self._accepted)),
                delivered=self._delivered,
                dropped=MappingProxyType(dict(self._dropped)),
                sink_failures=MappingProxyType(dict(self._sink_failures)),
            )

    def reset(self) -> None:
        """Zero every counter while keeping the known labels."""
        with self._lock:
            for key in self._accepted:
                self._accepted[key] = 0
            for key in self._dropped:
                self._dropped[key] = 0
            self._dropped_by_level.clear()
            self._sink_failures.clear()
            self._delivered = 0


__all__ = ["DROP_REASONS", "DeliveryMonitor", "DeliverySnapshot"]
