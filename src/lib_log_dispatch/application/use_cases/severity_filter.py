"""Minimum-level admission check with an atomically swappable threshold."""

from __future__ import annotations

from threading import Lock

from lib_log_dispatch.domain.levels import LogLevel, coerce_level
from lib_log_dispatch.domain.records import LogRecord


class SeverityFilter:
    """Pass records whose level is at or above the configured minimum.

    Examples
    --------
    >>> gate = SeverityFilter(LogLevel.WARNING)
    >>> [gate.allows(level) for level in LogLevel]
    [False, False, True, True]
    >>> gate.set_min_level("debug")
    <LogLevel.WARNING: 30>
    >>> gate.allows(LogLevel.DEBUG)
    True
    """

    def __init__(self, min_level: str | int | LogLevel = LogLevel.INFO) -> None:
        self._lock = Lock()
        self._min_level = coerce_level(min_level)

    @property
    def min_level(self) -> LogLevel:
        with self._lock:
            return self._min_level

    def set_min_level(self, level: str | int | LogLevel) -> LogLevel:
        """Install ``level`` as the new threshold and return the previous one."""
        resolved = coerce_level(level)
        with self._lock:
            previous = self._min_level
            self._min_level = resolved
        return previous

    def allows(self, subject: LogRecord | LogLevel) -> bool:
        level = subject.level if isinstance(subject, LogRecord) else subject
        with self._lock:
            threshold = self._min_level
        return level.at_least(threshold)


__all__ = ["SeverityFilter"]
