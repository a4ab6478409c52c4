"""Port for redacting sensitive structured fields."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_dispatch.domain.records import LogRecord


@runtime_checkable
class ScrubberPort(Protocol):
    """Scrub sensitive values from records before they are buffered."""

    def scrub(self, record: LogRecord) -> LogRecord:
        """Return a (possibly) redacted copy of ``record``."""


__all__ = ["ScrubberPort"]
