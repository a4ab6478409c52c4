"""Port describing the buffer between producers and the drain worker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

from lib_log_dispatch.domain.records import LogRecord

from .sink import SinkTarget


@dataclass(frozen=True)
class ShutdownReport:
    """Outcome of stopping the buffer.

    Attributes
    ----------
    drained:
        Records the worker processed between the stop request and return.
    dropped:
        Records discarded because the deadline passed or ``drain`` was off.
    timed_out:
        ``True`` when the deadline elapsed before the worker finished.
    """

    drained: int = 0
    dropped: int = 0
    timed_out: bool = False

    @property
    def clean(self) -> bool:
        return self.dropped == 0 and not self.timed_out


@dataclass(frozen=True)
class QueuedRecord:
    """A buffered record together with the sink set current when it was accepted."""

    record: LogRecord
    targets: tuple[SinkTarget, ...]


QueueItem = Union[LogRecord, QueuedRecord]


def record_of(item: QueueItem) -> LogRecord:
    """Return the :class:`LogRecord` carried by ``item``."""
    return item.record if isinstance(item, QueuedRecord) else item


@runtime_checkable
class QueuePort(Protocol):
    """Bridge between producer threads and the single drain worker."""

    @property
    def stop_timeout(self) -> float | None:
        """Drain deadline used when :meth:`stop` receives no explicit timeout."""

    def start(self) -> None:
        """Start the drain worker."""

    def stop(self, *, drain: bool = True, timeout: float | None = None) -> ShutdownReport:
        """Stop the worker, optionally draining buffered records first."""

    def put(self, item: QueueItem) -> bool:
        """Enqueue ``item``; return ``False`` when it was dropped."""

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every buffered record was processed."""


__all__ = ["QueueItem", "QueuePort", "QueuedRecord", "ShutdownReport", "record_of"]
