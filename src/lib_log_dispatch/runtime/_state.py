"""Runtime object returned by the composition root."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from contextlib import contextmanager
from threading import RLock
from typing import Any, Iterator

from lib_log_dispatch.adapters.queue import QueueAdapter
from lib_log_dispatch.application.ports import ShutdownReport, SinkPort, SinkTarget
from lib_log_dispatch.application.use_cases._types import ProcessCallable, ProcessResult
from lib_log_dispatch.application.use_cases.dispatch import FlushReport, SinkDispatcher
from lib_log_dispatch.application.use_cases.severity_filter import SeverityFilter
from lib_log_dispatch.domain import ContextBinder, DeliveryMonitor, DeliverySnapshot, EncodingFormat, LogLevel

from ._factories import LoggerHandle
from ._settings import RuntimeSettings, SinkEntry, coerce_sink_target

LOGGER = logging.getLogger(__name__)


class LoggingRuntime:
    """Aggregate of live collaborators assembled by :func:`build_runtime`.

    One instance owns one pipeline: a severity filter, an optional bounded
    buffer with its drain worker, a sink dispatcher, and the delivery counters.
    Several runtimes can coexist in a process; nothing is global. Use it as a
    context manager to guarantee :meth:`shutdown` runs.
    """

    def __init__(
        self,
        *,
        settings: RuntimeSettings,
        binder: ContextBinder,
        severity_filter: SeverityFilter,
        dispatcher: SinkDispatcher,
        monitor: DeliveryMonitor,
        process: ProcessCallable,
        queue: QueueAdapter | None,
        shutdown: Callable[[float | None], ShutdownReport],
    ) -> None:
        self._settings = settings
        self._binder = binder
        self._filter = severity_filter
        self._dispatcher = dispatcher
        self._monitor = monitor
        self._process = process
        self._queue = queue
        self._shutdown = shutdown
        self._lock = RLock()
        self._closed = False
        self._shutdown_report: ShutdownReport | None = None

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def monitor(self) -> DeliveryMonitor:
        return self._monitor

    @property
    def dispatcher(self) -> SinkDispatcher:
        return self._dispatcher

    @property
    def queue(self) -> QueueAdapter | None:
        return self._queue

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def min_level(self) -> LogLevel:
        return self._filter.min_level

    @property
    def sinks(self) -> tuple[SinkTarget, ...]:
        return self._dispatcher.targets

    def get(self, name: str) -> LoggerHandle:
        """Return a :class:`LoggerHandle` named ``name`` bound to this runtime."""
        return LoggerHandle(name, self._ingest)

    @contextmanager
    def bind(self, **fields: Any) -> Iterator[Mapping[str, Any]]:
        """Attach ``fields`` to every record submitted within the block."""
        with self._binder.bind(**fields) as merged:
            yield merged

    def set_min_level(self, level: str | int | LogLevel) -> LogLevel:
        """Swap the severity threshold and return the previous one.

        Applies to records submitted afterwards; records already buffered are
        delivered regardless.
        """
        previous = self._filter.set_min_level(level)
        LOGGER.debug("minimum level changed from %s to %s", previous.name, self._filter.min_level.name)
        return previous

    def add_sink(self, name: str, sink: SinkPort, encoding: EncodingFormat | str = EncodingFormat.TEXT) -> SinkTarget:
        target = SinkTarget(name, sink, encoding)
        self._dispatcher.add(target)
        return target

    def remove_sink(self, name: str) -> SinkTarget:
        """Unregister the sink called ``name`` without closing it."""
        return self._dispatcher.remove(name)

    def replace_sinks(self, sinks: Iterable[SinkEntry]) -> tuple[SinkTarget, ...]:
        """Swap the whole sink set at once; returns the previous targets."""
        return self._dispatcher.replace(coerce_sink_target(entry) for entry in sinks)

    def set_queue_full_policy(self, policy: str) -> str:
        """Switch the buffer's overflow policy (``block`` or ``drop``); returns the previous one."""
        previous = self._require_queue().set_drop_policy(policy)
        LOGGER.debug("queue full policy changed from %s to %s", previous, policy)
        return previous

    def set_queue_maxsize(self, maxsize: int) -> int:
        """Resize the buffer while running; buffered records are kept."""
        return self._require_queue().set_capacity(maxsize)

    def set_queue_stop_timeout(self, timeout: float | None) -> float | None:
        """Replace the drain deadline used by :meth:`shutdown` without an explicit timeout."""
        return self._require_queue().set_stop_timeout(timeout)

    def _require_queue(self) -> QueueAdapter:
        if self._queue is None:
            raise RuntimeError("runtime was built without a buffer (queue_enabled=False)")
        return self._queue

    def snapshot(self) -> DeliverySnapshot:
        return self._monitor.snapshot()

    def flush(self, timeout: float | None = None) -> FlushReport:
        """Wait for buffered records to drain, then flush every sink.

        When the buffer does not empty within ``timeout`` the sinks are still
        flushed with whatever time is left (possibly none).
        """
        started = time.monotonic()
        if self._queue is not None and not self._queue.wait_until_idle(timeout):
            LOGGER.warning("flush: buffer still holds %d record(s) after %.3fs", self._queue.qsize(), timeout)
        remaining = None if timeout is None else max(0.0, timeout - (time.monotonic() - started))
        return self._dispatcher.flush(remaining)

    def shutdown(self, timeout: float | None = None) -> ShutdownReport:
        """Stop accepting records, drain up to ``timeout``, flush and close sinks.

        Idempotent: later calls return the first report.
        """
        with self._lock:
            if self._shutdown_report is not None:
                return self._shutdown_report
            self._closed = True
            report = self._shutdown(timeout)
            if not report.clean:
                LOGGER.warning(
                    "shutdown incomplete: drained=%d dropped=%d timed_out=%s",
                    report.drained,
                    report.dropped,
                    report.timed_out,
                )
            self._shutdown_report = report
            return report

    def _ingest(
        self,
        *,
        logger_name: str,
        level: LogLevel,
        template: str,
        args: tuple[Any, ...] = (),
        fields: Mapping[str, Any] | None = None,
    ) -> ProcessResult:
        if self._closed and self._queue is None:
            self._monitor.record_drop(level, "closed")
            return {"ok": False, "reason": "closed"}
        return self._process(logger_name=logger_name, level=level, template=template, args=args, fields=fields)

    def __enter__(self) -> "LoggingRuntime":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"LoggingRuntime(min_level={self.min_level.name}, sinks={[target.name for target in self.sinks]}, "
            f"queued={self._queue is not None}, closed={self._closed})"
        )


__all__ = ["LoggingRuntime"]
