"""Shutdown orchestration for the dispatch core.

Purpose
-------
Provide one routine that stops new enqueues, drains the buffer up to a
deadline, flushes and closes sinks, and reports what could not be delivered.
"""

from __future__ import annotations

import time
from typing import Callable

from lib_log_dispatch.application.ports.queue import QueuePort, ShutdownReport

from ._diagnostics import build_diagnostic_emitter
from ._types import DiagnosticHook
from .dispatch import SinkDispatcher


def create_shutdown(
    *,
    queue: QueuePort | None,
    dispatcher: SinkDispatcher,
    default_timeout: float | None = 5.0,
    diagnostic: DiagnosticHook = None,
) -> Callable[[float | None], ShutdownReport]:
    """Return a callable performing the shutdown sequence.

    The deadline covers both the buffer drain and the sink flush; whatever
    time the drain leaves over is handed to :meth:`SinkDispatcher.close`.
    """

    emit = build_diagnostic_emitter(diagnostic)

    def shutdown(timeout: float | None = None) -> ShutdownReport:
        """Drain the buffer, flush and close sinks, and report losses."""
        if timeout is not None:
            effective: float | None = timeout
        elif queue is not None:
            effective = queue.stop_timeout
        else:
            effective = default_timeout
        started = time.monotonic()
        report = ShutdownReport()
        if queue is not None:
            report = queue.stop(drain=True, timeout=effective)
        remaining = None if effective is None else max(0.0, effective - (time.monotonic() - started))
        flush = dispatcher.close(remaining)
        if not flush.ok:
            report = ShutdownReport(drained=report.drained, dropped=report.dropped, timed_out=report.timed_out or bool(flush.timed_out))
        emit(
            "shutdown",
            {"drained": report.drained, "dropped": report.dropped, "timed_out": report.timed_out, "flush_failed": list(flush.failed)},
        )
        return report

    return shutdown


__all__ = ["create_shutdown"]
