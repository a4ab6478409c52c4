"""Use case turning one ingestion call into a buffered or dispatched record.

Purpose
-------
Tie together severity filtering, scoped fields, scrubbing, buffering, and
inline dispatch behind a single callable.

Contents
--------
* :func:`create_process_log_record` factory returning the ingestion callable.
* Small helpers, one per pipeline step.

System Role
-----------
Application-layer orchestrator invoked by :class:`LoggerHandle`. Producers
only ever see the returned result dictionary; sink failures, encoding errors,
and overflow are reported through counters and the diagnostic hook.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from lib_log_dispatch.application.ports import ClockPort, IdProvider, QueuedRecord, QueuePort, ScrubberPort
from lib_log_dispatch.domain import ContextBinder, DeliveryMonitor, LogLevel, LogRecord

from ._diagnostics import build_diagnostic_emitter
from ._types import DiagnosticHook, Emitter, ProcessCallable, ProcessResult
from .dispatch import SinkDispatcher
from .severity_filter import SeverityFilter


def create_process_log_record(
    *,
    severity_filter: SeverityFilter,
    context_binder: ContextBinder,
    scrubber: ScrubberPort,
    clock: ClockPort,
    id_provider: IdProvider,
    monitor: DeliveryMonitor,
    dispatcher: SinkDispatcher,
    queue: QueuePort | None = None,
    diagnostic: DiagnosticHook = None,
) -> ProcessCallable:
    """Build the ingestion callable capturing the current dependency wiring.

    Parameters
    ----------
    severity_filter:
        Threshold consulted before a record is even constructed.
    context_binder:
        Supplies fields bound with :meth:`ContextBinder.bind`.
    scrubber:
        Redacts sensitive structured fields before the record is buffered.
    clock, id_provider:
        Timestamp and identifier sources.
    monitor:
        Shared counters for accepted and filtered records.
    dispatcher:
        Used directly when ``queue`` is ``None`` (inline mode).
    queue:
        Optional buffer; when present, records are handed to it and the drain
        worker performs the dispatch.
    diagnostic:
        Optional ``(name, payload)`` hook receiving pipeline milestones.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_dispatch.adapters.encoding import create_encoders
    >>> from lib_log_dispatch.adapters.sinks.memory import MemorySink
    >>> from lib_log_dispatch.application.ports import SinkTarget
    >>> class Clock:
    ...     def now(self):
    ...         return datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> class Scrubber:
    ...     def scrub(self, record):
    ...         return record
    >>> sink = MemorySink()
    >>> dispatcher = SinkDispatcher([SinkTarget("memory", sink)], encoders=create_encoders("{message}"))
    >>> process = create_process_log_record(
    ...     severity_filter=SeverityFilter(LogLevel.INFO),
    ...     context_binder=ContextBinder(),
    ...     scrubber=Scrubber(),
    ...     clock=Clock(),
    ...     id_provider=lambda: "rec-1",
    ...     monitor=DeliveryMonitor(),
    ...     dispatcher=dispatcher,
    ... )
    >>> process(logger_name="demo", level=LogLevel.INFO, template="User input: {}", args=("${jndi:x}",))["ok"]
    True
    >>> sink.lines()
    ['User input: ${jndi:x}']
    >>> process(logger_name="demo", level=LogLevel.DEBUG, template="hidden")["reason"]
    'below_threshold'
    """

    toolkit = _PipelineToolkit(
        severity_filter=severity_filter,
        context_binder=context_binder,
        scrubber=scrubber,
        clock=clock,
        id_provider=id_provider,
        monitor=monitor,
        dispatcher=dispatcher,
        queue=queue,
        emit=build_diagnostic_emitter(diagnostic),
    )
    return _ProcessPipeline(toolkit)


@dataclass(frozen=True)
class _PipelineToolkit:
    severity_filter: SeverityFilter
    context_binder: ContextBinder
    scrubber: ScrubberPort
    clock: ClockPort
    id_provider: IdProvider
    monitor: DeliveryMonitor
    dispatcher: SinkDispatcher
    queue: QueuePort | None
    emit: Emitter


class _ProcessPipeline(ProcessCallable):
    def __init__(self, toolkit: _PipelineToolkit) -> None:
        self._toolkit = toolkit

    def __call__(
        self,
        *,
        logger_name: str,
        level: LogLevel,
        template: str,
        args: tuple[Any, ...] = (),
        fields: Mapping[str, Any] | None = None,
    ) -> ProcessResult:
        if not _filter_allows(self._toolkit, level):
            return _reject_below_threshold(self._toolkit, level)
        record = _craft_record(self._toolkit, logger_name, level, template, args, fields)
        record = self._toolkit.scrubber.scrub(record)
        self._toolkit.monitor.record_accepted(record.level)
        if self._toolkit.queue is not None:
            return _offer_to_queue(self._toolkit, self._toolkit.queue, record)
        return _dispatch_inline(self._toolkit, record)


def _filter_allows(toolkit: _PipelineToolkit, level: LogLevel) -> bool:
    return toolkit.severity_filter.allows(level)


def _reject_below_threshold(toolkit: _PipelineToolkit, level: LogLevel) -> ProcessResult:
    toolkit.monitor.record_drop(level, "below_threshold")
    return {"ok": False, "reason": "below_threshold"}


def _craft_record(
    toolkit: _PipelineToolkit,
    logger_name: str,
    level: LogLevel,
    template: str,
    args: tuple[Any, ...],
    fields: Mapping[str, Any] | None,
) -> LogRecord:
    merged = dict(toolkit.context_binder.current())
    if fields:
        merged.update(fields)
    return LogRecord(
        record_id=toolkit.id_provider(),
        timestamp=toolkit.clock.now(),
        logger_name=logger_name,
        level=level,
        template=template,
        args=args,
        fields=merged,
    )


def _offer_to_queue(toolkit: _PipelineToolkit, queue: QueuePort, record: LogRecord) -> ProcessResult:
    if queue.put(QueuedRecord(record, toolkit.dispatcher.targets)):
        toolkit.emit("queued", {"record_id": record.record_id, "logger": record.logger_name})
        return {"ok": True, "record_id": record.record_id, "queued": True}
    reason = "closed" if getattr(queue, "closed", False) else "queue_full"
    return {"ok": False, "record_id": record.record_id, "queued": False, "reason": reason}


def _dispatch_inline(toolkit: _PipelineToolkit, record: LogRecord) -> ProcessResult:
    outcome = toolkit.dispatcher.dispatch(record)
    result: ProcessResult = {
        "ok": outcome.ok,
        "record_id": record.record_id,
        "queued": False,
        "delivered": list(outcome.delivered),
    }
    if outcome.failed:
        result["failed"] = list(outcome.failed)
        result["reason"] = "sink_failure"
    if outcome.skipped:
        result["reason"] = "encoding_error"
    if outcome.ok:
        toolkit.emit("delivered", {"record_id": record.record_id, "sinks": list(outcome.delivered)})
    return result


__all__ = ["create_process_log_record"]
