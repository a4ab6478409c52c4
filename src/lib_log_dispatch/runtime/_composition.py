"""Runtime composition helpers wiring domain, application, and adapters.

Purpose
-------
Translate :class:`RuntimeSettings` into a live :class:`LoggingRuntime`. The
helpers keep wiring small, declarative, and testable.

Contents
--------
* :func:`build_runtime` - the composition root.
* Queue and pipeline constructors.

System Role
-----------
Anchors the clean-architecture boundary: adapters are chosen here, while the
application layer only sees ports.
"""

from __future__ import annotations

from lib_log_dispatch.adapters.queue import QueueAdapter
from lib_log_dispatch.application.ports import ClockPort, IdProvider
from lib_log_dispatch.application.use_cases._types import ProcessCallable
from lib_log_dispatch.application.use_cases.dispatch import SinkDispatcher
from lib_log_dispatch.application.use_cases.process_record import create_process_log_record
from lib_log_dispatch.application.use_cases.severity_filter import SeverityFilter
from lib_log_dispatch.application.use_cases.shutdown import create_shutdown
from lib_log_dispatch.domain import ContextBinder, DeliveryMonitor, LogRecord

from ._factories import SystemClock, UuidProvider, create_default_sinks, create_encoder_table, create_scrubber
from ._settings import RuntimeSettings
from ._state import LoggingRuntime


def build_runtime(
    settings: RuntimeSettings,
    *,
    clock: ClockPort | None = None,
    id_provider: IdProvider | None = None,
) -> LoggingRuntime:
    """Assemble a logging runtime from resolved settings.

    ``clock`` and ``id_provider`` default to the system clock and random UUIDs;
    tests inject deterministic replacements.
    """

    monitor = DeliveryMonitor()
    binder = ContextBinder()
    severity_filter = SeverityFilter(settings.min_level)
    dispatcher = SinkDispatcher(
        create_default_sinks(settings),
        encoders=create_encoder_table(settings),
        monitor=monitor,
        on_sink_error=settings.on_sink_error,
        diagnostic=settings.diagnostic_hook,
    )
    queue = _create_queue_adapter(settings, dispatcher, monitor) if settings.queue_enabled else None
    process = _create_process_callable(
        settings=settings,
        binder=binder,
        severity_filter=severity_filter,
        monitor=monitor,
        dispatcher=dispatcher,
        queue=queue,
        clock=clock or SystemClock(),
        id_provider=id_provider or UuidProvider(),
    )
    shutdown = create_shutdown(
        queue=queue,
        dispatcher=dispatcher,
        default_timeout=settings.queue_stop_timeout,
        diagnostic=settings.diagnostic_hook,
    )
    if queue is not None:
        queue.start()
    return LoggingRuntime(
        settings=settings,
        binder=binder,
        severity_filter=severity_filter,
        dispatcher=dispatcher,
        monitor=monitor,
        process=process,
        queue=queue,
        shutdown=shutdown,
    )


def _create_queue_adapter(settings: RuntimeSettings, dispatcher: SinkDispatcher, monitor: DeliveryMonitor) -> QueueAdapter:
    """Instantiate the buffer whose single worker drives the dispatcher.

    Every record the buffer rejects or abandons is counted on ``monitor``
    under the reason the buffer reports.
    """

    def _count_drop(record: LogRecord, reason: str) -> None:
        monitor.record_drop(record.level, reason)

    return QueueAdapter(
        worker=dispatcher,
        maxsize=settings.queue_maxsize,
        drop_policy=settings.queue_full_policy,
        on_drop=_count_drop,
        timeout=settings.queue_put_timeout,
        stop_timeout=settings.queue_stop_timeout,
        diagnostic=settings.diagnostic_hook,
    )


def _create_process_callable(
    *,
    settings: RuntimeSettings,
    binder: ContextBinder,
    severity_filter: SeverityFilter,
    monitor: DeliveryMonitor,
    dispatcher: SinkDispatcher,
    queue: QueueAdapter | None,
    clock: ClockPort,
    id_provider: IdProvider,
) -> ProcessCallable:
    return create_process_log_record(
        severity_filter=severity_filter,
        context_binder=binder,
        scrubber=create_scrubber(settings.scrub_patterns),
        clock=clock,
        id_provider=id_provider,
        monitor=monitor,
        dispatcher=dispatcher,
        queue=queue,
        diagnostic=settings.diagnostic_hook,
    )


__all__ = ["build_runtime"]
