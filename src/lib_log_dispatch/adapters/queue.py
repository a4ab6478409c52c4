"""Thread-based bounded buffer between producers and the sink dispatcher.

Purpose
-------
Decouple producer threads from slow sinks. Producers enqueue concurrently;
exactly one background worker drains records in FIFO order, which keeps sink
writes serialised.

Contents
--------
* :class:`QueueAdapter` - background worker implementation of :class:`QueuePort`.

System Role
-----------
Implements the backpressure policy: ``block`` waits (bounded by ``timeout``)
before counting a ``queue_full`` drop, ``drop`` rejects immediately. Every
rejected record reaches ``on_drop`` with a reason so nothing is lost silently.
Capacity, overflow policy, and the stop deadline can be changed while the
worker runs; changes apply to the next ``put``/``stop``.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Any

from lib_log_dispatch.application.ports.queue import QueueItem, QueuePort, ShutdownReport, record_of
from lib_log_dispatch.domain.records import LogRecord


LOGGER = logging.getLogger(__name__)

DropHandler = Callable[[LogRecord, str], None]

_SHUTDOWN_REASONS = frozenset({"shutdown_timeout", "discarded"})
_POLICIES = frozenset({"block", "drop"})


def _validate_policy(policy: str) -> str:
    normalized = policy.strip().lower()
    if normalized not in _POLICIES:
        raise ValueError("drop_policy must be 'block' or 'drop'")
    return normalized


def _validate_stop_timeout(timeout: float | None) -> float | None:
    if timeout is not None and timeout < 0:
        raise ValueError("stop_timeout must be non-negative or None")
    return timeout


class QueueAdapter(QueuePort):
    """Process log records on a background thread.

    Items are either bare :class:`LogRecord` objects or
    :class:`~lib_log_dispatch.application.ports.queue.QueuedRecord` envelopes;
    the worker receives them unchanged, ``on_drop`` always receives the record.

    Examples
    --------
    >>> processed = []
    >>> adapter = QueueAdapter(worker=lambda record: processed.append(record))
    >>> adapter.start()
    >>> from datetime import datetime, timezone
    >>> from lib_log_dispatch.domain.levels import LogLevel
    >>> record = LogRecord('id', datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), 'svc', LogLevel.INFO, 'msg')
    >>> adapter.put(record)
    True
    >>> adapter.stop(drain=True).clean
    True
    >>> processed[0].record_id
    'id'
    """

    def __init__(
        self,
        *,
        worker: Callable[[Any], None] | None = None,
        maxsize: int = 2048,
        drop_policy: str = "block",
        on_drop: DropHandler | None = None,
        timeout: float | None = 1.0,
        stop_timeout: float | None = 5.0,
        diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
    ) -> None:
        """Create the buffer with an optional initial worker and capacity.

        Parameters
        ----------
        worker:
            Callable invoked for each queued item; usually the sink dispatcher.
        maxsize:
            Maximum number of buffered records before the overflow policy applies.
        drop_policy:
            Either ``"block"`` (producers wait up to ``timeout``) or ``"drop"``
            (new records are rejected while the buffer is full).
        on_drop:
            Callback invoked as ``on_drop(record, reason)`` for every rejected
            or discarded record.
        timeout:
            Producer wait (seconds) under the blocking policy. ``None`` waits
            indefinitely.
        stop_timeout:
            Default drain deadline applied when :meth:`stop` is called without
            an explicit ``timeout``. ``None`` disables the deadline.
        """
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._worker = worker
        self._queue: queue.Queue[QueueItem | None] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._closed = False
        self._drop_pending = False
        self._drop_reason = "discarded"
        self._drain_event = threading.Event()
        self._drain_event.set()
        self._config_lock = threading.Lock()
        self._drop_policy = _validate_policy(drop_policy)
        self._on_drop = on_drop
        self._timeout = timeout
        self._stop_timeout = _validate_stop_timeout(stop_timeout)
        self._diagnostic = diagnostic
        self._processed = 0
        self._count_lock = threading.Lock()
        self._shutdown_dropped = 0

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    @property
    def drop_policy(self) -> str:
        with self._config_lock:
            return self._drop_policy

    @property
    def stop_timeout(self) -> float | None:
        with self._config_lock:
            return self._stop_timeout

    @property
    def closed(self) -> bool:
        """Return ``True`` once :meth:`stop` began and until :meth:`start`."""
        return self._closed

    def set_drop_policy(self, policy: str) -> str:
        """Switch the overflow policy for later :meth:`put` calls; return the previous one."""
        normalized = _validate_policy(policy)
        with self._config_lock:
            previous, self._drop_policy = self._drop_policy, normalized
        return previous

    def set_stop_timeout(self, timeout: float | None) -> float | None:
        """Replace the default drain deadline of :meth:`stop`; return the previous one."""
        resolved = _validate_stop_timeout(timeout)
        with self._config_lock:
            previous, self._stop_timeout = self._stop_timeout, resolved
        return previous

    def set_capacity(self, maxsize: int) -> int:
        """Resize the buffer in place and return the previous capacity.

        Buffered records are kept in order. Shrinking below the current fill
        level rejects or blocks new records until the worker catches up.
        Producers blocked on a full buffer are woken so a larger capacity
        takes effect immediately.
        """
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        with self._config_lock, self._queue.mutex:
            previous = self._queue.maxsize
            self._queue.maxsize = maxsize
            self._queue.not_full.notify_all()
        return previous

    def start(self) -> None:
        """Start the background worker thread if it is not already running."""
        if self._thread is not None and self._thread.is_alive():
            self._closed = False
            return
        self._stop_event.clear()
        self._drop_pending = False
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="lib_log_dispatch-drain", daemon=True)
        self._thread.start()

    def stop(self, *, drain: bool = True, timeout: float | None = None) -> ShutdownReport:
        """Stop the worker thread and report what happened to buffered records.

        Parameters
        ----------
        drain:
            When ``True`` wait for buffered records to be processed before
            returning. When ``False`` pending records are discarded through the
            drop handler.
        timeout:
            Per-call override for the drain deadline. ``None`` falls back to
            :attr:`stop_timeout`.

        Returns
        -------
        ShutdownReport
            ``drained`` records processed during the stop, ``dropped`` records
            discarded, and whether the deadline elapsed.
        """
        self._closed = True
        processed_before = self._processed
        with self._count_lock:
            dropped_before = self._shutdown_dropped

        thread = self._thread
        if thread is not None and not thread.is_alive():
            self._thread = None
            self._stop_event.clear()
            thread = None
        if thread is None:
            self._drop_reason = "discarded"
            self._drain_pending_items()
            return self._report(processed_before, dropped_before, timed_out=False)

        effective_timeout = timeout if timeout is not None else self.stop_timeout
        start = time.monotonic()
        deadline = start + effective_timeout if effective_timeout is not None else None

        def remaining_time() -> float | None:
            if deadline is None:
                return None
            return max(0.0, deadline - time.monotonic())

        drop_pending = not drain
        self._drop_reason = "discarded"
        self._drop_pending = drop_pending
        self._stop_event.set()
        self._enqueue_stop_signal(deadline)

        drain_completed = True
        if drain:
            if effective_timeout is None:
                self._queue.join()
            else:
                remaining = remaining_time()
                drained = False
                if remaining is None or remaining > 0:
                    drained = self._drain_event.wait(remaining)
                if not drained:
                    drain_completed = False

        if not drain or not drain_completed:
            drop_pending = True
            self._drop_reason = "discarded" if not drain else "shutdown_timeout"
            self._drop_pending = True
            self._drain_pending_items()

        join_timeout = remaining_time()
        if effective_timeout is None:
            thread.join()
        else:
            thread.join(0 if join_timeout is None else join_timeout)

        still_running = thread.is_alive()
        if still_running:
            self._thread = thread
            drop_pending = True
        else:
            self._thread = None
            self._stop_event.clear()
            if not self._queue.empty():
                # producers that raced past the closed check before the sentinel
                self._drop_reason = "discarded"
                self._drain_pending_items()

        self._drop_pending = drop_pending
        if drop_pending:
            self._drain_event.set()

        timed_out = still_running or (drain and not drain_completed)
        report = self._report(processed_before, dropped_before, timed_out=timed_out)
        if timed_out:
            LOGGER.warning(
                "Drain worker did not finish within %s seconds; %d record(s) dropped",
                effective_timeout,
                report.dropped,
            )
            self._emit_diagnostic(
                "queue_shutdown_timeout",
                {
                    "timeout": effective_timeout,
                    "drain_completed": drain_completed,
                    "dropped": report.dropped,
                },
            )
        return report

    def put(self, item: QueueItem) -> bool:
        """Enqueue ``item`` for asynchronous processing.

        Returns ``True`` when the record was accepted, ``False`` when it was
        rejected (buffer full or adapter stopping)."""
        if self._closed:
            self._handle_drop(item, "closed")
            return False

        with self._config_lock:
            policy = self._drop_policy

        if policy == "drop":
            try:
                self._queue.put(item, block=False)
            except queue.Full:
                self._handle_drop(item, "queue_full")
                return False
            self._drain_event.clear()
            return True

        if self._timeout is not None:
            try:
                self._queue.put(item, timeout=self._timeout)
            except queue.Full:
                self._handle_drop(item, "queue_full")
                return False
            self._drain_event.clear()
            return True

        self._queue.put(item)
        self._drain_event.clear()
        return True

    def set_worker(self, worker: Callable[[Any], None]) -> None:
        """Swap the worker callable used to process records."""
        self._worker = worker

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until all buffered records are processed or ``timeout`` elapses."""

        if self._queue.unfinished_tasks == 0:
            return True
        return self._drain_event.wait(timeout)

    def qsize(self) -> int:
        """Return the approximate number of buffered records."""
        return self._queue.qsize()

    def _run(self) -> None:
        """Internal worker loop draining the queue until stopped."""
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    if self._stop_event.is_set():
                        break
                    continue
                if self._drop_pending:
                    self._handle_drop(item, self._drop_reason)
                    continue
                if self._worker is not None:
                    try:
                        self._worker(item)
                    except Exception as exc:  # noqa: BLE001
                        self._report_worker_exception(record_of(item), exc)
                self._processed += 1
            finally:
                self._queue.task_done()
                if self._queue.unfinished_tasks == 0:
                    self._drain_event.set()

            if self._stop_event.is_set() and self._queue.empty():
                break

    def _handle_drop(self, item: QueueItem, reason: str) -> None:
        """Count the drop and invoke the drop callback."""
        record = record_of(item)
        if reason in _SHUTDOWN_REASONS:
            with self._count_lock:
                self._shutdown_dropped += 1
        if reason == "queue_full":
            self._emit_diagnostic("queue_full", {"record_id": record.record_id, "logger": record.logger_name})
        if self._on_drop is None:
            return
        try:
            self._on_drop(record, reason)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Queue drop handler raised an exception; continuing", exc_info=exc)
            self._emit_diagnostic(
                "queue_drop_callback_error",
                {
                    "record_id": record.record_id,
                    "logger": record.logger_name,
                    "exception": repr(exc),
                },
            )

    def _report(self, processed_before: int, dropped_before: int, *, timed_out: bool) -> ShutdownReport:
        with self._count_lock:
            dropped = self._shutdown_dropped - dropped_before
        return ShutdownReport(drained=self._processed - processed_before, dropped=dropped, timed_out=timed_out)

    def _report_worker_exception(self, record: LogRecord, exc: Exception) -> None:
        """Log and surface worker failures without tearing down the thread."""

        LOGGER.error("Queue worker raised an exception; continuing", exc_info=exc)
        self._emit_diagnostic(
            "queue_worker_error",
            {"record_id": record.record_id, "logger": record.logger_name, "exception": repr(exc)},
        )

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        """Invoke the diagnostic hook while guarding against callback failures."""

        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Queue diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)

    def _drain_pending_items(self) -> None:
        """Remove any buffered records left after a non-draining stop."""

        while True:
            try:
                dropped = self._queue.get_nowait()
            except queue.Empty:
                break
            else:
                if dropped is not None:
                    self._handle_drop(dropped, self._drop_reason)
                self._queue.task_done()
        self._drain_event.set()

    def _enqueue_stop_signal(self, deadline: float | None) -> None:
        """Ensure the worker thread wakes up to observe the stop event."""

        while True:
            try:
                if deadline is None:
                    self._queue.put(None)
                else:
                    self._queue.put(None, timeout=max(0.0, deadline - time.monotonic()))
                self._drain_event.clear()
                break
            except queue.Full:
                try:
                    dropped = self._queue.get_nowait()
                except queue.Empty:
                    continue
                else:
                    if dropped is not None:
                        self._handle_drop(dropped, "shutdown_timeout")
                    self._queue.task_done()


__all__ = ["QueueAdapter"]
