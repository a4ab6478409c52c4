"""Fan a record out to every registered sink with per-sink failure isolation.

Purpose
-------
Own the ordered sink set, encode each record once per required format, and
write it to every sink. A failing sink is counted and reported but never stops
delivery to the sinks registered after it.

Contents
--------
* :class:`SinkDispatcher` - the dispatcher itself.
* :class:`DispatchOutcome` / :class:`FlushReport` - per-call reports.

System Role
-----------
Invoked by the drain worker (queued mode) or directly by the ingestion
pipeline (inline mode). All sink writes and flushes pass through one lock so a
sink never observes interleaved writes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from threading import Lock
from typing import Any

from lib_log_dispatch.application.ports.encoder import EncoderPort
from lib_log_dispatch.application.ports.queue import QueuedRecord, QueueItem
from lib_log_dispatch.application.ports.sink import SinkTarget
from lib_log_dispatch.domain.errors import EncodingError, SinkWriteError
from lib_log_dispatch.domain.formats import EncodingFormat
from lib_log_dispatch.domain.monitor import DeliveryMonitor
from lib_log_dispatch.domain.records import LogRecord

from ._diagnostics import build_diagnostic_emitter
from ._types import DiagnosticHook

LOGGER = logging.getLogger(__name__)

SinkErrorHandler = Callable[[SinkWriteError, LogRecord | None], None]


@dataclass(frozen=True)
class DispatchOutcome:
    """Names of the sinks that received, rejected, or skipped one record."""

    record_id: str
    delivered: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped


@dataclass(frozen=True)
class FlushReport:
    """Per-sink result of :meth:`SinkDispatcher.flush`."""

    flushed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    timed_out: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed and not self.timed_out


class SinkDispatcher:
    """Write encoded records to an ordered, swappable set of sinks."""

    def __init__(
        self,
        targets: Iterable[SinkTarget] = (),
        *,
        encoders: Mapping[EncodingFormat, EncoderPort],
        monitor: DeliveryMonitor | None = None,
        on_sink_error: SinkErrorHandler | None = None,
        diagnostic: DiagnosticHook = None,
    ) -> None:
        self._encoders = dict(encoders)
        self._monitor = monitor if monitor is not None else DeliveryMonitor()
        self._on_sink_error = on_sink_error
        self._emit = build_diagnostic_emitter(diagnostic)
        self._config_lock = Lock()
        self._write_lock = Lock()
        self._targets: tuple[SinkTarget, ...] = ()
        self.replace(targets)

    @property
    def targets(self) -> tuple[SinkTarget, ...]:
        """Return the current sink set in registration order."""
        with self._config_lock:
            return self._targets

    @property
    def monitor(self) -> DeliveryMonitor:
        return self._monitor

    def add(self, target: SinkTarget) -> None:
        """Append ``target``; later records are delivered to it as well."""
        with self._config_lock:
            if any(existing.name == target.name for existing in self._targets):
                raise ValueError(f"sink {target.name!r} is already registered")
            self._check_encoding(target)
            self._targets = self._targets + (target,)

    def remove(self, name: str) -> SinkTarget:
        """Unregister and return the sink called ``name``."""
        with self._config_lock:
            for target in self._targets:
                if target.name == name:
                    self._targets = tuple(item for item in self._targets if item.name != name)
                    return target
        raise KeyError(f"no sink named {name!r}")

    def replace(self, targets: Iterable[SinkTarget]) -> tuple[SinkTarget, ...]:
        """Swap the whole sink set atomically and return the previous one."""
        resolved = tuple(targets)
        names = [target.name for target in resolved]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError("duplicate sink names: " + ", ".join(duplicates))
        for target in resolved:
            self._check_encoding(target)
        with self._config_lock:
            previous = self._targets
            self._targets = resolved
        return previous

    def dispatch(self, record: LogRecord, targets: Iterable[SinkTarget] | None = None) -> DispatchOutcome:
        """Encode ``record`` and write it to every sink in order.

        ``targets`` defaults to the current sink set; the drain worker passes
        the set captured when the record was accepted.
        """
        resolved = self.targets if targets is None else tuple(targets)
        payloads: dict[EncodingFormat, bytes | None] = {}
        delivered: list[str] = []
        failed: list[str] = []
        skipped: list[str] = []

        with self._write_lock:
            for target in resolved:
                if target.encoding not in payloads:
                    payloads[target.encoding] = self._encode(record, target.encoding)
                payload = payloads[target.encoding]
                if payload is None:
                    skipped.append(target.name)
                    continue
                if self._write(target, payload, record):
                    delivered.append(target.name)
                else:
                    failed.append(target.name)

        if any(payload is None for payload in payloads.values()):
            self._monitor.record_drop(record.level, "encoding_error")
        if delivered:
            self._monitor.record_delivered()
        return DispatchOutcome(
            record_id=record.record_id,
            delivered=tuple(delivered),
            failed=tuple(failed),
            skipped=tuple(skipped),
        )

    def __call__(self, item: QueueItem) -> None:
        """Worker-compatible alias for :meth:`dispatch`.

        A :class:`QueuedRecord` is delivered to the sink set it carries.
        """
        if isinstance(item, QueuedRecord):
            self.dispatch(item.record, item.targets)
        else:
            self.dispatch(item)

    def flush(self, timeout: float | None = None) -> FlushReport:
        """Flush every sink, giving up on the remaining ones past ``timeout``."""
        targets = self.targets
        deadline = time.monotonic() + timeout if timeout is not None else None
        if not self._acquire_write_lock(timeout):
            names = tuple(target.name for target in targets)
            self._emit("flush_timeout", {"sinks": list(names)})
            return FlushReport(timed_out=names)
        try:
            return self._flush_targets(targets, deadline)
        finally:
            self._write_lock.release()

    def close(self, timeout: float | None = None) -> FlushReport:
        """Flush, then close every sink exposing ``close()``.

        Sinks are only closed while holding the write lock. When an in-flight
        write keeps the lock past ``timeout`` the sinks are left open and
        reported as timed out.
        """
        targets = self.targets
        deadline = time.monotonic() + timeout if timeout is not None else None
        if not self._acquire_write_lock(timeout):
            names = tuple(target.name for target in targets)
            LOGGER.warning("Sinks left open; a write did not finish within %s seconds", timeout)
            self._emit("close_timeout", {"sinks": list(names)})
            return FlushReport(timed_out=names)
        try:
            report = self._flush_targets(targets, deadline)
            for target in targets:
                self._close_one(target)
        finally:
            self._write_lock.release()
        return report

    def _acquire_write_lock(self, timeout: float | None) -> bool:
        return self._write_lock.acquire(timeout=-1 if timeout is None else max(0.0, timeout))

    def _flush_targets(self, targets: tuple[SinkTarget, ...], deadline: float | None) -> FlushReport:
        flushed: list[str] = []
        failed: list[str] = []
        timed_out: list[str] = []
        for target in targets:
            if deadline is not None and time.monotonic() >= deadline:
                timed_out.append(target.name)
                continue
            if self._flush_one(target):
                flushed.append(target.name)
            else:
                failed.append(target.name)
        if timed_out:
            self._emit("flush_timeout", {"sinks": timed_out})
        return FlushReport(flushed=tuple(flushed), failed=tuple(failed), timed_out=tuple(timed_out))

    def _close_one(self, target: SinkTarget) -> None:
        closer = getattr(target.sink, "close", None)
        if closer is None:
            return
        try:
            closer()
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Sink %s raised while closing", target.name, exc_info=exc)
            self._emit("sink_close_failed", {"sink": target.name, "exception": repr(exc)})

    def _check_encoding(self, target: SinkTarget) -> None:
        if target.encoding not in self._encoders:
            raise ValueError(f"no encoder configured for {target.encoding.value!r} (sink {target.name!r})")

    def _encode(self, record: LogRecord, encoding: EncodingFormat) -> bytes | None:
        try:
            return self._encoders[encoding].encode(record)
        except EncodingError as exc:
            LOGGER.warning("Dropping record %s: %s", record.record_id, exc)
            self._emit(
                "encoding_failed",
                {"record_id": record.record_id, "encoding": encoding.value, "reason": exc.reason},
            )
            return None

    def _write(self, target: SinkTarget, payload: bytes, record: LogRecord) -> bool:
        try:
            result = target.sink.write(payload)
        except Exception as exc:  # noqa: BLE001
            error = SinkWriteError(target.name, repr(exc))
        else:
            if result is not False:
                return True
            error = SinkWriteError(target.name, "write reported failure")
        self._report_failure(error, record)
        return False

    def _flush_one(self, target: SinkTarget) -> bool:
        try:
            result = target.sink.flush()
        except Exception as exc:  # noqa: BLE001
            error = SinkWriteError(target.name, f"flush raised {exc!r}")
        else:
            if result is not False:
                return True
            error = SinkWriteError(target.name, "flush reported failure")
        self._report_failure(error, None)
        return False

    def _report_failure(self, error: SinkWriteError, record: LogRecord | None) -> None:
        self._monitor.record_sink_failure(error.sink_name)
        payload: dict[str, Any] = {"sink": error.sink_name, "reason": error.reason}
        if record is not None:
            payload["record_id"] = record.record_id
        LOGGER.warning("%s", error)
        self._emit("sink_write_failed", payload)
        if self._on_sink_error is None:
            return
        try:
            self._on_sink_error(error, record)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Sink error handler raised; continuing", exc_info=exc)


__all__ = ["DispatchOutcome", "FlushReport", "SinkDispatcher"]
