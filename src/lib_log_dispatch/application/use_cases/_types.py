"""Shared type aliases for the use-case layer."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from lib_log_dispatch.domain.levels import LogLevel
from lib_log_dispatch.domain.records import LogRecord

ProcessResult = dict[str, Any]
DiagnosticHook = Callable[[str, dict[str, Any]], None] | None
Emitter = Callable[[str, dict[str, Any]], None]
RecordWorker = Callable[[LogRecord], None]


class ProcessCallable(Protocol):
    """Ingestion callable produced by :func:`create_process_log_record`."""

    def __call__(
        self,
        *,
        logger_name: str,
        level: LogLevel,
        template: str,
        args: tuple[Any, ...] = (),
        fields: Mapping[str, Any] | None = None,
    ) -> ProcessResult: ...


__all__ = ["DiagnosticHook", "Emitter", "ProcessCallable", "ProcessResult", "RecordWorker"]
