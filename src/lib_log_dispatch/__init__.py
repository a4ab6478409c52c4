"""Structured log ingestion with severity filtering, bounded buffering, and isolated sink dispatch.

Build a runtime, hand its logger handles to the code that logs, and shut it
down when the process ends::

    from lib_log_dispatch import create_runtime
    from lib_log_dispatch.adapters.sinks import FileSink

    with create_runtime(min_level="warn", sinks=[("file", FileSink("app.log"), "json")]) as runtime:
        runtime.get("app").warning("User input: {}", user_value)

Messages are ``{}`` templates; argument values are substituted once as plain
text and never interpreted.
"""

from __future__ import annotations

from .application.ports import ShutdownReport, SinkPort, SinkTarget
from .domain import (
    DeliverySnapshot,
    EncodingError,
    EncodingFormat,
    LogDispatchError,
    LogLevel,
    LogRecord,
    SinkWriteError,
)
from .runtime import LoggerHandle, LoggingRuntime, RuntimeSettings, build_runtime, build_runtime_settings, create_runtime

__all__ = [
    "DeliverySnapshot",
    "EncodingError",
    "EncodingFormat",
    "LogDispatchError",
    "LogLevel",
    "LogRecord",
    "LoggerHandle",
    "LoggingRuntime",
    "RuntimeSettings",
    "ShutdownReport",
    "SinkPort",
    "SinkTarget",
    "SinkWriteError",
    "build_runtime",
    "build_runtime_settings",
    "create_runtime",
]
