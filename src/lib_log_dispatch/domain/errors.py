"""Exceptions raised inside the dispatch pipeline.

None of these reach producers: the pipeline catches them at the worker
boundary, counts them, and reports them through the diagnostic channel.
"""

from __future__ import annotations


class LogDispatchError(Exception):
    """Base class for pipeline failures."""


class EncodingError(LogDispatchError):
    """A record could not be represented in the requested output format."""

    def __init__(self, record_id: str, encoding: str, reason: str) -> None:
        super().__init__(f"cannot encode record {record_id} as {encoding}: {reason}")
        self.record_id = record_id
        self.encoding = encoding
        self.reason = reason


class SinkWriteError(LogDispatchError):
    """A sink rejected a write or raised while writing."""

    def __init__(self, sink_name: str, reason: str) -> None:
        super().__init__(f"sink {sink_name!r} failed: {reason}")
        self.sink_name = sink_name
        self.reason = reason


__all__ = ["EncodingError", "LogDispatchError", "SinkWriteError"]
