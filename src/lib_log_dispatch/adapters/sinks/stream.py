"""Sink writing payloads to an already-open stream (``sys.stderr`` by default)."""

from __future__ import annotations

import io
import sys
from typing import IO, Any

from lib_log_dispatch.application.ports.sink import SinkPort


class StreamSink(SinkPort):
    """Write payloads to a binary or text stream.

    Text streams receive the payload decoded as UTF-8; binary streams receive
    the bytes unchanged. The sink never closes a stream it did not open.
    """

    def __init__(self, stream: IO[Any] | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> IO[Any]:
        # Resolved per call so pytest's capsys replacement of sys.stderr is honoured.
        return self._stream if self._stream is not None else sys.stderr

    def write(self, payload: bytes) -> bool:
        stream = self.stream
        if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
            stream.write(payload)
        else:
            stream.write(payload.decode("utf-8"))
        return True

    def flush(self) -> bool:
        self.stream.flush()
        return True


__all__ = ["StreamSink"]
