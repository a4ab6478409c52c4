"""Port describing record-to-bytes encoders."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_dispatch.domain.formats import EncodingFormat
from lib_log_dispatch.domain.records import LogRecord


@runtime_checkable
class EncoderPort(Protocol):
    """Turn a :class:`LogRecord` into the byte payload a sink writes."""

    format: EncodingFormat

    def encode(self, record: LogRecord) -> bytes:
        """Return ``record`` encoded; raise :class:`EncodingError` if impossible."""


__all__ = ["EncoderPort"]
