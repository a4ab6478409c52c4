"""Adapters implementing the application-layer ports.

Purpose
-------
Collect the concrete encoders, queue, scrubber, and sinks the runtime wires
together.
"""

from __future__ import annotations

from .encoding import JsonEncoder, TextEncoder, create_encoder, create_encoders
from .queue import QueueAdapter
from .scrubber import DEFAULT_SCRUB_PATTERNS, RegexScrubber
from .sinks import FileSink, MemorySink, RichConsoleSink, SocketSink, StreamSink

__all__ = [
    "DEFAULT_SCRUB_PATTERNS",
    "FileSink",
    "JsonEncoder",
    "MemorySink",
    "QueueAdapter",
    "RegexScrubber",
    "RichConsoleSink",
    "SocketSink",
    "StreamSink",
    "TextEncoder",
    "create_encoder",
    "create_encoders",
]
