"""Concrete sink adapters implementing :class:`SinkPort`."""

from __future__ import annotations

from .console import RichConsoleSink
from .file import FileSink
from .memory import MemorySink
from .network import SocketSink
from .stream import StreamSink

__all__ = ["FileSink", "MemorySink", "RichConsoleSink", "SocketSink", "StreamSink"]
