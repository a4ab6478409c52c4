"""Ports (protocols) the application layer depends on."""

from __future__ import annotations

from .encoder import EncoderPort
from .queue import QueueItem, QueuePort, QueuedRecord, ShutdownReport, record_of
from .scrubber import ScrubberPort
from .sink import SinkPort, SinkTarget
from .time import ClockPort, IdProvider

__all__ = [
    "ClockPort",
    "EncoderPort",
    "IdProvider",
    "QueueItem",
    "QueuePort",
    "QueuedRecord",
    "ScrubberPort",
    "SinkPort",
    "ShutdownReport",
    "SinkTarget",
    "record_of",
]
