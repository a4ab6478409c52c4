"""Domain entities and value objects used by the dispatch core."""

from __future__ import annotations

from .context import ContextBinder
from .errors import EncodingError, LogDispatchError, SinkWriteError
from .formats import EncodingFormat
from .levels import LogLevel, coerce_level
from .monitor import DROP_REASONS, DeliveryMonitor, DeliverySnapshot
from .records import LogRecord
from .template import render_template

__all__ = [
    "ContextBinder",
    "DROP_REASONS",
    "DeliveryMonitor",
    "DeliverySnapshot",
    "EncodingError",
    "EncodingFormat",
    "LogDispatchError",
    "LogLevel",
    "LogRecord",
    "SinkWriteError",
    "coerce_level",
    "render_template",
]
