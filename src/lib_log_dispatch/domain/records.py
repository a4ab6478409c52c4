"""Domain record describing a structured log call.

Purpose
-------
Provide an immutable representation of a log call that keeps the message
template and its argument values apart until rendering.

Contents
--------
* :class:`LogRecord` dataclass with rendering and serialisation helpers.
* Utility function ``_ensure_aware`` for timestamp validation.

System Role
-----------
Sits in the domain layer; producers create one record per call, the drain
worker consumes it exactly once.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from .levels import LogLevel
from .template import render_template


def _ensure_aware(ts: datetime) -> datetime:
    """Validate that ``ts`` is timezone-aware and normalise to UTC."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        raise ValueError("timestamp must be timezone-aware")
    return ts.astimezone(timezone.utc)


@dataclass(slots=True, frozen=True)
class LogRecord:
    """Immutable log record transported through the dispatch pipeline.

    Attributes
    ----------
    record_id:
        Identifier used for diagnostics and drop reports.
    timestamp:
        Time of the call in timezone-aware UTC.
    logger_name:
        Logical logger emitting the record.
    level:
        :class:`LogLevel` severity associated with the record.
    template:
        Message template supplied by the caller; ``{}`` marks positional slots.
    args:
        Argument values bound to the template. Always treated as opaque data.
    fields:
        Read-only copy of caller-supplied structured key/value pairs.
    """

    record_id: str
    timestamp: datetime
    logger_name: str
    level: LogLevel
    template: str
    args: tuple[Any, ...] = ()
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _ensure_aware(self.timestamp))
        if not self.record_id:
            raise ValueError("record_id must not be empty")
        if not isinstance(self.template, str):
            raise TypeError("template must be a string")
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def render(self) -> str:
        """Return the message with arguments substituted literally."""

        return render_template(self.template, self.args)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the record to a dictionary with an ISO8601 timestamp."""

        return {
            "record_id": self.record_id,
            "timestamp": self.timestamp.isoformat(),
            "logger_name": self.logger_name,
            "level": self.level.severity,
            "message": self.render(),
            "template": self.template,
            "args": [_plain(value) for value in self.args],
            "fields": {key: _plain(value) for key, value in self.fields.items()},
        }

    def replace(self, **changes: Any) -> "LogRecord":
        """Return a copied record with ``changes`` applied."""

        return replace(self, **changes)


def _plain(value: Any) -> Any:
    """Return ``value`` when it is JSON-native, otherwise its ``str`` form."""

    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)


__all__ = ["LogRecord"]
