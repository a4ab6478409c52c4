"""Regex-based field scrubber.

Purpose
-------
Apply configurable regular expressions to the structured ``fields`` of
:class:`LogRecord` objects so secrets are masked before the record is
buffered or written anywhere.

Contents
--------
* :class:`RegexScrubber` - concrete :class:`ScrubberPort` implementation.
* :data:`DEFAULT_SCRUB_PATTERNS` - patterns applied unless overridden.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Set as AbstractSet
from typing import Any, Dict, Pattern

from lib_log_dispatch.application.ports.scrubber import ScrubberPort
from lib_log_dispatch.domain.records import LogRecord

DEFAULT_SCRUB_PATTERNS: dict[str, str] = {"password": r".+", "secret": r".+", "token": r".+"}


class RegexScrubber(ScrubberPort):
    """Redact sensitive fields using regular expressions.

    Parameters
    ----------
    patterns:
        Mapping of field name to regex string; matching values are redacted.
        Field names are compared case-insensitively.
    replacement:
        Token replacing matched values (defaults to ``"***"``).

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_dispatch.domain.levels import LogLevel
    >>> record = LogRecord('id', datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), 'svc', LogLevel.INFO, 'msg', fields={'Token': 'secret123'})
    >>> scrubber = RegexScrubber(patterns={'token': 'secret'})
    >>> scrubber.scrub(record).fields['Token']
    '***'
    """

    def __init__(self, *, patterns: Mapping[str, str], replacement: str = "***") -> None:
        """Compile the provided ``patterns`` and store the replacement token."""
        self._patterns: Dict[str, Pattern[str]] = {key.lower(): re.compile(pattern) for key, pattern in patterns.items()}
        self._replacement = replacement

    def scrub(self, record: LogRecord) -> LogRecord:
        """Return ``record`` with matching fields redacted (unchanged when none match)."""
        if not self._patterns or not record.fields:
            return record
        changed = False
        fields = dict(record.fields)
        for key, value in record.fields.items():
            regex = self._patterns.get(str(key).lower())
            if regex is None:
                continue
            scrubbed = self._scrub_value(value, regex)
            if scrubbed is not value:
                fields[key] = scrubbed
                changed = True
        return record.replace(fields=fields) if changed else record

    def _scrub_value(self, value: Any, pattern: Pattern[str]) -> Any:
        """Recursively scrub ``value`` using ``pattern``.

        Nested mappings, sequences, sets, and raw bytes are walked so a
        secret cannot hide one level down.
        """

        if isinstance(value, str):
            return self._replacement if pattern.search(value) else value
        if isinstance(value, bytes):
            text = value.decode("utf-8", errors="ignore")
            return self._replacement if pattern.search(text) else value
        if isinstance(value, Mapping):
            return {k: self._scrub_value(v, pattern) for k, v in value.items()}
        if isinstance(value, AbstractSet):
            return type(value)(self._scrub_value(item, pattern) for item in value)
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            converted = [self._scrub_value(item, pattern) for item in value]
            if isinstance(value, tuple):
                return tuple(converted)
            return type(value)(converted)
        return value


__all__ = ["DEFAULT_SCRUB_PATTERNS", "RegexScrubber"]
