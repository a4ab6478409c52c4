"""Small factories and value helpers used by the composition root."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from lib_log_dispatch.adapters.encoding import create_encoders
from lib_log_dispatch.adapters.scrubber import DEFAULT_SCRUB_PATTERNS, RegexScrubber
from lib_log_dispatch.adapters.sinks import RichConsoleSink
from lib_log_dispatch.application.ports import ClockPort, EncoderPort, IdProvider, SinkTarget
from lib_log_dispatch.application.use_cases._types import ProcessCallable, ProcessResult
from lib_log_dispatch.domain import EncodingFormat, LogLevel, coerce_level

from ._settings import RuntimeSettings


class SystemClock(ClockPort):
    """Concrete clock port returning timezone-aware UTC timestamps."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class UuidProvider(IdProvider):
    """Generate random hexadecimal identifiers for log records."""

    def __call__(self) -> str:
        return uuid4().hex


class LoggerHandle:
    """Named entry point handed to application code.

    The handle keeps host code decoupled from the ingestion use case while
    providing level-specific helpers. Every call returns the diagnostic
    dictionary produced by the pipeline (``ok``, ``record_id``, ``queued`` and,
    on rejection, ``reason``). Argument values are bound to ``{}`` placeholders
    in ``template`` and are never interpreted.
    """

    def __init__(self, name: str, process: ProcessCallable) -> None:
        if not name:
            raise ValueError("logger name must not be empty")
        self._name = name
        self._process = process

    @property
    def name(self) -> str:
        return self._name

    def log(
        self,
        level: str | int | LogLevel,
        template: str,
        *args: Any,
        fields: Mapping[str, Any] | None = None,
    ) -> ProcessResult:
        """Submit a record at ``level``."""
        return self._process(
            logger_name=self._name,
            level=coerce_level(level),
            template=template,
            args=args,
            fields=fields,
        )

    def debug(self, template: str, *args: Any, fields: Mapping[str, Any] | None = None) -> ProcessResult:
        return self.log(LogLevel.DEBUG, template, *args, fields=fields)

    def info(self, template: str, *args: Any, fields: Mapping[str, Any] | None = None) -> ProcessResult:
        return self.log(LogLevel.INFO, template, *args, fields=fields)

    def warning(self, template: str, *args: Any, fields: Mapping[str, Any] | None = None) -> ProcessResult:
        return self.log(LogLevel.WARNING, template, *args, fields=fields)

    warn = warning

    def error(self, template: str, *args: Any, fields: Mapping[str, Any] | None = None) -> ProcessResult:
        return self.log(LogLevel.ERROR, template, *args, fields=fields)

    def __repr__(self) -> str:
        return f"LoggerHandle({self._name!r})"


def resolve_text_format(value: str | None) -> tuple[str | None, str | None]:
    """Split a text format setting into ``(template, preset)``.

    Values containing a ``{`` are ``str.format`` templates; anything else names
    a preset.

    Examples
    --------
    >>> resolve_text_format("short")
    (None, 'short')
    >>> resolve_text_format("{LEVEL} {message}")
    ('{LEVEL} {message}', None)
    >>> resolve_text_format(None)
    (None, None)
    """

    if value is None or not value.strip():
        return None, None
    if "{" in value:
        return value, None
    return None, value


def create_encoder_table(settings: RuntimeSettings) -> Mapping[EncodingFormat, EncoderPort]:
    template, preset = resolve_text_format(settings.text_template)
    return create_encoders(template, text_preset=preset)


def create_scrubber(patterns: Mapping[str, str]) -> RegexScrubber:
    """Merge ``patterns`` over the default secret patterns."""
    merged = dict(DEFAULT_SCRUB_PATTERNS)
    merged.update(patterns)
    return RegexScrubber(patterns=merged)


def create_default_sinks(settings: RuntimeSettings) -> tuple[SinkTarget, ...]:
    """Return the configured sinks, or a single Rich console sink on stderr."""
    if settings.sinks is not None:
        return settings.sinks
    console = RichConsoleSink(force_color=settings.force_color, no_color=settings.no_color, stderr=True)
    return (SinkTarget("console", console, EncodingFormat.TEXT),)


__all__ = [
    "LoggerHandle",
    "SystemClock",
    "UuidProvider",
    "create_default_sinks",
    "create_encoder_table",
    "create_scrubber",
    "resolve_text_format",
]
