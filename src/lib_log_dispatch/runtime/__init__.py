"""Runtime façade: build an explicit, injectable logging runtime.

Purpose
-------
Expose the entry points host applications use instead of importing the inner
layers directly. There is no process-wide logger: callers build a
:class:`LoggingRuntime`, obtain :class:`LoggerHandle` objects from it, and pass
those down to the code that logs.

Contents
--------
* :func:`create_runtime` - keyword arguments (plus ``LOG_*`` overrides) to runtime.
* :func:`build_runtime` - composition root for already-resolved settings.
* :class:`LoggingRuntime`, :class:`LoggerHandle`, :class:`RuntimeSettings`.

Examples
--------
>>> from lib_log_dispatch.adapters.sinks import MemorySink
>>> sink = MemorySink()
>>> with create_runtime(min_level="warn", sinks=[("memory", sink)], text_template="message", queue_enabled=False) as runtime:
...     log = runtime.get("demo")
...     _ = log.debug("hidden")
...     _ = log.warning("User input: {}", "${jndi:ldap://example/a}")
>>> sink.lines()
['User input: ${jndi:ldap://example/a}']
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from lib_log_dispatch.domain import LogLevel

from ._composition import build_runtime
from ._factories import LoggerHandle, SystemClock, UuidProvider
from ._settings import DiagnosticHook, RuntimeSettings, SinkErrorHandler, SinkEntry, build_runtime_settings
from ._state import LoggingRuntime


def create_runtime(
    *,
    min_level: str | int | LogLevel = LogLevel.INFO,
    sinks: Iterable[SinkEntry] | None = None,
    queue_enabled: bool = True,
    queue_maxsize: int = 2048,
    queue_full_policy: str = "block",
    queue_put_timeout: float | None = 1.0,
    queue_stop_timeout: float | None = 5.0,
    text_template: str | None = None,
    scrub_patterns: Mapping[str, str] | None = None,
    force_color: bool = False,
    no_color: bool = False,
    diagnostic_hook: DiagnosticHook = None,
    on_sink_error: SinkErrorHandler = None,
) -> LoggingRuntime:
    """Resolve settings and build a started runtime.

    Parameters
    ----------
    min_level:
        Severity threshold (name, number, or :class:`LogLevel`); ``WARN`` is
        accepted for ``WARNING``. ``LOG_MIN_LEVEL`` takes precedence.
    sinks:
        :class:`SinkTarget` objects or ``(name, sink[, encoding])`` tuples.
        ``None`` installs a Rich console sink writing to stderr.
    queue_enabled:
        When ``True`` (default) records are buffered and written by a single
        background worker; ``False`` dispatches inline on the caller's thread.
    queue_maxsize, queue_full_policy, queue_put_timeout:
        Buffer capacity and overflow behaviour (``block`` waits up to the put
        timeout, ``drop`` rejects immediately).
    queue_stop_timeout:
        Default shutdown deadline in seconds.
    text_template:
        Preset name (``full``, ``short``, ``message``) or ``str.format``
        template for text sinks.
    scrub_patterns:
        ``field -> regex`` redaction rules merged over the defaults.
    force_color, no_color:
        Colour overrides for the default console sink.
    diagnostic_hook:
        ``(name, payload)`` callback receiving internal milestones.
    on_sink_error:
        ``(error, record)`` callback invoked whenever a sink fails a write.

    Raises
    ------
    ValueError
        When a level, policy, preset, or capacity is invalid.
    """

    settings = build_runtime_settings(
        min_level=min_level,
        sinks=sinks,
        queue_enabled=queue_enabled,
        queue_maxsize=queue_maxsize,
        queue_full_policy=queue_full_policy,
        queue_put_timeout=queue_put_timeout,
        queue_stop_timeout=queue_stop_timeout,
        text_template=text_template,
        scrub_patterns=scrub_patterns,
        force_color=force_color,
        no_color=no_color,
        diagnostic_hook=diagnostic_hook,
        on_sink_error=on_sink_error,
    )
    return build_runtime(settings)


__all__ = [
    "LoggerHandle",
    "LoggingRuntime",
    "RuntimeSettings",
    "SystemClock",
    "UuidProvider",
    "build_runtime",
    "build_runtime_settings",
    "create_runtime",
]
