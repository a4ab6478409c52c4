"""Demonstration run of the dispatch core.

Purpose
-------
Replay a small application that logs one user-supplied value followed by one
record per severity, and show what reached the sinks. Lookup syntax such as
``${jndi:ldap://host/a}`` in the user input is delivered verbatim.

Contents
--------
* :func:`logdemo` - builds a temporary runtime, logs the sample records, shuts
  the runtime down, and returns a summary.
* :data:`DEFAULT_USER_INPUT` / :data:`USER_INPUT_ENV_VAR`.
"""

from __future__ import annotations

import os
from typing import Any, Callable

from lib_log_dispatch.adapters.sinks import MemorySink, RichConsoleSink
from lib_log_dispatch.domain import EncodingFormat, LogLevel
from lib_log_dispatch.runtime import create_runtime

DEFAULT_USER_INPUT = "Hello, world!"
USER_INPUT_ENV_VAR = "LOG_DEMO_USER_INPUT"

_SAMPLES: tuple[tuple[LogLevel, str], ...] = (
    (LogLevel.DEBUG, "Debug message"),
    (LogLevel.INFO, "Info message"),
    (LogLevel.WARNING, "Warning message"),
    (LogLevel.ERROR, "Error message"),
)


def resolve_user_input(value: str | None) -> str:
    """Return ``value``, else ``LOG_DEMO_USER_INPUT``, else the default greeting."""
    if value is not None:
        return value
    return os.getenv(USER_INPUT_ENV_VAR, DEFAULT_USER_INPUT)


def logdemo(
    *,
    user_input: str | None = None,
    min_level: str | LogLevel = LogLevel.DEBUG,
    encoding: str | EncodingFormat = EncodingFormat.TEXT,
    force_color: bool = False,
    no_color: bool = False,
    writer: Callable[[str], None] = print,
) -> dict[str, Any]:
    """Log the sample records through a temporary buffered runtime.

    Parameters
    ----------
    user_input:
        Value bound to the ``{}`` placeholder of ``"User input: {}"``. Falls
        back to :data:`USER_INPUT_ENV_VAR` and then :data:`DEFAULT_USER_INPUT`.
    min_level:
        Severity threshold of the temporary runtime.
    encoding:
        Output format of the console sink (``text`` or ``json``).
    force_color, no_color:
        Console colour overrides.
    writer:
        Receives the start and completion banners.

    Returns
    -------
    dict[str, Any]
        ``results`` (one ingestion result per call), ``delivered`` (lines
        captured by an in-memory sink), ``snapshot`` (delivery counters), and
        ``shutdown`` (the :class:`ShutdownReport`).
    """

    value = resolve_user_input(user_input)
    fmt = encoding if isinstance(encoding, EncodingFormat) else EncodingFormat.from_name(encoding)
    capture = MemorySink()
    console = RichConsoleSink(force_color=force_color, no_color=no_color)

    writer("Starting log dispatch demo...")
    runtime = create_runtime(
        min_level=min_level,
        sinks=[("console", console, fmt), ("capture", capture, fmt)],
        text_template="short",
    )
    results: list[dict[str, Any]] = []
    with runtime:
        logger = runtime.get("logdemo")
        results.append(logger.info("User input: {}", value))
        for level, message in _SAMPLES:
            results.append(logger.log(level, message))
    report = runtime.shutdown()
    writer("Demo completed.")

    return {
        "user_input": value,
        "min_level": runtime.min_level,
        "encoding": fmt,
        "results": results,
        "delivered": capture.lines(),
        "snapshot": runtime.snapshot(),
        "shutdown": report,
    }


__all__ = ["DEFAULT_USER_INPUT", "USER_INPUT_ENV_VAR", "logdemo", "resolve_user_input"]
