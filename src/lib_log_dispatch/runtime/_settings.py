"""Runtime settings and environment overrides.

Purpose
-------
Collect every configuration input of the dispatch core in one frozen value
object and apply the ``LOG_*`` environment overrides in a single place.

Contents
--------
* :class:`RuntimeSettings` - resolved configuration consumed by
  :func:`lib_log_dispatch.runtime.build_runtime`.
* :func:`build_runtime_settings` - keyword arguments plus environment into settings.
* ``_env_*`` / ``_parse_*`` helpers shared with the CLI.

System Role
-----------
Environment variables win over keyword arguments so operators can retune a
deployed service (threshold, buffer size, overflow policy) without a code
change.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from lib_log_dispatch.application.ports.sink import SinkPort, SinkTarget
from lib_log_dispatch.domain.errors import SinkWriteError
from lib_log_dispatch.domain.formats import EncodingFormat
from lib_log_dispatch.domain.levels import LogLevel, coerce_level
from lib_log_dispatch.domain.records import LogRecord

DiagnosticHook = Optional[Callable[[str, dict[str, Any]], None]]
SinkErrorHandler = Optional[Callable[[SinkWriteError, LogRecord | None], None]]
SinkEntry = SinkTarget | tuple[str, SinkPort] | tuple[str, SinkPort, EncodingFormat | str]

_QUEUE_POLICIES = frozenset({"block", "drop"})


@dataclass(frozen=True)
class RuntimeSettings:
    """Validated configuration for one :class:`LoggingRuntime`.

    ``sinks`` of ``None`` means "use the default Rich console sink"; an empty
    tuple means "no sinks" (records are accepted and counted but go nowhere
    until a sink is added).
    """

    min_level: LogLevel = LogLevel.INFO
    sinks: tuple[SinkTarget, ...] | None = None
    queue_enabled: bool = True
    queue_maxsize: int = 2048
    queue_full_policy: str = "block"
    queue_put_timeout: float | None = 1.0
    queue_stop_timeout: float | None = 5.0
    text_template: str | None = None
    scrub_patterns: Mapping[str, str] = field(default_factory=dict)
    force_color: bool = False
    no_color: bool = False
    diagnostic_hook: DiagnosticHook = None
    on_sink_error: SinkErrorHandler = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "min_level", coerce_level(self.min_level))
        if self.queue_maxsize <= 0:
            raise ValueError("queue_maxsize must be positive")
        policy = self.queue_full_policy.strip().lower()
        if policy not in _QUEUE_POLICIES:
            raise ValueError(f"queue_full_policy must be 'block' or 'drop', got {self.queue_full_policy!r}")
        object.__setattr__(self, "queue_full_policy", policy)
        for name in ("queue_put_timeout", "queue_stop_timeout"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative or None")
        if self.sinks is not None:
            targets = tuple(coerce_sink_target(entry) for entry in self.sinks)
            names = [target.name for target in targets]
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                raise ValueError(f"Duplicate sink names: {', '.join(duplicates)}")
            object.__setattr__(self, "sinks", targets)
        object.__setattr__(self, "scrub_patterns", dict(self.scrub_patterns))


def coerce_sink_target(entry: SinkEntry) -> SinkTarget:
    """Normalise ``entry`` into a :class:`SinkTarget`.

    Examples
    --------
    >>> from lib_log_dispatch.adapters.sinks import MemorySink
    >>> coerce_sink_target(("mem", MemorySink(), "json")).encoding
    <EncodingFormat.JSON: 'json'>
    """

    if isinstance(entry, SinkTarget):
        return entry
    if isinstance(entry, tuple) and len(entry) in (2, 3):
        return SinkTarget(*entry)
    raise TypeError(f"Cannot interpret {entry!r} as a sink registration")


def build_runtime_settings(
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
) -> RuntimeSettings:
    """Resolve keyword arguments and ``LOG_*`` environment variables.

    Environment variables take precedence over the keyword arguments:
    ``LOG_MIN_LEVEL``, ``LOG_QUEUE_ENABLED``, ``LOG_QUEUE_MAXSIZE``,
    ``LOG_QUEUE_FULL_POLICY``, ``LOG_QUEUE_PUT_TIMEOUT``,
    ``LOG_QUEUE_STOP_TIMEOUT``, ``LOG_TEXT_FORMAT``, ``LOG_FORCE_COLOR`` and
    ``LOG_NO_COLOR``. ``LOG_SCRUB_PATTERNS`` is merged on top of the explicit
    patterns.
    """

    patterns = dict(scrub_patterns or {})
    patterns.update(_parse_scrub_patterns(os.getenv("LOG_SCRUB_PATTERNS")))
    return RuntimeSettings(
        min_level=coerce_level(os.getenv("LOG_MIN_LEVEL") or min_level),
        sinks=tuple(sinks) if sinks is not None else None,
        queue_enabled=_env_bool("LOG_QUEUE_ENABLED", queue_enabled),
        queue_maxsize=_env_int("LOG_QUEUE_MAXSIZE", queue_maxsize),
        queue_full_policy=os.getenv("LOG_QUEUE_FULL_POLICY") or queue_full_policy,
        queue_put_timeout=_env_timeout("LOG_QUEUE_PUT_TIMEOUT", queue_put_timeout),
        queue_stop_timeout=_env_timeout("LOG_QUEUE_STOP_TIMEOUT", queue_stop_timeout),
        text_template=os.getenv("LOG_TEXT_FORMAT") or text_template,
        scrub_patterns=patterns,
        force_color=_env_bool("LOG_FORCE_COLOR", force_color),
        no_color=_env_bool("LOG_NO_COLOR", no_color),
        diagnostic_hook=diagnostic_hook,
        on_sink_error=on_sink_error,
    )


def _env_bool(name: str, default: bool) -> bool:
    """Return the boolean value of an environment variable with fallback.

    Examples
    --------
    >>> import os
    >>> _ = os.environ.pop('LOG_EXAMPLE_BOOL', None)
    >>> _env_bool('LOG_EXAMPLE_BOOL', default=True)
    True
    >>> os.environ['LOG_EXAMPLE_BOOL'] = '0'
    >>> _env_bool('LOG_EXAMPLE_BOOL', default=True)
    False
    >>> del os.environ['LOG_EXAMPLE_BOOL']
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_timeout(name: str, default: float | None) -> float | None:
    """Parse a timeout in seconds; ``none`` (any case) disables the deadline.

    Examples
    --------
    >>> import os
    >>> os.environ['LOG_EXAMPLE_TIMEOUT'] = 'none'
    >>> _env_timeout('LOG_EXAMPLE_TIMEOUT', 1.0) is None
    True
    >>> os.environ['LOG_EXAMPLE_TIMEOUT'] = '0.25'
    >>> _env_timeout('LOG_EXAMPLE_TIMEOUT', 1.0)
    0.25
    >>> del os.environ['LOG_EXAMPLE_TIMEOUT']
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    if value.strip().lower() == "none":
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds or 'none', got {value!r}") from exc


def _parse_scrub_patterns(raw: str | None) -> dict[str, str]:
    """Parse ``field=regex`` comma-separated strings for the scrubber.

    Examples
    --------
    >>> parsed = _parse_scrub_patterns(r'token=secret, card=\\d+')
    >>> parsed['token']
    'secret'
    >>> parsed['card'] == r'\\d+'
    True
    >>> _parse_scrub_patterns('')
    {}
    """
    if not raw:
        return {}
    result: dict[str, str] = {}
    for chunk in raw.split(","):
        if "=" not in chunk:
            continue
        key, pattern = chunk.split("=", 1)
        key = key.strip()
        pattern = pattern.strip()
        if not key or not pattern:
            continue
        result[key] = pattern
    return result


__all__ = [
    "DiagnosticHook",
    "RuntimeSettings",
    "SinkErrorHandler",
    "SinkEntry",
    "build_runtime_settings",
    "coerce_sink_target",
]
