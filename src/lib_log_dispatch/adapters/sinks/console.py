"""Rich-powered console sink.

Purpose
-------
Display encoded records on a terminal through :class:`rich.console.Console`.

Contents
--------
* :data:`_STYLE_MAP` - default level-to-style mapping.
* :class:`RichConsoleSink` - :class:`SinkPort` adapter.

System Role
-----------
Primary human-facing sink. Markup, emoji codes and highlighting are disabled so
text carried in user data (``[bold]``, ``:smile:``) is printed literally.
"""

from __future__ import annotations

import re
from typing import Mapping

from rich.console import Console

from lib_log_dispatch.application.ports.sink import SinkPort
from lib_log_dispatch.domain.levels import LogLevel


_STYLE_MAP: Mapping[LogLevel, str] = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "cyan",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}

_TOKEN_LEVELS: Mapping[str, LogLevel] = {
    **{level.code: level for level in LogLevel},
    **{level.name: level for level in LogLevel},
}
_LEVEL_TOKEN = re.compile(r"\b(" + "|".join(sorted(_TOKEN_LEVELS, key=len, reverse=True)) + r")\b")


class RichConsoleSink(SinkPort):
    """Print payloads using Rich with optional per-level colour.

    The payload is already encoded, so the level is only known when the line
    carries a level code or name; the first such token decides the style,
    otherwise the line is printed unstyled.

    Examples
    --------
    >>> from io import StringIO
    >>> console = Console(file=StringIO(), record=True, width=120)
    >>> sink = RichConsoleSink(console=console)
    >>> sink.write(b"[red]not markup[/red] :smile:\\n")
    True
    >>> console.export_text()
    '[red]not markup[/red] :smile:\\n'
    """

    def __init__(
        self,
        *,
        console: Console | None = None,
        force_color: bool = False,
        no_color: bool = False,
        styles: Mapping[LogLevel | str, str] | None = None,
        stderr: bool = False,
    ) -> None:
        if console is not None:
            self._console = console
        else:
            self._console = Console(force_terminal=True if force_color else None, no_color=no_color, stderr=stderr)
        self._no_color = no_color
        merged = dict(_STYLE_MAP)
        for key, value in (styles or {}).items():
            level = LogLevel.from_name(key) if isinstance(key, str) else key
            merged[level] = value
        self._style_map = merged

    @property
    def console(self) -> Console:
        return self._console

    def write(self, payload: bytes) -> bool:
        text = payload.decode("utf-8").rstrip("\n")
        self._console.print(
            text,
            style=self._style_for(text),
            markup=False,
            emoji=False,
            highlight=False,
            soft_wrap=True,
        )
        return True

    def flush(self) -> bool:
        self._console.file.flush()
        return True

    def _style_for(self, line: str) -> str | None:
        if self._no_color:
            return None
        match = _LEVEL_TOKEN.search(line)
        if match is None:
            return None
        return self._style_map.get(_TOKEN_LEVELS[match.group(1)])


__all__ = ["RichConsoleSink"]
