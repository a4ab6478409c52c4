"""Log level abstraction providing ordering and presentation metadata.

Purpose
-------
Offer a domain-specific representation of the four supported severities with
helpers for parsing, ordering, and stdlib interop.

Contents
--------
* :class:`LogLevel` enum with conversion helpers and presentation metadata.
* ``_ICON_TABLE`` / ``_CODE_TABLE`` constants mapping levels to glyphs and
  four-letter codes.

System Role
-----------
Used by the severity filter to decide admission and by the encoders to render
level names consistently.
"""

from __future__ import annotations

import logging
from enum import Enum


class LogLevel(Enum):
    """Ordered logging levels: ``DEBUG < INFO < WARNING < ERROR``."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @property
    def severity(self) -> str:
        """Return the lowercase severity name for structured payloads."""

        return self.name.lower()

    @property
    def icon(self) -> str:
        """Return the unicode icon visualizing the level on consoles."""

        return _ICON_TABLE[self]

    @property
    def code(self) -> str:
        """Return the fixed-width four-letter code used by short text layouts."""

        return _CODE_TABLE[self]

    def at_least(self, other: "LogLevel") -> bool:
        """Return ``True`` when this level is as severe as ``other`` or more.

        Examples
        --------
        >>> LogLevel.ERROR.at_least(LogLevel.WARNING)
        True
        >>> LogLevel.DEBUG.at_least(LogLevel.INFO)
        False
        """

        return self.value >= other.value

    def to_python_level(self) -> int:
        """Return the :mod:`logging` constant matching this level."""

        return getattr(logging, self.name)

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def from_python_level(cls, level: int) -> "LogLevel":
        """Translate a stdlib logging level integer into :class:`LogLevel`."""
        return cls.from_numeric(level)

    @classmethod
    def from_numeric(cls, level: int) -> "LogLevel":
        """Return the :class:`LogLevel` corresponding to ``level``."""
        try:
            return cls(level)
        except ValueError as exc:
            raise ValueError(f"Unsupported log level numeric: {level}") from exc


_ALIASES = {"WARN": "WARNING"}

_ICON_TABLE = {
    LogLevel.DEBUG: "🐞",
    LogLevel.INFO: "ℹ",
    LogLevel.WARNING: "⚠",
    LogLevel.ERROR: "✖",
}
# Console glyphs per log level.

_CODE_TABLE = {
    LogLevel.DEBUG: "DEBG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARN",
    LogLevel.ERROR: "ERRO",
}


def coerce_level(level: str | int | LogLevel) -> LogLevel:
    """Normalise level inputs (name, number, or enum) into :class:`LogLevel`.

    Examples
    --------
    >>> coerce_level("warn") is LogLevel.WARNING
    True
    >>> coerce_level(40) is LogLevel.ERROR
    True
    """
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, int):
        return LogLevel.from_numeric(level)
    return LogLevel.from_name(level)


__all__ = ["LogLevel", "coerce_level"]
