"""Encoding format enumeration for sink output.

Purpose
-------
Standardise the output representations a sink can request so configuration,
encoders, and the dispatcher share one vocabulary.
"""

from __future__ import annotations

from enum import Enum


class EncodingFormat(Enum):
    """Define the supported byte representations of a record.

    Examples
    --------
    >>> EncodingFormat.TEXT.value
    'text'
    >>> EncodingFormat.JSON.name
    'JSON'
    """

    TEXT = "text"
    JSON = "json"

    @classmethod
    def from_name(cls, name: str) -> "EncodingFormat":
        """Return the matching enum member for a case-insensitive name.

        Raises
        ------
        ValueError
            If the provided name is not recognised.

        Examples
        --------
        >>> EncodingFormat.from_name('JSON') is EncodingFormat.JSON
        True
        >>> EncodingFormat.from_name('  text  ') is EncodingFormat.TEXT
        True
        >>> EncodingFormat.from_name('yaml')
        Traceback (most recent call last):
        ...
        ValueError: Unsupported encoding format: 'yaml'
        """

        normalized = name.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported encoding format: {name!r}")


__all__ = ["EncodingFormat"]
