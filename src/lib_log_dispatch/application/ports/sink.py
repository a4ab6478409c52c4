"""Sink port and the registration record the dispatcher owns.

Purpose
-------
Define the narrow write contract every destination must honour and the
:class:`SinkTarget` binding a sink to a name and an output format.

Contents
--------
* :class:`SinkPort` - runtime-checkable ``write``/``flush`` protocol.
* :class:`SinkTarget` - immutable ``(name, sink, encoding)`` registration.

System Role
-----------
The only boundary between the dispatcher and concrete destinations (console,
file, socket, memory). Adapters plug in without the application layer knowing
how bytes leave the process.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing import Protocol, runtime_checkable

from lib_log_dispatch.domain.formats import EncodingFormat


@runtime_checkable
class SinkPort(Protocol):
    """Persist or display encoded log output.

    Both methods return ``True`` on success and ``False`` on failure. Raising
    is tolerated and treated as a failure by the dispatcher.

    Examples
    --------
    >>> class Recorder:
    ...     def __init__(self):
    ...         self.payloads = []
    ...     def write(self, payload: bytes) -> bool:
    ...         self.payloads.append(payload)
    ...         return True
    ...     def flush(self) -> bool:
    ...         return True
    >>> isinstance(Recorder(), SinkPort)
    True
    """

    def write(self, payload: bytes) -> bool:
        """Write one encoded record."""

    def flush(self) -> bool:
        """Push buffered output to its destination."""


@dataclass(frozen=True)
class SinkTarget:
    """Named destination registered with the dispatcher."""

    name: str
    sink: SinkPort
    encoding: EncodingFormat = EncodingFormat.TEXT

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("sink name must not be empty")
        if isinstance(self.encoding, str):
            object.__setattr__(self, "encoding", EncodingFormat.from_name(self.encoding))


__all__ = ["SinkPort", "SinkTarget"]
