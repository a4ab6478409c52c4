"""In-memory sink retaining encoded payloads.

Used by the ``logdemo`` command to show what was delivered and by tests as a
recording destination.
"""

from __future__ import annotations

from threading import Lock

from lib_log_dispatch.application.ports.sink import SinkPort


class MemorySink(SinkPort):
    """Keep every written payload in order, optionally bounded.

    Examples
    --------
    >>> sink = MemorySink()
    >>> sink.write(b"first\\n"), sink.write(b"second\\n")
    (True, True)
    >>> sink.lines()
    ['first', 'second']
    """

    def __init__(self, *, max_payloads: int | None = None) -> None:
        if max_payloads is not None and max_payloads <= 0:
            raise ValueError("max_payloads must be positive")
        self._max_payloads = max_payloads
        self._payloads: list[bytes] = []
        self._lock = Lock()
        self.flush_count = 0

    def write(self, payload: bytes) -> bool:
        with self._lock:
            self._payloads.append(bytes(payload))
            if self._max_payloads is not None and len(self._payloads) > self._max_payloads:
                del self._payloads[0]
        return True

    def flush(self) -> bool:
        with self._lock:
            self.flush_count += 1
        return True

    @property
    def payloads(self) -> list[bytes]:
        with self._lock:
            return list(self._payloads)

    def lines(self) -> list[str]:
        """Return the payloads decoded as UTF-8 without trailing newlines."""
        return [payload.decode("utf-8").rstrip("\n") for payload in self.payloads]

    def clear(self) -> None:
        with self._lock:
            self._payloads.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._payloads)


__all__ = ["MemorySink"]
