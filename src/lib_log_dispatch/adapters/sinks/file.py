"""Append-only file sink."""

from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import BinaryIO

from lib_log_dispatch.application.ports.sink import SinkPort


class FileSink(SinkPort):
    """Append payloads to ``path``, opening the file on first write.

    Parent directories are created when missing. ``close()`` releases the
    handle; a later write reopens the file in append mode.
    """

    def __init__(self, path: str | os.PathLike[str], *, fsync: bool = False) -> None:
        self._path = Path(path)
        self._fsync = fsync
        self._handle: BinaryIO | None = None
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, payload: bytes) -> bool:
        with self._lock:
            handle = self._ensure_open()
            handle.write(payload)
        return True

    def flush(self) -> bool:
        with self._lock:
            if self._handle is None:
                return True
            self._handle.flush()
            if self._fsync:
                os.fsync(self._handle.fileno())
        return True

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def _ensure_open(self) -> BinaryIO:
        if self._handle is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self._path.open("ab")
        return self._handle


__all__ = ["FileSink"]
