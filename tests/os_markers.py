"""Shared pytest markers describing platform expectations."""

from __future__ import annotations

import sys

import pytest

OS_AGNOSTIC = pytest.mark.os_agnostic
POSIX_ONLY = [
    pytest.mark.posix_only,
    pytest.mark.skipif(sys.platform.startswith("win"), reason="requires a POSIX platform"),
]
WINDOWS_ONLY = [
    pytest.mark.windows_only,
    pytest.mark.skipif(not sys.platform.startswith("win"), reason="requires Windows"),
]

__all__ = ["OS_AGNOSTIC", "POSIX_ONLY", "WINDOWS_ONLY"]
