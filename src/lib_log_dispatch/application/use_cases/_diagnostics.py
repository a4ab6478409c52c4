"""Diagnostic hook wrapper shared by the use cases."""

from __future__ import annotations

import logging
from typing import Any

from ._types import DiagnosticHook, Emitter

LOGGER = logging.getLogger(__name__)


def build_diagnostic_emitter(diagnostic: DiagnosticHook) -> Emitter:
    """Return an emitter that forwards to ``diagnostic`` and never raises.

    Examples
    --------
    >>> seen = []
    >>> emit = build_diagnostic_emitter(lambda name, payload: seen.append(name))
    >>> emit("queued", {})
    >>> seen
    ['queued']
    >>> build_diagnostic_emitter(None)("ignored", {})
    """

    if diagnostic is None:

        def _noop(name: str, payload: dict[str, Any]) -> None:
            return None

        return _noop

    def _emit(name: str, payload: dict[str, Any]) -> None:
        try:
            diagnostic(name, payload)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Diagnostic hook raised while reporting %s", name, exc_info=exc)

    return _emit


__all__ = ["build_diagnostic_emitter"]
