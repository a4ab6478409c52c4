"""Scoped structured fields built atop :mod:`contextvars`.

Purpose
-------
Let callers attach fields (request ids, job ids) to every record emitted
inside a ``with`` block without threading them through each call. Frames are
stored per execution context, so threads and asyncio tasks see their own
stacks.

Contents
--------
* :class:`ContextBinder` - stack manager with ``bind``/``current``/``clear``.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class ContextBinder:
    """Manage field frames bound to the current execution flow."""

    _stack_var: contextvars.ContextVar[tuple[Mapping[str, Any], ...]]

    def __init__(self) -> None:
        self._stack_var = contextvars.ContextVar("lib_log_dispatch_context_stack", default=())

    @contextmanager
    def bind(self, **fields: Any) -> Iterator[Mapping[str, Any]]:
        """Bind ``fields`` on top of the current frame for the ``with`` block.

        Examples
        --------
        >>> binder = ContextBinder()
        >>> with binder.bind(request_id="r-1"):
        ...     with binder.bind(user="alice"):
        ...         sorted(binder.current().items())
        [('request_id', 'r-1'), ('user', 'alice')]
        >>> dict(binder.current())
        {}
        """

        stack = self._stack_var.get()
        merged = dict(stack[-1]) if stack else {}
        merged.update(fields)
        frame = MappingProxyType(merged)
        token = self._stack_var.set(stack + (frame,))
        try:
            yield frame
        finally:
            self._stack_var.reset(token)

    def current(self) -> Mapping[str, Any]:
        """Return the merged fields bound to the current scope."""

        stack = self._stack_var.get()
        return stack[-1] if stack else MappingProxyType({})

    def clear(self) -> None:
        """Remove all bound frames for the current context."""

        self._stack_var.set(())


__all__ = ["ContextBinder"]
