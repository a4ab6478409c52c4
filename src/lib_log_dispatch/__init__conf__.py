"""Static package metadata surfaced by the CLI ``info`` command."""

from __future__ import annotations

from typing import Callable

name = "lib_log_dispatch"
title = "Structured log ingestion with severity filtering, bounded buffering, and isolated sink dispatch"
version = "0.1.0"
homepage = "https://github.com/bitranox/lib_log_dispatch"
author = "bitranox"
author_email = "bitranox@gmail.com"
shell_command = "lib_log_dispatch"


def print_info(writer: Callable[[str], None] = print) -> None:
    """Write the metadata banner through ``writer``, one line per call.

    Examples
    --------
    >>> lines = []
    >>> print_info(lines.append)
    >>> lines[0]
    'Info for lib_log_dispatch:\\n'
    """

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("homepage", homepage),
        ("author", author),
        ("author_email", author_email),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    writer(f"Info for {name}:\n")
    writer("\n")
    for label, value in fields:
        writer(f"    {label:<{pad}} = {value}\n")
