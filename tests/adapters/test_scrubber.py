from __future__ import annotations

from lib_log_dispatch.adapters.scrubber import DEFAULT_SCRUB_PATTERNS, RegexScrubber
from tests.factories import make_record
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]


def test_scrubber_masks_matching_fields_case_insensitively() -> None:
    scrubber = RegexScrubber(patterns=DEFAULT_SCRUB_PATTERNS)
    record = make_record(fields={"Password": "hunter2", "user": "alice"})

    scrubbed = scrubber.scrub(record)

    assert scrubbed.fields == {"Password": "***", "user": "alice"}
    assert record.fields["Password"] == "hunter2"


def test_scrubber_walks_nested_values() -> None:
    scrubber = RegexScrubber(patterns={"token": r"^tok-"}, replacement="<redacted>")
    record = make_record(fields={"token": {"primary": "tok-1", "count": 2, "history": ["tok-0", "plain"]}})

    scrubbed = scrubber.scrub(record)

    assert scrubbed.fields["token"] == {"primary": "<redacted>", "count": 2, "history": ["<redacted>", "plain"]}


def test_scrubber_returns_same_record_when_nothing_matches() -> None:
    scrubber = RegexScrubber(patterns={"secret": r".+"})
    record = make_record(fields={"user": "alice"})

    assert scrubber.scrub(record) is record


def test_scrubber_never_touches_message_arguments() -> None:
    scrubber = RegexScrubber(patterns={"password": r".+"})
    record = make_record(template="password is {}", args=("hunter2",), fields={"password": "x"})

    scrubbed = scrubber.scrub(record)

    assert scrubbed.args == ("hunter2",)
    assert scrubbed.fields["password"] == "***"
