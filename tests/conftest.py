from __future__ import annotations

from typing import Iterator

import pytest

_LOG_ENV_VARS = (
    "LOG_MIN_LEVEL",
    "LOG_QUEUE_ENABLED",
    "LOG_QUEUE_MAXSIZE",
    "LOG_QUEUE_FULL_POLICY",
    "LOG_QUEUE_PUT_TIMEOUT",
    "LOG_QUEUE_STOP_TIMEOUT",
    "LOG_TEXT_FORMAT",
    "LOG_SCRUB_PATTERNS",
    "LOG_FORCE_COLOR",
    "LOG_NO_COLOR",
    "LOG_USE_DOTENV",
    "LOG_DEMO_USER_INPUT",
)


@pytest.fixture(autouse=True)
def _isolate_log_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ``LOG_*`` variables from the developer shell out of the tests."""

    for name in _LOG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
