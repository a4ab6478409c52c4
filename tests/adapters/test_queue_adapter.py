from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

import pytest

from lib_log_dispatch.adapters.queue import QueueAdapter
from lib_log_dispatch.application.ports.queue import QueuedRecord
from lib_log_dispatch.domain.records import LogRecord
from tests.factories import make_record
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]

Worker = Callable[[LogRecord], None]


def start_queue(worker: Worker, **kwargs: object) -> QueueAdapter:
    adapter = QueueAdapter(worker=worker, **kwargs)  # type: ignore[arg-type]
    adapter.start()
    return adapter


def test_queue_processes_records_in_order() -> None:
    processed: list[str] = []

    adapter = start_queue(lambda record: processed.append(record.record_id))
    for index in range(5):
        adapter.put(make_record(index))
    report = adapter.stop()

    assert processed == [f"rec-{index}" for index in range(5)]
    assert report.drained == 5
    assert report.clean


def test_queue_delivers_every_record_once_per_producer_in_order() -> None:
    producers, per_producer = 8, 250
    processed: list[LogRecord] = []
    adapter = start_queue(processed.append, maxsize=producers * per_producer)
    barrier = threading.Barrier(producers)

    def produce(producer: int) -> None:
        barrier.wait()
        for sequence in range(per_producer):
            record = make_record(sequence, logger_name=f"producer-{producer}").replace(record_id=f"p{producer}-{sequence}")
            assert adapter.put(record)

    threads = [threading.Thread(target=produce, args=(producer,)) for producer in range(producers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    report = adapter.stop(drain=True, timeout=10.0)

    assert report.clean
    ids = [record.record_id for record in processed]
    assert len(ids) == len(set(ids)) == producers * per_producer
    for producer in range(producers):
        sequence = [record.args[0] for record in processed if record.logger_name == f"producer-{producer}"]
        assert sequence == list(range(per_producer))


def test_queue_drop_policy_invokes_callback_with_reason() -> None:
    dropped: list[tuple[str, str]] = []

    adapter = QueueAdapter(
        worker=None,
        maxsize=1,
        drop_policy="drop",
        on_drop=lambda record, reason: dropped.append((record.record_id, reason)),
    )

    assert adapter.put(make_record(0)) is True
    assert adapter.put(make_record(1)) is False
    assert dropped == [("rec-1", "queue_full")]


def test_queue_block_policy_timeout_triggers_drop() -> None:
    dropped: list[str] = []

    adapter = QueueAdapter(
        worker=None,
        maxsize=1,
        drop_policy="block",
        on_drop=lambda record, reason: dropped.append(reason),
        timeout=0.01,
    )

    assert adapter.put(make_record(0)) is True
    begin = time.perf_counter()
    assert adapter.put(make_record(1)) is False
    assert time.perf_counter() - begin < 1.0
    assert dropped == ["queue_full"]


def test_queue_block_policy_waits_for_room() -> None:
    release = threading.Event()
    processed: list[str] = []

    def worker(record: LogRecord) -> None:
        release.wait(timeout=1.0)
        processed.append(record.record_id)

    adapter = start_queue(worker, maxsize=1, drop_policy="block", timeout=2.0)
    adapter.put(make_record(0))
    adapter.put(make_record(1))
    threading.Timer(0.05, release.set).start()

    assert adapter.put(make_record(2)) is True
    adapter.stop(drain=True, timeout=2.0)
    assert processed == ["rec-0", "rec-1", "rec-2"]


def test_queue_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError, match="maxsize"):
        QueueAdapter(maxsize=0)
    with pytest.raises(ValueError, match="drop_policy"):
        QueueAdapter(drop_policy="spill")


def test_put_after_stop_is_rejected_as_closed() -> None:
    reasons: list[str] = []
    adapter = start_queue(lambda record: None, on_drop=lambda record, reason: reasons.append(reason))
    adapter.stop()

    assert adapter.closed
    assert adapter.put(make_record()) is False
    assert reasons == ["closed"]

    adapter.start()
    assert not adapter.closed
    assert adapter.put(make_record()) is True
    adapter.stop()


def test_queue_stop_without_drain_discards_pending_records() -> None:
    processed: list[str] = []
    dropped: list[tuple[str, str]] = []
    first_started = threading.Event()
    release_first = threading.Event()

    def worker(record: LogRecord) -> None:
        if record.record_id == "rec-0":
            first_started.set()
            release_first.wait(timeout=1.0)
        processed.append(record.record_id)

    adapter = start_queue(worker, on_drop=lambda record, reason: dropped.append((record.record_id, reason)))
    adapter.put(make_record(0))
    assert first_started.wait(timeout=1.0)
    adapter.put(make_record(1))
    adapter.put(make_record(2))

    threading.Timer(0.05, release_first.set).start()
    report = adapter.stop(drain=False, timeout=2.0)

    assert processed == ["rec-0"]
    assert sorted(dropped) == [("rec-1", "discarded"), ("rec-2", "discarded")]
    assert report.dropped == 2
    assert not report.timed_out

    replayed: list[str] = []
    adapter.set_worker(lambda record: replayed.append(record.record_id))
    adapter.start()
    adapter.put(make_record(9))
    adapter.stop(drain=True)
    assert replayed == ["rec-9"]


def test_queue_stop_respects_deadline_and_reports_drops() -> None:
    gate = threading.Event()
    started = threading.Event()
    diagnostics: list[tuple[str, dict[str, object]]] = []
    dropped: list[str] = []

    def worker(record: LogRecord) -> None:
        started.set()
        gate.wait(timeout=5.0)

    adapter = start_queue(
        worker,
        on_drop=lambda record, reason: dropped.append(reason),
        diagnostic=lambda name, payload: diagnostics.append((name, dict(payload))),
    )
    adapter.put(make_record(0))
    assert started.wait(timeout=1.0)
    adapter.put(make_record(1))
    adapter.put(make_record(2))

    begin = time.perf_counter()
    report = adapter.stop(drain=True, timeout=0.05)
    elapsed = time.perf_counter() - begin

    assert elapsed < 0.5
    assert report.timed_out
    assert report.dropped == 2
    assert dropped == ["shutdown_timeout", "shutdown_timeout"]
    assert any(name == "queue_shutdown_timeout" for name, _ in diagnostics)

    gate.set()
    lingering = adapter._thread  # type: ignore[attr-defined]
    if lingering is not None:
        lingering.join(timeout=1.0)
    assert adapter.stop(timeout=1.0).clean


def test_stop_without_worker_thread_discards_buffer() -> None:
    adapter = QueueAdapter(worker=None)
    adapter.put(make_record(0))
    adapter.put(make_record(1))

    report = adapter.stop()

    assert report.dropped == 2
    assert report.drained == 0
    assert adapter.qsize() == 0


def test_queue_worker_exception_reports_and_continues() -> None:
    processed: list[str] = []
    diagnostics: list[tuple[str, dict[str, object]]] = []
    failed_once = False

    def worker(record: LogRecord) -> None:
        nonlocal failed_once
        if not failed_once:
            failed_once = True
            raise RuntimeError("boom")
        processed.append(record.record_id)

    adapter = start_queue(worker, diagnostic=lambda name, payload: diagnostics.append((name, payload)))
    adapter.put(make_record(0))
    adapter.put(make_record(1))
    adapter.put(make_record(2))
    assert adapter.wait_until_idle(timeout=1.0) is True
    assert adapter.put(make_record(3)) is True

    assert adapter.stop(drain=True).clean
    assert processed == ["rec-1", "rec-2", "rec-3"]
    worker_errors = [payload for name, payload in diagnostics if name == "queue_worker_error"]
    assert worker_errors[0]["record_id"] == "rec-0"


def test_queue_drop_callback_failure_reports(caplog: pytest.LogCaptureFixture) -> None:
    diagnostics: list[tuple[str, dict[str, object]]] = []

    def broken_drop(record: LogRecord, reason: str) -> None:
        raise RuntimeError("drop failure")

    adapter = QueueAdapter(
        worker=None,
        maxsize=1,
        drop_policy="drop",
        on_drop=broken_drop,
        diagnostic=lambda name, payload: diagnostics.append((name, payload)),
    )

    assert adapter.put(make_record(0)) is True
    with caplog.at_level(logging.ERROR):
        accepted = adapter.put(make_record(1))
    assert accepted is False
    assert any(name == "queue_drop_callback_error" for name, _ in diagnostics)
    assert any("Queue drop handler raised an exception" in message for message in caplog.messages)



def test_worker_error_does_not_turn_block_policy_into_drop() -> None:
    release = threading.Event()
    failed_once = False
    processed: list[str] = []

    def worker(record: LogRecord) -> None:
        nonlocal failed_once
        if not failed_once:
            failed_once = True
            raise RuntimeError("boom")
        release.wait(timeout=1.0)
        processed.append(record.record_id)

    adapter = start_queue(worker, maxsize=1, drop_policy="block", timeout=2.0)
    adapter.put(make_record(0))
    assert adapter.wait_until_idle(timeout=1.0) is True
    adapter.put(make_record(1))
    adapter.put(make_record(2))
    threading.Timer(0.05, release.set).start()

    assert adapter.put(make_record(3)) is True
    assert adapter.stop(drain=True, timeout=2.0).clean
    assert processed == ["rec-1", "rec-2", "rec-3"]


def test_drop_policy_can_be_switched_while_running() -> None:
    reasons: list[str] = []
    adapter = QueueAdapter(worker=None, maxsize=1, drop_policy="block", timeout=5.0, on_drop=lambda _r, reason: reasons.append(reason))
    adapter.put(make_record(0))

    assert adapter.set_drop_policy("DROP") == "block"
    begin = time.perf_counter()
    accepted = adapter.put(make_record(1))

    assert accepted is False
    assert time.perf_counter() - begin < 1.0
    assert reasons == ["queue_full"]
    assert adapter.drop_policy == "drop"
    with pytest.raises(ValueError, match="drop_policy"):
        adapter.set_drop_policy("spill")
    adapter.stop()


def test_capacity_can_grow_while_records_are_buffered() -> None:
    processed: list[str] = []
    adapter = QueueAdapter(worker=lambda record: processed.append(record.record_id), maxsize=1, drop_policy="drop")
    assert adapter.put(make_record(0)) is True
    assert adapter.put(make_record(1)) is False

    assert adapter.set_capacity(3) == 1
    assert adapter.maxsize == 3
    assert adapter.put(make_record(2)) is True
    assert adapter.put(make_record(3)) is True
    assert adapter.put(make_record(4)) is False

    adapter.start()
    assert adapter.stop(drain=True, timeout=2.0).clean
    assert processed == ["rec-0", "rec-2", "rec-3"]


def test_capacity_growth_wakes_a_blocked_producer() -> None:
    adapter = QueueAdapter(worker=None, maxsize=1, drop_policy="block", timeout=5.0)
    adapter.put(make_record(0))
    outcome: list[bool] = []
    producer = threading.Thread(target=lambda: outcome.append(adapter.put(make_record(1))))
    producer.start()
    time.sleep(0.05)

    adapter.set_capacity(2)
    producer.join(timeout=1.0)

    assert outcome == [True]
    assert adapter.qsize() == 2
    adapter.stop()


def test_capacity_shrink_keeps_buffered_records() -> None:
    processed: list[str] = []
    adapter = QueueAdapter(worker=lambda record: processed.append(record.record_id), maxsize=4, drop_policy="drop")
    for index in range(3):
        adapter.put(make_record(index))

    adapter.set_capacity(1)

    assert adapter.qsize() == 3
    assert adapter.put(make_record(3)) is False
    with pytest.raises(ValueError, match="maxsize"):
        adapter.set_capacity(0)
    adapter.start()
    assert adapter.stop(drain=True, timeout=2.0).clean
    assert processed == ["rec-0", "rec-1", "rec-2"]


def test_stop_timeout_change_applies_to_next_stop() -> None:
    gate = threading.Event()
    adapter = start_queue(lambda record: gate.wait(timeout=2.0), stop_timeout=30.0)
    adapter.put(make_record(0))
    adapter.put(make_record(1))

    assert adapter.set_stop_timeout(0.1) == 30.0
    assert adapter.stop_timeout == 0.1
    begin = time.perf_counter()
    report = adapter.stop(drain=True)
    elapsed = time.perf_counter() - begin

    assert report.timed_out is True
    assert elapsed < 1.0
    with pytest.raises(ValueError, match="stop_timeout"):
        adapter.set_stop_timeout(-1.0)
    gate.set()
    lingering = adapter._thread  # type: ignore[attr-defined]
    if lingering is not None:
        lingering.join(timeout=2.0)


def test_envelope_items_reach_the_worker_and_records_reach_on_drop() -> None:
    received: list[object] = []
    dropped: list[str] = []
    adapter = QueueAdapter(
        worker=received.append,
        maxsize=1,
        drop_policy="drop",
        on_drop=lambda record, reason: dropped.append(f"{record.record_id}:{reason}"),
    )
    first = QueuedRecord(make_record(0), ())
    adapter.put(first)
    adapter.put(QueuedRecord(make_record(1), ()))

    adapter.start()
    adapter.stop(drain=True, timeout=2.0)

    assert received == [first]
    assert dropped == ["rec-1:queue_full"]
