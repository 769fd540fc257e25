from concurrent.futures import Future, wait
import functools
import threading
import time
from typing import List

import pytest

from task_runner.backends.thread_pool import ThreadScheduler
from task_runner.domain.entry import EntryStatus
from task_runner.errors import (
    CancelledError,
    ConfigurationError,
    InvalidTaskError,
    SchedulerClosedError,
    TaskError,
)

TIMEOUT = 5


def gated(gate: threading.Event, value=None):
    def task():
        assert gate.wait(TIMEOUT)
        return value
    return task


@pytest.fixture(scope="function")
def scheduler():
    scheduler = ThreadScheduler(limit=2)
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.mark.parametrize("limit", [0, -1])
def test_create_invalid_limit(limit: int) -> None:
    with pytest.raises(ConfigurationError):
        ThreadScheduler(limit=limit)


def test_initial_status(scheduler: ThreadScheduler) -> None:
    status = scheduler.status()
    assert (status.running, status.queued, status.limit) == (0, 0, 2)
    assert scheduler.is_idle()


def test_create_invalid_history_size() -> None:
    with pytest.raises(ConfigurationError):
        ThreadScheduler(history_size=-1)


def test_submit_non_callable(scheduler: ThreadScheduler) -> None:
    with pytest.raises(InvalidTaskError):
        scheduler.submit(None)


def test_submit_callable_requiring_arguments(scheduler: ThreadScheduler) -> None:
    with pytest.raises(InvalidTaskError):
        scheduler.submit(lambda x: x)
    assert scheduler.is_idle()

    assert scheduler.submit(functools.partial(pow, 2, 5)).result(TIMEOUT) == 32
    assert scheduler.submit(lambda x=3: x).result(TIMEOUT) == 3


def test_results_in_submission_order(scheduler: ThreadScheduler) -> None:
    started: List[str] = []
    lock = threading.Lock()

    def labelled(label: str, seconds: float):
        def task():
            with lock:
                started.append(label)
            time.sleep(seconds)
            return label
        return task

    handles = [
        scheduler.submit(labelled("A", 0.1)),
        scheduler.submit(labelled("B", 0.05)),
        scheduler.submit(labelled("C", 0.01)),
        scheduler.submit(labelled("D", 0.01)),
    ]
    status = scheduler.status()
    assert status.running == 2
    assert status.queued == 2

    assert [handle.result(TIMEOUT) for handle in handles] == ["A", "B", "C", "D"]
    assert set(started[:2]) == {"A", "B"}
    assert started[2:] == ["C", "D"]


def test_concurrency_never_exceeds_limit() -> None:
    scheduler = ThreadScheduler(limit=3)
    lock = threading.Lock()
    active = 0
    max_active = 0

    def make_task(i: int):
        def task():
            nonlocal active, max_active
            with lock:
                active += 1
                max_active = max(max_active, active)
            time.sleep(0.01)
            with lock:
                active -= 1
            return i
        return task

    handles = [scheduler.submit(make_task(i)) for i in range(12)]
    assert [handle.result(TIMEOUT) for handle in handles] == list(range(12))
    assert max_active <= 3
    assert scheduler.wait_for_idle(TIMEOUT)


def test_fifo_order_with_single_slot() -> None:
    scheduler = ThreadScheduler(limit=1)
    log: List[int] = []
    handles = [scheduler.submit(lambda i=i: log.append(i)) for i in range(1, 6)]
    wait(handles, timeout=TIMEOUT)
    assert log == [1, 2, 3, 4, 5]


def test_failure_does_not_affect_other_tasks() -> None:
    scheduler = ThreadScheduler(limit=1)

    def fail():
        raise ValueError("Task failed!")

    failing = scheduler.submit(fail)
    succeeding = scheduler.submit(lambda: "ok")

    with pytest.raises(TaskError) as exc_info:
        failing.result(TIMEOUT)
    assert isinstance(exc_info.value.original_error, ValueError)
    assert succeeding.result(TIMEOUT) == "ok"
    assert scheduler.wait_for_idle(TIMEOUT)
    assert scheduler.recent_entries(2)[1].status == EntryStatus.FAILED


def test_system_exit_rejects_handle() -> None:
    scheduler = ThreadScheduler(limit=1)

    def exit_worker():
        raise SystemExit(3)

    exiting = scheduler.submit(exit_worker)
    after = scheduler.submit(lambda: "after")

    with pytest.raises(TaskError) as exc_info:
        exiting.result(TIMEOUT)
    assert isinstance(exc_info.value.original_error, SystemExit)
    assert after.result(TIMEOUT) == "after"
    assert scheduler.wait_for_idle(TIMEOUT)


def test_wait_for_idle(scheduler: ThreadScheduler) -> None:
    gate = threading.Event()
    handles = [scheduler.submit(gated(gate, i)) for i in range(4)]

    assert not scheduler.is_idle()
    assert scheduler.wait_for_idle(timeout=0.05) is False

    gate.set()
    assert scheduler.wait_for_idle(timeout=TIMEOUT) is True
    assert scheduler.is_idle()
    assert [handle.result() for handle in handles] == [0, 1, 2, 3]


def test_clear_queue(scheduler: ThreadScheduler) -> None:
    gate = threading.Event()
    running = [scheduler.submit(gated(gate, "running")) for _ in range(2)]
    queued = [scheduler.submit(gated(gate, "queued")) for _ in range(3)]

    assert scheduler.clear_queue() == 3
    assert scheduler.status().running == 2
    for handle in queued:
        with pytest.raises(CancelledError):
            handle.result(TIMEOUT)

    gate.set()
    assert [handle.result(TIMEOUT) for handle in running] == ["running", "running"]


def test_set_limit_higher_admits_immediately() -> None:
    scheduler = ThreadScheduler(limit=1)
    gate = threading.Event()
    handles = [scheduler.submit(gated(gate, i)) for i in range(5)]

    scheduler.set_limit(4)
    status = scheduler.status()
    assert status.running == 4
    assert status.queued == 1

    gate.set()
    assert [handle.result(TIMEOUT) for handle in handles] == [0, 1, 2, 3, 4]


def test_set_limit_above_pending_work_admits_everything() -> None:
    scheduler = ThreadScheduler(limit=1)
    gate = threading.Event()
    handles = [scheduler.submit(gated(gate, i)) for i in range(4)]
    assert scheduler.status().queued == 3

    scheduler.set_limit(10)
    status = scheduler.status()
    assert status.running == 4
    assert status.queued == 0
    assert status.available_slots == 6

    gate.set()
    assert [handle.result(TIMEOUT) for handle in handles] == [0, 1, 2, 3]


def test_abandoned_handle_is_skipped() -> None:
    scheduler = ThreadScheduler(limit=1)
    gate = threading.Event()
    calls: List[str] = []

    first = scheduler.submit(gated(gate, "first"))
    abandoned = scheduler.submit(lambda: calls.append("ran"))
    assert abandoned.cancel()

    gate.set()
    assert first.result(TIMEOUT) == "first"
    assert scheduler.wait_for_idle(TIMEOUT)
    assert calls == []


def test_done_callback_can_submit(scheduler: ThreadScheduler) -> None:
    follow_up: List[Future] = []
    chained = threading.Event()

    def on_done(_: Future) -> None:
        follow_up.append(scheduler.submit(lambda: "follow-up"))
        chained.set()

    scheduler.submit(lambda: "first").add_done_callback(on_done)
    assert chained.wait(TIMEOUT)
    assert follow_up[0].result(TIMEOUT) == "follow-up"


def test_shutdown() -> None:
    scheduler = ThreadScheduler(limit=1)
    gate = threading.Event()
    running = scheduler.submit(gated(gate, "done"))
    queued = scheduler.submit(gated(gate, "never"))

    threading.Timer(0.05, gate.set).start()
    scheduler.shutdown()

    assert scheduler.is_closed
    assert scheduler.is_idle()
    assert running.result(0) == "done"
    with pytest.raises(CancelledError):
        queued.result(0)
    with pytest.raises(SchedulerClosedError):
        scheduler.submit(lambda: None)


def test_context_manager() -> None:
    with ThreadScheduler(limit=4) as scheduler:
        handles = [scheduler.submit(lambda i=i: i * 2) for i in range(4)]
    assert scheduler.is_closed
    assert [handle.result(0) for handle in handles] == [0, 2, 4, 6]
