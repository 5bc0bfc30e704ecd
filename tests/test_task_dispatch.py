"""
Task dispatcher tests using pytest.
"""

import threading

from jtx import task_dispatch
from jtx.task_dispatch import (
    cancel_task, count_pending_tasks, dispatch_task, is_pending, submit_task, wait_for_tasks
)


def test_submit_returns_future_with_result() -> None:
    future = submit_task(lambda a, b=0: a + b, 2, b=3)
    assert future.result(timeout=5) == 5


def test_ticket_is_released_after_completion() -> None:
    release = threading.Event()
    done = threading.Event()

    ticket = dispatch_task(lambda _: done.set(), release.wait, 5)
    assert is_pending(ticket)
    assert count_pending_tasks() >= 1

    release.set()
    assert done.wait(timeout=5)
    assert wait_for_tasks(timeout=5)
    assert not is_pending(ticket)


def test_failed_task_does_not_notify() -> None:
    received = []

    def fail():
        raise RuntimeError("boom")

    future = submit_task(fail, notify=received.append)

    assert isinstance(future.exception(timeout=5), RuntimeError)
    assert wait_for_tasks(timeout=5)
    assert received == []


def test_cancel_unknown_ticket() -> None:
    assert cancel_task("no-such-ticket") is False
    assert not is_pending("no-such-ticket")


def test_is_pending_waits_for_engine_lock() -> None:
    engine = task_dispatch._get_engine()
    answers = []
    reader = threading.Thread(target=lambda: answers.append(is_pending("locked-ticket")))

    with engine._lock:
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        assert answers == []

    reader.join(timeout=5)
    assert answers == [False]
