from __future__ import annotations

import threading

import pytest

from doc_actions.tasks import ExecutorLookup, MainThreadPoster, TaskRunner
from tests.helpers.fakes import pump, wait_until


def test_lookup_reuses_pool_per_authority() -> None:
    lookup = ExecutorLookup(max_authorities=4)
    try:
        assert lookup.lookup("a") is lookup.lookup("a")
        assert lookup.lookup("a") is not lookup.lookup("b")
    finally:
        lookup.shutdown(wait=True)


def test_lookup_evicts_least_recently_used_authority() -> None:
    lookup = ExecutorLookup(max_authorities=2)
    try:
        lookup.lookup("a")
        lookup.lookup("b")
        lookup.lookup("a")
        lookup.lookup("c")
        assert lookup.authorities() == ["a", "c"]
    finally:
        lookup.shutdown(wait=True)


def test_lookup_after_shutdown_raises() -> None:
    lookup = ExecutorLookup()
    lookup.shutdown()

    with pytest.raises(RuntimeError):
        lookup.lookup("a")


def test_pool_threads_are_named_after_authority() -> None:
    lookup = ExecutorLookup()
    try:
        name = lookup.lookup("media").submit(lambda: threading.current_thread().name).result(5)
        assert name.startswith("doc-actions-media")
    finally:
        lookup.shutdown(wait=True)


def test_result_is_delivered_on_gui_thread(runner: TaskRunner) -> None:
    seen: list = []

    runner.submit("a", lambda: 42, lambda result, error: seen.append((result, error, threading.current_thread())))

    assert wait_until(lambda: bool(seen))
    assert seen == [(42, None, threading.main_thread())]


def test_error_is_delivered_through_callback(runner: TaskRunner) -> None:
    seen: list = []

    def boom():
        raise OSError("unreachable")

    runner.submit("a", boom, lambda result, error: seen.append((result, error)))

    assert wait_until(lambda: bool(seen))
    result, error = seen[0]
    assert result is None
    assert isinstance(error, OSError)


def test_destroyed_owner_gets_no_callback(runner: TaskRunner) -> None:
    gate = threading.Event()
    destroyed = False
    seen: list = []

    def work():
        gate.wait(5)
        return "doc"

    handle = runner.submit("a", work, lambda r, e: seen.append(r), lambda: destroyed)
    destroyed = True
    gate.set()

    assert wait_until(handle.future.done)
    pump()
    assert seen == []


def test_cancelled_handle_gets_no_callback(runner: TaskRunner) -> None:
    gate = threading.Event()
    seen: list = []

    handle = runner.submit("a", lambda: gate.wait(5), lambda r, e: seen.append(r))
    handle.cancel()
    gate.set()

    assert wait_until(handle.future.done)
    pump()
    assert handle.cancelled
    assert seen == []


def test_poster_runs_posted_callables_later() -> None:
    poster = MainThreadPoster()
    seen: list = []

    poster.post(lambda: seen.append(1))
    assert seen == []

    assert wait_until(lambda: seen == [1])


def test_busy_pool_is_not_evicted_and_authority_stays_serialized() -> None:
    lookup = ExecutorLookup(max_authorities=1)
    gate = threading.Event()
    lock = threading.Lock()
    running: list[str] = []
    overlaps: list[list[str]] = []

    def task(name: str, block: bool = False):
        def work():
            with lock:
                running.append(name)
                if sum(1 for r in running if r[0] == name[0]) > 1:
                    overlaps.append(list(running))
            if block:
                gate.wait(5)
            with lock:
                running.remove(name)

        return work

    try:
        a1 = lookup.submit("a", task("a1", block=True))
        b1 = lookup.submit("b", task("b1"))
        a2 = lookup.submit("a", task("a2"))

        assert sorted(lookup.authorities()) == ["a", "b"]
        assert lookup.pending("a") == 2
        b1.result(5)
        assert not a2.done()

        gate.set()
        a1.result(5)
        a2.result(5)
        assert overlaps == []
    finally:
        gate.set()
        lookup.shutdown(wait=True)


def test_idle_pools_are_evicted_once_their_work_is_done() -> None:
    lookup = ExecutorLookup(max_authorities=1)
    try:
        lookup.submit("a", lambda: None).result(5)
        assert wait_until(lambda: lookup.pending("a") == 0)

        lookup.submit("b", lambda: None).result(5)

        assert lookup.authorities() == ["b"]
    finally:
        lookup.shutdown(wait=True)
