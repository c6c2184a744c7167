"""Background execution keyed by provider authority.

Work is submitted to one single-worker pool per authority, so requests
against the same provider run in order while different providers proceed
concurrently. Completions are posted back to the GUI thread through a
queued Qt signal and delivered only if the owner is still alive.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable

from PySide6.QtCore import QObject, Qt, Signal, Slot

from .logger import get_logger

_logger = get_logger("tasks")

Completion = Callable[[Any, BaseException | None], None]


class MainThreadPoster(QObject):
    """Runs callables on the thread this object lives in (the GUI thread)."""

    _posted = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        # Always queued, even when posting from the GUI thread itself.
        self._posted.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def post(self, fn: Callable[[], None]) -> None:
        self._posted.emit(fn)

    @Slot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            _logger.exception("posted callback failed: %r", fn)


class ExecutorLookup:
    """Named single-worker pools, one per authority, bounded in number.

    Only idle pools are evicted: a pool with queued or running work stays
    registered, so work for one authority never runs on two threads. The
    cap may be exceeded while every pool is busy.
    """

    def __init__(self, max_authorities: int = 8) -> None:
        self._max = max(1, int(max_authorities))
        self._pools: OrderedDict[str, ThreadPoolExecutor] = OrderedDict()
        # authority -> futures submitted through submit() and not yet done
        self._pending: dict[str, int] = {}
        self._lock = threading.Lock()
        self._closed = False

    def lookup(self, authority: str) -> ThreadPoolExecutor:
        with self._lock:
            pool, evicted = self._lookup_locked(authority)
        self._shutdown_evicted(evicted)
        return pool

    def submit(self, authority: str, work: Callable[[], Any]) -> Future:
        """Run ``work`` on the authority's pool; the pool is pinned until it finishes."""
        with self._lock:
            pool, evicted = self._lookup_locked(authority)
            future = pool.submit(work)
            self._pending[authority] = self._pending.get(authority, 0) + 1
        self._shutdown_evicted(evicted)
        future.add_done_callback(lambda _f: self._finished(authority))
        return future

    def pending(self, authority: str) -> int:
        with self._lock:
            return self._pending.get(authority, 0)

    def _finished(self, authority: str) -> None:
        with self._lock:
            left = self._pending.get(authority, 0) - 1
            if left > 0:
                self._pending[authority] = left
            else:
                self._pending.pop(authority, None)

    def _lookup_locked(self, authority: str) -> tuple[ThreadPoolExecutor, list[tuple[str, ThreadPoolExecutor]]]:
        if self._closed:
            raise RuntimeError("executor lookup is shut down")
        pool = self._pools.get(authority)
        if pool is not None:
            self._pools.move_to_end(authority)
            return pool, []
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"doc-actions-{authority}")
        self._pools[authority] = pool
        _logger.debug("created executor for authority=%s", authority)

        evicted: list[tuple[str, ThreadPoolExecutor]] = []
        excess = len(self._pools) - self._max
        if excess > 0:
            # Oldest first; busy pools and the one just created are kept.
            idle = [name for name in self._pools if name != authority and not self._pending.get(name)]
            for name in idle[:excess]:
                evicted.append((name, self._pools.pop(name)))
        return pool, evicted

    def _shutdown_evicted(self, evicted: list[tuple[str, ThreadPoolExecutor]]) -> None:
        for name, old in evicted:
            _logger.debug("evicting idle executor for authority=%s", name)
            old.shutdown(wait=False)

    def authorities(self) -> list[str]:
        with self._lock:
            return list(self._pools)

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            self._closed = True
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.shutdown(wait=wait, cancel_futures=True)


class TaskHandle:
    """Cancellation token for one submitted task.

    The liveness predicate is checked immediately before delivery; running
    work is never interrupted.
    """

    def __init__(self, future: Future, is_destroyed: Callable[[], bool] | None = None) -> None:
        self.future = future
        self._is_destroyed = is_destroyed
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self.future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def should_deliver(self) -> bool:
        if self._cancelled or self.future.cancelled():
            return False
        if self._is_destroyed is not None and self._is_destroyed():
            return False
        return True


class TaskRunner:
    def __init__(self, executors: ExecutorLookup, poster: MainThreadPoster) -> None:
        self._executors = executors
        self._poster = poster

    @property
    def poster(self) -> MainThreadPoster:
        return self._poster

    def submit(
        self,
        authority: str,
        work: Callable[[], Any],
        on_complete: Completion,
        is_destroyed: Callable[[], bool] | None = None,
    ) -> TaskHandle:
        future = self._executors.submit(authority, work)
        handle = TaskHandle(future, is_destroyed)
        future.add_done_callback(lambda _f: self._poster.post(partial(self._deliver, handle, on_complete)))
        _logger.debug("task submitted authority=%s", authority)
        return handle

    def _deliver(self, handle: TaskHandle, on_complete: Completion) -> None:
        if not handle.should_deliver():
            _logger.debug("task result dropped (cancelled or owner destroyed)")
            return
        error = handle.future.exception()
        if error is not None:
            on_complete(None, error)
        else:
            on_complete(handle.future.result(), None)
