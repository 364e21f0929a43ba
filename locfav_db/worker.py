"""
StoreWorker: runs store queries on one background thread.

Usage (TUI / controller)::

    with StoreWorker() as worker:
        scope = Scope("detail")
        fut = worker.submit(store.get_record, "locations", 3, scope=scope)
        ...
        scope.cancel()        # user navigated away; result is never delivered

Jobs run strictly in submission order, so two queries against the same table
are observed in the order they were submitted.
"""
from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from typing import Any

__all__ = ["Scope", "StoreWorker"]

logger = logging.getLogger(__name__)


class Scope:
    """Groups the jobs issued on behalf of one screen so they can be
    abandoned together."""

    def __init__(self, name: str = ""):
        self.name = name
        self._cancelled = threading.Event()
        self._futures: list[Future] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _track(self, fut: Future) -> None:
        with self._lock:
            self._futures.append(fut)

    def cancel(self) -> int:
        """Cancel every job of this scope that has not delivered a result.

        Returns how many futures were cancelled."""
        self._cancelled.set()
        with self._lock:
            futures, self._futures = self._futures, []
        n = sum(1 for f in futures if f.cancel())
        if n:
            logger.debug("scope %r: cancelled %d pending job(s)", self.name, n)
        return n


@dataclass
class _Job:
    fn: Callable[..., Any]
    args: tuple
    kwargs: dict
    future: Future
    scope: Scope | None = None
    on_done: Callable[[Future], None] | None = None


_STOP = object()


class StoreWorker:
    """Single-thread FIFO executor for store access."""

    def __init__(self, name: str = "locfav-store"):
        self._queue: queue.Queue[Any] = queue.Queue()
        self._closed = False
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)
        self._thread.start()

    def __enter__(self) -> StoreWorker:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        scope: Scope | None = None,
        on_done: Callable[[Future], None] | None = None,
        **kwargs: Any,
    ) -> Future:
        """Queue ``fn(*args, **kwargs)``.

        ``on_done`` runs on the worker thread after the future resolves,
        unless the scope was cancelled first.
        """
        fut: Future = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError("StoreWorker is shut down")
            if scope is not None:
                if scope.cancelled:
                    fut.cancel()
                    return fut
                scope._track(fut)
            self._queue.put(_Job(fn, args, kwargs, fut, scope, on_done))
        return fut

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if wait:
            self._thread.join()

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            self._run(item)

    @staticmethod
    def _run(job: _Job) -> None:
        fut = job.future
        if fut.cancelled():
            return
        try:
            result = job.fn(*job.args, **job.kwargs)
        except BaseException as e:
            # Delivered to the caller; the worker thread keeps draining the queue.
            outcome: tuple[bool, Any] = (False, e)
        else:
            outcome = (True, result)

        # The screen may have been abandoned while the query ran.
        if job.scope is not None and job.scope.cancelled:
            fut.cancel()
            return
        try:
            if outcome[0]:
                fut.set_result(outcome[1])
            else:
                fut.set_exception(outcome[1])
        except InvalidStateError:
            # Cancelled directly between the check above and here.
            return

        if job.on_done is not None and not (job.scope is not None and job.scope.cancelled):
            try:
                job.on_done(fut)
            except Exception:
                logger.exception("on_done callback failed for %r", job.fn)
