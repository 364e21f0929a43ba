from __future__ import annotations

import threading
from concurrent.futures import CancelledError

import pytest

from locfav_db.worker import Scope, StoreWorker


def test_jobs_run_in_submission_order():
    seen: list[int] = []
    with StoreWorker() as worker:
        futures = [worker.submit(seen.append, i) for i in range(20)]
        for f in futures:
            f.result(timeout=5)
    assert seen == list(range(20))


def test_jobs_run_off_the_calling_thread():
    with StoreWorker() as worker:
        name = worker.submit(lambda: threading.current_thread().name).result(timeout=5)
    assert name == "locfav-store"
    assert name != threading.current_thread().name


def test_exceptions_reach_the_future():
    def _fail():
        raise ValueError("nope")

    with StoreWorker() as worker:
        fut = worker.submit(_fail)
        with pytest.raises(ValueError, match="nope"):
            fut.result(timeout=5)


def test_on_done_receives_the_resolved_future():
    got: list[int] = []
    done = threading.Event()

    def _cb(fut):
        got.append(fut.result())
        done.set()

    with StoreWorker() as worker:
        worker.submit(lambda: 7, on_done=_cb)
        assert done.wait(timeout=5)
    assert got == [7]


def test_cancelling_a_scope_drops_its_pending_jobs():
    gate = threading.Event()
    ran: list[str] = []
    scope = Scope("detail")

    with StoreWorker() as worker:
        blocker = worker.submit(gate.wait, 5)
        pending = worker.submit(ran.append, "pending", scope=scope)
        other = worker.submit(ran.append, "other")

        assert scope.cancel() == 1
        gate.set()

        blocker.result(timeout=5)
        other.result(timeout=5)
        assert pending.cancelled()
        with pytest.raises(CancelledError):
            pending.result(timeout=5)

    assert ran == ["other"]


def test_in_flight_job_of_cancelled_scope_is_not_delivered():
    started = threading.Event()
    release = threading.Event()
    callbacks: list[object] = []
    scope = Scope("map")

    def _slow():
        started.set()
        release.wait(5)
        return "late"

    with StoreWorker() as worker:
        fut = worker.submit(_slow, scope=scope, on_done=callbacks.append)
        assert started.wait(timeout=5)
        scope.cancel()
        release.set()
        with pytest.raises(CancelledError):
            fut.result(timeout=5)
        # Flush: anything queued after runs only once the slow job is finished.
        worker.submit(lambda: None).result(timeout=5)

    assert callbacks == []


def test_submit_on_cancelled_scope_returns_cancelled_future():
    scope = Scope()
    scope.cancel()
    with StoreWorker() as worker:
        fut = worker.submit(lambda: 1, scope=scope)
    assert fut.cancelled()


def test_submit_after_shutdown_raises():
    worker = StoreWorker()
    worker.shutdown()
    with pytest.raises(RuntimeError):
        worker.submit(lambda: 1)


def test_base_exception_in_a_job_does_not_stop_the_worker():
    def _exit():
        raise SystemExit(3)

    with StoreWorker() as worker:
        failed = worker.submit(_exit)
        later = worker.submit(lambda: "still running")

        with pytest.raises(SystemExit):
            failed.result(timeout=5)
        assert later.result(timeout=5) == "still running"
