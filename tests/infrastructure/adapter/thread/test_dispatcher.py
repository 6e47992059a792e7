"""
Tests for the thread pool dispatcher.

This module tests ThreadPoolDispatcher on its own and driving coordinators.
"""

import logging
import threading
import time

from batchflow.application.coordinator import Coordinator
from batchflow.domain.entity import Task
from batchflow.domain.exception import CallbackInvokedTwiceError
from batchflow.domain.value_object import CoordinatorOptions, RunStatus
from batchflow.infrastructure.adapter.thread.dispatcher import ThreadPoolDispatcher


class InFlightCounter:
    """Tracks how many tasks run at the same time."""

    def __init__(self, latency=0.01):
        self.latency = latency
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def task(self, index):
        def work(done):
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(self.latency)
            with self._lock:
                self.active -= 1
            done(index)

        return Task(work=work, name=f"counted-{index}")


class TestThreadPoolDispatcher:
    """Test cases for ThreadPoolDispatcher."""

    def setup_method(self):
        """Setup test fixtures."""
        self.dispatcher = ThreadPoolDispatcher(max_workers=64)

    def teardown_method(self):
        """Shut down the executor."""
        self.dispatcher.shutdown()

    def test_runs_on_worker_thread(self):
        """Test work runs off the calling thread."""
        seen = []
        finished = threading.Event()

        def work(done):
            seen.append(threading.current_thread().name)
            done(None)

        self.dispatcher.dispatch(Task(work=work, name="t"), lambda _: finished.set(), lambda e: None)

        assert finished.wait(timeout=5)
        assert seen[0].startswith("batchflow")

    def test_failure_reported(self):
        """Test exceptions reach the failure callback."""
        errors = []
        finished = threading.Event()

        def work(done):
            raise KeyError("missing")

        def failed(error):
            errors.append(error)
            finished.set()

        self.dispatcher.dispatch(Task(work=work, name="t"), lambda _: None, failed)

        assert finished.wait(timeout=5)
        assert isinstance(errors[0], KeyError)

    def test_escaped_error_logged(self, caplog):
        """Test coordinator errors raised on a worker are logged."""

        def work(done):
            raise CallbackInvokedTwiceError("t")

        with caplog.at_level(logging.ERROR, logger="batchflow"):
            self.dispatcher.dispatch(Task(work=work, name="t"), lambda _: None, lambda e: None)
            self.dispatcher.shutdown()

        assert any("raised outside its failure handler" in r.getMessage() for r in caplog.records)

    def test_queue_mode_keeps_order(self):
        """Test queue mode on threads keeps registry order and one task in flight."""
        counter = InFlightCounter()
        coordinator = Coordinator([counter.task(i) for i in range(10)], dispatcher=self.dispatcher).queue()

        assert coordinator.wait(timeout=10)
        assert coordinator.results == list(range(10))
        assert counter.peak == 1

    def test_pool_mode_runs_concurrently(self):
        """Test a small pool overlaps its tasks."""
        counter = InFlightCounter(latency=0.05)
        coordinator = Coordinator([counter.task(i) for i in range(10)], dispatcher=self.dispatcher).pool()

        assert coordinator.wait(timeout=10)
        assert sorted(coordinator.results) == list(range(10))
        assert counter.peak > 1

    def test_pool_concurrency_bounded_by_chunk_size(self):
        """Test no more than chunk_size tasks are ever in flight."""
        counter = InFlightCounter()
        coordinator = Coordinator(
            [counter.task(i) for i in range(65)],
            options=CoordinatorOptions(chunk_size=30),
            dispatcher=self.dispatcher,
        ).pool()

        assert coordinator.wait(timeout=20)
        assert counter.peak <= 30
        results = coordinator.results
        assert len(results) == 65
        assert sorted(results[:30]) == list(range(30))
        assert sorted(results[30:60]) == list(range(30, 60))
        assert sorted(results[60:]) == list(range(60, 65))

    def test_every_callback_observed_once(self):
        """Test each pooled task contributes exactly one result."""
        coordinator = Coordinator(
            [Task(work=lambda done, i=i: done(i), name=str(i)) for i in range(30)],
            dispatcher=self.dispatcher,
        ).pool()

        assert coordinator.wait(timeout=10)
        assert coordinator.status is RunStatus.COMPLETED
        assert sorted(coordinator.results) == list(range(30))

    def test_failure_on_worker_fails_run(self):
        """Test a raising task on a worker thread fails the coordinator."""

        def work(done):
            raise RuntimeError("worker failure")

        coordinator = Coordinator([Task(work=work, name="w")], dispatcher=self.dispatcher).queue()

        assert coordinator.wait(timeout=5)
        assert coordinator.status is RunStatus.FAILED

    def test_double_callback_on_worker_fails_run(self, caplog):
        """Test a task calling done twice on a worker ends the run as failed."""

        def twice(done):
            done(1)
            done(2)

        coordinator = Coordinator(
            [Task(work=twice, name="twice"), Task(work=lambda done: None, name="pending")],
            dispatcher=self.dispatcher,
        )

        with caplog.at_level(logging.ERROR, logger="batchflow"):
            coordinator.queue()
            assert coordinator.wait(timeout=5)
            self.dispatcher.shutdown()

        assert coordinator.status is RunStatus.FAILED
        assert isinstance(coordinator.error, CallbackInvokedTwiceError)
        assert coordinator.results == [1]
        assert any("more than once" in r.getMessage() for r in caplog.records)
