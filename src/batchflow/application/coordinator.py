import logging
import threading
from dataclasses import replace
from typing import Any

from batchflow.application.adapter import InlineDispatcher
from batchflow.application.port import Dispatcher
from batchflow.domain.entity import FinalCallback, ResultCallback, RunResult, Task, TaskFailure
from batchflow.domain.exception import CallbackInvokedTwiceError, RegistryClosedError
from batchflow.domain.service import generate_token, normalize_tasks, partition
from batchflow.domain.value_object import CoordinatorOptions, CoordinatorState, RunStatus, TaskMode

logger = logging.getLogger(__name__)


class Coordinator:
    """
    Drives a list of callback-style tasks to completion in queue or pool mode.

    Queue mode runs one task at a time in registry order. Pool mode issues up to
    ``options.chunk_size`` tasks at once; larger batches are split into chunks that
    run one after another, each chunk fully concurrent. The final callback fires
    exactly once with the collected results.
    """

    def __init__(
        self,
        tasks: Any = None,
        final_callback: FinalCallback | None = None,
        mode: TaskMode | str = TaskMode.QUEUE,
        options: CoordinatorOptions | None = None,
        dispatcher: Dispatcher | None = None,
    ):
        """
        Initializes the coordinator, optionally seeded with tasks and a final callback.

        :param tasks: Initial tasks, in any shape accepted by :meth:`add`
        :param final_callback: Called once with the result list when the run ends
        :type final_callback: FinalCallback | None
        :param mode: Mode used when :meth:`start` is called without one
        :type mode: TaskMode | str
        :param options: Coordinator configuration; defaults apply when omitted
        :type options: CoordinatorOptions | None
        :param dispatcher: How work functions are handed to the host scheduler
        :type dispatcher: Dispatcher | None
        """
        self.options = options if options is not None else CoordinatorOptions()
        self.dispatcher = dispatcher if dispatcher is not None else InlineDispatcher()
        self.instance_id = f"Coordinator::{generate_token()}"
        if self.options.name:
            self.instance_id += f"::{self.options.name}"
        self.mode = TaskMode(mode)

        self._final_callback = final_callback
        self._tasks: list[Task] = []
        self._results: list[Any] = []
        self._state = CoordinatorState.IDLE
        self._status: RunStatus | None = None
        self._error: BaseException | None = None

        self._lock = threading.RLock()
        self._completed = threading.Event()
        self._timer: threading.Timer | None = None
        self._sequencer: Coordinator | None = None
        self._children: list[Coordinator] = []
        self._driving = False
        self._advance_pending = False

        self.add(tasks)

    def __repr__(self) -> str:
        return f"<{self.instance_id} {self._state.value} {len(self._results)}/{len(self._tasks)}>"

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def started(self) -> bool:
        return self._state is not CoordinatorState.IDLE

    @property
    def finished(self) -> bool:
        return self._state is CoordinatorState.TERMINAL

    @property
    def status(self) -> RunStatus | None:
        """Why the coordinator finished, or None while it is still idle or running."""
        return self._status

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def tasks(self) -> tuple[Task, ...]:
        with self._lock:
            return tuple(self._tasks)

    @property
    def results(self) -> list[Any]:
        with self._lock:
            return list(self._results)

    def add(self, tasks: Any) -> "Coordinator":
        """
        Appends one or more tasks to the registry.

        :param tasks: None, a task-like value, a bare callable, or a list of them
        :returns: The coordinator, for chaining
        :rtype: Coordinator
        :raises RegistryClosedError: If the coordinator has already started
        """
        with self._lock:
            if self._state is not CoordinatorState.IDLE:
                raise RegistryClosedError(self.instance_id)
            new_tasks = normalize_tasks(tasks, start_index=len(self._tasks))
            self._tasks.extend(new_tasks)
        for task in new_tasks:
            self._trace("Add task: %s", task.name)
        return self

    def queue(self, final_callback: FinalCallback | None = None) -> "Coordinator":
        """Starts the run in queue mode."""
        return self.start(final_callback, TaskMode.QUEUE)

    def pool(self, final_callback: FinalCallback | None = None) -> "Coordinator":
        """Starts the run in pool mode."""
        return self.start(final_callback, TaskMode.POOL)

    def start(self, final_callback: FinalCallback | None = None, mode: TaskMode | str | None = None) -> "Coordinator":
        """
        Starts executing the registered tasks.

        A given callback or mode is recorded even when the coordinator has already
        started, but a second start never dispatches again.

        :param final_callback: Replaces the final callback when given
        :type final_callback: FinalCallback | None
        :param mode: Replaces the execution mode when given
        :type mode: TaskMode | str | None
        :returns: The coordinator
        :rtype: Coordinator
        """
        with self._lock:
            if final_callback is not None:
                self._final_callback = final_callback
            if mode is not None:
                self.mode = TaskMode(mode)
            if self._state is not CoordinatorState.IDLE:
                return self
            self._state = CoordinatorState.RUNNING
            task_count = len(self._tasks)

        self._trace("Start %s tasks (%d)", self.mode.value, task_count)
        if task_count == 0:
            return self._finish(RunStatus.COMPLETED)

        self._arm_deadline()
        if self.mode is TaskMode.POOL:
            self._run_pool()
        else:
            self._drive_queue()
        return self

    def quit(self, final_callback: FinalCallback | None = None) -> "Coordinator":
        """
        Ends the run immediately without waiting for in-flight tasks.

        :param final_callback: Replaces the final callback when given
        :type final_callback: FinalCallback | None
        :returns: The coordinator
        :rtype: Coordinator
        """
        with self._lock:
            if final_callback is not None:
                self._final_callback = final_callback
        self._trace("Quit")
        self._finish(RunStatus.QUIT)
        self._stop_nested()
        return self

    def wait(self, timeout: float | None = None) -> bool:
        """
        Blocks until the coordinator is terminal and its final callback has run.

        :param timeout: Seconds to wait, or None to wait indefinitely
        :type timeout: float | None
        :returns: True if the coordinator finished within the timeout
        :rtype: bool
        """
        return self._completed.wait(timeout)

    def report(self) -> RunResult:
        """
        Takes a snapshot of the run.

        :returns: The current id, mode, status and results
        :rtype: RunResult
        """
        with self._lock:
            error = None if self._error is None else f"{type(self._error).__name__}: {self._error}"
            return RunResult(
                id=self.instance_id,
                mode=self.mode,
                status=self._status,
                task_count=len(self._tasks),
                results=list(self._results),
                error=error,
            )

    def _drive_queue(self) -> None:
        # Tasks that finish synchronously re-enter here from their callback; the
        # re-entrant call only flags the loop to continue, so the stack stays flat.
        with self._lock:
            if self._driving:
                self._advance_pending = True
                return
            self._driving = True

        while True:
            with self._lock:
                index = len(self._results)
                if self._state is not CoordinatorState.RUNNING or index >= len(self._tasks):
                    self._driving = False
                    return
                task = self._tasks[index]
                self._advance_pending = False

            self._trace("Process next task in queue (%d/%d)", index, len(self._tasks))
            try:
                self._run_task(task, advance=self._drive_queue)
            except BaseException:
                with self._lock:
                    self._driving = False
                raise

            with self._lock:
                if not self._advance_pending:
                    self._driving = False
                    return

    def _run_pool(self) -> None:
        tasks = self.tasks
        if len(tasks) > self.options.chunk_size:
            self._run_chunked(tasks)
            return
        for task in tasks:
            if self._state is not CoordinatorState.RUNNING:
                break
            self._run_task(task)

    def _run_chunked(self, tasks: tuple[Task, ...]) -> None:
        label = self.options.name or "pool"
        chunks = partition(tasks, self.options.chunk_size)
        sequencer = Coordinator(
            [
                Task(work=self._chunk_work(number, chunk, label), name=f"chunk#{number}")
                for number, chunk in enumerate(chunks)
            ],
            options=replace(self.options, name=f"{label}::chunks", timeout=None, capture_errors=False),
            dispatcher=InlineDispatcher(),
        )
        with self._lock:
            if self._state is not CoordinatorState.RUNNING:
                return
            self._sequencer = sequencer
        self._trace("Split %d tasks into %d chunks of %d", len(tasks), len(chunks), self.options.chunk_size)
        sequencer.queue(self._chunks_finished)

    def _chunk_work(self, number: int, chunk: list[Task], label: str):
        def work(done: ResultCallback) -> None:
            child = Coordinator(
                chunk,
                options=replace(self.options, name=f"{label}::chunk#{number}", timeout=None),
                dispatcher=self.dispatcher,
            )
            with self._lock:
                if self._state is not CoordinatorState.RUNNING:
                    return
                self._children.append(child)
            child.pool(lambda results: self._chunk_finished(child, results, done))

        return work

    def _chunk_finished(self, child: "Coordinator", results: list[Any], done: ResultCallback) -> None:
        if child.status is RunStatus.FAILED:
            self._fail(child.error)
            return
        done(results)

    def _chunks_finished(self, grouped: list[list[Any]]) -> None:
        sequencer = self._sequencer
        if sequencer is not None and sequencer.status is RunStatus.FAILED:
            self._fail(sequencer.error)
            return
        with self._lock:
            if self._state is not CoordinatorState.RUNNING:
                return
            self._results = [result for chunk in grouped for result in chunk]
        self._finish(RunStatus.COMPLETED)

    def _run_task(self, task: Task, advance=None) -> None:
        called = False

        def done(result: Any = None) -> None:
            nonlocal called
            with self._lock:
                twice = called
                called = True
            if twice:
                error = CallbackInvokedTwiceError(task.name)
                logger.error("%s %s", self.instance_id, error)
                self._fail(error)
                raise error
            if self._record(task, result) and advance is not None:
                advance()

        def failed(error: Exception) -> None:
            with self._lock:
                already_done = called
            if already_done:
                logger.warning("%s task %s raised after completing: %r", self.instance_id, task.name, error)
                return
            if self.options.capture_errors:
                self._trace("Task failed, recording failure: %s", task.name)
                done(TaskFailure.from_exception(task.name, error))
                return
            logger.error("%s task %s failed", self.instance_id, task.name, exc_info=error)
            self._fail(error)

        self._trace("Run %s task: %s", self.mode.value, task.name)
        self.dispatcher.dispatch(task, done, failed)

    def _record(self, task: Task, result: Any) -> bool:
        """Appends a result and reports whether the run should advance."""
        with self._lock:
            running = self._state is CoordinatorState.RUNNING
            if running:
                self._results.append(result)
            finished_count = len(self._results)
            total = len(self._tasks)

        if not running:
            self._trace("Ignore late result from task: %s", task.name)
            return False

        self._trace("Task finished: [%s] %s (%d/%d)", self.mode.value, task.name, finished_count, total)
        if finished_count >= total:
            self._finish(RunStatus.COMPLETED)
            return False
        return True

    def _fail(self, error: BaseException | None) -> None:
        self._finish(RunStatus.FAILED, error)
        self._stop_nested()

    def _finish(self, status: RunStatus, error: BaseException | None = None) -> "Coordinator":
        with self._lock:
            if self._state is CoordinatorState.TERMINAL:
                return self
            self._state = CoordinatorState.TERMINAL
            self._status = status
            self._error = error
            timer, self._timer = self._timer, None
            callback = self._final_callback
            results = list(self._results)

        if timer is not None:
            timer.cancel()
        self._trace("All tasks finished (%s, %d/%d)", status.value, len(results), len(self._tasks))
        try:
            if callback is not None:
                callback(results)
        finally:
            self._completed.set()
        return self

    def _stop_nested(self) -> None:
        with self._lock:
            nested = [self._sequencer] if self._sequencer is not None else []
            nested.extend(self._children)
        for coordinator in nested:
            coordinator.quit()

    def _arm_deadline(self) -> None:
        if self.options.timeout is None:
            return
        timer = threading.Timer(self.options.timeout, self._expire)
        timer.daemon = True
        with self._lock:
            if self._state is not CoordinatorState.RUNNING:
                return
            self._timer = timer
        timer.start()

    def _expire(self) -> None:
        with self._lock:
            if self._state is not CoordinatorState.RUNNING:
                return
            finished_count, total = len(self._results), len(self._tasks)
        logger.warning(
            "%s timed out after %ss (%d/%d tasks finished)",
            self.instance_id,
            self.options.timeout,
            finished_count,
            total,
        )
        self._finish(RunStatus.TIMED_OUT)
        self._stop_nested()

    def _trace(self, message: str, *args: Any) -> None:
        if self.options.debug:
            logger.debug("%s " + message, self.instance_id, *args)
