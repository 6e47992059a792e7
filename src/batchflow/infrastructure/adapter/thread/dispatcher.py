import logging
from concurrent.futures import Future, ThreadPoolExecutor

from batchflow.application.port import Dispatcher, ErrorCallback
from batchflow.application.service import invoke_task
from batchflow.domain.entity import ResultCallback, Task

logger = logging.getLogger(__name__)


class ThreadPoolDispatcher(Dispatcher):
    """Runs work functions on a shared thread pool."""

    def __init__(self, max_workers: int | None = None, thread_name_prefix: str = "batchflow"):
        """
        Initializes the dispatcher with its own executor.

        :param max_workers: Maximum number of worker threads; None lets the executor decide
        :type max_workers: int | None
        :param thread_name_prefix: Prefix for worker thread names
        :type thread_name_prefix: str
        """
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)

    def dispatch(self, task: Task, done: ResultCallback, failed: ErrorCallback) -> None:
        future = self._executor.submit(invoke_task, task, done, failed)
        future.add_done_callback(lambda f: self._report(task, f))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    @staticmethod
    def _report(task: Task, future: Future) -> None:
        # invoke_task only lets coordinator errors escape; nobody else would see them
        error = future.exception()
        if error is not None:
            logger.error("Task %s raised outside its failure handler", task.name, exc_info=error)
