from abc import ABC, abstractmethod
from collections.abc import Callable

from batchflow.domain.entity import ResultCallback, Task

ErrorCallback = Callable[[Exception], None]


class Dispatcher(ABC):
    """Abstract interface for handing tasks to the host scheduler."""

    @abstractmethod
    def dispatch(self, task: Task, done: ResultCallback, failed: ErrorCallback) -> None:
        """
        Issue a task for execution.

        The dispatcher calls ``task.work(done)``, either directly or on the host
        scheduler, and reports exceptions raised by the work function through ``failed``.

        :param task: The task to run
        :type task: Task
        :param done: Completion callback handed to the work function
        :type done: ResultCallback
        :param failed: Callback receiving exceptions raised by the work function
        :type failed: ErrorCallback
        """
        ...

    def shutdown(self) -> None:
        """Release any resources held by the dispatcher."""
