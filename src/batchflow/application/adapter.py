from batchflow.application.port import Dispatcher, ErrorCallback
from batchflow.application.service import invoke_task
from batchflow.domain.entity import ResultCallback, Task


class InlineDispatcher(Dispatcher):
    """Runs work functions directly in the calling thread.

    Tasks that complete synchronously finish before ``dispatch`` returns; tasks that
    hand their callback to a timer, thread or I/O library complete later from there.
    """

    def dispatch(self, task: Task, done: ResultCallback, failed: ErrorCallback) -> None:
        invoke_task(task, done, failed)
