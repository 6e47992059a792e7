import asyncio

from batchflow.application.port import Dispatcher, ErrorCallback
from batchflow.application.service import invoke_task
from batchflow.domain.entity import ResultCallback, Task


class EventLoopDispatcher(Dispatcher):
    """Schedules work functions as callbacks on an asyncio event loop.

    Work functions run on the loop's thread and typically complete through
    ``loop.call_later`` or a future's done-callback.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def dispatch(self, task: Task, done: ResultCallback, failed: ErrorCallback) -> None:
        self.loop.call_soon_threadsafe(invoke_task, task, done, failed)
