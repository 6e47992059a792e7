import asyncio
from dataclasses import replace
from typing import Any

from batchflow.application.coordinator import Coordinator
from batchflow.application.port import Dispatcher
from batchflow.domain.entity import FinalCallback, RunResult
from batchflow.domain.value_object import CoordinatorOptions, TaskMode


class Client:
    """
    Client façade for building and running coordinators.

    The Client holds the chosen dispatcher and the default options, and hands both
    to every coordinator it creates.
    """

    def __init__(self, dispatcher: Dispatcher, options: CoordinatorOptions | None = None):
        """
        Initialize the client with a dispatcher and default options.

        :param dispatcher: The dispatcher implementation (e.g., ThreadPoolDispatcher)
        :type dispatcher: Dispatcher
        :param options: Options applied to every coordinator; defaults when omitted
        :type options: CoordinatorOptions | None
        """
        self._dispatcher = dispatcher
        self._options = options if options is not None else CoordinatorOptions()

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def options(self) -> CoordinatorOptions:
        return self._options

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def coordinator(
        self,
        tasks: Any = None,
        final_callback: FinalCallback | None = None,
        mode: TaskMode | str | None = None,
        **overrides: Any,
    ) -> Coordinator:
        """
        Build an unstarted coordinator bound to this client's dispatcher.

        :param tasks: Initial tasks, in any shape accepted by ``Coordinator.add``
        :param final_callback: Called once with the result list when the run ends
        :type final_callback: FinalCallback | None
        :param mode: Default mode for ``start``; queue when omitted
        :type mode: TaskMode | str | None
        :param overrides: CoordinatorOptions fields to change for this coordinator only
        :returns: A new coordinator
        :rtype: Coordinator
        """
        options = replace(self._options, **overrides) if overrides else self._options
        return Coordinator(
            tasks,
            final_callback=final_callback,
            mode=mode if mode is not None else TaskMode.QUEUE,
            options=options,
            dispatcher=self._dispatcher,
        )

    def queue(self, tasks: Any, final_callback: FinalCallback | None = None) -> Coordinator:
        """
        Run tasks one at a time in the order given.

        :returns: The started coordinator
        :rtype: Coordinator
        """
        return self.coordinator(tasks).queue(final_callback)

    def pool(self, tasks: Any, final_callback: FinalCallback | None = None) -> Coordinator:
        """
        Run tasks concurrently in chunks of at most ``options.chunk_size``.

        :returns: The started coordinator
        :rtype: Coordinator
        """
        return self.coordinator(tasks).pool(final_callback)

    def run(self, tasks: Any, mode: TaskMode | str = TaskMode.QUEUE, timeout: float | None = None) -> RunResult:
        """
        Run tasks and block until the coordinator finishes.

        Must not be called from the thread that runs the tasks' event loop.

        :param tasks: The tasks to run
        :param mode: Execution mode
        :type mode: TaskMode | str
        :param timeout: Optional deadline in seconds; the run ends as timed out when reached
        :type timeout: float | None
        :returns: The run result
        :rtype: RunResult
        """
        coordinator = self._deadline_coordinator(tasks, timeout)
        coordinator.start(mode=mode)
        coordinator.wait()
        return coordinator.report()

    async def run_async(
        self, tasks: Any, mode: TaskMode | str = TaskMode.QUEUE, timeout: float | None = None
    ) -> RunResult:
        """
        Run tasks and await the coordinator's completion.

        :param tasks: The tasks to run
        :param mode: Execution mode
        :type mode: TaskMode | str
        :param timeout: Optional deadline in seconds; the run ends as timed out when reached
        :type timeout: float | None
        :returns: The run result
        :rtype: RunResult
        """
        loop = asyncio.get_running_loop()
        finished = loop.create_future()

        def resolve(_results: list[Any]) -> None:
            loop.call_soon_threadsafe(_set_done, finished)

        coordinator = self._deadline_coordinator(tasks, timeout)
        coordinator.start(resolve, mode)
        await finished
        return coordinator.report()

    def close(self) -> None:
        """Shut down the dispatcher."""
        self._dispatcher.shutdown()

    def _deadline_coordinator(self, tasks: Any, timeout: float | None) -> Coordinator:
        if timeout is None:
            return self.coordinator(tasks)
        return self.coordinator(tasks, timeout=timeout)


def _set_done(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)
