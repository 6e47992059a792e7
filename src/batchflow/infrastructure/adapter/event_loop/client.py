import asyncio

from batchflow.client import Client
from batchflow.domain.value_object import CoordinatorOptions
from batchflow.infrastructure.adapter.event_loop.dispatcher import EventLoopDispatcher


def create(options: CoordinatorOptions, loop: asyncio.AbstractEventLoop | None = None) -> Client:
    """
    Creates a Client whose tasks are scheduled on an asyncio event loop.

    :param options: Options applied to every coordinator the client builds
    :type options: CoordinatorOptions
    :param loop: The loop to schedule on; defaults to the running loop
    :type loop: asyncio.AbstractEventLoop | None
    :returns: Configured Client instance
    :rtype: Client
    :raises RuntimeError: If no loop is given and none is running
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    return Client(dispatcher=EventLoopDispatcher(loop), options=options)
