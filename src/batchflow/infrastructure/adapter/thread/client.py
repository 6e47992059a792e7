from batchflow.client import Client
from batchflow.domain.value_object import CoordinatorOptions
from batchflow.infrastructure.adapter.thread.dispatcher import ThreadPoolDispatcher


def create(options: CoordinatorOptions, max_workers: int | None = None) -> Client:
    """
    Creates a Client whose tasks run on a thread pool.

    :param options: Options applied to every coordinator the client builds
    :type options: CoordinatorOptions
    :param max_workers: Maximum number of worker threads
    :type max_workers: int | None
    :returns: Configured Client instance
    :rtype: Client
    """
    return Client(dispatcher=ThreadPoolDispatcher(max_workers=max_workers), options=options)
