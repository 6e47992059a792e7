from batchflow.application.adapter import InlineDispatcher
from batchflow.client import Client
from batchflow.domain.value_object import CoordinatorOptions


def create(options: CoordinatorOptions) -> Client:
    """
    Creates a Client that runs work functions in the calling thread.

    :param options: Options applied to every coordinator the client builds
    :type options: CoordinatorOptions
    :returns: Configured Client instance
    :rtype: Client
    """
    return Client(dispatcher=InlineDispatcher(), options=options)
