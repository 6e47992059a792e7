from typing import Any

from batchflow.application.service import OPTION_FIELDS, load_options
from batchflow.backend import BackendType
from batchflow.client import Client
from batchflow.infrastructure.adapter.event_loop.client import create as create_event_loop_client
from batchflow.infrastructure.adapter.inline.client import create as create_inline_client
from batchflow.infrastructure.adapter.thread.client import create as create_thread_client


def create(backend: BackendType = BackendType.INLINE, **kwargs: Any) -> Client:
    """
    Factory function to create a Client with the specified backend.

    Keyword arguments naming a ``CoordinatorOptions`` field (``name``, ``debug``,
    ``chunk_size``, ``timeout``, ``capture_errors``) configure the coordinators;
    the rest are backend-specific.

    :param backend: The backend type used to dispatch tasks
    :type backend: BackendType
    :param kwargs: Coordinator options plus backend-specific configuration
        (``max_workers`` for THREAD, ``loop`` for EVENT_LOOP)
    :returns: A configured Client instance
    :rtype: Client
    :raises ValueError: If the backend type is unsupported
    :raises TypeError: If an unknown keyword argument is given
    """
    options = load_options({k: v for k, v in kwargs.items() if k in OPTION_FIELDS})
    backend_kwargs = {k: v for k, v in kwargs.items() if k not in OPTION_FIELDS}

    if backend == BackendType.INLINE:
        _reject_unknown(backend, backend_kwargs, set())
        return create_inline_client(options)

    elif backend == BackendType.THREAD:
        _reject_unknown(backend, backend_kwargs, {"max_workers"})
        return create_thread_client(options, max_workers=backend_kwargs.get("max_workers"))

    elif backend == BackendType.EVENT_LOOP:
        _reject_unknown(backend, backend_kwargs, {"loop"})
        return create_event_loop_client(options, loop=backend_kwargs.get("loop"))

    else:
        raise ValueError(f"Unsupported backend: {backend}")


def _reject_unknown(backend: BackendType, kwargs: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(kwargs) - allowed
    if unknown:
        raise TypeError(f"Unknown option(s) for {backend.value} backend: {', '.join(sorted(unknown))}")
