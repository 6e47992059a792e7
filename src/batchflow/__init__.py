"""
batchflow - callback task coordination

Run a dynamic list of callback-style tasks one after another or concurrently in
bounded chunks, and collect their results with a single completion callback.
"""

from batchflow.application.coordinator import Coordinator
from batchflow.backend import BackendType
from batchflow.client import Client
from batchflow.domain.entity import RunResult, Task, TaskFailure
from batchflow.domain.exception import CallbackInvokedTwiceError, CoordinatorError, RegistryClosedError
from batchflow.domain.port import TaskBase
from batchflow.domain.value_object import CoordinatorOptions, RunStatus, TaskMode
from batchflow.factory import create
from batchflow.log import setup_logging

__all__ = [
    "Client",
    "BackendType",
    "create",
    "Coordinator",
    "CoordinatorOptions",
    "Task",
    "TaskBase",
    "TaskMode",
    "TaskFailure",
    "RunResult",
    "RunStatus",
    "CoordinatorError",
    "RegistryClosedError",
    "CallbackInvokedTwiceError",
    "setup_logging",
]
