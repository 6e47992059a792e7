from dataclasses import fields
from typing import Any

import msgspec

from batchflow.application.port import ErrorCallback
from batchflow.domain.entity import ResultCallback, Task
from batchflow.domain.exception import CoordinatorError
from batchflow.domain.value_object import CoordinatorOptions

OPTION_FIELDS = frozenset(f.name for f in fields(CoordinatorOptions))


def invoke_task(task: Task, done: ResultCallback, failed: ErrorCallback) -> None:
    """
    Runs a task's work function, routing raised exceptions to ``failed``.

    Coordinator errors (such as a second completion call) are not task failures
    and propagate to the caller. Neither are exceptions raised from inside ``done``
    (for example by a final callback that the last result triggered); those reach
    whoever called ``done``.

    :param task: The task to run
    :type task: Task
    :param done: Completion callback handed to the work function
    :type done: ResultCallback
    :param failed: Callback receiving exceptions raised by the work function
    :type failed: ErrorCallback
    """
    escaped: list[BaseException] = []

    def complete(result: Any = None) -> None:
        try:
            done(result)
        except BaseException as e:
            escaped.append(e)
            raise

    try:
        task.work(complete)
    except CoordinatorError:
        raise
    except Exception as e:
        if any(e is error for error in escaped):
            raise
        failed(e)


def load_options(data: dict[str, Any] | CoordinatorOptions | None = None) -> CoordinatorOptions:
    """
    Decodes and validates coordinator options from a Python dictionary.

    :param data: The options as a dictionary, an existing options value, or None for defaults
    :type data: dict[str, Any] | CoordinatorOptions | None
    :returns: A validated CoordinatorOptions instance
    :rtype: CoordinatorOptions
    :raises msgspec.ValidationError: If a field has the wrong type or an invalid value
    :raises TypeError: If an unknown option is given
    """
    if data is None:
        return CoordinatorOptions()
    if isinstance(data, CoordinatorOptions):
        return data
    unknown = set(data) - OPTION_FIELDS
    if unknown:
        raise TypeError(f"Unknown coordinator option(s): {', '.join(sorted(unknown))}")
    return msgspec.convert(data, type=CoordinatorOptions)
