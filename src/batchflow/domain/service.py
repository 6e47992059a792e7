import uuid
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from msgspec import structs

from batchflow.domain.entity import Task
from batchflow.domain.port import TaskBase

T = TypeVar("T")


def generate_token() -> str:
    """Returns a collision-resistant random token for naming tasks and instances."""
    return uuid.uuid4().hex


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """
    Splits ``items`` into contiguous chunks of at most ``size`` elements.

    :param items: The sequence to split
    :type items: Sequence[T]
    :param size: Maximum chunk length; values below 1 are treated as 1
    :type size: int
    :returns: The chunks in original order; the last chunk may be shorter
    :rtype: list[list[T]]
    """
    size = max(1, size)
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def normalize_tasks(candidates: Any, start_index: int = 0) -> list[Task]:
    """
    Converts the accepted input shapes into a list of named tasks.

    Accepts ``None``, a single task-like value, or a list/tuple of them. A task-like
    value is a ``Task``, a mapping with ``work`` and optional ``name``, a ``TaskBase``
    instance, or a bare callable.

    :param candidates: The value passed to ``Coordinator.add``
    :type candidates: Any
    :param start_index: Registry index the first new task will occupy
    :type start_index: int
    :returns: Normalized tasks in input order
    :rtype: list[Task]
    :raises TypeError: If a value is not task-like
    :raises ValueError: If a mapping carries no callable ``work``
    """
    if candidates is None:
        return []
    if not isinstance(candidates, list | tuple):
        candidates = [candidates]

    tasks: list[Task] = []
    for candidate in candidates:
        if candidate is None:
            continue
        tasks.append(_to_task(candidate, start_index + len(tasks)))
    return tasks


def _to_task(candidate: Any, index: int) -> Task:
    if isinstance(candidate, Task):
        return structs.replace(candidate, name=_task_name(candidate.name, candidate.work, index))

    if isinstance(candidate, TaskBase):
        return Task(work=candidate.run, name=_task_name(candidate.task_name, candidate, index))

    if isinstance(candidate, Mapping):
        work = candidate.get("work")
        if not callable(work):
            raise ValueError(f"Task mapping at index {index} has no callable 'work'")
        return Task(work=work, name=_task_name(candidate.get("name"), work, index))

    if callable(candidate):
        return Task(work=candidate, name=generate_token())

    raise TypeError(f"Cannot build a task from {type(candidate).__name__}")


def _task_name(name: str | None, work: Any, index: int) -> str:
    # unnamed tasks get index#identity so two anonymous ones stay distinguishable
    if name is not None:
        name = str(name).strip()
    if name:
        return name
    return f"{index}#{_identity(work)}"


def _identity(work: Any) -> str:
    return getattr(work, "__name__", None) or getattr(work, "__qualname__", None) or type(work).__name__
