from collections.abc import Callable
from typing import Any

import msgspec

from batchflow.domain.value_object import RunStatus, TaskMode

ResultCallback = Callable[[Any], None]
WorkFunction = Callable[[ResultCallback], None]
FinalCallback = Callable[[list[Any]], None]


class Task(msgspec.Struct, kw_only=True):
    """A unit of asynchronous work.

    ``work`` receives a completion callback and must call it exactly once with
    its result. ``name`` is used for diagnostics only.
    """

    work: WorkFunction
    name: str | None = None


class TaskFailure(msgspec.Struct, forbid_unknown_fields=True):
    """Result recorded for a task that raised instead of completing."""

    task: str
    error: str
    exception_type: str

    @classmethod
    def from_exception(cls, task: str, error: BaseException) -> "TaskFailure":
        return cls(task=task, error=str(error), exception_type=type(error).__name__)


class RunResult(msgspec.Struct, forbid_unknown_fields=True):
    """Snapshot of a coordinator run, including status and collected results."""

    id: str
    mode: TaskMode
    status: RunStatus | None
    task_count: int
    results: list[Any]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.COMPLETED

    def to_dict(self):
        """Convert the RunResult to a dictionary."""
        return msgspec.to_builtins(self)

    def to_json(self) -> str:
        """Convert the RunResult to a JSON string."""
        return msgspec.json.encode(self).decode()
