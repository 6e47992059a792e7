from typing import Any

from batchflow.domain.entity import ResultCallback


class TaskBase:
    """Base class for class-based tasks. Enforces a 'run' method on subclasses."""

    task_name: str | None = None

    def __init_subclass__(cls, **kwargs):
        """
        Ensures the subclass defines a 'run' method.

        :param kwargs: Additional keyword arguments passed to super().__init_subclass__
        :raises TypeError: If the subclass doesn't define a 'run' method
        """
        super().__init_subclass__(**kwargs)

        defines_run = any(
            "run" in klass.__dict__ for klass in cls.__mro__ if klass is not TaskBase and issubclass(klass, TaskBase)
        )
        if not defines_run:
            raise TypeError(f"{cls.__name__} must define a 'run' method")

    def run(self, done: ResultCallback) -> Any:
        """
        Perform the work and report the result through ``done``.

        :param done: Completion callback, to be called exactly once
        :type done: ResultCallback
        :raises NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError("Tasks must implement the run method")
