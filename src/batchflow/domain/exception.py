class CoordinatorError(RuntimeError):
    """Base class for errors raised by a coordinator."""


class RegistryClosedError(CoordinatorError):
    """Raised when tasks are added to a coordinator that has already started."""

    def __init__(self, instance_id: str):
        super().__init__(f"{instance_id} has already started; no more tasks can be added")
        self.instance_id = instance_id


class CallbackInvokedTwiceError(CoordinatorError):
    """Raised when a task calls its completion callback more than once."""

    def __init__(self, task_name: str):
        super().__init__(f"Task '{task_name}' invoked its completion callback more than once")
        self.task_name = task_name
