from dataclasses import dataclass
from enum import Enum

DEFAULT_CHUNK_SIZE = 30


class TaskMode(str, Enum):
    """Execution modes for a batch of tasks."""

    QUEUE = "queue"
    POOL = "pool"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class CoordinatorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINAL = "terminal"


class RunStatus(str, Enum):
    """Why a coordinator reached its terminal state."""

    COMPLETED = "completed"
    QUIT = "quit"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class CoordinatorOptions:
    """
    Configuration for a single coordinator instance.

    :param name: Optional label appended to the instance id
    :param debug: Emit per-step trace records at DEBUG level
    :param chunk_size: Maximum number of tasks in flight in pool mode
    :param timeout: Optional deadline in seconds after which the run is abandoned
    :param capture_errors: Record exceptions raised by tasks as ``TaskFailure`` results
    """

    name: str | None = None
    debug: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout: float | None = None
    capture_errors: bool = False

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
