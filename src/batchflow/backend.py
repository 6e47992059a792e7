from enum import Enum


class BackendType(Enum):
    """Supported task dispatch backends."""

    INLINE = "inline"
    THREAD = "thread"
    EVENT_LOOP = "event_loop"
