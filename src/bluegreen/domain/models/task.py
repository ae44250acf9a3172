"""Task outcome model."""

from __future__ import annotations

from enum import Enum


class TaskStatus(str, Enum):
    """Outcome of one Task.process() call.

    ERROR is recorded by a job for a task that raised; a task never returns it.
    """

    NOOP = "noop"
    DONE = "done"
    ERROR = "error"
