"""Synthetic job execution produced by the detailed scheduler.

Records are frozen: the scheduler builds each attempt completely when it
places the task, and the execution is never modified afterwards.
Timestamps are milliseconds on the caller's submission-time axis.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TaskKind(str, Enum):
    """Kinds of tasks in a synthetic execution."""

    SETUP = "setup"
    MAP = "map"
    REDUCE = "reduce"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class TaskAttempt:
    """The single (successful) attempt of a simulated task.

    ``shuffle_end`` and ``sort_end`` are set for reduce attempts only.
    """

    attempt_id: str
    host: str
    start: float
    end: float
    shuffle_end: float | None = None
    sort_end: float | None = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def shuffle_duration(self) -> float:
        return (self.shuffle_end - self.start) if self.shuffle_end is not None else 0.0

    @property
    def sort_duration(self) -> float:
        if self.shuffle_end is None or self.sort_end is None:
            return 0.0
        return self.sort_end - self.shuffle_end

    @property
    def reduce_duration(self) -> float:
        return (self.end - self.sort_end) if self.sort_end is not None else 0.0


@dataclass(frozen=True)
class Task:
    """A simulated task with its attempt."""

    task_id: str
    kind: TaskKind
    attempt: TaskAttempt

    @property
    def start(self) -> float:
        return self.attempt.start

    @property
    def end(self) -> float:
        return self.attempt.end


@dataclass(frozen=True)
class SyntheticJobExecution:
    """Predicted timeline of one job."""

    job_id: str
    submission_time: float
    end_time: float
    setup_tasks: tuple[Task, ...] = ()
    map_tasks: tuple[Task, ...] = ()
    reduce_tasks: tuple[Task, ...] = ()
    cleanup_tasks: tuple[Task, ...] = ()

    @property
    def duration(self) -> float:
        """Predicted running time (ms) from submission to cleanup completion."""
        return self.end_time - self.submission_time

    @property
    def all_tasks(self) -> tuple[Task, ...]:
        return self.setup_tasks + self.map_tasks + self.reduce_tasks + self.cleanup_tasks

    @property
    def last_map_end(self) -> float | None:
        return max((t.end for t in self.map_tasks), default=None)
