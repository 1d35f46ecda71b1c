"""Tabular views of a synthetic job execution.

These helpers turn a ``SyntheticJobExecution`` into plain rows and
summaries; the CLI renders them with rich tables.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from enum import Enum

from mrtune.models import SyntheticJobExecution, Task

SUCCESS = "SUCCESS"
# Simulated maps always read local data
DATA_LOCAL = "DATA_LOCAL"


class WhatIfQuestion(str, Enum):
    """Questions the ``whatif`` command can answer."""

    JOB_TIME = "job_time"
    DETAILS = "details"
    PROFILE = "profile"
    TIMELINE = "timeline"
    MAPPERS = "mappers"
    REDUCERS = "reducers"
    CLUSTER_INFO = "cluster_info"
    INPUT_SPECS = "input_specs"


@dataclass(frozen=True)
class TimelineRow:
    """Tasks running in one interval of the job's lifetime."""

    time: int
    maps: int
    shuffle: int
    merge: int
    reduce: int


@dataclass(frozen=True)
class ExecutionSummary:
    """Aggregate task statistics of one execution (durations in ms)."""

    job_id: str
    start: float
    end: float
    duration: float
    num_maps: int
    map_avg: float
    map_sd: float
    num_reduces: int
    shuffle_avg: float
    sort_avg: float
    reduce_avg: float
    reduce_total_avg: float
    reduce_sd: float

    @property
    def map_cv(self) -> float:
        return self.map_sd / self.map_avg if self.map_avg else 0.0

    @property
    def reduce_cv(self) -> float:
        return self.reduce_sd / self.reduce_total_avg if self.reduce_total_avg else 0.0


def format_duration(ms: float) -> str:
    """Human-readable duration: ``850 ms``, ``12 sec 300 ms``, ``3 min 5 sec``."""
    ms = int(round(ms))
    sec = ms // 1000
    if ms < 1000:
        return f"{ms} ms"
    if sec < 60:
        return f"{sec} sec {ms % 1000} ms"
    if sec < 3600:
        return f"{sec // 60} min {sec % 60} sec"
    return f"{sec // 3600} hr {(sec // 60) % 60} min {sec % 60} sec"


def execution_timeline(execution: SyntheticJobExecution, interval_ms: int = 1000) -> list[TimelineRow]:
    """Count the running maps and reducer phases in every interval.

    Interval ``t`` covers ``[t, t + 1) * interval_ms`` after submission; a
    task counts towards every interval between its start and end.
    """
    if interval_ms <= 0:
        raise ValueError(f"interval_ms must be positive, got {interval_ms}")

    num_intervals = max(math.ceil(execution.duration / interval_ms), 0)
    maps = [0] * num_intervals
    shuffle = [0] * num_intervals
    merge = [0] * num_intervals
    reduce = [0] * num_intervals

    def bucket(timestamp: float) -> int:
        return min(int((timestamp - execution.submission_time) // interval_ms), num_intervals)

    def mark(counts: list[int], start: float, end: float) -> None:
        for t in range(bucket(start), bucket(end)):
            counts[t] += 1

    for task in execution.map_tasks:
        mark(maps, task.start, task.end)
    for task in execution.reduce_tasks:
        attempt = task.attempt
        shuffle_end = attempt.shuffle_end if attempt.shuffle_end is not None else attempt.start
        sort_end = attempt.sort_end if attempt.sort_end is not None else shuffle_end
        mark(shuffle, attempt.start, shuffle_end)
        mark(merge, shuffle_end, sort_end)
        mark(reduce, sort_end, attempt.end)

    return [
        TimelineRow(time=t, maps=maps[t], shuffle=shuffle[t], merge=merge[t], reduce=reduce[t])
        for t in range(num_intervals)
    ]


def mapper_rows(execution: SyntheticJobExecution) -> list[dict[str, str | float]]:
    return [
        {
            "TaskID": task.task_id,
            "Host": task.attempt.host,
            "Status": SUCCESS,
            "Locality": DATA_LOCAL,
            "Duration (ms)": task.attempt.duration,
        }
        for task in execution.map_tasks
    ]


def reducer_rows(execution: SyntheticJobExecution) -> list[dict[str, str | float]]:
    return [
        {
            "TaskID": task.task_id,
            "Host": task.attempt.host,
            "Status": SUCCESS,
            "Shuffle (ms)": task.attempt.shuffle_duration,
            "Sort (ms)": task.attempt.sort_duration,
            "Reduce (ms)": task.attempt.reduce_duration,
            "Total (ms)": task.attempt.duration,
        }
        for task in execution.reduce_tasks
    ]


def _mean(values: list[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _sd(tasks: tuple[Task, ...]) -> float:
    # Population deviation: every task of the job is in the sample
    return statistics.pstdev(t.attempt.duration for t in tasks) if tasks else 0.0


def execution_summary(execution: SyntheticJobExecution) -> ExecutionSummary:
    maps = execution.map_tasks
    reduces = execution.reduce_tasks
    return ExecutionSummary(
        job_id=execution.job_id,
        start=execution.submission_time,
        end=execution.end_time,
        duration=execution.duration,
        num_maps=len(maps),
        map_avg=_mean([t.attempt.duration for t in maps]),
        map_sd=_sd(maps),
        num_reduces=len(reduces),
        shuffle_avg=_mean([t.attempt.shuffle_duration for t in reduces]),
        sort_avg=_mean([t.attempt.sort_duration for t in reduces]),
        reduce_avg=_mean([t.attempt.reduce_duration for t in reduces]),
        reduce_total_avg=_mean([t.attempt.duration for t in reduces]),
        reduce_sd=_sd(reduces),
    )
