"""FIFO scheduler simulator.

Reconstructs, from a (projected) job profile alone, how a FIFO scheduler
without failures would run the job on a slot-limited cluster. Two modes
share one slot state:

- **detailed** (``schedule``): real timestamps and full task/attempt
  records, with a half-heartbeat delay before every start and after every
  task, plus fixed-length setup and cleanup tasks.
- **fast** (``schedule_duration``): cumulative busy time per slot only,
  for the optimizer's hot loop.

Both modes leave the slots occupied after the job. ``checkpoint`` and
``reset`` snapshot and restore that occupancy so consecutive candidate
evaluations start from the same baseline.
"""

from __future__ import annotations

import heapq
import logging
import math
import re
from dataclasses import dataclass, replace

from mrtune.config import DEFAULT_RED_SLOWSTART, RED_SLOWSTART_KEY, Configuration
from mrtune.models import (
    ClusterModel,
    Counter,
    JobProfile,
    MapProfile,
    SyntheticJobExecution,
    Task,
    TaskAttempt,
    TaskKind,
    TaskPhase,
)

logger = logging.getLogger(__name__)

# Detailed mode waits half a heartbeat before each start and after each task
HALF_HEARTBEAT_DELAY = 1500.0
# Fast mode charges one full heartbeat per task
HEARTBEAT_DELAY = 3000.0

SETUP_TASK_DURATION = 1000.0
CLEANUP_TASK_DURATION = 1000.0

SCHEDULER_NAMES = ("basic",)

_JOB_ID_RE = re.compile(r"job_(.+)")
_KIND_TAGS = {
    TaskKind.SETUP: "s",
    TaskKind.MAP: "m",
    TaskKind.REDUCE: "r",
    TaskKind.CLEANUP: "c",
}


class SchedulerError(Exception):
    """Raised when a job cannot be scheduled on the given cluster."""

    pass


class UnsupportedSchedulerError(SchedulerError):
    """Raised when an unknown scheduler variant is requested."""

    pass


@dataclass(frozen=True)
class Slot:
    """One execution lane; ``ready_at`` is when it next becomes free (ms)."""

    tracker: str
    host: str
    ready_at: float = 0.0


def _job_tag(job_id: str) -> str:
    match = _JOB_ID_RE.fullmatch(job_id)
    return match.group(1) if match else job_id


def _task_id(tag: str, kind: TaskKind, index: int) -> str:
    return f"virtual_task_{tag}_{_KIND_TAGS[kind]}_{index:06d}"


def _attempt_id(tag: str, kind: TaskKind, index: int) -> str:
    return f"virtual_attempt_{tag}_{_KIND_TAGS[kind]}_{index:06d}_0"


def _sorted_map_kinds(profile: JobProfile) -> list[MapProfile]:
    # Largest splits first, as real schedulers order input splits by size
    return sorted(
        profile.map_profiles,
        key=lambda p: p.counter(Counter.HDFS_BYTES_READ),
        reverse=True,
    )


def slow_start_count(conf: Configuration, num_maps: int) -> int:
    """Number of maps that must finish before reducers may start.

    Raises:
        SchedulerError: If the count falls outside [1, num_maps]
    """
    fraction = conf.get_float(RED_SLOWSTART_KEY, DEFAULT_RED_SLOWSTART)
    count = math.ceil(fraction * num_maps)
    if count == 0:
        count = 1
    if count < 0 or count > num_maps:
        raise SchedulerError(
            "The number of maps to complete before reducers can start is out of "
            f"range: {count} (of {num_maps} maps)"
        )
    return count


class FifoScheduler:
    """FIFO what-if scheduler bound to one cluster.

    Usage::

        scheduler = FifoScheduler(cluster)
        scheduler.checkpoint()
        duration = scheduler.schedule_duration(profile, conf)
        scheduler.reset()
        execution = scheduler.schedule(profile, conf)
    """

    def __init__(self, cluster: ClusterModel) -> None:
        self.cluster = cluster
        self.ignore_reducers = False
        self._map_slots: list[Slot] = []
        self._reduce_slots: list[Slot] = []
        self._checkpoint: tuple[tuple[Slot, ...], tuple[Slot, ...]] | None = None
        self._initialize()

    def _initialize(self) -> None:
        self._map_slots = []
        self._reduce_slots = []
        for tracker in self.cluster.trackers:
            self._map_slots.extend(
                Slot(tracker.name, tracker.host) for _ in range(tracker.num_map_slots)
            )
            self._reduce_slots.extend(
                Slot(tracker.name, tracker.host) for _ in range(tracker.num_reduce_slots)
            )

    # ------------------------------------------------------------------
    # Slot state
    # ------------------------------------------------------------------

    @property
    def num_map_slots(self) -> int:
        return len(self._map_slots)

    @property
    def num_reduce_slots(self) -> int:
        return len(self._reduce_slots)

    @property
    def map_slots(self) -> tuple[Slot, ...]:
        return tuple(self._map_slots)

    @property
    def reduce_slots(self) -> tuple[Slot, ...]:
        return tuple(self._reduce_slots)

    def checkpoint(self) -> None:
        """Snapshot the current slot occupancy."""
        self._checkpoint = (tuple(self._map_slots), tuple(self._reduce_slots))

    def reset(self) -> None:
        """Restore the last checkpoint, or an idle cluster if none was taken."""
        if self._checkpoint is None:
            self._initialize()
            return
        map_slots, reduce_slots = self._checkpoint
        self._map_slots = list(map_slots)
        self._reduce_slots = list(reduce_slots)

    def _needs_reducers(self, profile: JobProfile) -> bool:
        return profile.num_reduce_tasks > 0 and not self.ignore_reducers

    def _check_slots(self, profile: JobProfile) -> None:
        if not self._map_slots:
            raise SchedulerError(f"Cluster '{self.cluster.name}' has no map slots")
        if self._needs_reducers(profile) and not self._reduce_slots:
            raise SchedulerError(f"Cluster '{self.cluster.name}' has no reduce slots")

    # ------------------------------------------------------------------
    # Detailed mode
    # ------------------------------------------------------------------

    def schedule(
        self,
        profile: JobProfile,
        conf: Configuration,
        submission_time: float = 0.0,
    ) -> SyntheticJobExecution:
        """Simulate the job and return its full synthetic execution.

        Raises:
            SchedulerError: On missing slots or an unusable slow-start setting
        """
        self._check_slots(profile)
        tag = _job_tag(profile.job_id)

        heap = [(max(s.ready_at, submission_time), i) for i, s in enumerate(self._map_slots)]
        heapq.heapify(heap)

        # Setup runs on the first free map slot
        ready, slot_index = heapq.heappop(heap)
        start = ready + HALF_HEARTBEAT_DELAY
        end = start + SETUP_TASK_DURATION
        setup = Task(
            _task_id(tag, TaskKind.SETUP, 0),
            TaskKind.SETUP,
            TaskAttempt(
                _attempt_id(tag, TaskKind.SETUP, 0),
                self._map_slots[slot_index].host,
                start,
                end,
            ),
        )
        heapq.heappush(heap, (end, slot_index))
        last_map_end, last_map_slot = end, slot_index

        map_tasks: list[Task] = []
        for kind in _sorted_map_kinds(profile):
            exec_time = kind.total_time + HALF_HEARTBEAT_DELAY
            for _ in range(kind.num_tasks):
                ready, slot_index = heapq.heappop(heap)
                start = ready + HALF_HEARTBEAT_DELAY
                end = start + exec_time
                heapq.heappush(heap, (end, slot_index))

                index = len(map_tasks)
                map_tasks.append(
                    Task(
                        _task_id(tag, TaskKind.MAP, index),
                        TaskKind.MAP,
                        TaskAttempt(
                            _attempt_id(tag, TaskKind.MAP, index),
                            self._map_slots[slot_index].host,
                            start,
                            end,
                        ),
                    )
                )
                if end > last_map_end:
                    last_map_end, last_map_slot = end, slot_index

        for ready, slot_index in heap:
            self._map_slots[slot_index] = replace(self._map_slots[slot_index], ready_at=ready)

        if not self._needs_reducers(profile):
            cleanup = self._cleanup(tag, self._map_slots, last_map_slot, last_map_end)
            logger.debug("Scheduled map-only job %s: %d maps", profile.job_id, len(map_tasks))
            return SyntheticJobExecution(
                job_id=profile.job_id,
                submission_time=submission_time,
                end_time=cleanup.end,
                setup_tasks=(setup,),
                map_tasks=tuple(map_tasks),
                cleanup_tasks=(cleanup,),
            )

        num_maps = len(map_tasks)
        count = slow_start_count(conf, num_maps)
        slow_start = sorted(t.end for t in map_tasks)[count - 1]

        heap = [(max(s.ready_at, submission_time), i) for i, s in enumerate(self._reduce_slots)]
        heapq.heapify(heap)
        used: set[int] = set()
        last_reduce_end, last_reduce_slot = last_map_end, heap[0][1]

        reduce_tasks: list[Task] = []
        for kind in profile.reduce_profiles:
            shuffle = kind.timing(TaskPhase.SHUFFLE)
            sort = kind.timing(TaskPhase.SORT)
            rest = kind.total_time - sort - shuffle + HALF_HEARTBEAT_DELAY
            for _ in range(kind.num_tasks):
                ready, slot_index = heapq.heappop(heap)
                start = max(ready, slow_start) + HALF_HEARTBEAT_DELAY

                # Shuffling cannot finish before the last map does
                if slot_index not in used and shuffle < last_map_end - start:
                    shuffle_end = last_map_end + shuffle / num_maps
                else:
                    shuffle_end = start + shuffle
                sort_end = shuffle_end + sort
                end = sort_end + rest

                used.add(slot_index)
                heapq.heappush(heap, (end, slot_index))

                index = len(reduce_tasks)
                reduce_tasks.append(
                    Task(
                        _task_id(tag, TaskKind.REDUCE, index),
                        TaskKind.REDUCE,
                        TaskAttempt(
                            _attempt_id(tag, TaskKind.REDUCE, index),
                            self._reduce_slots[slot_index].host,
                            start,
                            end,
                            shuffle_end=shuffle_end,
                            sort_end=sort_end,
                        ),
                    )
                )
                if end > last_reduce_end:
                    last_reduce_end, last_reduce_slot = end, slot_index

        for ready, slot_index in heap:
            self._reduce_slots[slot_index] = replace(
                self._reduce_slots[slot_index], ready_at=ready
            )

        cleanup = self._cleanup(tag, self._reduce_slots, last_reduce_slot, last_reduce_end)
        logger.debug(
            "Scheduled job %s: %d maps, %d reduces, slow-start at %.0f ms",
            profile.job_id,
            num_maps,
            len(reduce_tasks),
            slow_start,
        )
        return SyntheticJobExecution(
            job_id=profile.job_id,
            submission_time=submission_time,
            end_time=cleanup.end,
            setup_tasks=(setup,),
            map_tasks=tuple(map_tasks),
            reduce_tasks=tuple(reduce_tasks),
            cleanup_tasks=(cleanup,),
        )

    def _cleanup(self, tag: str, slots: list[Slot], slot_index: int, after: float) -> Task:
        start = max(after, slots[slot_index].ready_at) + HALF_HEARTBEAT_DELAY
        end = start + CLEANUP_TASK_DURATION
        slots[slot_index] = replace(slots[slot_index], ready_at=end)
        return Task(
            _task_id(tag, TaskKind.CLEANUP, 0),
            TaskKind.CLEANUP,
            TaskAttempt(_attempt_id(tag, TaskKind.CLEANUP, 0), slots[slot_index].host, start, end),
        )

    # ------------------------------------------------------------------
    # Fast mode
    # ------------------------------------------------------------------

    def schedule_duration(
        self,
        profile: JobProfile,
        conf: Configuration,
        submission_time: float = 0.0,
    ) -> float:
        """Simulate the job and return only its predicted duration (ms).

        Raises:
            SchedulerError: On missing slots or an unusable slow-start setting
        """
        self._check_slots(profile)

        heap = [
            (max(s.ready_at - submission_time, 0.0), i) for i, s in enumerate(self._map_slots)
        ]
        heapq.heapify(heap)

        busy, slot_index = heapq.heappop(heap)
        busy += SETUP_TASK_DURATION + HEARTBEAT_DELAY
        heapq.heappush(heap, (busy, slot_index))
        maps_completion, last_map_slot = busy, slot_index

        map_ends: list[float] = []
        for kind in _sorted_map_kinds(profile):
            exec_time = kind.total_time + HEARTBEAT_DELAY
            for _ in range(kind.num_tasks):
                busy, slot_index = heapq.heappop(heap)
                busy += exec_time
                heapq.heappush(heap, (busy, slot_index))
                map_ends.append(busy)
                if busy > maps_completion:
                    maps_completion, last_map_slot = busy, slot_index

        map_busy = {i: b for b, i in heap}

        if not self._needs_reducers(profile):
            completion = maps_completion + CLEANUP_TASK_DURATION + HEARTBEAT_DELAY
            map_busy[last_map_slot] = completion
            self._commit(self._map_slots, map_busy, submission_time)
            return completion

        count = slow_start_count(conf, len(map_ends))
        reducer_start = sorted(map_ends)[count - 1]
        overlap = maps_completion - reducer_start

        heap = [
            (max(s.ready_at - submission_time, reducer_start), i)
            for i, s in enumerate(self._reduce_slots)
        ]
        heapq.heapify(heap)
        used: set[int] = set()
        job_completion, last_reduce_slot = maps_completion, heap[0][1]

        for kind in profile.reduce_profiles:
            later_wave = kind.total_time + HEARTBEAT_DELAY
            shuffle = kind.timing(TaskPhase.SHUFFLE)
            first_wave = later_wave - shuffle + overlap if shuffle < overlap else later_wave
            for _ in range(kind.num_tasks):
                busy, slot_index = heapq.heappop(heap)
                busy += later_wave if slot_index in used else first_wave
                used.add(slot_index)
                heapq.heappush(heap, (busy, slot_index))
                if busy > job_completion:
                    job_completion, last_reduce_slot = busy, slot_index

        reduce_busy = {i: b for b, i in heap}
        completion = job_completion + CLEANUP_TASK_DURATION + HEARTBEAT_DELAY
        reduce_busy[last_reduce_slot] = completion
        self._commit(self._map_slots, map_busy, submission_time)
        self._commit(self._reduce_slots, reduce_busy, submission_time)
        return completion

    @staticmethod
    def _commit(slots: list[Slot], busy: dict[int, float], submission_time: float) -> None:
        for index, elapsed in busy.items():
            slots[index] = replace(slots[index], ready_at=submission_time + elapsed)


def create_scheduler(name: str, cluster: ClusterModel) -> FifoScheduler:
    """Return the scheduler variant registered under ``name``.

    Raises:
        UnsupportedSchedulerError: For any name other than ``basic``
    """
    if name == "basic":
        return FifoScheduler(cluster)
    raise UnsupportedSchedulerError(
        f"Unsupported scheduler '{name}' (supported: {', '.join(SCHEDULER_NAMES)})"
    )
