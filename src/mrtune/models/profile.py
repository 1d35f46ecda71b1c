"""Job profile models.

A profile summarizes how one job behaved -- or is predicted to behave --
per task kind: how long each phase took, what the counters recorded, and
derived statistics such as selectivities and per-record memory. A job
may have several map profile kinds (one per input) and, unless it is
map-only, reduce profiles.

Example YAML::

    job_id: job_201011062135_0003
    job_name: wordcount
    map_profiles:
      - task_id: map_0
        input_index: 0
        num_tasks: 8
        counters: {MAP_INPUT_BYTES: 67108864, HDFS_BYTES_READ: 67108864}
        statistics: {MAP_SIZE_SEL: 1.2}
        timings: {READ: 1500.0, MAP: 6000.0, SPILL: 800.0}
    reduce_profiles:
      - task_id: reduce_0
        num_tasks: 2
        timings: {SHUFFLE: 4000.0, SORT: 500.0, REDUCE: 3000.0}
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mrtune.config.loader import load_document, save_document


class TaskPhase(str, Enum):
    """Sub-phases of a map or reduce task."""

    SETUP = "SETUP"
    READ = "READ"
    MAP = "MAP"
    COLLECT = "COLLECT"
    SPILL = "SPILL"
    MERGE = "MERGE"
    SHUFFLE = "SHUFFLE"
    SORT = "SORT"
    REDUCE = "REDUCE"
    WRITE = "WRITE"
    CLEANUP = "CLEANUP"


class Counter(str, Enum):
    """Task counters, as collected by the framework."""

    MAP_TASKS = "MAP_TASKS"
    REDUCE_TASKS = "REDUCE_TASKS"
    MAP_INPUT_RECORDS = "MAP_INPUT_RECORDS"
    MAP_INPUT_BYTES = "MAP_INPUT_BYTES"
    MAP_OUTPUT_RECORDS = "MAP_OUTPUT_RECORDS"
    MAP_OUTPUT_BYTES = "MAP_OUTPUT_BYTES"
    MAP_NUM_SPILLS = "MAP_NUM_SPILLS"
    MAP_NUM_SPILL_MERGES = "MAP_NUM_SPILL_MERGES"
    REDUCE_SHUFFLE_BYTES = "REDUCE_SHUFFLE_BYTES"
    REDUCE_INPUT_GROUPS = "REDUCE_INPUT_GROUPS"
    REDUCE_INPUT_RECORDS = "REDUCE_INPUT_RECORDS"
    REDUCE_OUTPUT_RECORDS = "REDUCE_OUTPUT_RECORDS"
    REDUCE_OUTPUT_BYTES = "REDUCE_OUTPUT_BYTES"
    COMBINE_INPUT_RECORDS = "COMBINE_INPUT_RECORDS"
    COMBINE_OUTPUT_RECORDS = "COMBINE_OUTPUT_RECORDS"
    SPILLED_RECORDS = "SPILLED_RECORDS"
    FILE_BYTES_READ = "FILE_BYTES_READ"
    FILE_BYTES_WRITTEN = "FILE_BYTES_WRITTEN"
    HDFS_BYTES_READ = "HDFS_BYTES_READ"
    HDFS_BYTES_WRITTEN = "HDFS_BYTES_WRITTEN"


class Statistic(str, Enum):
    """Derived per-task statistics (ratios, widths, memory costs)."""

    INPUT_PAIR_WIDTH = "INPUT_PAIR_WIDTH"
    REDUCE_PAIRS_PER_GROUP = "REDUCE_PAIRS_PER_GROUP"
    MAP_SIZE_SEL = "MAP_SIZE_SEL"
    MAP_PAIRS_SEL = "MAP_PAIRS_SEL"
    REDUCE_SIZE_SEL = "REDUCE_SIZE_SEL"
    REDUCE_PAIRS_SEL = "REDUCE_PAIRS_SEL"
    COMBINE_SIZE_SEL = "COMBINE_SIZE_SEL"
    COMBINE_PAIRS_SEL = "COMBINE_PAIRS_SEL"
    INPUT_COMPRESS_RATIO = "INPUT_COMPRESS_RATIO"
    INTERM_COMPRESS_RATIO = "INTERM_COMPRESS_RATIO"
    OUT_COMPRESS_RATIO = "OUT_COMPRESS_RATIO"
    STARTUP_MEM = "STARTUP_MEM"
    SETUP_MEM = "SETUP_MEM"
    MAP_MEM_PER_RECORD = "MAP_MEM_PER_RECORD"
    REDUCE_MEM_PER_RECORD = "REDUCE_MEM_PER_RECORD"
    CLEANUP_MEM = "CLEANUP_MEM"


class TaskProfile(BaseModel):
    """Profile of one task kind; ``num_tasks`` instances share it."""

    model_config = ConfigDict(extra="forbid")

    task_id: str = ""
    num_tasks: int = Field(default=1, ge=0)
    counters: dict[Counter, int] = Field(default_factory=dict)
    statistics: dict[Statistic, float] = Field(default_factory=dict)
    timings: dict[TaskPhase, float] = Field(default_factory=dict)

    @field_validator("timings")
    @classmethod
    def timings_non_negative(cls, v: dict[TaskPhase, float]) -> dict[TaskPhase, float]:
        for phase, ms in v.items():
            if ms < 0:
                raise ValueError(f"timing for {phase.value} must be >= 0, got {ms}")
        return v

    def counter(self, counter: Counter, default: int = 0) -> int:
        return self.counters.get(counter, default)

    def statistic(self, statistic: Statistic, default: float = 0.0) -> float:
        return self.statistics.get(statistic, default)

    def timing(self, phase: TaskPhase, default: float = 0.0) -> float:
        return self.timings.get(phase, default)

    @property
    def total_time(self) -> float:
        """Sum of all phase timings (ms)."""
        return sum(self.timings.values())


class MapProfile(TaskProfile):
    """Map task profile; ``input_index`` names the job input it reads."""

    input_index: int = Field(default=0, ge=0)


class ReduceProfile(TaskProfile):
    """Reduce task profile."""

    pass


class JobProfile(BaseModel):
    """Profile of a whole job: its map kinds and reduce kinds."""

    model_config = ConfigDict(extra="forbid")

    job_id: str
    job_name: str = ""
    counters: dict[Counter, int] = Field(default_factory=dict)
    map_profiles: list[MapProfile] = Field(default_factory=list)
    reduce_profiles: list[ReduceProfile] = Field(default_factory=list)

    @field_validator("map_profiles")
    @classmethod
    def needs_a_map_profile(cls, v: list[MapProfile]) -> list[MapProfile]:
        if not v:
            raise ValueError("a job profile needs at least one map profile")
        return v

    def counter(self, counter: Counter, default: int = 0) -> int:
        return self.counters.get(counter, default)

    @property
    def num_map_tasks(self) -> int:
        return sum(p.num_tasks for p in self.map_profiles)

    @property
    def num_reduce_tasks(self) -> int:
        return sum(p.num_tasks for p in self.reduce_profiles)

    def map_profile_for(self, input_index: int) -> MapProfile | None:
        for profile in self.map_profiles:
            if profile.input_index == input_index:
                return profile
        return None

    @property
    def avg_map_profile(self) -> MapProfile:
        """Task-weighted average over every map profile kind."""
        merged = _average(self.map_profiles)
        return MapProfile(task_id=f"{self.job_id}_avg_map", **merged)

    @property
    def avg_reduce_profile(self) -> ReduceProfile | None:
        if not self.reduce_profiles:
            return None
        merged = _average(self.reduce_profiles)
        return ReduceProfile(task_id=f"{self.job_id}_avg_reduce", **merged)


def _average(profiles: list[MapProfile] | list[ReduceProfile]) -> dict:
    """Average counters, statistics, and timings weighted by task count."""
    total = sum(p.num_tasks for p in profiles)
    weights = [p.num_tasks / total if total else 1 / len(profiles) for p in profiles]

    counters: dict[Counter, float] = {}
    statistics: dict[Statistic, float] = {}
    timings: dict[TaskPhase, float] = {}
    for weight, profile in zip(weights, profiles):
        for c, value in profile.counters.items():
            counters[c] = counters.get(c, 0.0) + weight * value
        for s, value in profile.statistics.items():
            statistics[s] = statistics.get(s, 0.0) + weight * value
        for t, value in profile.timings.items():
            timings[t] = timings.get(t, 0.0) + weight * value

    return {
        "num_tasks": total,
        "counters": {c: round(v) for c, v in counters.items()},
        "statistics": statistics,
        "timings": timings,
    }


# =============================================================================
# Memory estimates
# =============================================================================


def map_memory_required(profile: MapProfile | None) -> int:
    """Heap bytes a map task needs outside its sort buffer."""
    if profile is None:
        return 0
    memory = (
        profile.statistic(Statistic.STARTUP_MEM)
        + profile.statistic(Statistic.SETUP_MEM)
        + profile.statistic(Statistic.CLEANUP_MEM)
    )
    memory += profile.statistic(Statistic.MAP_MEM_PER_RECORD) * profile.counter(
        Counter.MAP_INPUT_RECORDS
    )
    return round(memory)


def reduce_memory_required(profile: ReduceProfile | None) -> int:
    """Heap bytes a reduce task needs outside its shuffle buffers."""
    if profile is None:
        return 0
    memory = (
        profile.statistic(Statistic.STARTUP_MEM)
        + profile.statistic(Statistic.SETUP_MEM)
        + profile.statistic(Statistic.CLEANUP_MEM)
    )
    memory += profile.statistic(Statistic.REDUCE_MEM_PER_RECORD) * profile.counter(
        Counter.REDUCE_INPUT_RECORDS
    )
    return round(memory)


# =============================================================================
# Document I/O
# =============================================================================


def load_job_profile(path: str | Path) -> JobProfile:
    """Load and validate a job profile document.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    return load_document(JobProfile, path, "Job profile")


def save_job_profile(profile: JobProfile, path: str | Path) -> None:
    save_document(profile, path)
