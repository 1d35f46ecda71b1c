"""Shared fixtures for mrtune test suite."""

from __future__ import annotations

from typing import Any

import pytest

from mrtune._constants import DEFAULT_TASK_MEMORY, MB
from mrtune.config import RED_TASKS_KEY, Configuration
from mrtune.models import (
    ClusterModel,
    Counter,
    JobProfile,
    MapProfile,
    ReduceProfile,
    Statistic,
    TaskPhase,
    synthesize_cluster,
)


def make_profile(
    num_maps: int = 8,
    num_reduces: int = 2,
    map_statistics: dict[Statistic, float] | None = None,
    reduce_statistics: dict[Statistic, float] | None = None,
    **overrides: Any,
) -> JobProfile:
    """Create a JobProfile of a profiled wordcount-like run.

    Each map reads a 64 MB split and runs for 10 s in total; each reducer
    shuffles for 2 s, sorts for 1 s and reduces for 3 s. This is the
    canonical profile factory for tests.
    """
    map_profile = MapProfile(
        task_id="map_0",
        input_index=0,
        num_tasks=num_maps,
        counters={
            Counter.HDFS_BYTES_READ: 64 * MB,
            Counter.MAP_INPUT_BYTES: 64 * MB,
            Counter.MAP_INPUT_RECORDS: 1_000_000,
            Counter.MAP_OUTPUT_BYTES: 80 * MB,
            Counter.MAP_OUTPUT_RECORDS: 2_000_000,
        },
        statistics={
            Statistic.MAP_SIZE_SEL: 1.25,
            Statistic.MAP_PAIRS_SEL: 2.0,
            Statistic.COMBINE_SIZE_SEL: 0.5,
            Statistic.COMBINE_PAIRS_SEL: 0.5,
            Statistic.INPUT_COMPRESS_RATIO: 1.0,
            Statistic.INTERM_COMPRESS_RATIO: 0.4,
            Statistic.OUT_COMPRESS_RATIO: 0.3,
            **(map_statistics or {}),
        },
        timings={
            TaskPhase.READ: 2000.0,
            TaskPhase.MAP: 6000.0,
            TaskPhase.COLLECT: 1000.0,
            TaskPhase.SPILL: 1000.0,
        },
    )
    reduce_profiles = []
    if num_reduces:
        reduce_profiles.append(
            ReduceProfile(
                task_id="reduce_0",
                num_tasks=num_reduces,
                counters={
                    Counter.REDUCE_SHUFFLE_BYTES: 100 * MB,
                    Counter.REDUCE_INPUT_RECORDS: 4_000_000,
                    Counter.REDUCE_INPUT_GROUPS: 50_000,
                    Counter.REDUCE_OUTPUT_RECORDS: 50_000,
                    Counter.REDUCE_OUTPUT_BYTES: 5 * MB,
                },
                statistics=dict(reduce_statistics or {}),
                timings={
                    TaskPhase.SHUFFLE: 2000.0,
                    TaskPhase.SORT: 1000.0,
                    TaskPhase.REDUCE: 3000.0,
                },
            )
        )

    base: dict[str, Any] = {
        "job_id": "job_test_0001",
        "job_name": "wordcount",
        "map_profiles": [map_profile],
        "reduce_profiles": reduce_profiles,
    }
    base.update(overrides)
    return JobProfile(**base)


def make_cluster(
    racks: int = 1,
    hosts_per_rack: int = 2,
    map_slots: int = 1,
    reduce_slots: int = 1,
    max_task_memory: int = DEFAULT_TASK_MEMORY,
) -> ClusterModel:
    """Create a uniform cluster; the default has 2 map and 2 reduce slots."""
    return synthesize_cluster(
        name="test-cluster",
        num_racks=racks,
        hosts_per_rack=hosts_per_rack,
        map_slots=map_slots,
        reduce_slots=reduce_slots,
        max_task_memory=max_task_memory,
    )


def make_configuration(properties: dict[str, Any] | None = None) -> Configuration:
    """Create a job Configuration with two reducers plus ``properties``."""
    conf = Configuration({RED_TASKS_KEY: 2})
    for key, value in (properties or {}).items():
        conf.set(key, value)
    return conf


@pytest.fixture
def profile() -> JobProfile:
    """A default profile for tests that don't care about specifics."""
    return make_profile()


@pytest.fixture
def cluster() -> ClusterModel:
    """Two hosts with one map and one reduce slot each."""
    return make_cluster()


@pytest.fixture
def conf() -> Configuration:
    """A two-reducer job configuration."""
    return make_configuration()
