"""Tests for job profile and cluster models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mrtune._constants import MB
from mrtune.config import (
    CLUSTER_HOSTS_PER_RACK_KEY,
    CLUSTER_RACKS_KEY,
    JAVA_OPTS_KEY,
    MAP_SLOTS_KEY,
    REDUCE_SLOTS_KEY,
    ConfigValidationError,
    Configuration,
)
from mrtune.models import (
    ClusterModel,
    Counter,
    JobProfile,
    MapProfile,
    Statistic,
    TaskPhase,
    cluster_from_configuration,
    load_cluster,
    load_job_profile,
    map_memory_required,
    reduce_memory_required,
    save_cluster,
    save_job_profile,
    synthesize_cluster,
)
from tests.conftest import make_profile

PROFILE_YAML = """\
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


class TestJobProfile:
    """Tests for JobProfile."""

    def test_load_document(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.yaml"
        path.write_text(PROFILE_YAML)
        profile = load_job_profile(path)
        assert profile.job_id == "job_201011062135_0003"
        assert profile.num_map_tasks == 8
        assert profile.num_reduce_tasks == 2
        assert profile.map_profiles[0].counter(Counter.HDFS_BYTES_READ) == 64 * MB
        assert profile.map_profiles[0].total_time == 8300.0

    def test_save_then_load(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.yaml"
        save_job_profile(make_profile(), path)
        assert load_job_profile(path) == make_profile()

    def test_needs_a_map_profile(self) -> None:
        with pytest.raises(ValidationError):
            JobProfile(job_id="job_1", map_profiles=[])

    def test_negative_timing_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MapProfile(timings={TaskPhase.MAP: -1.0})

    def test_unknown_counter_rejected_on_load(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.yaml"
        path.write_text(PROFILE_YAML.replace("MAP_INPUT_BYTES", "NOT_A_COUNTER"))
        with pytest.raises(ConfigValidationError):
            load_job_profile(path)

    def test_defaults_for_missing_values(self) -> None:
        profile = make_profile().map_profiles[0]
        assert profile.counter(Counter.REDUCE_OUTPUT_BYTES) == 0
        assert profile.statistic(Statistic.STARTUP_MEM) == 0.0
        assert profile.timing(TaskPhase.CLEANUP, 5.0) == 5.0

    def test_avg_map_profile_weighted_by_tasks(self) -> None:
        profile = JobProfile(
            job_id="job_1",
            map_profiles=[
                MapProfile(num_tasks=3, timings={TaskPhase.MAP: 1000.0}),
                MapProfile(input_index=1, num_tasks=1, timings={TaskPhase.MAP: 5000.0}),
            ],
        )
        avg = profile.avg_map_profile
        assert avg.num_tasks == 4
        assert avg.timing(TaskPhase.MAP) == pytest.approx(2000.0)
        assert profile.map_profile_for(1) is profile.map_profiles[1]
        assert profile.map_profile_for(7) is None

    def test_avg_reduce_profile_of_map_only_job(self) -> None:
        assert make_profile(num_reduces=0).avg_reduce_profile is None

    def test_memory_required(self) -> None:
        profile = make_profile(
            map_statistics={Statistic.STARTUP_MEM: 10 * MB, Statistic.MAP_MEM_PER_RECORD: 2.0},
            reduce_statistics={Statistic.SETUP_MEM: 4 * MB},
        )
        # 10 MB + 2 bytes per input record
        assert map_memory_required(profile.map_profiles[0]) == 10 * MB + 2_000_000
        assert reduce_memory_required(profile.reduce_profiles[0]) == 4 * MB
        assert map_memory_required(None) == 0
        assert reduce_memory_required(None) == 0


class TestClusterModel:
    """Tests for ClusterModel and its synthesis."""

    def test_synthesize_names_and_totals(self) -> None:
        cluster = synthesize_cluster("c", 2, 3, map_slots=4, reduce_slots=2, max_task_memory=MB)
        assert cluster.num_hosts == 6
        assert cluster.total_map_slots == 24
        assert cluster.total_reduce_slots == 12
        assert cluster.racks[1].name == "rack_002"
        assert cluster.racks[1].hosts[2].name == "rack_002_host_003"
        assert cluster.trackers[0].name == "task_tracker_rack_001_host_001"
        assert cluster.max_task_memory == MB

    def test_synthesize_needs_a_host(self) -> None:
        with pytest.raises(ValueError):
            synthesize_cluster("c", 0, 1, map_slots=1, reduce_slots=1, max_task_memory=MB)

    def test_duplicate_host_names_rejected(self) -> None:
        data = {
            "racks": [
                {"name": "r1", "hosts": [{"name": "h1"}]},
                {"name": "r2", "hosts": [{"name": "h1"}]},
            ]
        }
        with pytest.raises(ValidationError, match="duplicate host name"):
            ClusterModel.model_validate(data)

    def test_from_configuration(self) -> None:
        conf = Configuration(
            {
                CLUSTER_RACKS_KEY: 2,
                CLUSTER_HOSTS_PER_RACK_KEY: 5,
                MAP_SLOTS_KEY: 3,
                REDUCE_SLOTS_KEY: 1,
                JAVA_OPTS_KEY: "-Xmx1g",
            }
        )
        cluster = cluster_from_configuration(conf)
        assert cluster.num_hosts == 10
        assert cluster.total_map_slots == 30
        assert cluster.total_reduce_slots == 10
        assert cluster.max_task_memory == 1 << 30

    def test_from_empty_configuration(self) -> None:
        cluster = cluster_from_configuration(Configuration())
        assert cluster.num_hosts == 1
        assert cluster.total_map_slots == 2
        assert cluster.total_reduce_slots == 2

    def test_empty_cluster_memory(self) -> None:
        assert ClusterModel().max_task_memory == 0

    def test_save_then_load(self, tmp_path: Path) -> None:
        path = tmp_path / "cluster.yaml"
        cluster = synthesize_cluster("c", 1, 2, map_slots=2, reduce_slots=1, max_task_memory=MB)
        save_cluster(cluster, path)
        assert load_cluster(path) == cluster

    def test_zero_memory_rejected_on_load(self, tmp_path: Path) -> None:
        path = tmp_path / "cluster.yaml"
        path.write_text(
            "racks:\n"
            "  - name: r1\n"
            "    hosts:\n"
            "      - name: h1\n"
            "        trackers:\n"
            "          - {name: t1, host: h1, max_task_memory: 0}\n"
        )
        with pytest.raises(ConfigValidationError) as exc_info:
            load_cluster(path)
        assert "max_task_memory" in str(exc_info.value)
