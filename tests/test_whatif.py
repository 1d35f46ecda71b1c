"""Tests for dataset models, the scaling oracle, and the what-if engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from mrtune._constants import MB
from mrtune.config import (
    COMBINE_CLASS_KEY,
    RED_TASKS_KEY,
    ConfigValidationError,
    Configuration,
)
from mrtune.models import Counter, MapProfile, Statistic, TaskPhase
from mrtune.params import Parameter
from mrtune.scheduler import FifoScheduler
from mrtune.whatif import (
    FixedInputDatasetModel,
    InputSpec,
    ProfileDatasetModel,
    ProjectionError,
    ScalingProfileOracle,
    WhatIfEngine,
    load_input_specs,
    save_input_specs,
)
from tests.conftest import make_configuration, make_profile


def _project(conf: Configuration, dataset=None, profile=None):
    profile = profile or make_profile()
    return ScalingProfileOracle(profile).project(conf, dataset or ProfileDatasetModel(profile))


class TestDatasetModels:
    """Tests for input and shuffle specs."""

    def test_profile_dataset_reuses_observed_inputs(self, profile, conf) -> None:
        (spec,) = ProfileDatasetModel(profile).map_input_specs(conf)
        assert spec.input_index == 0
        assert spec.num_splits == 8
        assert spec.avg_split_size == 64 * MB
        assert spec.compressed is False

    def test_profile_dataset_detects_compressed_input(self, conf) -> None:
        profile = make_profile(map_statistics={Statistic.INPUT_COMPRESS_RATIO: 0.25})
        (spec,) = ProfileDatasetModel(profile).map_input_specs(conf)
        assert spec.compressed is True

    def test_fixed_dataset_ignores_configuration(self, conf) -> None:
        specs = [InputSpec(num_splits=4, avg_split_size=MB)]
        dataset = FixedInputDatasetModel(specs)
        assert dataset.map_input_specs(conf) == specs
        assert dataset.map_input_specs(Configuration()) == specs

    def test_shuffle_spec_splits_materialized_output(self) -> None:
        maps = [
            MapProfile(
                num_tasks=4,
                counters={
                    Counter.FILE_BYTES_WRITTEN: 1000,
                    Counter.FILE_BYTES_READ: 200,
                    Counter.MAP_OUTPUT_RECORDS: 100,
                    Counter.COMBINE_INPUT_RECORDS: 100,
                    Counter.COMBINE_OUTPUT_RECORDS: 10,
                },
            )
        ]
        shuffle = FixedInputDatasetModel([]).shuffle_spec(Configuration({RED_TASKS_KEY: 2}), maps)
        assert shuffle.num_mappers == 4
        assert shuffle.num_reducers == 2
        assert shuffle.size == 1600
        assert shuffle.records == 20

    def test_input_specs_document(self, tmp_path: Path) -> None:
        path = tmp_path / "inputs.yaml"
        specs = [
            InputSpec(input_index=0, num_splits=16, avg_split_size=64 * MB),
            InputSpec(input_index=1, num_splits=2, avg_split_size=MB, compressed=True),
        ]
        save_input_specs(specs, path)
        assert load_input_specs(path) == specs

    def test_negative_splits_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "inputs.yaml"
        path.write_text("inputs:\n  - {num_splits: -1, avg_split_size: 10}\n")
        with pytest.raises(ConfigValidationError):
            load_input_specs(path)


class TestScalingProfileOracle:
    """Tests for profile projection."""

    def test_projects_task_counts(self, conf) -> None:
        projected = _project(conf)
        assert projected.job_id == "job_test_0001"
        assert projected.num_map_tasks == 8
        assert projected.num_reduce_tasks == 2
        assert projected.counter(Counter.MAP_TASKS) == 8
        assert projected.map_profiles[0].task_id == "map_0_input_0"

    def test_reducer_count_follows_configuration(self) -> None:
        projected = _project(make_configuration({RED_TASKS_KEY: 5}))
        assert projected.num_reduce_tasks == 5

    def test_map_only_writes_output(self) -> None:
        projected = _project(Configuration({RED_TASKS_KEY: 0}))
        assert projected.reduce_profiles == []
        (map_profile,) = projected.map_profiles
        assert map_profile.counter(Counter.HDFS_BYTES_WRITTEN) == 80 * MB
        assert TaskPhase.SPILL not in map_profile.timings

    def test_map_only_output_compression(self) -> None:
        plain = _project(Configuration({RED_TASKS_KEY: 0})).map_profiles[0]
        compressed = _project(
            Configuration({RED_TASKS_KEY: 0, Parameter.COMPRESS_OUT.key: True})
        ).map_profiles[0]
        assert compressed.counter(Counter.HDFS_BYTES_WRITTEN) < plain.counter(
            Counter.HDFS_BYTES_WRITTEN
        )

    def test_ignore_reducers(self, profile, conf) -> None:
        oracle = ScalingProfileOracle(profile)
        oracle.set_ignore_reducers(True)
        assert oracle.project(conf, ProfileDatasetModel(profile)).reduce_profiles == []

    def test_no_input_is_an_error(self, conf) -> None:
        dataset = FixedInputDatasetModel([InputSpec(num_splits=0, avg_split_size=MB)])
        with pytest.raises(ProjectionError):
            _project(conf, dataset)

    def test_scale_monotonicity(self, conf) -> None:
        small = _project(conf, FixedInputDatasetModel([InputSpec(num_splits=8, avg_split_size=32 * MB)]))
        large = _project(conf, FixedInputDatasetModel([InputSpec(num_splits=8, avg_split_size=128 * MB)]))
        assert small.map_profiles[0].total_time < large.map_profiles[0].total_time
        assert small.reduce_profiles[0].total_time < large.reduce_profiles[0].total_time

    def test_same_split_size_keeps_map_phases(self, conf) -> None:
        map_profile = _project(conf).map_profiles[0]
        assert map_profile.timing(TaskPhase.READ) == 2000.0
        assert map_profile.timing(TaskPhase.MAP) == 6000.0
        assert map_profile.counter(Counter.MAP_OUTPUT_BYTES) == 80 * MB

    def test_larger_sort_buffer_spills_less(self) -> None:
        small = _project(make_configuration({Parameter.SORT_MB.key: 20})).map_profiles[0]
        large = _project(make_configuration({Parameter.SORT_MB.key: 200})).map_profiles[0]
        assert small.counter(Counter.MAP_NUM_SPILLS) == 39
        assert large.counter(Counter.MAP_NUM_SPILLS) == 4
        assert large.total_time < small.total_time

    def test_single_spill_needs_no_merge(self) -> None:
        conf = make_configuration(
            {Parameter.SORT_MB.key: 500, Parameter.SORT_REC_PERC.key: 0.3}
        )
        map_profile = _project(conf).map_profiles[0]
        assert map_profile.counter(Counter.MAP_NUM_SPILLS) == 1
        assert map_profile.counter(Counter.MAP_NUM_SPILL_MERGES) == 0
        assert map_profile.counter(Counter.FILE_BYTES_READ) == 0
        assert map_profile.timing(TaskPhase.MERGE) == 0.0

    def test_map_output_compression_shrinks_shuffle(self, conf) -> None:
        compressed_conf = make_configuration({Parameter.COMPRESS_MAP_OUT.key: True})
        plain = _project(conf)
        compressed = _project(compressed_conf)
        assert compressed.map_profiles[0].counter(Counter.FILE_BYTES_WRITTEN) < plain.map_profiles[
            0
        ].counter(Counter.FILE_BYTES_WRITTEN)
        assert compressed.reduce_profiles[0].timing(TaskPhase.SHUFFLE) < plain.reduce_profiles[
            0
        ].timing(TaskPhase.SHUFFLE)

    def test_combiner_runs_only_when_enabled(self) -> None:
        with_class = {COMBINE_CLASS_KEY: "org.example.Combiner"}
        enabled = _project(make_configuration(with_class)).map_profiles[0]
        disabled = _project(
            make_configuration({**with_class, Parameter.COMBINE.key: False})
        ).map_profiles[0]
        assert enabled.counter(Counter.COMBINE_INPUT_RECORDS) == 2_000_000
        assert Counter.COMBINE_INPUT_RECORDS not in disabled.counters
        assert enabled.counter(Counter.FILE_BYTES_WRITTEN) < disabled.counter(
            Counter.FILE_BYTES_WRITTEN
        )

    def test_unknown_input_uses_average_profile(self, conf) -> None:
        dataset = FixedInputDatasetModel([InputSpec(input_index=3, num_splits=2, avg_split_size=64 * MB)])
        (map_profile,) = _project(conf, dataset).map_profiles
        assert map_profile.input_index == 3
        assert map_profile.num_tasks == 2
        assert map_profile.timing(TaskPhase.MAP) == pytest.approx(6000.0)


class TestWhatIfEngine:
    """Tests for the engine wiring oracle and scheduler."""

    def _engine(self, profile, cluster) -> WhatIfEngine:
        return WhatIfEngine(
            ScalingProfileOracle(profile), ProfileDatasetModel(profile), FifoScheduler(cluster)
        )

    def test_predict_duration_matches_scheduler(self, profile, cluster, conf) -> None:
        engine = self._engine(profile, cluster)
        projected = engine.project(conf)
        expected = FifoScheduler(cluster).schedule_duration(projected, conf)
        assert engine.predict_duration(conf) == expected

    def test_predict_execution(self, profile, cluster, conf) -> None:
        execution = self._engine(profile, cluster).predict_execution(conf)
        assert len(execution.map_tasks) == 8
        assert len(execution.reduce_tasks) == 2
        assert execution.duration > 0

    def test_set_ignore_reducers_reaches_both(self, profile, cluster, conf) -> None:
        engine = self._engine(profile, cluster)
        engine.set_ignore_reducers(True)
        assert engine.oracle.ignore_reducers is True
        assert engine.scheduler.ignore_reducers is True
        assert engine.predict_execution(conf).reduce_tasks == ()

    def test_state_is_not_reset_between_calls(self, profile, cluster, conf) -> None:
        engine = self._engine(profile, cluster)
        first = engine.predict_duration(conf)
        assert engine.predict_duration(conf) > first
        engine.scheduler.reset()
        assert engine.predict_duration(conf) == first
