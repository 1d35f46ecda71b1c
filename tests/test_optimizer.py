"""Tests for the job optimizers."""

from __future__ import annotations

import pytest

from mrtune.config import (
    COMBINE_CLASS_KEY,
    EXCLUDE_PARAMS_KEY,
    RANDOM_SEED_KEY,
    Configuration,
)
from mrtune.optimizer import (
    FullEnumerationOptimizer,
    OptimizationError,
    OptimizerType,
    RRSOptimizer,
    SmartEnumerationOptimizer,
    SmartRRSOptimizer,
    create_optimizer,
    drop_disabled_combiner,
    make_rng,
)
from mrtune.params import Parameter, ParameterSpacePoint, build_full_space
from mrtune.scheduler import FifoScheduler
from mrtune.whatif import FixedInputDatasetModel, InputSpec, ProfileDatasetModel, ScalingProfileOracle
from tests.conftest import make_cluster, make_configuration, make_profile

# Everything but the two compression switches
_ALL_BUT_COMPRESSION = ",".join(
    p.key
    for p in Parameter
    if p not in (Parameter.COMPRESS_MAP_OUT, Parameter.COMPRESS_OUT)
)


def _optimizer(mode, conf: Configuration, cluster=None, dataset=None):
    profile = make_profile()
    cluster = cluster or make_cluster()
    return create_optimizer(
        mode,
        ScalingProfileOracle(profile),
        dataset or ProfileDatasetModel(profile),
        cluster,
        FifoScheduler(cluster),
        conf,
    )


class TestCreateOptimizer:
    """Tests for optimizer selection."""

    @pytest.mark.parametrize(
        ("mode", "cls"),
        [
            ("full", FullEnumerationOptimizer),
            ("smart_full", SmartEnumerationOptimizer),
            ("rrs", RRSOptimizer),
            (OptimizerType.SMART_RRS, SmartRRSOptimizer),
        ],
    )
    def test_modes(self, mode, cls, conf) -> None:
        assert isinstance(_optimizer(mode, conf), cls)

    def test_unknown_mode(self, conf) -> None:
        with pytest.raises(ValueError):
            _optimizer("genetic", conf)


class TestHelpers:
    """Tests for seeding and combiner clean-up."""

    def test_seeded_rng_is_reproducible(self) -> None:
        conf = Configuration({RANDOM_SEED_KEY: 42})
        assert make_rng(conf).random() == make_rng(conf).random()

    def test_drop_disabled_combiner(self) -> None:
        conf = Configuration({COMBINE_CLASS_KEY: "C", Parameter.COMBINE.key: False})
        drop_disabled_combiner(conf)
        assert COMBINE_CLASS_KEY not in conf

    def test_keep_enabled_combiner(self) -> None:
        conf = Configuration({COMBINE_CLASS_KEY: "C", Parameter.COMBINE.key: True})
        drop_disabled_combiner(conf)
        assert conf.get(COMBINE_CLASS_KEY) == "C"


class TestEnumeration:
    """Tests for grid enumeration."""

    def test_full_enumeration_is_optimal(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        optimizer = _optimizer("full", conf)
        result = optimizer.optimize()
        assert result.evaluations == 4

        grid = build_full_space(conf).grid(2)
        costs = [optimizer.cost_of(point) for point in grid]
        assert optimizer.cost_of(result.point) == min(costs)
        assert result.point.get(Parameter.COMPRESS_MAP_OUT) is True

    def test_result_replayed_in_detail(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        result = _optimizer("full", conf).optimize()
        assert result.duration == result.execution.duration
        assert len(result.execution.map_tasks) == 8
        assert result.profile.num_reduce_tasks == 2

    def test_full_configuration_keeps_other_keys(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION, "custom.key": "x"})
        full = _optimizer("full", conf).optimize(full_configuration=True).configuration
        assert full.get("custom.key") == "x"
        assert full.get(Parameter.COMPRESS_MAP_OUT.key) == "true"

        tuned = _optimizer("full", conf).optimize(full_configuration=False).configuration
        assert set(tuned.to_dict()) == {
            Parameter.COMPRESS_MAP_OUT.key,
            Parameter.COMPRESS_OUT.key,
        }

    def test_input_configuration_untouched(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        before = conf.copy()
        _optimizer("full", conf).optimize()
        assert conf == before

    def test_smart_enumeration_runs_both_phases(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        optimizer = _optimizer("smart_full", conf)
        result = optimizer.optimize()
        # Map phase: map-output compression only; reduce phase: both switches
        assert result.evaluations == 2 + 4
        assert set(result.point.parameters) == {Parameter.COMPRESS_MAP_OUT, Parameter.COMPRESS_OUT}
        assert result.point.get(Parameter.COMPRESS_MAP_OUT) is True
        assert optimizer.engine.scheduler.ignore_reducers is False

    def test_empty_space(self) -> None:
        conf = make_configuration(
            {EXCLUDE_PARAMS_KEY: ",".join(p.key for p in Parameter)}
        )
        result = _optimizer("full", conf).optimize()
        assert result.point == ParameterSpacePoint()
        assert result.evaluations == 1
        assert result.configuration.get("mapred.reduce.tasks") == "2"


class TestRandomSearch:
    """Tests for the RRS-driven optimizers."""

    def test_small_space_is_enumerated(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        rrs = _optimizer("rrs", conf).optimize()
        full = _optimizer("full", conf).optimize()
        assert rrs.evaluations == 4
        assert rrs.point == full.point

    def test_empty_space_needs_no_evaluation(self) -> None:
        conf = make_configuration(
            {EXCLUDE_PARAMS_KEY: ",".join(p.key for p in Parameter)}
        )
        result = _optimizer("rrs", conf).optimize()
        assert result.point == ParameterSpacePoint()
        assert result.evaluations == 0

    @pytest.mark.slow
    def test_seeded_search_is_deterministic(self) -> None:
        conf = make_configuration(
            {
                RANDOM_SEED_KEY: 7,
                EXCLUDE_PARAMS_KEY: "mapred.reduce.tasks,mapred.inmem.merge.threshold",
            }
        )
        first = _optimizer("smart_rrs", conf).optimize()
        second = _optimizer("smart_rrs", conf).optimize()
        assert first.point == second.point
        assert first.duration == second.duration
        assert first.evaluations == second.evaluations


class TestFailures:
    """Tests for evaluation failures."""

    def test_projection_failure(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        dataset = FixedInputDatasetModel([InputSpec(num_splits=0, avg_split_size=1)])
        with pytest.raises(OptimizationError):
            _optimizer("full", conf, dataset=dataset).optimize()

    def test_scheduler_failure(self) -> None:
        conf = make_configuration({EXCLUDE_PARAMS_KEY: _ALL_BUT_COMPRESSION})
        with pytest.raises(OptimizationError):
            _optimizer("full", conf, cluster=make_cluster(reduce_slots=0)).optimize()

    def test_smart_projection_failure(self) -> None:
        conf = make_configuration()
        dataset = FixedInputDatasetModel([])
        with pytest.raises(OptimizationError):
            _optimizer("smart_rrs", conf, dataset=dataset).optimize()
