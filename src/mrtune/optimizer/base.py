"""Job optimizer base: shared evaluation plumbing for every search strategy.

A strategy only decides *which* points to evaluate. The base class owns
the rest of the loop:

1. checkpoint the scheduler so each candidate starts from the same slots
2. ``search_best_point`` (strategy-specific), pricing points via ``cost_of``
3. reset the scheduler and replay the winner in detailed mode
4. package the winner as an ``OptimizationResult``
"""

from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from mrtune.config import (
    COMBINE_CLASS_KEY,
    DEFAULT_NUM_VALUES_PER_PARAM,
    NUM_VALUES_PER_PARAM_KEY,
    RANDOM_SEED_KEY,
    USE_RANDOM_VALUES_KEY,
    Configuration,
)
from mrtune.models import ClusterModel, JobProfile, SyntheticJobExecution
from mrtune.params import (
    Parameter,
    ParameterSpace,
    ParameterSpacePoint,
    adjust_space,
    build_map_space,
    build_reduce_space,
)
from mrtune.scheduler import FifoScheduler, SchedulerError
from mrtune.whatif import DatasetModel, ProfileOracle, ProjectionError, WhatIfEngine

logger = logging.getLogger(__name__)


class OptimizationError(Exception):
    """Raised when evaluating a candidate configuration fails."""

    pass


class OptimizerType(str, Enum):
    """Available search strategies."""

    FULL = "full"
    SMART_FULL = "smart_full"
    RRS = "rrs"
    SMART_RRS = "smart_rrs"


DEFAULT_OPTIMIZER = OptimizerType.SMART_RRS


@dataclass
class OptimizationResult:
    """Winner of a search, replayed in detailed mode."""

    point: ParameterSpacePoint
    configuration: Configuration
    profile: JobProfile
    duration: float
    execution: SyntheticJobExecution
    evaluations: int


def make_rng(conf: Configuration) -> random.Random:
    """Random source seeded from the configuration, when a seed is set."""
    seed = conf.get(RANDOM_SEED_KEY)
    if not seed:
        return random.Random()
    try:
        return random.Random(int(seed))
    except ValueError as e:
        raise OptimizationError(f"Invalid {RANDOM_SEED_KEY}: {seed!r}") from e


def drop_disabled_combiner(conf: Configuration) -> None:
    """Remove the combiner class when the search turned the combiner off."""
    if conf.get(COMBINE_CLASS_KEY) and not conf.get_bool(Parameter.COMBINE.key, True):
        conf.unset(COMBINE_CLASS_KEY)


class JobOptimizer(ABC):
    """Search the parameter space for the configuration with the least
    predicted running time.

    Usage::

        optimizer = create_optimizer("smart_rrs", oracle, dataset, cluster, scheduler, conf)
        result = optimizer.optimize()
        print(result.duration, result.configuration.to_dict())
    """

    def __init__(
        self,
        oracle: ProfileOracle,
        dataset: DatasetModel,
        cluster: ClusterModel,
        scheduler: FifoScheduler,
        conf: Configuration,
    ) -> None:
        self.oracle = oracle
        self.dataset = dataset
        self.cluster = cluster
        self.scheduler = scheduler
        self.conf = conf
        self.engine = WhatIfEngine(oracle, dataset, scheduler)
        self.rng = make_rng(conf)
        self.submission_time = 0.0
        self.evaluations = 0

    @property
    def num_values_per_param(self) -> int:
        return self.conf.get_int(NUM_VALUES_PER_PARAM_KEY, DEFAULT_NUM_VALUES_PER_PARAM)

    @property
    def use_random_values(self) -> bool:
        return self.conf.get_bool(USE_RANDOM_VALUES_KEY, False)

    @abstractmethod
    def search_best_point(self, conf: Configuration) -> ParameterSpacePoint:
        """Return the best point found; ``conf`` is a private working copy."""

    def optimize(
        self,
        submission_time: float = 0.0,
        full_configuration: bool = True,
    ) -> OptimizationResult:
        """Run the search and replay the winner.

        Args:
            submission_time: Job submission time on the scheduler's clock (ms)
            full_configuration: Return the whole job configuration with the
                winner applied, or only the searched keys

        Raises:
            OptimizationError: If any evaluation fails
        """
        self.submission_time = submission_time
        self.evaluations = 0

        self.scheduler.checkpoint()
        try:
            point = self.search_best_point(self.conf.copy())
        finally:
            self.scheduler.reset()

        best = self.conf.copy()
        point.populate_configuration(best)
        try:
            profile = self.engine.project(best)
            execution = self.scheduler.schedule(profile, best, submission_time)
        except (ProjectionError, SchedulerError) as e:
            logger.error("Replaying the best configuration failed: %s", point.to_dict())
            raise OptimizationError(f"Replaying the best configuration failed: {e}") from e

        if full_configuration:
            drop_disabled_combiner(best)
            configuration = best
        else:
            configuration = Configuration()
            point.populate_configuration(configuration)

        logger.info(
            "%s: best predicted time %.0f ms after %d evaluations",
            type(self).__name__,
            execution.duration,
            self.evaluations,
        )
        return OptimizationResult(
            point=point,
            configuration=configuration,
            profile=profile,
            duration=execution.duration,
            execution=execution,
            evaluations=self.evaluations,
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def project(self, conf: Configuration) -> JobProfile:
        """Project a profile, converting oracle failures to OptimizationError."""
        try:
            return self.engine.project(conf)
        except ProjectionError as e:
            raise OptimizationError(str(e)) from e

    def cost_of(self, point: ParameterSpacePoint, base: Configuration | None = None) -> float:
        """Predicted running time (ms) of ``base`` with ``point`` applied.

        Raises:
            OptimizationError: If projection or simulation fails
        """
        conf = (base if base is not None else self.conf).copy()
        point.populate_configuration(conf)
        self.scheduler.reset()
        try:
            duration = self.engine.predict_duration(conf, self.submission_time)
        except Exception as e:
            logger.error("Evaluation failed for configuration: %s", conf.to_dict())
            raise OptimizationError(f"Evaluation failed at {point}: {e}") from e

        self.evaluations += 1
        logger.debug("Evaluation %d: %.0f ms at %s", self.evaluations, duration, point)
        return duration

    def find_best_among(
        self,
        points: Iterable[ParameterSpacePoint],
        base: Configuration | None = None,
    ) -> tuple[ParameterSpacePoint, float]:
        """Cheapest point; ties keep the first one seen."""
        best_point = ParameterSpacePoint()
        best_cost = math.inf
        for point in points:
            cost = self.cost_of(point, base)
            if cost < best_cost:
                best_point, best_cost = point, cost
        return best_point, best_cost


class PhasedJobOptimizer(JobOptimizer):
    """Optimize map-side parameters first, then reduce-side ones.

    Both spaces are adjusted against the profile projected for the input
    configuration. The map phase runs with reducers ignored; the reduce
    phase runs with the map winner stamped on the configuration. The merged
    point takes the reduce winner's value for parameters both phases share.
    """

    @abstractmethod
    def search_space(self, space: ParameterSpace, conf: Configuration) -> ParameterSpacePoint:
        """Best point of one phase's space, evaluated against ``conf``."""

    def search_best_point(self, conf: Configuration) -> ParameterSpacePoint:
        profile = self.project(conf)

        map_space = build_map_space(conf)
        adjust_space(map_space, profile, self.cluster, conf)
        logger.debug("Map phase: %d parameters", map_space.num_dimensions)

        self.engine.set_ignore_reducers(True)
        try:
            map_point = self.search_space(map_space, conf)
        finally:
            self.engine.set_ignore_reducers(False)
        map_point.populate_configuration(conf)

        reduce_space = build_reduce_space(conf)
        adjust_space(reduce_space, profile, self.cluster, conf)
        if Parameter.RED_TASKS in reduce_space:
            logger.debug("Reduce task domain: %s", reduce_space.get(Parameter.RED_TASKS).domain)
        reduce_point = self.search_space(reduce_space, conf)

        best = map_point.copy()
        best.merge(reduce_point)
        return best
