"""Optimizers driven by Recursive Random Search."""

from __future__ import annotations

import functools
import logging

from mrtune.config import Configuration
from mrtune.params import ParameterSpace, ParameterSpacePoint, build_full_space

from .base import JobOptimizer, OptimizationError, PhasedJobOptimizer
from .rrs import RecursiveRandomSearch

logger = logging.getLogger(__name__)


def random_search(
    optimizer: JobOptimizer,
    space: ParameterSpace,
    conf: Configuration,
) -> ParameterSpacePoint:
    """Run RRS over ``space``, pricing points against ``conf``."""
    try:
        rrs = RecursiveRandomSearch.from_configuration(conf, rng=optimizer.rng)
    except ValueError as e:
        raise OptimizationError(f"Invalid search settings: {e}") from e
    best = rrs.find_best_point(space, functools.partial(optimizer.cost_of, base=conf))
    logger.debug(
        "RRS over %d parameters took %d evaluations", space.num_dimensions, rrs.evaluations
    )
    return best


class RRSOptimizer(JobOptimizer):
    """Recursive random search over the full parameter space."""

    def search_best_point(self, conf: Configuration) -> ParameterSpacePoint:
        return random_search(self, build_full_space(conf), conf)


class SmartRRSOptimizer(PhasedJobOptimizer):
    """Recursive random search over the map space, then the reduce space."""

    def search_space(self, space: ParameterSpace, conf: Configuration) -> ParameterSpacePoint:
        return random_search(self, space, conf)
