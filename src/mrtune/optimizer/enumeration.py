"""Grid enumeration optimizers.

The grid takes ``mrtune.optimizer.num.values.per.param`` values per
parameter, equi-spaced or random (``mrtune.optimizer.use.random.values``).
"""

from __future__ import annotations

import logging

from mrtune.config import Configuration
from mrtune.params import ParameterSpace, ParameterSpacePoint, build_full_space

from .base import JobOptimizer, PhasedJobOptimizer

logger = logging.getLogger(__name__)


def grid_search(
    optimizer: JobOptimizer,
    space: ParameterSpace,
    conf: Configuration,
) -> ParameterSpacePoint:
    """Evaluate every grid point of ``space`` and return the cheapest."""
    points = space.grid(optimizer.num_values_per_param, optimizer.use_random_values, optimizer.rng)
    logger.debug("Enumerating %d points over %d parameters", len(points), space.num_dimensions)
    best, cost = optimizer.find_best_among(points, conf)
    logger.debug("Best of %d points: %.0f ms", len(points), cost)
    return best


class FullEnumerationOptimizer(JobOptimizer):
    """Evaluate every point of the full-space grid."""

    def search_best_point(self, conf: Configuration) -> ParameterSpacePoint:
        return grid_search(self, build_full_space(conf), conf)


class SmartEnumerationOptimizer(PhasedJobOptimizer):
    """Enumerate the map-side grid, then the reduce-side grid."""

    def search_space(self, space: ParameterSpace, conf: Configuration) -> ParameterSpacePoint:
        return grid_search(self, space, conf)
