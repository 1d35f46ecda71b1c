"""Configuration optimizers: enumeration and recursive random search."""

from __future__ import annotations

from mrtune.config import Configuration
from mrtune.models import ClusterModel
from mrtune.scheduler import FifoScheduler
from mrtune.whatif import DatasetModel, ProfileOracle

from .base import (
    DEFAULT_OPTIMIZER,
    JobOptimizer,
    OptimizationError,
    OptimizationResult,
    OptimizerType,
    PhasedJobOptimizer,
    drop_disabled_combiner,
    make_rng,
)
from .enumeration import FullEnumerationOptimizer, SmartEnumerationOptimizer, grid_search
from .random_search import RRSOptimizer, SmartRRSOptimizer, random_search
from .rrs import CostEngine, RecursiveRandomSearch, SearchSpace

_OPTIMIZERS: dict[OptimizerType, type[JobOptimizer]] = {
    OptimizerType.FULL: FullEnumerationOptimizer,
    OptimizerType.SMART_FULL: SmartEnumerationOptimizer,
    OptimizerType.RRS: RRSOptimizer,
    OptimizerType.SMART_RRS: SmartRRSOptimizer,
}


def create_optimizer(
    mode: OptimizerType | str,
    oracle: ProfileOracle,
    dataset: DatasetModel,
    cluster: ClusterModel,
    scheduler: FifoScheduler,
    conf: Configuration,
) -> JobOptimizer:
    """Instantiate the optimizer for ``mode``.

    Raises:
        ValueError: If ``mode`` is not a known optimizer type
    """
    optimizer_cls = _OPTIMIZERS[OptimizerType(mode)]
    return optimizer_cls(oracle, dataset, cluster, scheduler, conf)


__all__ = [
    # Base
    "DEFAULT_OPTIMIZER",
    "JobOptimizer",
    "OptimizationError",
    "OptimizationResult",
    "OptimizerType",
    "PhasedJobOptimizer",
    "create_optimizer",
    "drop_disabled_combiner",
    "make_rng",
    # Strategies
    "FullEnumerationOptimizer",
    "RRSOptimizer",
    "SmartEnumerationOptimizer",
    "SmartRRSOptimizer",
    "grid_search",
    "random_search",
    # RRS core
    "CostEngine",
    "RecursiveRandomSearch",
    "SearchSpace",
]
